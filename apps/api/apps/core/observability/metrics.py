"""
Metrics instrumentation.

Prometheus counters and histograms for HTTP traffic and the tenancy/scheduling domain.
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram


class MetricsRegistry:
    """
    Central metrics registry.

    Provides typed access to all application metrics.
    """

    def __init__(self):
        """Initialize metrics registry."""
        self._setup_metrics()

    def _create_counter(self, name, description, labels=None):
        """Create a counter metric."""
        return Counter(name, description, labels or [])

    def _create_histogram(self, name, description, labels=None, buckets=None):
        """Create a histogram metric."""
        if buckets:
            return Histogram(name, description, labels or [], buckets=buckets)
        return Histogram(name, description, labels or [])

    def _setup_metrics(self):
        """Setup all application metrics."""

        # ===================================================================
        # HTTP Metrics
        # ===================================================================
        self.http_requests_total = self._create_counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'status']
        )

        self.http_request_duration_seconds = self._create_histogram(
            'http_request_duration_seconds',
            'HTTP request duration in seconds',
            ['method'],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
        )

        self.exceptions_total = self._create_counter(
            'exceptions_total',
            'Total exceptions',
            ['exception_type', 'location']
        )

        # ===================================================================
        # Access Guard Metrics
        # ===================================================================
        self.access_decisions_total = self._create_counter(
            'access_decisions_total',
            'Access guard decisions',
            ['action', 'result']  # result: allowed|unauthenticated|no_clinic|forbidden
        )

        # ===================================================================
        # Scheduling Metrics
        # ===================================================================
        self.appointment_bookings_total = self._create_counter(
            'appointment_bookings_total',
            'Appointment bookings and reschedules',
            ['scope', 'result']  # scope: clinic|practitioner, result: success|conflict
        )

        self.appointment_transitions_total = self._create_counter(
            'appointment_transitions_total',
            'Appointment status transitions',
            ['from_status', 'to_status', 'result']
        )

        self.conflict_check_duration_seconds = self._create_histogram(
            'appointment_conflict_check_duration_seconds',
            'Duration of the appointment overlap query',
            buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25]
        )

    def track_duration(self, histogram_metric):
        """
        Decorator to track function duration.

        Usage:
            @metrics.track_duration(metrics.conflict_check_duration_seconds)
            def has_conflict(...):
                ...
        """
        def decorator(func):
            @wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.time()
                try:
                    return func(*args, **kwargs)
                finally:
                    duration = time.time() - start_time
                    histogram_metric.observe(duration)
            return wrapper
        return decorator


# Global metrics instance
metrics = MetricsRegistry()

"""
Health, readiness and metrics endpoints.

/healthz answers as long as the process runs; /readyz also requires the
database to answer and every migration to be applied; /metrics is the
Prometheus exposition of the process registry.
"""
import logging

from django.conf import settings
from django.db import DatabaseError, connections
from django.db.migrations.executor import MigrationExecutor
from django.http import HttpResponse, JsonResponse
from django.views import View
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = logging.getLogger(__name__)


class HealthzView(View):
    """Liveness: no dependency is checked."""

    def get(self, request):
        body = {
            'status': 'ok',
            'version': getattr(settings, 'VERSION', 'unknown'),
        }
        commit_hash = getattr(settings, 'COMMIT_HASH', None)
        if commit_hash:
            body['commit'] = commit_hash
        return JsonResponse(body)


class ReadyzView(View):
    """
    Readiness: 200 when the database answers and has no pending migrations,
    503 otherwise. The migration check is skipped when the database is down.
    """
    database_alias = 'default'

    def get(self, request):
        database_ok = self._check_database()
        checks = {
            'database': database_ok,
            'migrations': database_ok and self._check_migrations(),
        }
        ready = all(checks.values())
        return JsonResponse(
            {'status': 'ready' if ready else 'not_ready', 'checks': checks},
            status=200 if ready else 503,
        )

    def _check_database(self):
        try:
            with connections[self.database_alias].cursor() as cursor:
                cursor.execute('SELECT 1')
            return True
        except DatabaseError as exc:
            self._log_failure('database', exc)
            return False

    def _check_migrations(self):
        try:
            executor = MigrationExecutor(connections[self.database_alias])
            pending = executor.migration_plan(executor.loader.graph.leaf_nodes())
        except DatabaseError as exc:
            self._log_failure('migrations', exc)
            return False
        if pending:
            logger.warning(
                'Unapplied migrations',
                extra={'event': 'health_check_failed', 'check': 'migrations', 'pending': len(pending)},
            )
        return not pending

    def _log_failure(self, check, exc):
        logger.error(
            'Readiness check failed',
            extra={'event': 'health_check_failed', 'check': check, 'error': str(exc)},
        )


class MetricsView(View):
    """Prometheus exposition endpoint."""

    def get(self, request):
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)

"""
Appointment scheduling: overlap detection and the booking state machine.

Two intervals [s1, e1) and [s2, e2) conflict iff s1 < e2 and s2 < e1.
Cancelled and no-show appointments release their slot.

Booking and rescheduling lock the clinic row before checking, so the
check-then-insert sequence is atomic per clinic: of two concurrent
conflicting bookings exactly one is persisted.
"""
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models import Q

from apps.clinical.models import Appointment, AppointmentStatusChoices
from apps.core.exceptions import InvalidTransition, SlotConflict
from apps.core.models import Clinic
from apps.core.observability.events import (
    log_appointment_booked,
    log_appointment_transition,
    log_slot_conflict,
)
from apps.core.observability.metrics import metrics


class ConflictScope(models.TextChoices):
    """Which appointments compete for a slot."""
    CLINIC = 'clinic', 'Whole clinic'
    PRACTITIONER = 'practitioner', 'One practitioner'


class ConflictChecker:
    """Read-only overlap query. Callers needing atomicity hold the clinic lock."""

    def __init__(self, using='default'):
        self.using = using

    def overlapping(self, clinic_id, start, duration_minutes, exclude_appointment_id=None,
                    practitioner_id=None, scope=ConflictScope.CLINIC):
        """Appointments of the clinic that still hold a slot overlapping the candidate window."""
        if duration_minutes is None or duration_minutes < 1:
            raise ValidationError({'duration_minutes': 'Duration must be at least 1 minute'})
        if scope == ConflictScope.PRACTITIONER and practitioner_id is None:
            raise ValueError('practitioner_id is required for practitioner-scoped checks')

        end = Appointment.compute_end(start, duration_minutes)

        qs = (
            Appointment.objects.using(self.using)
            .filter(clinic_id=clinic_id)
            .exclude(status__in=Appointment.RELEASED_STATUSES)
            .filter(Q(scheduled_start__lt=end) & Q(scheduled_end__gt=start))
        )

        if scope == ConflictScope.PRACTITIONER:
            qs = qs.filter(assigned_user_id=practitioner_id)

        # Exclude the appointment being rescheduled
        if exclude_appointment_id is not None:
            qs = qs.exclude(pk=exclude_appointment_id)

        return qs

    @metrics.track_duration(metrics.conflict_check_duration_seconds)
    def has_conflict(self, clinic_id, start, duration_minutes, exclude_appointment_id=None,
                     practitioner_id=None, scope=ConflictScope.CLINIC):
        return self.overlapping(
            clinic_id,
            start,
            duration_minutes,
            exclude_appointment_id=exclude_appointment_id,
            practitioner_id=practitioner_id,
            scope=scope,
        ).exists()


class AppointmentScheduler:
    """
    Creates, reschedules and transitions appointments.

    All writes run in one transaction per call; conflicts raise SlotConflict
    (409) and leave nothing persisted.
    """

    def __init__(self, using='default', checker=None):
        self.using = using
        self.checker = checker or ConflictChecker(using=using)

    def _lock_clinic(self, clinic_id):
        return Clinic.objects.using(self.using).select_for_update().get(pk=clinic_id)

    def _ensure_free(self, clinic_id, start, duration_minutes, scope,
                     practitioner_id=None, exclude_appointment_id=None):
        if self.checker.has_conflict(
            clinic_id,
            start,
            duration_minutes,
            exclude_appointment_id=exclude_appointment_id,
            practitioner_id=practitioner_id,
            scope=scope,
        ):
            metrics.appointment_bookings_total.labels(scope=scope, result='conflict').inc()
            log_slot_conflict(clinic_id, start, duration_minutes, scope, practitioner_id=practitioner_id)
            raise SlotConflict()

    def book(self, clinic_id, patient, service, start, assigned_user_id=None, notes=None,
             scope=ConflictScope.CLINIC):
        """
        Book ``patient`` for ``service`` at ``start``.

        The duration is copied from the service now and never re-read.
        Practitioner scope checks only the assigned practitioner's calendar.

        Raises:
            SlotConflict: the window overlaps an appointment holding its slot
        """
        duration = service.duration_minutes

        with transaction.atomic(using=self.using):
            self._lock_clinic(clinic_id)
            self._ensure_free(clinic_id, start, duration, scope, practitioner_id=assigned_user_id)

            appointment = Appointment(
                clinic_id=clinic_id,
                patient=patient,
                service=service,
                assigned_user_id=assigned_user_id,
                scheduled_start=start,
                duration_minutes=duration,
                scheduled_end=Appointment.compute_end(start, duration),
                status=AppointmentStatusChoices.SCHEDULED,
                notes=notes,
            )
            appointment.save(using=self.using)

        metrics.appointment_bookings_total.labels(scope=scope, result='success').inc()
        log_appointment_booked(appointment, scope)
        return appointment

    def reschedule(self, appointment, new_start, scope=ConflictScope.CLINIC):
        """
        Move ``appointment`` to ``new_start`` keeping its own duration.

        Raises:
            ValidationError: the appointment is in a terminal state
            SlotConflict: the new window overlaps another appointment
        """
        with transaction.atomic(using=self.using):
            self._lock_clinic(appointment.clinic_id)
            current = (
                Appointment.objects.using(self.using)
                .select_for_update()
                .get(pk=appointment.pk)
            )

            if current.is_terminal:
                raise ValidationError(
                    {'scheduled_start': f'Cannot reschedule an appointment that is {current.status}'}
                )

            self._ensure_free(
                current.clinic_id,
                new_start,
                current.duration_minutes,
                scope,
                practitioner_id=current.assigned_user_id,
                exclude_appointment_id=current.pk,
            )

            current.scheduled_start = new_start
            current.scheduled_end = Appointment.compute_end(new_start, current.duration_minutes)
            current.save(using=self.using, update_fields=['scheduled_start', 'scheduled_end', 'updated_at'])

        metrics.appointment_bookings_total.labels(scope=scope, result='success').inc()
        log_appointment_booked(current, scope, rescheduled=True)
        return current

    def transition(self, appointment, new_status, reason=None):
        """
        Apply a status transition from the allowed table.

        Raises:
            InvalidTransition: not allowed from the current status
        """
        with transaction.atomic(using=self.using):
            current = (
                Appointment.objects.using(self.using)
                .select_for_update()
                .get(pk=appointment.pk)
            )
            from_status = current.status

            try:
                current.transition_status(new_status, reason=reason)
            except ValidationError as exc:
                metrics.appointment_transitions_total.labels(
                    from_status=from_status, to_status=str(new_status), result='rejected'
                ).inc()
                log_appointment_transition(current, from_status, str(new_status), result='rejected')
                raise InvalidTransition(detail={'status': exc.messages})

            current.save(using=self.using, update_fields=['status', 'cancellation_reason', 'updated_at'])

        metrics.appointment_transitions_total.labels(
            from_status=from_status, to_status=current.status, result='success'
        ).inc()
        log_appointment_transition(current, from_status, current.status)
        return current

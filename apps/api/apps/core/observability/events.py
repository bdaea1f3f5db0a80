"""
Domain events logging helpers.

Provides structured event logging for tenancy, access and scheduling operations.
"""
from typing import Dict, Optional
from .logging import get_sanitized_logger, sanitize_dict

logger = get_sanitized_logger(__name__)


def log_domain_event(
    event_name: str,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    entity_ids: Optional[Dict[str, str]] = None,
    result: str = 'success',
    **extra_fields
):
    """
    Log a domain event with structured data.

    Args:
        event_name: Name of the event (e.g., 'appointment_booked', 'staff_removed')
        entity_type: Type of entity (e.g., 'Appointment', 'Membership')
        entity_id: ID of primary entity
        entity_ids: Dictionary of related entity IDs
        result: Result of operation (success, conflict, denied, ...)
        **extra_fields: Additional fields to log (will be sanitized)

    Example:
        log_domain_event(
            'appointment_booked',
            entity_type='Appointment',
            entity_id=str(appointment.id),
            entity_ids={'clinic_id': str(appointment.clinic_id)},
            scope='clinic',
        )
    """
    event_data = {
        'event': event_name,
        'result': result,
    }

    if entity_type:
        event_data['entity_type'] = entity_type

    if entity_id:
        event_data['entity_id'] = entity_id

    if entity_ids:
        event_data.update(entity_ids)

    event_data.update(sanitize_dict(extra_fields))

    # Log at appropriate level based on result
    if result in ['failure', 'error']:
        logger.error(f'Domain event: {event_name}', extra=event_data)
    elif result in ['warning', 'denied', 'conflict', 'rejected']:
        logger.warning(f'Domain event: {event_name}', extra=event_data)
    else:
        logger.info(f'Domain event: {event_name}', extra=event_data)


def log_access_denied(account_id, action, reason, clinic_id=None):
    """Log a rejected access guard evaluation."""
    entity_ids = {'account_id': str(account_id) if account_id else None}
    if clinic_id:
        entity_ids['clinic_id'] = str(clinic_id)
    log_domain_event(
        'access_denied',
        entity_type='Account',
        entity_ids=entity_ids,
        result='denied',
        action=str(action) if action else None,
        reason=reason,
    )


def log_appointment_booked(appointment, scope, rescheduled=False):
    """Log a successful booking or reschedule."""
    log_domain_event(
        'appointment_rescheduled' if rescheduled else 'appointment_booked',
        entity_type='Appointment',
        entity_id=str(appointment.id),
        entity_ids={
            'clinic_id': str(appointment.clinic_id),
            'assigned_user_id': str(appointment.assigned_user_id) if appointment.assigned_user_id else None,
        },
        scope=scope,
        scheduled_start=appointment.scheduled_start.isoformat(),
        duration_minutes=appointment.duration_minutes,
    )


def log_slot_conflict(clinic_id, start, duration_minutes, scope, practitioner_id=None):
    """Log a rejected double booking."""
    log_domain_event(
        'appointment_slot_conflict',
        entity_type='Clinic',
        entity_id=str(clinic_id),
        entity_ids={'practitioner_id': str(practitioner_id) if practitioner_id else None},
        result='conflict',
        scope=scope,
        scheduled_start=start.isoformat(),
        duration_minutes=duration_minutes,
    )


def log_appointment_transition(appointment, from_status, to_status, result='success', **extra):
    """Log appointment status transition event."""
    log_domain_event(
        'appointment_transition',
        entity_type='Appointment',
        entity_id=str(appointment.id),
        entity_ids={'clinic_id': str(appointment.clinic_id)},
        result=result,
        from_status=from_status,
        to_status=to_status,
        **extra
    )

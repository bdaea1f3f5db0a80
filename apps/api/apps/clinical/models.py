"""
Clinical models: patient, service, appointment, prescription.

Every row belongs to exactly one clinic; all access goes through the
tenant-scoped accessors in apps.clinical.accessors.
"""
import uuid
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models


# ============================================================================
# Enums
# ============================================================================

class GenderChoices(models.TextChoices):
    """Patient gender"""
    MALE = 'male', 'Male'
    FEMALE = 'female', 'Female'
    OTHER = 'other', 'Other'


class AppointmentStatusChoices(models.TextChoices):
    """
    Appointment status with allowed transitions:
    - scheduled -> confirmed | cancelled
    - confirmed -> in_progress | no_show
    - in_progress -> completed
    - completed, cancelled, no_show are terminal states
    """
    SCHEDULED = 'scheduled', 'Scheduled'
    CONFIRMED = 'confirmed', 'Confirmed'
    IN_PROGRESS = 'in_progress', 'In Progress'
    COMPLETED = 'completed', 'Completed'
    CANCELLED = 'cancelled', 'Cancelled'
    NO_SHOW = 'no_show', 'No Show'


# ============================================================================
# Patients
# ============================================================================

class Patient(models.Model):
    """
    Clinic-scoped patient record, distinct from any login account.

    Fields:
    - id: UUID PK
    - clinic_id: FK -> clinic
    - first_name, last_name
    - email nullable (unique per clinic when present), phone nullable
    - date_of_birth, gender, address nullable
    - blood_type, allergies, current_medications nullable (clinical)
    - notes nullable
    - created_at, updated_at

    A portal account is linked to its patient records by email, per clinic.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    clinic = models.ForeignKey(
        'core.Clinic',
        on_delete=models.CASCADE,
        related_name='patients'
    )

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)

    # Contact
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    address = models.CharField(max_length=255, blank=True, null=True)

    # Demographics
    date_of_birth = models.DateField(blank=True, null=True)
    gender = models.CharField(
        max_length=20,
        choices=GenderChoices.choices,
        blank=True,
        null=True
    )

    # Clinical metadata
    blood_type = models.CharField(max_length=10, blank=True, null=True)
    allergies = models.TextField(blank=True, null=True)
    current_medications = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        ordering = ['last_name', 'first_name']
        constraints = [
            models.UniqueConstraint(
                fields=['clinic', 'email'],
                condition=models.Q(email__isnull=False),
                name='uniq_patient_clinic_email',
                violation_error_message='A patient with this email already exists in this clinic'
            ),
        ]
        indexes = [
            models.Index(fields=['clinic', 'last_name', 'first_name'], name='idx_patient_clinic_name'),
            models.Index(fields=['clinic', 'email'], name='idx_patient_clinic_email'),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


# ============================================================================
# Services
# ============================================================================

class Service(models.Model):
    """
    Clinic offering with a fixed duration and price.

    BUSINESS RULES:
    - duration_minutes >= 1, price >= 0
    - Once an appointment references the service it is deactivated, never deleted
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    clinic = models.ForeignKey(
        'core.Clinic',
        on_delete=models.CASCADE,
        related_name='services'
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    category = models.CharField(max_length=100, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'service'
        verbose_name = 'Service'
        verbose_name_plural = 'Services'
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(duration_minutes__gte=1),
                name='service_duration_positive'
            ),
            models.CheckConstraint(
                condition=models.Q(price__gte=0),
                name='service_price_non_negative'
            ),
        ]
        indexes = [
            models.Index(fields=['clinic', 'is_active'], name='idx_service_clinic_active'),
            models.Index(fields=['clinic', 'category'], name='idx_service_clinic_category'),
        ]

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"


# ============================================================================
# Appointments
# ============================================================================

class Appointment(models.Model):
    """
    A patient booked for a service at a clinic, optionally with an assigned practitioner.

    Fields:
    - id: UUID PK
    - clinic_id, patient_id, service_id: FK
    - assigned_user_id: FK -> auth_user nullable (practitioner)
    - scheduled_start: datetime
    - duration_minutes: copied from the service at booking, never changed afterwards
    - scheduled_end: scheduled_start + duration_minutes (stored for range queries)
    - status: enum
    - notes, cancellation_reason nullable
    - created_at, updated_at

    The interval is [scheduled_start, scheduled_end). Creation and rescheduling
    go through AppointmentScheduler, which guarantees no overlap within the
    clinic among appointments that still hold their slot.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    clinic = models.ForeignKey(
        'core.Clinic',
        on_delete=models.CASCADE,
        related_name='appointments'
    )
    # BUSINESS RULE: cannot delete a patient or service with appointments
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    service = models.ForeignKey(
        'Service',
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    assigned_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='assigned_appointments'
    )
    scheduled_start = models.DateTimeField()
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    scheduled_end = models.DateTimeField()
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatusChoices.choices,
        default=AppointmentStatusChoices.SCHEDULED
    )
    notes = models.TextField(blank=True, null=True)
    cancellation_reason = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointment'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['scheduled_start']
        indexes = [
            models.Index(fields=['clinic', 'scheduled_start'], name='idx_appointment_clinic_start'),
            models.Index(fields=['clinic', 'status'], name='idx_appointment_clinic_status'),
            models.Index(fields=['assigned_user', 'scheduled_start'], name='idx_appointment_assignee'),
            models.Index(fields=['patient'], name='idx_appointment_patient'),
        ]

    # BUSINESS RULE: Allowed status transitions
    _ALLOWED_TRANSITIONS = {
        'scheduled': ['confirmed', 'cancelled'],
        'confirmed': ['in_progress', 'no_show'],
        'in_progress': ['completed'],
        'completed': [],  # Terminal state
        'cancelled': [],  # Terminal state
        'no_show': [],    # Terminal state
    }

    # Statuses that no longer hold their time slot
    RELEASED_STATUSES = ['cancelled', 'no_show']

    def __str__(self):
        return f"Appointment {self.scheduled_start:%Y-%m-%d %H:%M} - {self.patient}"

    @staticmethod
    def compute_end(start, duration_minutes):
        return start + timedelta(minutes=duration_minutes)

    @property
    def is_terminal(self):
        return not self._ALLOWED_TRANSITIONS.get(self.status, [])

    @classmethod
    def allowed_transitions(cls, status):
        return list(cls._ALLOWED_TRANSITIONS.get(status, []))

    def transition_status(self, new_status, reason=None):
        """
        Move to ``new_status`` if the transition table allows it.

        Does not save. Returns the previous status.

        Raises:
            ValidationError: terminal state or transition not in the table
        """
        allowed = self._ALLOWED_TRANSITIONS.get(self.status, [])
        if not allowed:
            raise ValidationError(
                f'Status "{self.get_status_display()}" is terminal and cannot be changed'
            )

        if new_status not in allowed:
            raise ValidationError(
                f'Transition not allowed: {self.status} -> {new_status}. '
                f'Allowed transitions: {", ".join(allowed)}'
            )

        # RULE: Store cancellation reason
        if new_status == AppointmentStatusChoices.CANCELLED and reason:
            self.cancellation_reason = reason

        old_status = self.status
        self.status = new_status
        return old_status


# ============================================================================
# Prescriptions
# ============================================================================

class Prescription(models.Model):
    """
    Clinical document written by a staff member for a patient.

    Immutable after creation: saving an existing row raises.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    clinic = models.ForeignKey(
        'core.Clinic',
        on_delete=models.CASCADE,
        related_name='prescriptions'
    )
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.PROTECT,
        related_name='prescriptions'
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='authored_prescriptions'
    )
    appointment = models.ForeignKey(
        'Appointment',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='prescriptions'
    )
    diagnosis = models.TextField(blank=True, null=True)
    medications = models.TextField()
    instructions = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'prescription'
        verbose_name = 'Prescription'
        verbose_name_plural = 'Prescriptions'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['clinic', '-created_at'], name='idx_prescription_clinic'),
            models.Index(fields=['patient', '-created_at'], name='idx_prescription_patient'),
        ]

    def __str__(self):
        return f"Prescription {self.created_at:%Y-%m-%d} - {self.patient}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError('Prescriptions cannot be modified after creation')
        super().save(*args, **kwargs)

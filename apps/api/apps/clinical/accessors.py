"""
Tenant-scoped data accessors.

An accessor is built from an AuthorizedContext and only ever sees rows of
that context's clinic: every query starts from ``base_queryset()``, which
carries the clinic filter, and every create forces the clinic id. Views talk
to accessors, never to model managers.
"""
from datetime import datetime, time, timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from apps.authz.models import Membership
from apps.clinical.models import Appointment, Patient, Prescription, Service
from apps.clinical.scheduling import AppointmentScheduler, ConflictScope
from apps.core.exceptions import Conflict, DuplicateEmail, Forbidden
from apps.core.observability.events import log_domain_event
from apps.documents.rendering import PrescriptionBundle


class TenantScopedAccessor:
    model = None
    not_found_message = 'Not found'

    def __init__(self, context, using='default'):
        self.context = context
        self.using = using

    @property
    def clinic_id(self):
        return self.context.clinic_id

    def base_queryset(self):
        return self.model.objects.using(self.using).filter(clinic_id=self.clinic_id)

    def queryset(self):
        return self.base_queryset()

    def _get_from(self, queryset, pk, message=None):
        try:
            return queryset.get(pk=pk)
        except (self.model.DoesNotExist, ValueError, TypeError, DjangoValidationError):
            raise NotFound(message or self.not_found_message)

    def get(self, pk):
        """Row ``pk`` of this clinic; rows of other clinics are indistinguishable from missing ones."""
        return self._get_from(self.queryset(), pk)

    def create(self, **fields):
        fields['clinic_id'] = self.clinic_id
        instance = self.model(**fields)
        instance.save(using=self.using)
        return instance

    def update(self, instance, **fields):
        fields.pop('clinic', None)
        fields.pop('clinic_id', None)
        for name, value in fields.items():
            setattr(instance, name, value)
        instance.save(using=self.using)
        return instance

    def delete(self, instance):
        instance.delete(using=self.using)


# ============================================================================
# Patients
# ============================================================================

class PatientAccessor(TenantScopedAccessor):
    model = Patient
    not_found_message = 'Patient not found'

    def search(self, q=None):
        queryset = self.queryset()
        if q:
            queryset = queryset.filter(
                Q(first_name__icontains=q) |
                Q(last_name__icontains=q) |
                Q(email__icontains=q) |
                Q(phone__icontains=q)
            )
        return queryset.order_by('last_name', 'first_name')

    @staticmethod
    def _normalize_email(email):
        email = (email or '').strip().lower()
        return email or None

    def _ensure_email_free(self, email, exclude_pk=None):
        if email is None:
            return
        clash = self.base_queryset().filter(email__iexact=email)
        if exclude_pk is not None:
            clash = clash.exclude(pk=exclude_pk)
        if clash.exists():
            raise DuplicateEmail('A patient with this email already exists in this clinic')

    def create(self, **fields):
        fields['email'] = self._normalize_email(fields.get('email'))
        self._ensure_email_free(fields['email'])
        try:
            with transaction.atomic(using=self.using):
                patient = super().create(**fields)
        except IntegrityError:
            raise DuplicateEmail('A patient with this email already exists in this clinic')

        log_domain_event(
            'patient_created',
            entity_type='Patient',
            entity_id=str(patient.id),
            entity_ids={'clinic_id': str(self.clinic_id)},
        )
        return patient

    def update(self, instance, **fields):
        if 'email' in fields:
            fields['email'] = self._normalize_email(fields['email'])
            self._ensure_email_free(fields['email'], exclude_pk=instance.pk)
        try:
            with transaction.atomic(using=self.using):
                return super().update(instance, **fields)
        except IntegrityError:
            raise DuplicateEmail('A patient with this email already exists in this clinic')

    def delete(self, instance):
        try:
            super().delete(instance)
        except ProtectedError:
            raise Conflict('Patient has appointments or prescriptions and cannot be deleted')

    def find_by_email(self, email):
        """Patient record of this clinic matching a portal account's email."""
        email = self._normalize_email(email)
        if email is None:
            return None
        return self.base_queryset().filter(email__iexact=email).first()


# ============================================================================
# Services
# ============================================================================

class ServiceAccessor(TenantScopedAccessor):
    model = Service
    not_found_message = 'Service not found'

    def filter(self, category=None, active_only=False):
        queryset = self.queryset()
        if category:
            queryset = queryset.filter(category=category)
        if active_only:
            queryset = queryset.filter(is_active=True)
        return queryset.order_by('name')

    def get_active(self, pk):
        return self._get_from(self.queryset().filter(is_active=True), pk, 'Service not found or inactive')

    def delete(self, instance):
        """
        Delete ``instance``, or deactivate it when appointments reference it.

        Returns (service, deactivated).
        """
        if Appointment.objects.using(self.using).filter(service_id=instance.pk).exists():
            instance.is_active = False
            instance.save(using=self.using, update_fields=['is_active', 'updated_at'])
            log_domain_event(
                'service_deactivated',
                entity_type='Service',
                entity_id=str(instance.id),
                entity_ids={'clinic_id': str(self.clinic_id)},
                reason='referenced_by_appointments',
            )
            return instance, True

        super().delete(instance)
        return instance, False


# ============================================================================
# Appointments
# ============================================================================

class AppointmentAccessor(TenantScopedAccessor):
    """
    Appointments of the clinic, further narrowed to the doctor's own rows
    when the context is a DOCTOR.

    Writes go through AppointmentScheduler with clinic-wide conflict scope.
    """
    model = Appointment
    not_found_message = 'Appointment not found'

    def __init__(self, context, using='default', scheduler=None):
        super().__init__(context, using=using)
        self.scheduler = scheduler or AppointmentScheduler(using=using)

    def queryset(self):
        queryset = self.base_queryset().select_related('patient', 'service', 'assigned_user')
        return self.context.scope_appointments(queryset)

    def filter(self, date=None, status=None, patient_id=None, assigned_user_id=None):
        """
        Args:
            date: a ``datetime.date``; appointments starting that day (server time zone)
        """
        queryset = self.queryset()
        if date:
            day_start = timezone.make_aware(datetime.combine(date, time.min))
            queryset = queryset.filter(
                scheduled_start__gte=day_start,
                scheduled_start__lt=day_start + timedelta(days=1),
            )
        if status:
            queryset = queryset.filter(status=status)
        if patient_id:
            queryset = queryset.filter(patient_id=patient_id)
        if assigned_user_id:
            queryset = queryset.filter(assigned_user_id=assigned_user_id)
        return queryset.order_by('scheduled_start')

    def get(self, pk):
        """
        Appointment of the clinic. A doctor addressing somebody else's
        appointment gets Forbidden, not NotFound.
        """
        appointment = self._get_from(
            self.base_queryset().select_related('patient', 'service', 'assigned_user'), pk
        )
        self.context.ensure_can_touch_appointment(appointment)
        return appointment

    def _resolve_assignee(self, assigned_user_id):
        if self.context.sees_only_own_appointments:
            if assigned_user_id is not None and assigned_user_id != self.context.account_id:
                raise Forbidden('Doctors can only book appointments for themselves')
            return self.context.account_id

        if assigned_user_id is None:
            return None
        is_member = Membership.objects.using(self.using).filter(
            clinic_id=self.clinic_id, user_id=assigned_user_id
        ).exists()
        if not is_member:
            raise ValidationError({'assigned_user': 'Assigned user is not a member of this clinic'})
        return assigned_user_id

    def create(self, patient_id, service_id, scheduled_start, assigned_user_id=None, notes=None):
        patient = PatientAccessor(self.context, using=self.using).get(patient_id)
        service = ServiceAccessor(self.context, using=self.using).get_active(service_id)
        assignee = self._resolve_assignee(assigned_user_id)

        return self.scheduler.book(
            self.clinic_id,
            patient,
            service,
            scheduled_start,
            assigned_user_id=assignee,
            notes=notes,
            scope=ConflictScope.CLINIC,
        )

    def update(self, instance, **fields):
        """
        Apply a partial update.

        ``scheduled_start`` reschedules through the conflict check and
        ``status`` goes through the transition table; other fields are
        written directly. The whole update commits or rolls back as one.
        """
        self.context.ensure_can_touch_appointment(instance)

        new_start = fields.pop('scheduled_start', None)
        new_status = fields.pop('status', None)
        reason = fields.pop('cancellation_reason', None)

        with transaction.atomic(using=self.using):
            if 'assigned_user_id' in fields:
                assignee = fields.pop('assigned_user_id')
                if assignee != instance.assigned_user_id:
                    fields['assigned_user_id'] = self._resolve_assignee(assignee)

            if fields:
                for name, value in fields.items():
                    setattr(instance, name, value)
                instance.save(using=self.using, update_fields=list(fields.keys()) + ['updated_at'])

            if new_start is not None and new_start != instance.scheduled_start:
                instance = self.scheduler.reschedule(instance, new_start, scope=ConflictScope.CLINIC)

            if new_status is not None and new_status != instance.status:
                instance = self.scheduler.transition(instance, new_status, reason=reason)

        return self.get(instance.pk)

    def transition(self, instance, new_status, reason=None):
        self.context.ensure_can_touch_appointment(instance)
        self.scheduler.transition(instance, new_status, reason=reason)
        return self.get(instance.pk)

    def delete(self, instance):
        self.context.ensure_can_touch_appointment(instance)
        log_domain_event(
            'appointment_deleted',
            entity_type='Appointment',
            entity_id=str(instance.id),
            entity_ids={'clinic_id': str(self.clinic_id)},
            status=instance.status,
        )
        super().delete(instance)


# ============================================================================
# Prescriptions
# ============================================================================

class PrescriptionAccessor(TenantScopedAccessor):
    """Prescriptions are created and read, never modified."""
    model = Prescription
    not_found_message = 'Prescription not found'

    def queryset(self):
        return self.base_queryset().select_related('patient', 'created_by', 'clinic', 'appointment')

    def filter(self, patient_id=None, appointment_id=None):
        queryset = self.queryset()
        if patient_id:
            queryset = queryset.filter(patient_id=patient_id)
        if appointment_id:
            queryset = queryset.filter(appointment_id=appointment_id)
        return queryset.order_by('-created_at')

    def create(self, patient_id, medications, diagnosis=None, instructions=None, notes=None,
               appointment_id=None):
        patient = PatientAccessor(self.context, using=self.using).get(patient_id)

        if appointment_id is not None:
            belongs = Appointment.objects.using(self.using).filter(
                pk=appointment_id, clinic_id=self.clinic_id, patient_id=patient.pk
            ).exists()
            if not belongs:
                raise NotFound("Appointment not found or doesn't belong to this patient")

        prescription = super().create(
            patient=patient,
            created_by_id=self.context.account_id,
            appointment_id=appointment_id,
            diagnosis=diagnosis,
            medications=medications,
            instructions=instructions or None,
            notes=notes or None,
        )

        log_domain_event(
            'prescription_created',
            entity_type='Prescription',
            entity_id=str(prescription.id),
            entity_ids={'clinic_id': str(self.clinic_id), 'patient_id': str(patient.pk)},
        )
        return self.get(prescription.pk)

    def update(self, instance, **fields):
        raise Forbidden('Prescriptions cannot be modified after creation')

    def build_bundle(self, pk):
        prescription = self.get(pk)
        return PrescriptionBundle(
            prescription=prescription,
            patient=prescription.patient,
            clinic=prescription.clinic,
            author=prescription.created_by,
        )


def build_prescription_bundle(context, prescription_id, using='default'):
    """Bundle for the PDF renderer; raises NotFound outside the context's clinic."""
    return PrescriptionAccessor(context, using=using).build_bundle(prescription_id)

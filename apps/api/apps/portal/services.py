"""
Patient portal services.

A portal account has no membership; it reaches its data through the patient
records whose email matches the account's email, one record per clinic.
"""
from datetime import datetime, time

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound

from apps.authz.directory import MembershipDirectory
from apps.authz.guard import AuthorizedContext
from apps.authz.models import DefaultRoleChoices, RoleChoices
from apps.clinical.accessors import PatientAccessor, ServiceAccessor
from apps.clinical.models import Appointment, Patient, Prescription, Service
from apps.clinical.scheduling import AppointmentScheduler, ConflictScope
from apps.core.models import Clinic
from apps.core.observability.events import log_domain_event
from apps.documents.rendering import PrescriptionBundle

RECENT_PRESCRIPTIONS_LIMIT = 5


def split_account_name(name):
    """'Ada King Lovelace' -> ('Ada', 'King Lovelace'); blanks fall back to placeholders."""
    parts = (name or '').split()
    first_name = parts[0] if parts else 'Patient'
    last_name = ' '.join(parts[1:]) or 'Unknown'
    return first_name, last_name


class PortalService:
    """Everything the portal does on behalf of one account."""

    def __init__(self, account, using='default', scheduler=None, directory=None):
        self.account = account
        self.using = using
        self.scheduler = scheduler or AppointmentScheduler(using=using)
        self.directory = directory or MembershipDirectory(using=using)

    def _context(self, clinic_id):
        return AuthorizedContext(
            account_id=self.account.id,
            clinic_id=clinic_id,
            role=DefaultRoleChoices.PATIENT,
        )

    def patient_records(self):
        return Patient.objects.using(self.using).filter(email__iexact=self.account.email)

    def _get_clinic(self, clinic_id):
        try:
            return Clinic.objects.using(self.using).get(pk=clinic_id)
        except Clinic.DoesNotExist:
            raise NotFound('Clinic not found')

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    def clinics(self):
        return Clinic.objects.using(self.using).order_by('name')

    def doctors(self, clinic_id):
        clinic = self._get_clinic(clinic_id)
        return [membership.user for membership in self.directory.doctors_of(clinic.id)]

    def all_doctors(self):
        """Doctors of every clinic holding one of the account's patient records."""
        clinic_ids = self.patient_records().values_list('clinic_id', flat=True).distinct()
        return self.directory.doctors_in(list(clinic_ids))

    def services(self, clinic_id):
        clinic = self._get_clinic(clinic_id)
        return (
            Service.objects.using(self.using)
            .filter(clinic_id=clinic.id, is_active=True)
            .order_by('name')
        )

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def appointments(self, upcoming=False, past=False):
        """
        Appointments of all the account's patient records.

        ``upcoming``: from today on, excluding cancelled and no-show, soonest first.
        ``past``: before today, latest first.
        """
        today = timezone.make_aware(datetime.combine(timezone.localdate(), time.min))
        queryset = (
            Appointment.objects.using(self.using)
            .filter(patient__in=self.patient_records())
            .select_related('service', 'clinic', 'assigned_user', 'patient')
        )

        if upcoming:
            return (
                queryset.filter(scheduled_start__gte=today)
                .exclude(status__in=Appointment.RELEASED_STATUSES)
                .order_by('scheduled_start')
            )
        if past:
            queryset = queryset.filter(scheduled_start__lt=today)
        return queryset.order_by('-scheduled_start')

    def _find_or_create_patient(self, clinic):
        accessor = PatientAccessor(self._context(clinic.id), using=self.using)
        patient = accessor.find_by_email(self.account.email)
        if patient is not None:
            return patient

        first_name, last_name = split_account_name(self.account.name)
        return accessor.create(
            first_name=first_name,
            last_name=last_name,
            email=self.account.email,
        )

    def book(self, clinic_id, service_id, doctor_id, scheduled_start, notes=None):
        """
        Book an appointment with ``doctor_id`` for the account.

        Only the doctor's own calendar is checked for conflicts. The
        clinic's patient record is created from the account when missing;
        it is rolled back together with a rejected booking.
        """
        clinic = self._get_clinic(clinic_id)
        service = ServiceAccessor(self._context(clinic.id), using=self.using).get_active(service_id)

        if self.directory.role_in_clinic(doctor_id, clinic.id) != RoleChoices.DOCTOR:
            raise NotFound('Doctor not found')

        with transaction.atomic(using=self.using):
            patient = self._find_or_create_patient(clinic)
            appointment = self.scheduler.book(
                clinic.id,
                patient,
                service,
                scheduled_start,
                assigned_user_id=doctor_id,
                notes=notes,
                scope=ConflictScope.PRACTITIONER,
            )

        return (
            Appointment.objects.using(self.using)
            .select_related('service', 'clinic', 'assigned_user', 'patient')
            .get(pk=appointment.pk)
        )

    # ------------------------------------------------------------------
    # Prescriptions
    # ------------------------------------------------------------------

    def prescriptions(self, recent=False):
        queryset = (
            Prescription.objects.using(self.using)
            .filter(patient__in=self.patient_records())
            .select_related('patient', 'created_by', 'clinic')
            .order_by('-created_at')
        )
        if recent:
            return queryset[:RECENT_PRESCRIPTIONS_LIMIT]
        return queryset

    def prescription_bundle(self, prescription_id):
        try:
            prescription = self.prescriptions().get(pk=prescription_id)
        except (Prescription.DoesNotExist, ValueError):
            raise NotFound('Prescription not found')
        return PrescriptionBundle(
            prescription=prescription,
            patient=prescription.patient,
            clinic=prescription.clinic,
            author=prescription.created_by,
        )

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    def profile(self):
        """Oldest patient record of the account, or None."""
        return self.patient_records().order_by('created_at', 'id').first()

    def update_profile(self, **fields):
        """
        Write identity and contact fields to every patient record of the
        account. The email is the link to the account and is not changed here.
        """
        fields.pop('email', None)
        records = list(self.patient_records())
        if not records:
            raise NotFound('Patient not found')

        with transaction.atomic(using=self.using):
            for record in records:
                for name, value in fields.items():
                    setattr(record, name, value)
                record.save(using=self.using)

        log_domain_event(
            'portal_profile_updated',
            entity_type='Patient',
            entity_ids={'account_id': str(self.account.id)},
            records=len(records),
            changed_fields=sorted(fields.keys()),
        )
        return self.profile()

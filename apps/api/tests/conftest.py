"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Two clinics (tenant isolation) and their staff by role
- Authenticated API clients by role
- Model instances (Patient, Service, Appointment, Prescription)
"""
from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from apps.authz.models import DefaultRoleChoices, Membership, RoleChoices, User
from apps.clinical.models import Appointment, Patient, Prescription, Service
from apps.core.models import Clinic
from apps.core.observability.correlation import clear_request_context
from tests.helpers import at


@pytest.fixture(autouse=True)
def _reset_request_context():
    yield
    clear_request_context()


# ============================================================================
# Factories
# ============================================================================

@pytest.fixture
def make_user(db):
    """Create an account. Emails must be unique per test."""
    def _make(email, name='', default_role=DefaultRoleChoices.PATIENT, **extra):
        return User.objects.create_user(
            email=email,
            password='testpass123',
            name=name,
            default_role=default_role,
            **extra
        )
    return _make


@pytest.fixture
def make_member(make_user):
    """Create an account holding ``role`` in ``clinic``."""
    def _make(clinic, role, email, name=''):
        user = make_user(email, name=name, default_role=role)
        Membership.objects.create(user=user, clinic=clinic, role=role)
        return user
    return _make


@pytest.fixture
def client_for():
    """APIClient authenticated as ``user``, optionally pinned to a clinic."""
    def _client(user, clinic=None):
        client = APIClient()
        client.force_authenticate(user=user)
        if clinic is not None:
            client.credentials(HTTP_X_CLINIC_ID=str(clinic.id))
        return client
    return _client


# ============================================================================
# Clinics and staff
# ============================================================================

@pytest.fixture
def admin_user(make_user):
    """Owner and ADMIN of ``clinic``."""
    return make_user('owner@clinic-a.test', name='Alice Owner', default_role=DefaultRoleChoices.ADMIN)


@pytest.fixture
def clinic(admin_user):
    clinic = Clinic.objects.create(
        name='Clinic A',
        address='1 Main Street',
        phone='+33100000000',
        owner=admin_user,
    )
    Membership.objects.create(user=admin_user, clinic=clinic, role=RoleChoices.ADMIN)
    return clinic


@pytest.fixture
def other_admin_user(make_user):
    return make_user('owner@clinic-b.test', name='Bob Owner', default_role=DefaultRoleChoices.ADMIN)


@pytest.fixture
def other_clinic(other_admin_user):
    clinic = Clinic.objects.create(name='Clinic B', owner=other_admin_user)
    Membership.objects.create(user=other_admin_user, clinic=clinic, role=RoleChoices.ADMIN)
    return clinic


@pytest.fixture
def doctor_user(make_member, clinic):
    return make_member(clinic, RoleChoices.DOCTOR, 'doctor@clinic-a.test', name='Dana Doctor')


@pytest.fixture
def other_doctor_user(make_member, clinic):
    return make_member(clinic, RoleChoices.DOCTOR, 'doctor2@clinic-a.test', name='Evan Doctor')


@pytest.fixture
def receptionist_user(make_member, clinic):
    return make_member(clinic, RoleChoices.RECEPTIONIST, 'desk@clinic-a.test', name='Rita Desk')


@pytest.fixture
def patient_account(make_user):
    """Portal account without any membership."""
    return make_user('john.doe@test.com', name='John Doe')


# ============================================================================
# API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_client(client_for, admin_user, clinic):
    return client_for(admin_user)


@pytest.fixture
def other_admin_client(client_for, other_admin_user, other_clinic):
    return client_for(other_admin_user)


@pytest.fixture
def doctor_client(client_for, doctor_user):
    return client_for(doctor_user)


@pytest.fixture
def other_doctor_client(client_for, other_doctor_user):
    return client_for(other_doctor_user)


@pytest.fixture
def receptionist_client(client_for, receptionist_user):
    return client_for(receptionist_user)


@pytest.fixture
def patient_client(client_for, patient_account):
    return client_for(patient_account)


# ============================================================================
# Data Fixtures
# ============================================================================

@pytest.fixture
def patient(clinic):
    """Patient record of ``clinic`` matching ``patient_account``'s email."""
    return Patient.objects.create(
        clinic=clinic,
        first_name='John',
        last_name='Doe',
        email='john.doe@test.com',
        phone='+33600000000',
        date_of_birth='1990-01-15',
        gender='male',
        blood_type='A+',
        allergies='Penicillin',
    )


@pytest.fixture
def other_patient(other_clinic):
    return Patient.objects.create(
        clinic=other_clinic,
        first_name='Jane',
        last_name='Roe',
        email='jane.roe@test.com',
    )


@pytest.fixture
def service(clinic):
    """30-minute consultation."""
    return Service.objects.create(
        clinic=clinic,
        name='Consultation',
        duration_minutes=30,
        price=Decimal('50.00'),
        category='general',
    )


@pytest.fixture
def long_service(clinic):
    """60-minute procedure."""
    return Service.objects.create(
        clinic=clinic,
        name='Procedure',
        duration_minutes=60,
        price=Decimal('120.00'),
        category='surgery',
    )


@pytest.fixture
def other_service(other_clinic):
    return Service.objects.create(
        clinic=other_clinic,
        name='Consultation B',
        duration_minutes=30,
        price=Decimal('40.00'),
    )


@pytest.fixture
def appointment_factory(clinic, patient, service):
    """
    Insert an appointment directly (no conflict check).

    Defaults to ``patient`` / ``service`` of ``clinic`` at 10:00.
    """
    def _make(scheduled_start=None, status='scheduled', assigned_user=None,
              patient_obj=None, service_obj=None, clinic_obj=None, duration_minutes=None):
        scheduled_start = scheduled_start or at(10)
        service_obj = service_obj or service
        duration = duration_minutes or service_obj.duration_minutes
        return Appointment.objects.create(
            clinic=clinic_obj or clinic,
            patient=patient_obj or patient,
            service=service_obj,
            assigned_user=assigned_user,
            scheduled_start=scheduled_start,
            duration_minutes=duration,
            scheduled_end=Appointment.compute_end(scheduled_start, duration),
            status=status,
        )
    return _make


@pytest.fixture
def appointment(appointment_factory, doctor_user):
    """Scheduled 10:00-10:30 appointment assigned to ``doctor_user``."""
    return appointment_factory(assigned_user=doctor_user)


@pytest.fixture
def prescription(clinic, patient, doctor_user):
    return Prescription.objects.create(
        clinic=clinic,
        patient=patient,
        created_by=doctor_user,
        diagnosis='Seasonal allergy',
        medications='Cetirizine 10mg, once daily',
        instructions='Take in the evening',
    )

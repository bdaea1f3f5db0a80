"""
Tests for the create_clinic_admin and check_membership management commands.
"""
from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from apps.authz.models import Membership, RoleChoices, User
from apps.core.models import Clinic


def _run(*args, **options):
    out = StringIO()
    call_command(*args, stdout=out, **options)
    return out.getvalue()


@pytest.mark.django_db
class TestCreateClinicAdmin:

    def test_creates_account_and_clinic(self):
        output = _run('create_clinic_admin', email='Boss@Clinic.test', password='long-enough-1', clinic='Main')

        user = User.objects.get(email='boss@clinic.test')
        clinic = Clinic.objects.get(owner=user)
        assert clinic.name == 'Main'
        assert Membership.objects.get(user=user).role == RoleChoices.ADMIN
        assert 'Created clinic' in output

    def test_new_account_requires_password(self, monkeypatch):
        monkeypatch.delenv('CLINIC_ADMIN_PASSWORD', raising=False)

        with pytest.raises(CommandError):
            _run('create_clinic_admin', email='boss@clinic.test', password=None)

    def test_existing_account_gets_clinic(self, patient_account):
        _run('create_clinic_admin', email=patient_account.email, clinic='Late Clinic')

        assert Clinic.objects.get(owner=patient_account).name == 'Late Clinic'

    def test_idempotent(self, admin_user, clinic):
        output = _run('create_clinic_admin', email=admin_user.email, clinic='Another')

        assert Clinic.objects.filter(owner=admin_user).count() == 1
        assert 'nothing to do' in output


@pytest.mark.django_db
class TestCheckMembership:

    def test_admin(self, admin_user, clinic, doctor_user):
        output = _run('check_membership', admin_user.email)

        assert 'Primary clinic: Clinic A' in output
        assert 'doctor@clinic-a.test - doctor' in output

    def test_no_membership(self, patient_account):
        output = _run('check_membership', patient_account.email)

        assert 'No membership' in output

    def test_unknown_account(self, db):
        with pytest.raises(CommandError):
            _run('check_membership', 'nobody@test.com')

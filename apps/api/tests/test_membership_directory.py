"""
Tests for the membership directory.
"""
import pytest

from apps.authz.directory import MembershipDirectory
from apps.authz.models import Membership, RoleChoices


@pytest.mark.django_db
class TestMembershipDirectory:

    def test_memberships_for(self, admin_user, clinic):
        memberships = MembershipDirectory().memberships_for(admin_user.id)

        assert [m.clinic_id for m in memberships] == [clinic.id]
        assert memberships[0].role == RoleChoices.ADMIN

    def test_memberships_for_unknown_account(self, patient_account):
        assert MembershipDirectory().memberships_for(patient_account.id) == []

    def test_primary_prefers_admin(self, make_user, clinic, other_clinic):
        user = make_user('multi@test.com')
        Membership.objects.create(user=user, clinic=clinic, role=RoleChoices.RECEPTIONIST)
        Membership.objects.create(user=user, clinic=other_clinic, role=RoleChoices.ADMIN)

        primary = MembershipDirectory().primary_membership(user.id)

        assert primary.clinic_id == other_clinic.id

    def test_primary_without_admin_is_stable(self, make_user, clinic, other_clinic):
        user = make_user('multi@test.com')
        Membership.objects.create(user=user, clinic=clinic, role=RoleChoices.DOCTOR)
        Membership.objects.create(user=user, clinic=other_clinic, role=RoleChoices.RECEPTIONIST)
        directory = MembershipDirectory()

        picks = {directory.primary_membership(user.id).id for _ in range(3)}

        assert len(picks) == 1
        assert picks == {directory.memberships_for(user.id)[0].id}

    def test_primary_for_explicit_clinic(self, doctor_user, clinic, other_clinic):
        directory = MembershipDirectory()

        assert directory.primary_membership(doctor_user.id, clinic_id=clinic.id).role == RoleChoices.DOCTOR
        assert directory.primary_membership(doctor_user.id, clinic_id=other_clinic.id) is None

    def test_role_in_clinic(self, receptionist_user, clinic, other_clinic):
        directory = MembershipDirectory()

        assert directory.role_in_clinic(receptionist_user.id, clinic.id) == RoleChoices.RECEPTIONIST
        assert directory.role_in_clinic(receptionist_user.id, other_clinic.id) is None

    def test_doctors_of(self, clinic, doctor_user, other_doctor_user, receptionist_user):
        doctors = MembershipDirectory().doctors_of(clinic.id)

        assert {m.user_id for m in doctors} == {doctor_user.id, other_doctor_user.id}

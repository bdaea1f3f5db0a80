"""
Integration tests for staff management (memberships of the active clinic).
"""
import pytest
from rest_framework import status

from apps.authz.models import DefaultRoleChoices, Membership, RoleChoices

ENDPOINT = '/api/v1/staff/'


@pytest.mark.django_db
class TestStaffList:

    def test_lists_doctors_and_receptionists(self, admin_client, doctor_user, receptionist_user):
        response = admin_client.get(ENDPOINT)

        assert response.status_code == status.HTTP_200_OK
        emails = {item['user']['email'] for item in response.data}
        assert emails == {'doctor@clinic-a.test', 'desk@clinic-a.test'}

    def test_password_never_exposed(self, admin_client, doctor_user):
        response = admin_client.get(ENDPOINT)

        assert 'password' not in response.data[0]['user']

    @pytest.mark.parametrize('client_fixture', ['doctor_client', 'receptionist_client'])
    def test_admin_only(self, request, client_fixture):
        client = request.getfixturevalue(client_fixture)

        assert client.get(ENDPOINT).status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestStaffCreate:

    def test_add_doctor(self, admin_client, make_user, clinic):
        user = make_user('new.doctor@test.com', default_role=DefaultRoleChoices.DOCTOR)

        response = admin_client.post(ENDPOINT, {'user_id': str(user.id), 'role': 'DOCTOR'}, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['role'] == 'doctor'
        assert Membership.objects.get(user=user, clinic=clinic).role == RoleChoices.DOCTOR

    def test_duplicate_409(self, admin_client, doctor_user):
        response = admin_client.post(
            ENDPOINT, {'user_id': str(doctor_user.id), 'role': 'receptionist'}, format='json'
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'duplicate_membership'

    def test_admin_role_not_grantable(self, admin_client, make_user, clinic):
        user = make_user('wannabe@test.com')

        response = admin_client.post(ENDPOINT, {'user_id': str(user.id), 'role': 'admin'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_user_404(self, admin_client, clinic):
        response = admin_client.post(
            ENDPOINT, {'user_id': '00000000-0000-0000-0000-000000000000', 'role': 'doctor'}, format='json'
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_member_of_other_clinic_can_join(self, admin_client, other_admin_user, clinic):
        response = admin_client.post(
            ENDPOINT, {'user_id': str(other_admin_user.id), 'role': 'doctor'}, format='json'
        )

        assert response.status_code == status.HTTP_201_CREATED


@pytest.mark.django_db
class TestStaffRemove:

    def test_remove(self, admin_client, doctor_user, clinic):
        membership = Membership.objects.get(user=doctor_user, clinic=clinic)

        response = admin_client.delete(f'{ENDPOINT}{membership.id}/')

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not Membership.objects.filter(pk=membership.pk).exists()

    def test_owner_cannot_be_removed(self, admin_client, admin_user, clinic):
        membership = Membership.objects.get(user=admin_user, clinic=clinic)

        response = admin_client.delete(f'{ENDPOINT}{membership.id}/')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert Membership.objects.filter(pk=membership.pk).exists()

    def test_other_clinic_membership_404(self, admin_client, other_admin_user, other_clinic):
        membership = Membership.objects.get(user=other_admin_user, clinic=other_clinic)

        response = admin_client.delete(f'{ENDPOINT}{membership.id}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_removed_doctor_loses_access(self, admin_client, doctor_client, doctor_user, clinic):
        membership = Membership.objects.get(user=doctor_user, clinic=clinic)
        admin_client.delete(f'{ENDPOINT}{membership.id}/')

        response = doctor_client.get('/api/v1/appointments/')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['code'] == 'no_clinic'


@pytest.mark.django_db
class TestStaffCandidates:

    def test_available_users(self, admin_client, make_user, doctor_user, patient_account):
        make_user('free.doctor@test.com', default_role=DefaultRoleChoices.DOCTOR)
        make_user('free.desk@test.com', default_role=DefaultRoleChoices.RECEPTIONIST)

        response = admin_client.get(f'{ENDPOINT}available-users/')

        assert response.status_code == status.HTTP_200_OK
        emails = [user['email'] for user in response.data['users']]
        assert emails == ['free.desk@test.com', 'free.doctor@test.com']

    def test_available_users_capped(self, admin_client, make_user):
        for i in range(25):
            make_user(f'doctor{i:02d}@test.com', default_role=DefaultRoleChoices.DOCTOR)

        response = admin_client.get(f'{ENDPOINT}available-users/')

        assert len(response.data['users']) == 20

    def test_search(self, admin_client, make_user):
        make_user('candidate@test.com', default_role=DefaultRoleChoices.DOCTOR)

        response = admin_client.get(f'{ENDPOINT}search/', {'email': 'Candidate@Test.com'})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['user']['email'] == 'candidate@test.com'

    def test_search_existing_member_409(self, admin_client, doctor_user):
        response = admin_client.get(f'{ENDPOINT}search/', {'email': doctor_user.email})

        assert response.status_code == status.HTTP_409_CONFLICT

    def test_search_unknown_404(self, admin_client, clinic):
        response = admin_client.get(f'{ENDPOINT}search/', {'email': 'nobody@test.com'})

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_search_requires_email(self, admin_client, clinic):
        response = admin_client.get(f'{ENDPOINT}search/')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

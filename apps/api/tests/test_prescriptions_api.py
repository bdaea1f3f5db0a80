"""
Integration tests for prescriptions and their PDF export.
"""
import pytest
from django.core.exceptions import ValidationError
from rest_framework import status

from apps.clinical.models import Patient, Prescription

ENDPOINT = '/api/v1/prescriptions/'


@pytest.fixture
def new_prescription(patient):
    return {
        'patient_id': str(patient.id),
        'diagnosis': 'Migraine',
        'medications': 'Ibuprofen 400mg',
        'instructions': 'One tablet every 8 hours',
    }


@pytest.mark.django_db
class TestPrescriptionCreate:

    def test_doctor_creates(self, doctor_client, doctor_user, clinic, new_prescription):
        response = doctor_client.post(ENDPOINT, new_prescription, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        prescription = Prescription.objects.get(pk=response.data['id'])
        assert prescription.clinic_id == clinic.id
        assert prescription.created_by_id == doctor_user.id
        assert response.data['created_by_name'] == 'Dana Doctor'

    def test_receptionist_forbidden(self, receptionist_client, new_prescription):
        response = receptionist_client.post(ENDPOINT, new_prescription, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert not Prescription.objects.exists()

    def test_linked_appointment(self, doctor_client, appointment, new_prescription):
        payload = dict(new_prescription, appointment_id=str(appointment.id))

        response = doctor_client.post(ENDPOINT, payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['appointment_id'] == str(appointment.id)

    def test_appointment_of_other_patient_404(self, doctor_client, clinic, appointment_factory, new_prescription):
        stranger = Patient.objects.create(clinic=clinic, first_name='Ada', last_name='Lovelace')
        foreign = appointment_factory(patient_obj=stranger)

        payload = dict(new_prescription, appointment_id=str(foreign.id))
        response = doctor_client.post(ENDPOINT, payload, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert not Prescription.objects.exists()

    def test_patient_of_other_clinic_404(self, doctor_client, other_patient, new_prescription):
        payload = dict(new_prescription, patient_id=str(other_patient.id))

        response = doctor_client.post(ENDPOINT, payload, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_medications_required(self, doctor_client, new_prescription):
        payload = dict(new_prescription)
        payload.pop('medications')

        response = doctor_client.post(ENDPOINT, payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_existing_row_cannot_be_saved(self, prescription):
        prescription.medications = 'Changed'

        with pytest.raises(ValidationError):
            prescription.save()


@pytest.mark.django_db
class TestPrescriptionRead:

    def test_list(self, doctor_client, prescription):
        response = doctor_client.get(ENDPOINT)

        assert response.status_code == status.HTTP_200_OK
        assert [item['id'] for item in response.data['results']] == [str(prescription.id)]

    def test_filter_by_patient(self, admin_client, prescription, clinic):
        stranger = Patient.objects.create(clinic=clinic, first_name='Ada', last_name='Lovelace')

        response = admin_client.get(ENDPOINT, {'patient_id': str(stranger.id)})

        assert response.data['count'] == 0

    def test_receptionist_cannot_read(self, receptionist_client, prescription):
        assert receptionist_client.get(ENDPOINT).status_code == status.HTTP_403_FORBIDDEN

    def test_other_clinic_404(self, other_admin_client, prescription):
        response = other_admin_client.get(f'{ENDPOINT}{prescription.id}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_no_update_or_delete(self, doctor_client, prescription):
        detail = f'{ENDPOINT}{prescription.id}/'

        assert doctor_client.patch(detail, {'notes': 'x'}, format='json').status_code == \
            status.HTTP_405_METHOD_NOT_ALLOWED
        assert doctor_client.delete(detail).status_code == status.HTTP_405_METHOD_NOT_ALLOWED


@pytest.mark.django_db
class TestPrescriptionPdf:

    def test_pdf(self, doctor_client, prescription):
        response = doctor_client.get(f'{ENDPOINT}{prescription.id}/pdf/')

        assert response.status_code == status.HTTP_200_OK
        assert response['Content-Type'] == 'application/pdf'
        assert response.content.startswith(b'%PDF')
        assert f'prescription-{prescription.id}.pdf' in response['Content-Disposition']

    def test_pdf_other_clinic_404(self, other_admin_client, prescription):
        response = other_admin_client.get(f'{ENDPOINT}{prescription.id}/pdf/')

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_pdf_receptionist_403(self, receptionist_client, prescription):
        response = receptionist_client.get(f'{ENDPOINT}{prescription.id}/pdf/')

        assert response.status_code == status.HTTP_403_FORBIDDEN

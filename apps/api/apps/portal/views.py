"""
Patient portal views.

Any authenticated account may use the portal; no clinic membership is
involved. Data is reached through the account's patient records.
"""
from django.http import HttpResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz.permissions import IsAuthenticatedAccount
from apps.documents.rendering import prescription_filename, render_prescription_pdf
from .serializers import (
    PortalAppointmentSerializer,
    PortalBookingSerializer,
    PortalClinicSerializer,
    PortalDoctorSerializer,
    PortalMemberDoctorSerializer,
    PortalPrescriptionSerializer,
    PortalProfileSerializer,
    PortalServiceSerializer,
)
from .services import PortalService


def _flag(request, name):
    return request.query_params.get(name, 'false').lower() == 'true'


class PortalView(APIView):
    permission_classes = [IsAuthenticatedAccount]

    def get_service(self):
        return PortalService(self.request.user)


class PortalClinicListView(PortalView):
    """GET /api/v1/portal/clinics/ - Clinics a patient can book with."""

    def get(self, request):
        clinics = self.get_service().clinics()
        return Response({'clinics': PortalClinicSerializer(clinics, many=True).data})


class PortalDoctorsView(PortalView):
    """GET /api/v1/portal/doctors/ - Doctors of the clinics the account is a patient of."""

    def get(self, request):
        memberships = self.get_service().all_doctors()
        return Response({'doctors': PortalMemberDoctorSerializer(memberships, many=True).data})


class PortalClinicDoctorsView(PortalView):
    """GET /api/v1/portal/clinics/{clinic_id}/doctors/"""

    def get(self, request, clinic_id):
        doctors = self.get_service().doctors(clinic_id)
        return Response({'doctors': PortalDoctorSerializer(doctors, many=True).data})


class PortalClinicServicesView(PortalView):
    """GET /api/v1/portal/clinics/{clinic_id}/services/ - Active services only."""

    def get(self, request, clinic_id):
        services = self.get_service().services(clinic_id)
        return Response({'services': PortalServiceSerializer(services, many=True).data})


class PortalAppointmentsView(PortalView):
    """
    GET /api/v1/portal/appointments/?upcoming=true|?past=true
    POST /api/v1/portal/appointments/

    Request body (POST):
    {
        "clinic_id": "uuid",
        "service_id": "uuid",
        "doctor_id": "uuid",
        "scheduled_start": "2026-11-03T10:00:00Z",
        "notes": "optional"
    }

    Returns (POST):
        201: Appointment booked
        404: Clinic, active service or doctor not found
        409: The doctor is already booked in that window
    """

    def get(self, request):
        appointments = self.get_service().appointments(
            upcoming=_flag(request, 'upcoming'),
            past=_flag(request, 'past'),
        )
        return Response({'appointments': PortalAppointmentSerializer(appointments, many=True).data})

    def post(self, request):
        serializer = PortalBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = self.get_service().book(**serializer.validated_data)
        return Response(
            {'appointment': PortalAppointmentSerializer(appointment).data},
            status=status.HTTP_201_CREATED,
        )


class PortalPrescriptionsView(PortalView):
    """GET /api/v1/portal/prescriptions/?recent=true - Newest first; recent keeps the last 5."""

    def get(self, request):
        prescriptions = self.get_service().prescriptions(recent=_flag(request, 'recent'))
        return Response({'prescriptions': PortalPrescriptionSerializer(prescriptions, many=True).data})


class PortalPrescriptionPdfView(PortalView):
    """GET /api/v1/portal/prescriptions/{id}/pdf/"""

    def get(self, request, pk):
        bundle = self.get_service().prescription_bundle(pk)
        response = HttpResponse(render_prescription_pdf(bundle), content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{prescription_filename(bundle)}"'
        return response


class PortalProfileView(PortalView):
    """
    GET /api/v1/portal/profile/ - ``{"patient": null}`` until a clinic holds a record
    PUT /api/v1/portal/profile/ - Update identity and contact data on every record
    """

    def get(self, request):
        patient = self.get_service().profile()
        data = PortalProfileSerializer(patient).data if patient else None
        return Response({'patient': data})

    def put(self, request):
        serializer = PortalProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        patient = self.get_service().update_profile(**serializer.validated_data)
        return Response({'patient': PortalProfileSerializer(patient).data})

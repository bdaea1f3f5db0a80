"""
Clinical viewsets: patients, services, appointments, prescriptions.

Every viewset runs the access guard through ClinicActionPermission and then
works exclusively through the tenant-scoped accessor built from
``request.clinic_context``.
"""
import logging

from django.http import HttpResponse
from django.utils.dateparse import parse_date
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from apps.authz.permissions import Action, ClinicActionPermission, has_permission
from apps.clinical.accessors import (
    AppointmentAccessor,
    PatientAccessor,
    PrescriptionAccessor,
    ServiceAccessor,
    build_prescription_bundle,
)
from apps.clinical.models import Appointment, Patient, Prescription, Service
from apps.clinical.serializers import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentTransitionSerializer,
    AppointmentUpdateSerializer,
    PatientClinicalSerializer,
    PatientSerializer,
    PrescriptionCreateSerializer,
    PrescriptionSerializer,
    ServiceSerializer,
)
from apps.documents.rendering import prescription_filename, render_prescription_pdf

logger = logging.getLogger(__name__)


class TenantScopedViewSetMixin:
    """Builds the view's accessor from the authorized context."""
    permission_classes = [ClinicActionPermission]
    accessor_class = None
    empty_model = None

    def get_accessor(self):
        return self.accessor_class(self.request.clinic_context)

    def get_object(self):
        return self.get_accessor().get(self.kwargs['pk'])

    def _schema_queryset(self):
        return self.empty_model.objects.none()


class PatientViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    """
    ViewSet for Patient endpoints.

    Endpoints:
    - GET /api/v1/patients/?q= - List/search patients of the active clinic
    - POST /api/v1/patients/
    - GET /api/v1/patients/{id}/
    - PATCH/PUT /api/v1/patients/{id}/
    - DELETE /api/v1/patients/{id}/ (409 while appointments or prescriptions reference it)

    RBAC:
    - Read: any clinic member
    - Write: MANAGE_PATIENTS (admin, receptionist)
    - Clinical fields (blood type, allergies, medications, notes) only for
      VIEW_MEDICAL_RECORDS (admin, doctor)
    """
    accessor_class = PatientAccessor
    empty_model = Patient
    required_actions = {
        'create': Action.MANAGE_PATIENTS,
        'update': Action.MANAGE_PATIENTS,
        'partial_update': Action.MANAGE_PATIENTS,
        'destroy': Action.MANAGE_PATIENTS,
    }

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return self._schema_queryset()
        return self.get_accessor().search(self.request.query_params.get('q'))

    def get_serializer_class(self):
        context = getattr(self.request, 'clinic_context', None)
        if context is not None and has_permission(context.role, Action.VIEW_MEDICAL_RECORDS):
            return PatientClinicalSerializer
        return PatientSerializer

    def perform_create(self, serializer):
        serializer.instance = self.get_accessor().create(**serializer.validated_data)

    def perform_update(self, serializer):
        serializer.instance = self.get_accessor().update(serializer.instance, **serializer.validated_data)

    def perform_destroy(self, instance):
        self.get_accessor().delete(instance)


class ServiceViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    """
    ViewSet for Service endpoints.

    Query parameters:
    - ?category=... - Filter by category
    - ?active_only=true - Only active services

    DELETE deactivates (200, ``deactivated: true``) instead of deleting when
    appointments reference the service; otherwise deletes (204).
    """
    accessor_class = ServiceAccessor
    empty_model = Service
    serializer_class = ServiceSerializer
    required_actions = {
        'create': Action.MANAGE_SERVICES,
        'update': Action.MANAGE_SERVICES,
        'partial_update': Action.MANAGE_SERVICES,
        'destroy': Action.MANAGE_SERVICES,
    }

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return self._schema_queryset()
        active_only = self.request.query_params.get('active_only', 'false').lower() == 'true'
        return self.get_accessor().filter(
            category=self.request.query_params.get('category'),
            active_only=active_only,
        )

    def perform_create(self, serializer):
        serializer.instance = self.get_accessor().create(**serializer.validated_data)

    def perform_update(self, serializer):
        serializer.instance = self.get_accessor().update(serializer.instance, **serializer.validated_data)

    def destroy(self, request, *args, **kwargs):
        service, deactivated = self.get_accessor().delete(self.get_object())
        if deactivated:
            return Response(
                {
                    'deactivated': True,
                    'detail': 'Service is used by appointments and has been deactivated',
                    'service': ServiceSerializer(service).data,
                },
                status=status.HTTP_200_OK,
            )
        return Response(status=status.HTTP_204_NO_CONTENT)


class AppointmentViewSet(TenantScopedViewSetMixin, viewsets.ModelViewSet):
    """
    ViewSet for Appointment endpoints.

    Endpoints:
    - GET /api/v1/appointments/
    - POST /api/v1/appointments/
    - GET /api/v1/appointments/{id}/
    - PATCH /api/v1/appointments/{id}/
    - DELETE /api/v1/appointments/{id}/
    - POST /api/v1/appointments/{id}/transition/

    Query parameters for list:
    - ?date=YYYY-MM-DD, ?status=, ?patient_id=, ?assigned_user_id=

    Doctors only see and touch appointments assigned to them.
    """
    accessor_class = AppointmentAccessor
    empty_model = Appointment
    serializer_class = AppointmentSerializer
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']
    required_actions = {
        'list': Action.MANAGE_APPOINTMENTS,
        'retrieve': Action.MANAGE_APPOINTMENTS,
        'create': Action.MANAGE_APPOINTMENTS,
        'partial_update': Action.MANAGE_APPOINTMENTS,
        'destroy': Action.MANAGE_APPOINTMENTS,
        'transition': Action.MANAGE_APPOINTMENTS,
    }

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return self._schema_queryset()

        params = self.request.query_params
        date = None
        if params.get('date'):
            date = parse_date(params['date'])
            if date is None:
                raise ValidationError({'date': 'Use the YYYY-MM-DD format.'})

        return self.get_accessor().filter(
            date=date,
            status=params.get('status'),
            patient_id=params.get('patient_id'),
            assigned_user_id=params.get('assigned_user_id'),
        )

    def get_serializer_class(self):
        if self.action == 'create':
            return AppointmentCreateSerializer
        elif self.action == 'partial_update':
            return AppointmentUpdateSerializer
        elif self.action == 'transition':
            return AppointmentTransitionSerializer
        return AppointmentSerializer

    def create(self, request, *args, **kwargs):
        serializer = AppointmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = self.get_accessor().create(**serializer.validated_data)
        appointment = self.get_accessor().get(appointment.pk)
        return Response(AppointmentSerializer(appointment).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, *args, **kwargs):
        appointment = self.get_object()
        serializer = AppointmentUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        appointment = self.get_accessor().update(appointment, **serializer.validated_data)
        return Response(AppointmentSerializer(appointment).data)

    def perform_destroy(self, instance):
        self.get_accessor().delete(instance)

    @action(detail=True, methods=['post'], url_path='transition')
    def transition(self, request, pk=None):
        """
        POST /api/v1/appointments/{id}/transition/

        Request body:
        {
            "status": "confirmed",
            "reason": "Patient requested cancellation"  # optional, kept for cancellations
        }

        Allowed transitions:
        - scheduled -> confirmed | cancelled
        - confirmed -> in_progress | no_show
        - in_progress -> completed

        Returns:
            200: Transition applied
            400: Invalid transition
        """
        appointment = self.get_object()
        serializer = AppointmentTransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        appointment = self.get_accessor().transition(
            appointment,
            serializer.validated_data['status'],
            reason=serializer.validated_data.get('reason'),
        )
        return Response(AppointmentSerializer(appointment).data)


class PrescriptionViewSet(TenantScopedViewSetMixin,
                          mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.CreateModelMixin,
                          viewsets.GenericViewSet):
    """
    ViewSet for Prescription endpoints. Prescriptions are never updated or deleted.

    Endpoints:
    - GET /api/v1/prescriptions/?patient_id=&appointment_id=
    - POST /api/v1/prescriptions/ (CREATE_PRESCRIPTIONS)
    - GET /api/v1/prescriptions/{id}/
    - GET /api/v1/prescriptions/{id}/pdf/
    """
    accessor_class = PrescriptionAccessor
    empty_model = Prescription
    serializer_class = PrescriptionSerializer
    required_actions = {
        'list': Action.VIEW_MEDICAL_RECORDS,
        'retrieve': Action.VIEW_MEDICAL_RECORDS,
        'pdf': Action.VIEW_MEDICAL_RECORDS,
        'create': Action.CREATE_PRESCRIPTIONS,
    }

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return self._schema_queryset()
        return self.get_accessor().filter(
            patient_id=self.request.query_params.get('patient_id'),
            appointment_id=self.request.query_params.get('appointment_id'),
        )

    def get_serializer_class(self):
        if self.action == 'create':
            return PrescriptionCreateSerializer
        return PrescriptionSerializer

    def create(self, request, *args, **kwargs):
        serializer = PrescriptionCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        prescription = self.get_accessor().create(**serializer.validated_data)
        return Response(PrescriptionSerializer(prescription).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'], url_path='pdf')
    def pdf(self, request, pk=None):
        bundle = build_prescription_bundle(request.clinic_context, pk)
        response = HttpResponse(render_prescription_pdf(bundle), content_type='application/pdf')
        response['Content-Disposition'] = f'attachment; filename="{prescription_filename(bundle)}"'
        return response

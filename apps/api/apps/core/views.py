"""
Core views - current account and clinic onboarding/settings.
"""
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz import services
from apps.authz.directory import MembershipDirectory
from apps.authz.permissions import Action, ClinicActionPermission, IsAuthenticatedAccount
from apps.authz.serializers import MembershipSerializer
from apps.core.observability.events import log_domain_event
from .models import Clinic
from .serializers import ClinicCreateSerializer, ClinicSerializer, CurrentAccountSerializer


class CurrentUserView(APIView):
    """
    GET /api/auth/me/ - Current account, its memberships and the active clinic.

    The active membership follows the same rule the access guard applies
    when no X-Clinic-ID header is sent.
    """
    permission_classes = [IsAuthenticatedAccount]

    def get(self, request):
        directory = MembershipDirectory()
        data = {
            'user': request.user,
            'memberships': directory.memberships_for(request.user.id),
            'active_membership': directory.primary_membership(request.user.id),
        }
        return Response(CurrentAccountSerializer(data).data)


class ClinicMembershipsView(APIView):
    """GET /api/v1/clinics/memberships/ - Clinics the current account belongs to."""
    permission_classes = [IsAuthenticatedAccount]

    def get(self, request):
        memberships = MembershipDirectory().memberships_for(request.user.id)
        return Response({'memberships': MembershipSerializer(memberships, many=True).data})


class ClinicCreateView(APIView):
    """
    POST /api/v1/clinics/ - Create a clinic for an account without one.

    The caller becomes owner and ADMIN. 409 if the account already belongs
    to a clinic.
    """
    permission_classes = [IsAuthenticatedAccount]

    def post(self, request):
        serializer = ClinicCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        clinic = services.create_clinic(
            owner=request.user,
            name=serializer.validated_data['name'],
            address=serializer.validated_data.get('address'),
            phone=serializer.validated_data.get('phone'),
        )
        return Response(ClinicSerializer(clinic).data, status=status.HTTP_201_CREATED)


class ClinicSettingsView(APIView):
    """
    GET/PATCH /api/v1/clinic/ - Settings of the active clinic (ADMIN only).
    """
    permission_classes = [ClinicActionPermission]
    required_actions = {
        'get': Action.MANAGE_CLINIC,
        'patch': Action.MANAGE_CLINIC,
        'put': Action.MANAGE_CLINIC,
    }

    def _clinic(self, request):
        return Clinic.objects.select_related('owner').get(pk=request.clinic_context.clinic_id)

    def get(self, request):
        return Response(ClinicSerializer(self._clinic(request)).data)

    def patch(self, request):
        return self._update(request, partial=True)

    def put(self, request):
        return self._update(request, partial=False)

    def _update(self, request, partial):
        clinic = self._clinic(request)
        serializer = ClinicSerializer(clinic, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        log_domain_event(
            'clinic_updated',
            entity_type='Clinic',
            entity_id=str(clinic.id),
            changed_fields=sorted(serializer.validated_data.keys()),
        )
        return Response(serializer.data)

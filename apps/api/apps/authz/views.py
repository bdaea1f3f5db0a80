"""
Authz views: registration and staff management.
"""
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.authz import services
from apps.authz.models import Membership, RoleChoices, User
from apps.authz.permissions import Action, ClinicActionPermission
from apps.authz.serializers import (
    AccountSerializer,
    RegistrationSerializer,
    StaffCreateSerializer,
    StaffMemberSerializer,
)
from apps.core.exceptions import DuplicateMembership

AVAILABLE_USERS_LIMIT = 20


class RegisterView(APIView):
    """
    POST /api/v1/register/ - Create an account (public).

    ADMIN registrations also create the clinic and the owner's ADMIN
    membership, atomically.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = RegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user, clinic = services.register_account(
            email=data['email'],
            password=data['password'],
            name=data.get('name', ''),
            role=data['role'],
            clinic_name=data.get('clinic_name'),
            clinic_address=data.get('clinic_address'),
            clinic_phone=data.get('clinic_phone'),
        )

        return Response(
            {
                'user': AccountSerializer(user).data,
                'clinic_id': str(clinic.id) if clinic else None,
            },
            status=status.HTTP_201_CREATED,
        )


class StaffViewSet(mixins.ListModelMixin,
                   mixins.CreateModelMixin,
                   mixins.DestroyModelMixin,
                   viewsets.GenericViewSet):
    """
    Staff of the active clinic (ADMIN only).

    Endpoints:
    - GET /api/v1/staff/ - List doctors and receptionists
    - POST /api/v1/staff/ - Add an existing account as doctor/receptionist
    - DELETE /api/v1/staff/{id}/ - Remove a membership (never the owner's)
    - GET /api/v1/staff/available-users/ - Candidate accounts not yet in this clinic
    - GET /api/v1/staff/search/?email= - Look up one candidate by email
    """
    permission_classes = [ClinicActionPermission]
    required_actions = {
        'list': Action.MANAGE_STAFF,
        'create': Action.MANAGE_STAFF,
        'destroy': Action.MANAGE_STAFF,
        'available_users': Action.MANAGE_STAFF,
        'search': Action.MANAGE_STAFF,
    }
    serializer_class = StaffMemberSerializer
    pagination_class = None

    def get_queryset(self):
        """Memberships of the active clinic only."""
        if getattr(self, 'swagger_fake_view', False):
            return Membership.objects.none()
        clinic_id = self.request.clinic_context.clinic_id
        queryset = Membership.objects.select_related('user', 'clinic').filter(clinic_id=clinic_id)
        if self.action == 'list':
            queryset = queryset.filter(role__in=[RoleChoices.DOCTOR, RoleChoices.RECEPTIONIST])
        return queryset.order_by('-created_at', '-id')

    def create(self, request, *args, **kwargs):
        serializer = StaffCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            membership = services.add_staff_member(
                clinic_id=request.clinic_context.clinic_id,
                user_id=serializer.validated_data['user_id'],
                role=serializer.validated_data['role'],
            )
        except User.DoesNotExist:
            raise NotFound('User not found')

        membership = Membership.objects.select_related('user', 'clinic').get(pk=membership.pk)
        return Response(StaffMemberSerializer(membership).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, *args, **kwargs):
        services.remove_staff_member(self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'], url_path='available-users')
    def available_users(self, request):
        """Accounts registered as doctor/receptionist that are not members of this clinic."""
        clinic_id = request.clinic_context.clinic_id
        users = (
            User.objects
            .filter(
                is_active=True,
                default_role__in=[RoleChoices.DOCTOR, RoleChoices.RECEPTIONIST],
            )
            .exclude(memberships__clinic_id=clinic_id)
            .order_by('email')[:AVAILABLE_USERS_LIMIT]
        )
        return Response({'users': AccountSerializer(users, many=True).data})

    @action(detail=False, methods=['get'], url_path='search')
    def search(self, request):
        email = (request.query_params.get('email') or '').strip().lower()
        if not email:
            raise ValidationError({'email': 'This query parameter is required.'})

        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            raise NotFound('User not found')

        if Membership.objects.filter(user_id=user.id, clinic_id=request.clinic_context.clinic_id).exists():
            raise DuplicateMembership()

        return Response({'user': AccountSerializer(user).data})

"""
Authz serializers: accounts, registration, memberships and staff.
"""
from django.contrib.auth import password_validation
from rest_framework import serializers

from apps.authz.models import DefaultRoleChoices, Membership, RoleChoices, User


class AccountSerializer(serializers.ModelSerializer):
    """Public view of an account. The password hash is never exposed."""

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'default_role', 'is_active', 'created_at']
        read_only_fields = fields


class RegistrationSerializer(serializers.Serializer):
    """
    Input for POST /api/v1/register/.

    ADMIN registrations must name the clinic they create.
    """
    email = serializers.EmailField(max_length=255)
    password = serializers.CharField(write_only=True, min_length=8, max_length=128)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    role = serializers.ChoiceField(choices=DefaultRoleChoices.choices, default=DefaultRoleChoices.PATIENT)
    clinic_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    clinic_address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    clinic_phone = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate_email(self, value):
        return User.objects.normalize_email(value).lower()

    def validate_password(self, value):
        password_validation.validate_password(value)
        return value

    def validate(self, attrs):
        if attrs['role'] == DefaultRoleChoices.ADMIN and not (attrs.get('clinic_name') or '').strip():
            raise serializers.ValidationError({'clinic_name': 'Clinic name is required for administrators.'})
        return attrs


class MembershipSerializer(serializers.ModelSerializer):
    """Membership as seen by its own account (onboarding, clinic switcher)."""
    clinic_name = serializers.CharField(source='clinic.name', read_only=True)
    role_display = serializers.CharField(source='get_role_display', read_only=True)
    is_owner = serializers.BooleanField(read_only=True)

    class Meta:
        model = Membership
        fields = ['id', 'clinic', 'clinic_name', 'role', 'role_display', 'is_owner', 'created_at']
        read_only_fields = fields


class StaffMemberSerializer(serializers.ModelSerializer):
    """Membership as seen by the clinic's administrators."""
    user = AccountSerializer(read_only=True)
    role_display = serializers.CharField(source='get_role_display', read_only=True)
    is_owner = serializers.BooleanField(read_only=True)

    class Meta:
        model = Membership
        fields = ['id', 'user', 'role', 'role_display', 'is_owner', 'created_at']
        read_only_fields = fields


class StaffCreateSerializer(serializers.Serializer):
    """
    Input for adding a staff member.

    Only DOCTOR and RECEPTIONIST can be granted here; ADMIN comes with clinic
    creation.
    """
    user_id = serializers.UUIDField()
    role = serializers.CharField()

    def validate_role(self, value):
        value = value.lower()
        if value not in (RoleChoices.DOCTOR, RoleChoices.RECEPTIONIST):
            raise serializers.ValidationError('Role must be doctor or receptionist.')
        return value

"""
Core serializers: clinics and the current account.
"""
from rest_framework import serializers

from apps.authz.serializers import AccountSerializer, MembershipSerializer
from .models import Clinic


class ClinicSerializer(serializers.ModelSerializer):
    """Clinic settings. Ownership is fixed at creation."""
    owner_email = serializers.EmailField(source='owner.email', read_only=True)

    class Meta:
        model = Clinic
        fields = ['id', 'name', 'address', 'phone', 'owner', 'owner_email', 'created_at', 'updated_at']
        read_only_fields = ['id', 'owner', 'owner_email', 'created_at', 'updated_at']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Clinic name cannot be blank.')
        return value


class ClinicCreateSerializer(serializers.Serializer):
    """Input for POST /api/v1/clinics/ (onboarding)."""
    name = serializers.CharField(max_length=255)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Clinic name cannot be blank.')
        return value


class CurrentAccountSerializer(serializers.Serializer):
    """Current account with its memberships and the active (primary) clinic."""
    user = AccountSerializer()
    memberships = MembershipSerializer(many=True)
    active_membership = MembershipSerializer(allow_null=True)

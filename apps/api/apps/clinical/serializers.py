"""
Clinical serializers: patients, services, appointments, prescriptions.

Write serializers only validate input; persistence goes through the
tenant-scoped accessors so the clinic id never comes from the client.
"""
from rest_framework import serializers

from apps.clinical.models import (
    Appointment,
    AppointmentStatusChoices,
    Patient,
    Prescription,
    Service,
)


# ============================================================================
# Patients
# ============================================================================

PATIENT_BASE_FIELDS = [
    'id',
    'first_name',
    'last_name',
    'email',
    'phone',
    'address',
    'date_of_birth',
    'gender',
    'created_at',
    'updated_at',
]

PATIENT_CLINICAL_FIELDS = [
    'blood_type',
    'allergies',
    'current_medications',
    'notes',
]


class PatientSerializer(serializers.ModelSerializer):
    """
    Front-desk view of a patient: identity and contact data only.

    Used for roles without VIEW_MEDICAL_RECORDS (receptionists).
    """

    class Meta:
        model = Patient
        fields = PATIENT_BASE_FIELDS
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_first_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('First name cannot be blank.')
        return value.strip()

    def validate_last_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Last name cannot be blank.')
        return value.strip()


class PatientClinicalSerializer(PatientSerializer):
    """Full patient record including clinical metadata."""

    class Meta(PatientSerializer.Meta):
        fields = PATIENT_BASE_FIELDS + PATIENT_CLINICAL_FIELDS


# ============================================================================
# Services
# ============================================================================

class ServiceSerializer(serializers.ModelSerializer):
    """Clinic service. Deactivated services stay readable."""

    class Meta:
        model = Service
        fields = [
            'id',
            'name',
            'description',
            'duration_minutes',
            'price',
            'category',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']


# ============================================================================
# Appointments
# ============================================================================

class AppointmentSerializer(serializers.ModelSerializer):
    """Appointment read model (list and detail)."""
    patient_id = serializers.UUIDField(read_only=True)
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    service_id = serializers.UUIDField(read_only=True)
    service_name = serializers.CharField(source='service.name', read_only=True)
    assigned_user_id = serializers.UUIDField(read_only=True, allow_null=True)
    assigned_user_name = serializers.SerializerMethodField()
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id',
            'patient_id',
            'patient_name',
            'service_id',
            'service_name',
            'assigned_user_id',
            'assigned_user_name',
            'scheduled_start',
            'duration_minutes',
            'scheduled_end',
            'status',
            'status_display',
            'allowed_transitions',
            'notes',
            'cancellation_reason',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_assigned_user_name(self, obj):
        if obj.assigned_user:
            return obj.assigned_user.display_name
        return None

    def get_allowed_transitions(self, obj):
        return Appointment.allowed_transitions(obj.status)


class AppointmentCreateSerializer(serializers.Serializer):
    """Input for POST /api/v1/appointments/. Status always starts as scheduled."""
    patient_id = serializers.UUIDField()
    service_id = serializers.UUIDField()
    scheduled_start = serializers.DateTimeField()
    assigned_user_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AppointmentUpdateSerializer(serializers.Serializer):
    """
    Input for PATCH /api/v1/appointments/{id}/.

    Changing ``scheduled_start`` re-runs the conflict check; ``status`` is
    validated against the transition table. Duration cannot be changed.
    """
    scheduled_start = serializers.DateTimeField(required=False)
    status = serializers.ChoiceField(choices=AppointmentStatusChoices.choices, required=False)
    cancellation_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    assigned_user_id = serializers.UUIDField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AppointmentTransitionSerializer(serializers.Serializer):
    """Input for POST /api/v1/appointments/{id}/transition/."""
    status = serializers.ChoiceField(choices=AppointmentStatusChoices.choices)
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


# ============================================================================
# Prescriptions
# ============================================================================

class PrescriptionSerializer(serializers.ModelSerializer):
    """Prescription read model."""
    patient_id = serializers.UUIDField(read_only=True)
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    appointment_id = serializers.UUIDField(read_only=True, allow_null=True)
    created_by_id = serializers.UUIDField(read_only=True)
    created_by_name = serializers.CharField(source='created_by.display_name', read_only=True)
    clinic_name = serializers.CharField(source='clinic.name', read_only=True)

    class Meta:
        model = Prescription
        fields = [
            'id',
            'patient_id',
            'patient_name',
            'appointment_id',
            'created_by_id',
            'created_by_name',
            'clinic_name',
            'diagnosis',
            'medications',
            'instructions',
            'notes',
            'created_at',
        ]
        read_only_fields = fields


class PrescriptionCreateSerializer(serializers.Serializer):
    """Input for POST /api/v1/prescriptions/."""
    patient_id = serializers.UUIDField()
    appointment_id = serializers.UUIDField(required=False, allow_null=True)
    diagnosis = serializers.CharField()
    medications = serializers.CharField()
    instructions = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)

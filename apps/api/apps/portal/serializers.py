"""
Patient portal serializers.

Portal payloads expose only what a patient may see about a clinic: no
clinical metadata, no staff contact data beyond name and email.
"""
from rest_framework import serializers

from apps.clinical.models import Appointment, Patient, Prescription, Service
from apps.core.models import Clinic


class PortalClinicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Clinic
        fields = ['id', 'name', 'address', 'phone']
        read_only_fields = fields


class PortalDoctorSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    name = serializers.CharField(source='display_name', read_only=True)
    email = serializers.EmailField(read_only=True)


class PortalMemberDoctorSerializer(serializers.Serializer):
    """A DOCTOR membership, flattened to the doctor plus the clinic they work in."""
    id = serializers.UUIDField(source='user.id', read_only=True)
    name = serializers.CharField(source='user.display_name', read_only=True)
    email = serializers.EmailField(source='user.email', read_only=True)
    clinic_id = serializers.UUIDField(source='clinic.id', read_only=True)
    clinic_name = serializers.CharField(source='clinic.name', read_only=True)


class PortalServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = ['id', 'name', 'description', 'duration_minutes', 'price', 'category']
        read_only_fields = fields


class PortalAppointmentSerializer(serializers.ModelSerializer):
    """Appointment as the patient sees it, with clinic, service and doctor inlined."""
    clinic = PortalClinicSerializer(read_only=True)
    service = PortalServiceSerializer(read_only=True)
    doctor = PortalDoctorSerializer(source='assigned_user', read_only=True, allow_null=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'clinic',
            'service',
            'doctor',
            'scheduled_start',
            'duration_minutes',
            'scheduled_end',
            'status',
            'status_display',
            'notes',
        ]
        read_only_fields = fields


class PortalBookingSerializer(serializers.Serializer):
    """Input for POST /api/v1/portal/appointments/."""
    clinic_id = serializers.UUIDField()
    service_id = serializers.UUIDField()
    doctor_id = serializers.UUIDField()
    scheduled_start = serializers.DateTimeField()
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PortalPrescriptionSerializer(serializers.ModelSerializer):
    clinic_name = serializers.CharField(source='clinic.name', read_only=True)
    patient_name = serializers.CharField(source='patient.full_name', read_only=True)
    prescriber_name = serializers.CharField(source='created_by.display_name', read_only=True)

    class Meta:
        model = Prescription
        fields = [
            'id',
            'clinic_name',
            'patient_name',
            'prescriber_name',
            'diagnosis',
            'medications',
            'instructions',
            'created_at',
        ]
        read_only_fields = fields


class PortalProfileSerializer(serializers.ModelSerializer):
    """
    Identity and contact data of the account's patient record.

    The email is read-only: it links the record to the account.
    """

    class Meta:
        model = Patient
        fields = [
            'id',
            'first_name',
            'last_name',
            'email',
            'phone',
            'address',
            'date_of_birth',
            'gender',
        ]
        read_only_fields = ['id', 'email']

    def validate_first_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('First name cannot be blank.')
        return value.strip()

    def validate_last_name(self, value):
        if not value.strip():
            raise serializers.ValidationError('Last name cannot be blank.')
        return value.strip()

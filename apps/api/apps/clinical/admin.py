from django.contrib import admin
from .models import Patient, Service, Appointment, Prescription


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'email', 'phone', 'clinic', 'created_at']
    list_filter = ['clinic', 'gender']
    search_fields = ['first_name', 'last_name', 'email', 'phone']
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['clinic']

    fieldsets = (
        ('Basic Info', {
            'fields': ('id', 'clinic', 'first_name', 'last_name', 'date_of_birth', 'gender')
        }),
        ('Contact', {
            'fields': ('email', 'phone', 'address')
        }),
        ('Clinical', {
            'fields': ('blood_type', 'allergies', 'current_medications', 'notes')
        }),
        ('Audit', {
            'fields': ('created_at', 'updated_at')
        }),
    )


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['name', 'clinic', 'category', 'duration_minutes', 'price', 'is_active']
    list_filter = ['clinic', 'category', 'is_active']
    search_fields = ['name', 'category']
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['clinic']


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['scheduled_start', 'patient', 'service', 'assigned_user', 'status', 'clinic']
    list_filter = ['status', 'clinic']
    search_fields = ['patient__first_name', 'patient__last_name', 'service__name']
    # Duration and end are fixed at booking time
    readonly_fields = ['id', 'duration_minutes', 'scheduled_end', 'created_at', 'updated_at']
    autocomplete_fields = ['patient', 'service', 'assigned_user']
    date_hierarchy = 'scheduled_start'


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'patient', 'created_by', 'clinic']
    list_filter = ['clinic']
    search_fields = ['patient__first_name', 'patient__last_name', 'diagnosis']
    readonly_fields = [
        'id', 'clinic', 'patient', 'created_by', 'appointment',
        'diagnosis', 'medications', 'instructions', 'notes', 'created_at',
    ]

    def has_change_permission(self, request, obj=None):
        # Prescriptions are immutable once written
        return obj is None

from django.contrib import admin
from .models import Clinic


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ['name', 'owner', 'phone', 'created_at']
    search_fields = ['name', 'owner__email']  # Required for autocomplete_fields
    readonly_fields = ['id', 'created_at', 'updated_at']
    autocomplete_fields = ['owner']

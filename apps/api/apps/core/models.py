"""
Core models: clinic (tenant boundary).
"""
import uuid
from django.conf import settings
from django.db import models


class Clinic(models.Model):
    """
    Administrative boundary owning its own patients, staff, services and appointments.

    Fields:
    - id: UUID PK
    - name
    - address, phone: nullable
    - owner_id: FK -> auth_user (the account that created the clinic)
    - created_at, updated_at

    BUSINESS RULES:
    - Exactly one owner; the owner always holds an ADMIN membership here
    - The owner's membership can never be removed
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=50, blank=True, null=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='owned_clinics'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clinic'
        verbose_name = 'Clinic'
        verbose_name_plural = 'Clinics'
        ordering = ['name']
        indexes = [
            models.Index(fields=['owner'], name='idx_clinic_owner'),
        ]

    def __str__(self):
        return self.name

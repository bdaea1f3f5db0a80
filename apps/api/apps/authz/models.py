"""
Authz models: auth_user, membership
"""
import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin


# ============================================================================
# Enums
# ============================================================================

class RoleChoices(models.TextChoices):
    """Closed set of clinic roles a membership can carry."""
    ADMIN = 'admin', 'Admin'
    DOCTOR = 'doctor', 'Doctor'
    RECEPTIONIST = 'receptionist', 'Receptionist'


class DefaultRoleChoices(models.TextChoices):
    """
    Role hint chosen at registration.

    Only used before the account has any membership (onboarding routing,
    staff candidate lists). PATIENT accounts never get memberships.
    """
    ADMIN = 'admin', 'Admin'
    DOCTOR = 'doctor', 'Doctor'
    RECEPTIONIST = 'receptionist', 'Receptionist'
    PATIENT = 'patient', 'Patient'


# ============================================================================
# User Management
# ============================================================================

class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Account identity.

    Fields:
    - id: UUID PK
    - email: unique (login)
    - name: display name
    - password: credential hash (AbstractBaseUser), never serialized
    - default_role: role hint used before any membership exists
    - is_active, is_staff
    - created_at, updated_at
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255)
    name = models.CharField(max_length=255, blank=True, default='')
    default_role = models.CharField(
        max_length=20,
        choices=DefaultRoleChoices.choices,
        default=DefaultRoleChoices.PATIENT
    )
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)  # Required for Django admin access
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'auth_user'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['default_role'], name='idx_user_default_role'),
        ]

    def __str__(self):
        return self.email

    @property
    def display_name(self):
        return self.name or self.email


# ============================================================================
# Clinic Membership
# ============================================================================

class Membership(models.Model):
    """
    Binds one account to one clinic with exactly one role.

    Fields:
    - user_id: FK -> auth_user
    - clinic_id: FK -> clinic
    - role: admin|doctor|receptionist
    - created_at
    - Unique (user_id, clinic_id)

    Default ordering (created_at, id) is the stable order used when an
    account has several memberships and none of them is ADMIN.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    clinic = models.ForeignKey(
        'core.Clinic',
        on_delete=models.CASCADE,
        related_name='memberships'
    )
    role = models.CharField(
        max_length=20,
        choices=RoleChoices.choices
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'membership'
        verbose_name = 'Membership'
        verbose_name_plural = 'Memberships'
        ordering = ['created_at', 'id']
        constraints = [
            models.UniqueConstraint(fields=['user', 'clinic'], name='uniq_membership_user_clinic'),
        ]
        indexes = [
            models.Index(fields=['clinic', 'role'], name='idx_membership_clinic_role'),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.clinic.name} ({self.role})"

    @property
    def is_owner(self):
        return self.user_id == self.clinic.owner_id

"""
Permission table and the DRF permission class built on the access guard.

The table maps each action key to the fixed set of roles allowed to perform it.
It depends on nothing but the role.
"""
from django.db import models
from rest_framework import permissions

from apps.authz.models import RoleChoices


class Action(models.TextChoices):
    """Action keys checked by the access guard."""
    MANAGE_PATIENTS = 'MANAGE_PATIENTS', 'Manage patients'
    MANAGE_SERVICES = 'MANAGE_SERVICES', 'Manage services'
    MANAGE_STAFF = 'MANAGE_STAFF', 'Manage staff'
    MANAGE_APPOINTMENTS = 'MANAGE_APPOINTMENTS', 'Manage appointments'
    CREATE_PRESCRIPTIONS = 'CREATE_PRESCRIPTIONS', 'Create prescriptions'
    VIEW_MEDICAL_RECORDS = 'VIEW_MEDICAL_RECORDS', 'View medical records'
    MANAGE_INVOICES = 'MANAGE_INVOICES', 'Manage invoices'
    MANAGE_OWN_SCHEDULE = 'MANAGE_OWN_SCHEDULE', 'Manage own schedule'
    VIEW_ALL_APPOINTMENTS = 'VIEW_ALL_APPOINTMENTS', 'View all clinic appointments'
    VIEW_OWN_APPOINTMENTS = 'VIEW_OWN_APPOINTMENTS', 'View own appointments'
    MANAGE_CLINIC = 'MANAGE_CLINIC', 'Manage clinic settings'


ADMIN = RoleChoices.ADMIN.value
DOCTOR = RoleChoices.DOCTOR.value
RECEPTIONIST = RoleChoices.RECEPTIONIST.value

PERMISSIONS = {
    Action.MANAGE_PATIENTS: frozenset({ADMIN, RECEPTIONIST}),
    Action.MANAGE_SERVICES: frozenset({ADMIN}),
    Action.MANAGE_STAFF: frozenset({ADMIN}),
    Action.MANAGE_APPOINTMENTS: frozenset({ADMIN, DOCTOR, RECEPTIONIST}),
    Action.CREATE_PRESCRIPTIONS: frozenset({ADMIN, DOCTOR}),
    Action.VIEW_MEDICAL_RECORDS: frozenset({ADMIN, DOCTOR}),
    Action.MANAGE_INVOICES: frozenset({ADMIN, RECEPTIONIST}),
    Action.MANAGE_OWN_SCHEDULE: frozenset({ADMIN, DOCTOR}),
    Action.VIEW_ALL_APPOINTMENTS: frozenset({ADMIN, RECEPTIONIST}),
    Action.VIEW_OWN_APPOINTMENTS: frozenset({DOCTOR}),
    Action.MANAGE_CLINIC: frozenset({ADMIN}),
}


def allowed_roles(action):
    """Roles allowed to perform ``action``. Unknown action keys raise ValueError."""
    return PERMISSIONS[Action(action)]


def has_permission(role, action):
    """True iff ``role`` may perform ``action``."""
    return str(role) in allowed_roles(action)


class ClinicActionPermission(permissions.BasePermission):
    """
    Runs the access guard for every request of a clinic-scoped view.

    The view declares ``required_actions``: a mapping from viewset action
    (or HTTP method, lowercase, for plain APIViews) to an ``Action``; a
    missing entry means "any member of the clinic". The resulting
    AuthorizedContext is stored on ``request.clinic_context``.

    Rejections are raised, not returned, so each keeps its own status:
    401 unauthenticated, 404 no clinic, 403 forbidden.
    """

    def has_permission(self, request, view):
        from apps.authz.guard import AccessGuard

        required = getattr(view, 'required_actions', {}) or {}
        key = getattr(view, 'action', None) or request.method.lower()
        action = required.get(key)

        guard = getattr(view, 'access_guard', None) or AccessGuard()
        request.clinic_context = guard.authorize_request(request, action)
        return True


class IsAuthenticatedAccount(permissions.BasePermission):
    """
    Authenticated account, no clinic required (onboarding, portal).

    Raises 401 through the identity resolver instead of DRF's generic denial.
    """

    def has_permission(self, request, view):
        from apps.authz.identity import IdentityResolver

        IdentityResolver().resolve_request(request)
        return True

"""
Access guard: the single authorization path for clinic-scoped operations.

    token/request -> account id -> active clinic membership -> role -> action check

Outcomes:
- Unauthenticated (401): no valid session
- NoClinic (404, code no_clinic): authenticated, but member of no clinic
- Forbidden (403): role lacks the action, or an explicit clinic that is not
  one of the account's clinics
"""
import uuid
from dataclasses import dataclass

from django.conf import settings

from apps.authz.directory import MembershipDirectory
from apps.authz.identity import IdentityResolver
from apps.authz.models import RoleChoices
from apps.authz.permissions import has_permission
from apps.core.exceptions import Forbidden, NoClinic, Unauthenticated
from apps.core.observability.correlation import bind_authorized_context
from apps.core.observability.events import log_access_denied
from apps.core.observability.metrics import metrics


@dataclass(frozen=True)
class AuthorizedContext:
    """Result of a successful authorization. Everything downstream is scoped by it."""
    account_id: uuid.UUID
    clinic_id: uuid.UUID
    role: str

    @property
    def sees_only_own_appointments(self):
        return self.role == RoleChoices.DOCTOR

    def scope_appointments(self, queryset):
        """Doctors only see appointments assigned to them."""
        if self.sees_only_own_appointments:
            return queryset.filter(assigned_user_id=self.account_id)
        return queryset

    def ensure_can_touch_appointment(self, appointment):
        if self.sees_only_own_appointments and appointment.assigned_user_id != self.account_id:
            raise Forbidden('You can only access your own appointments')


class AccessGuard:
    """Evaluates (account, action) pairs against memberships and the permission table."""

    def __init__(self, using='default', directory=None, resolver=None):
        self.using = using
        self.directory = directory or MembershipDirectory(using=using)
        self.resolver = resolver or IdentityResolver(using=using)

    def authorize(self, account_id, action=None, clinic_id=None):
        """
        Resolve the active clinic membership of ``account_id`` and check ``action``.

        ``action=None`` only requires membership. ``clinic_id`` selects the
        active clinic explicitly; without it the directory's primary
        membership applies.
        """
        action_label = str(action) if action else 'membership'

        if clinic_id is not None:
            try:
                clinic_id = uuid.UUID(str(clinic_id))
            except ValueError:
                self._deny(account_id, action, 'forbidden', 'invalid_clinic_id')
                raise Forbidden('You are not a member of this clinic')

        membership = self.directory.primary_membership(account_id, clinic_id=clinic_id)

        if membership is None:
            if clinic_id is not None and self.directory.memberships_for(account_id):
                self._deny(account_id, action, 'forbidden', 'foreign_clinic', clinic_id)
                raise Forbidden('You are not a member of this clinic')
            self._deny(account_id, action, 'no_clinic', 'no_membership')
            raise NoClinic()

        if action is not None and not has_permission(membership.role, action):
            self._deny(account_id, action, 'forbidden', 'role_lacks_action', membership.clinic_id)
            raise Forbidden()

        metrics.access_decisions_total.labels(action=action_label, result='allowed').inc()
        bind_authorized_context(account_id, membership.clinic_id, membership.role)
        return AuthorizedContext(
            account_id=account_id,
            clinic_id=membership.clinic_id,
            role=membership.role,
        )

    def authorize_token(self, token, action=None, clinic_id=None):
        try:
            account_id = self.resolver.resolve_token(token)
        except Unauthenticated:
            metrics.access_decisions_total.labels(
                action=str(action) if action else 'membership', result='unauthenticated'
            ).inc()
            raise
        return self.authorize(account_id, action, clinic_id)

    def authorize_request(self, request, action=None):
        """Authorize a DRF request; the active clinic may come from the X-Clinic-ID header."""
        try:
            account_id = self.resolver.resolve_request(request)
        except Unauthenticated:
            metrics.access_decisions_total.labels(
                action=str(action) if action else 'membership', result='unauthenticated'
            ).inc()
            raise

        header = getattr(settings, 'ACTIVE_CLINIC_HEADER', 'HTTP_X_CLINIC_ID')
        clinic_id = request.META.get(header) or None
        return self.authorize(account_id, action, clinic_id)

    def _deny(self, account_id, action, result, reason, clinic_id=None):
        metrics.access_decisions_total.labels(
            action=str(action) if action else 'membership', result=result
        ).inc()
        log_access_denied(account_id, action, reason, clinic_id=clinic_id)

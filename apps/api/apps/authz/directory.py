"""
Membership directory: which clinics an account belongs to, and in which role.
"""
from apps.authz.models import Membership, RoleChoices


class MembershipDirectory:
    """
    Read-only lookups over memberships.

    Order is (created_at, id) everywhere so "first membership" is stable
    across calls.
    """

    def __init__(self, using='default'):
        self.using = using

    def _memberships(self):
        return Membership.objects.using(self.using).select_related('clinic').order_by('created_at', 'id')

    def memberships_for(self, account_id):
        return list(self._memberships().filter(user_id=account_id))

    def primary_membership(self, account_id, clinic_id=None):
        """
        Membership that decides the request's active clinic.

        With ``clinic_id`` the membership for exactly that clinic is returned
        (None if the account is not a member). Otherwise an ADMIN membership
        wins; failing that, the first membership in stable order. The
        fallback is deterministic but arbitrary for accounts that belong to
        several clinics without administering any; clients should send the
        clinic explicitly in that case.
        """
        memberships = self._memberships().filter(user_id=account_id)

        if clinic_id is not None:
            return memberships.filter(clinic_id=clinic_id).first()

        admin = memberships.filter(role=RoleChoices.ADMIN).first()
        if admin is not None:
            return admin
        return memberships.first()

    def role_in_clinic(self, account_id, clinic_id):
        membership = self._memberships().filter(user_id=account_id, clinic_id=clinic_id).first()
        return membership.role if membership else None

    def doctors_of(self, clinic_id):
        return list(
            self._memberships()
            .select_related('user')
            .filter(clinic_id=clinic_id, role=RoleChoices.DOCTOR)
        )

    def doctors_in(self, clinic_ids):
        """DOCTOR memberships across ``clinic_ids``, one per clinic a doctor works in."""
        return list(
            self._memberships()
            .select_related('user')
            .filter(clinic_id__in=clinic_ids, role=RoleChoices.DOCTOR)
        )

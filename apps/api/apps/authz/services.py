"""
Onboarding and staff services.

Account registration, clinic creation and membership changes. Each runs in
its own transaction so a half-created tenant is never visible.
"""
from django.db import IntegrityError, transaction

from apps.authz.models import DefaultRoleChoices, Membership, RoleChoices, User
from apps.core.exceptions import Conflict, DuplicateEmail, DuplicateMembership, Forbidden
from apps.core.models import Clinic
from apps.core.observability.events import log_domain_event


def register_account(email, password, name='', role=DefaultRoleChoices.PATIENT,
                     clinic_name=None, clinic_address=None, clinic_phone=None, using='default'):
    """
    Create an account. ADMIN registrations also create their clinic and the
    owner's ADMIN membership in the same transaction.

    Returns (user, clinic_or_None).

    Raises:
        DuplicateEmail: an account with this email exists
    """
    email = email.lower()
    if User.objects.using(using).filter(email__iexact=email).exists():
        raise DuplicateEmail('An account with this email already exists')

    try:
        with transaction.atomic(using=using):
            user = User.objects.db_manager(using).create_user(
                email=email,
                password=password,
                name=name or '',
                default_role=role,
            )
            clinic = None
            if role == DefaultRoleChoices.ADMIN:
                clinic = _create_owned_clinic(user, clinic_name, clinic_address, clinic_phone, using)
    except IntegrityError:
        # Concurrent registration with the same email
        raise DuplicateEmail('An account with this email already exists')

    log_domain_event(
        'account_registered',
        entity_type='User',
        entity_id=str(user.id),
        entity_ids={'clinic_id': str(clinic.id) if clinic else None},
        default_role=role,
    )
    return user, clinic


def create_clinic(owner, name, address=None, phone=None, using='default'):
    """
    Create a clinic owned by ``owner`` (onboarding of an existing account).

    Raises:
        Conflict: the account already belongs to a clinic
    """
    with transaction.atomic(using=using):
        if Membership.objects.using(using).filter(user_id=owner.id).exists():
            raise Conflict('You already belong to a clinic')
        clinic = _create_owned_clinic(owner, name, address, phone, using)
        if owner.default_role != DefaultRoleChoices.ADMIN:
            owner.default_role = DefaultRoleChoices.ADMIN
            owner.save(using=using, update_fields=['default_role', 'updated_at'])

    log_domain_event(
        'clinic_created',
        entity_type='Clinic',
        entity_id=str(clinic.id),
        entity_ids={'owner_id': str(owner.id)},
    )
    return clinic


def _create_owned_clinic(owner, name, address, phone, using):
    clinic = Clinic.objects.using(using).create(
        name=name.strip(),
        address=address or None,
        phone=phone or None,
        owner=owner,
    )
    Membership.objects.using(using).create(user=owner, clinic=clinic, role=RoleChoices.ADMIN)
    return clinic


def add_staff_member(clinic_id, user_id, role, using='default'):
    """
    Grant ``role`` (doctor or receptionist) in the clinic to an existing account.

    Raises:
        User.DoesNotExist: unknown account
        DuplicateMembership: the account is already a member of this clinic
    """
    user = User.objects.using(using).get(id=user_id)

    if Membership.objects.using(using).filter(user_id=user.id, clinic_id=clinic_id).exists():
        raise DuplicateMembership()

    try:
        with transaction.atomic(using=using):
            membership = Membership.objects.using(using).create(user=user, clinic_id=clinic_id, role=role)
    except IntegrityError:
        raise DuplicateMembership()

    log_domain_event(
        'staff_added',
        entity_type='Membership',
        entity_id=str(membership.id),
        entity_ids={'clinic_id': str(clinic_id), 'user_id': str(user.id)},
        role=role,
    )
    return membership


def remove_staff_member(membership):
    """
    Remove a membership. The clinic owner's membership can never be removed.

    Raises:
        Forbidden: ``membership`` belongs to the clinic owner
    """
    if membership.user_id == membership.clinic.owner_id:
        raise Forbidden('The clinic owner cannot be removed')

    membership_id = membership.id
    clinic_id = membership.clinic_id
    membership.delete()

    log_domain_event(
        'staff_removed',
        entity_type='Membership',
        entity_id=str(membership_id),
        entity_ids={'clinic_id': str(clinic_id)},
    )

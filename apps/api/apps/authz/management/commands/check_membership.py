"""
Diagnostic: show an account's memberships and the clinic the access guard
picks for it.

Usage:
    python manage.py check_membership admin@clinic.test
"""
from django.core.management.base import BaseCommand, CommandError

from apps.authz.directory import MembershipDirectory
from apps.authz.models import Membership, RoleChoices, User


class Command(BaseCommand):
    help = "List an account's clinic memberships and its primary clinic"

    def add_arguments(self, parser):
        parser.add_argument('email')

    def handle(self, *args, **options):
        email = options['email'].lower()
        user = User.objects.filter(email__iexact=email).first()
        if user is None:
            raise CommandError(f'Account "{email}" not found')

        directory = MembershipDirectory()
        memberships = directory.memberships_for(user.id)

        self.stdout.write(f'Account: {user.display_name} ({user.email})')
        self.stdout.write(f'  id:           {user.id}')
        self.stdout.write(f'  default_role: {user.default_role}')
        self.stdout.write(f'  memberships:  {len(memberships)}')

        if not memberships:
            self.stdout.write(self.style.ERROR('✗ No membership: staff endpoints answer 404 "No clinic found"'))
            return

        for membership in memberships:
            owner = ' (owner)' if membership.clinic.owner_id == user.id else ''
            self.stdout.write(f'  - {membership.clinic.name} [{membership.clinic_id}] role={membership.role}{owner}')

        primary = directory.primary_membership(user.id)
        self.stdout.write(self.style.SUCCESS(
            f'✓ Primary clinic: {primary.clinic.name} [{primary.clinic_id}] as {primary.role}'
        ))

        if primary.role == RoleChoices.ADMIN:
            staff = (
                Membership.objects.select_related('user')
                .filter(clinic_id=primary.clinic_id, role__in=[RoleChoices.DOCTOR, RoleChoices.RECEPTIONIST])
            )
            self.stdout.write(f'  staff of {primary.clinic.name}: {staff.count()}')
            for member in staff:
                self.stdout.write(f'    {member.user.email} - {member.role}')
        elif len(memberships) > 1:
            self.stdout.write(self.style.WARNING(
                '! Several memberships without ADMIN: the oldest one is used unless X-Clinic-ID is sent'
            ))

"""
Django management command to create a clinic with its owner/administrator.

Usage:
    python manage.py create_clinic_admin --email admin@clinic.test --password secret123 --clinic "Main Clinic"

Defaults come from CLINIC_ADMIN_EMAIL / CLINIC_ADMIN_PASSWORD / CLINIC_NAME.
Idempotent: an existing account is reused and only gets a clinic if it has none.
"""
import os

from django.core.management.base import BaseCommand, CommandError

from apps.authz import services
from apps.authz.models import DefaultRoleChoices, User
from apps.core.exceptions import Conflict


class Command(BaseCommand):
    help = 'Create a clinic administrator account together with its clinic'

    def add_arguments(self, parser):
        parser.add_argument('--email', default=os.environ.get('CLINIC_ADMIN_EMAIL', 'admin@clinic.local'))
        parser.add_argument('--password', default=os.environ.get('CLINIC_ADMIN_PASSWORD'))
        parser.add_argument('--name', default='Clinic Administrator')
        parser.add_argument('--clinic', default=os.environ.get('CLINIC_NAME', 'Main Clinic'))

    def handle(self, *args, **options):
        email = options['email'].lower()
        clinic_name = options['clinic']

        user = User.objects.filter(email=email).first()
        if user is None:
            if not options['password']:
                raise CommandError('--password (or CLINIC_ADMIN_PASSWORD) is required for a new account')
            user, clinic = services.register_account(
                email=email,
                password=options['password'],
                name=options['name'],
                role=DefaultRoleChoices.ADMIN,
                clinic_name=clinic_name,
            )
            self.stdout.write(self.style.SUCCESS(f'✓ Created account "{email}"'))
            self.stdout.write(self.style.SUCCESS(f'✓ Created clinic "{clinic.name}" ({clinic.id})'))
            return

        self.stdout.write(self.style.WARNING(f'Account "{email}" already exists'))
        try:
            clinic = services.create_clinic(owner=user, name=clinic_name)
        except Conflict:
            self.stdout.write(self.style.WARNING('  Account already belongs to a clinic, nothing to do'))
            return
        self.stdout.write(self.style.SUCCESS(f'✓ Created clinic "{clinic.name}" ({clinic.id})'))

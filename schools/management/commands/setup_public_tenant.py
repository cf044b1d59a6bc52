import os
from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.conf import settings
from schools.models import School, Domain


class Command(BaseCommand):
    help = 'Set up the public tenant, its base domains and a platform superuser'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Superuser email address')
        parser.add_argument('--password', help='Superuser password')

    def handle(self, *args, **options):
        public_tenant = School.objects.filter(schema_name='public').first()
        if not public_tenant:
            public_tenant = School.objects.create(
                schema_name='public',
                subdomain='public',
                cct_code='PUBLIC',
                name='School Platform',
            )
            self.stdout.write(self.style.SUCCESS('  Public tenant created'))
        else:
            self.stdout.write(f'  Public tenant exists: {public_tenant.name}')

        for domain_name in settings.BASE_DOMAINS:
            existing = Domain.objects.filter(domain=domain_name).first()
            if existing is None:
                Domain.objects.create(
                    domain=domain_name,
                    tenant=public_tenant,
                    is_primary=not public_tenant.domains.exists(),
                )
                self.stdout.write(self.style.SUCCESS(f'  Domain created: {domain_name}'))
            elif existing.tenant_id != public_tenant.pk:
                self.stdout.write(self.style.WARNING(
                    f'  Domain {domain_name} belongs to {existing.tenant.schema_name}, skipped'
                ))

        User = get_user_model()
        if User.objects.filter(is_superuser=True).exists():
            self.stdout.write('  Superuser exists')
            return

        email = options.get('email') or os.getenv('SUPERUSER_EMAIL')
        password = options.get('password') or os.getenv('SUPERUSER_PASSWORD')
        if not email or not password:
            self.stdout.write(self.style.WARNING('  Skipping superuser creation (no credentials provided)'))
            return

        User.objects.create_superuser(email=email, password=password)
        self.stdout.write(self.style.SUCCESS(f'  Superuser created: {email}'))

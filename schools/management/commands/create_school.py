import getpass
from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.conf import settings
from django.db import connection
from schools.models import School, Domain


class Command(BaseCommand):
    help = 'Create a school tenant reachable at <subdomain>.<base domain>'

    def add_arguments(self, parser):
        parser.add_argument('--name', help='School name (e.g., "Colegio Norte")')
        parser.add_argument('--subdomain', help='Subdomain for the school (e.g., "colegio-norte")')
        parser.add_argument('--cct-code', help='Official school code')
        parser.add_argument('--admin-email', help='School admin email address')
        parser.add_argument('--admin-password', help='School admin password')
        parser.add_argument('--no-input', action='store_true', help='Run without prompts')

    def handle(self, *args, **options):
        no_input = options.get('no_input', False)

        name = options.get('name')
        subdomain = options.get('subdomain')
        cct_code = options.get('cct_code')
        admin_email = options.get('admin_email')
        admin_password = options.get('admin_password')

        if not no_input:
            if not name:
                name = input('  School name: ').strip()
            if not subdomain:
                suggested = name.lower().replace(' ', '-')[:30] if name else 'school'
                subdomain = input(f'  Subdomain [{suggested}]: ').strip() or suggested
            if not cct_code:
                cct_code = input('  CCT code: ').strip()
            if not admin_email:
                admin_email = input('  Admin email: ').strip()
            if not admin_password:
                while True:
                    admin_password = getpass.getpass('  Admin password: ')
                    try:
                        validate_password(admin_password)
                        break
                    except ValidationError as e:
                        self.stdout.write(self.style.ERROR(f'  {"; ".join(e.messages)}'))

        if not all([name, subdomain, cct_code, admin_email, admin_password]):
            raise CommandError('All fields are required.')

        subdomain = subdomain.lower().strip()
        schema_name = subdomain.replace('-', '_')
        base_domain = settings.BASE_DOMAINS[0] if settings.BASE_DOMAINS else 'localhost'
        full_domain = f'{subdomain}.{base_domain}'

        if School.objects.filter(subdomain=subdomain).exists():
            raise CommandError(f'A school with subdomain "{subdomain}" already exists.')
        if School.objects.filter(cct_code=cct_code).exists():
            raise CommandError(f'A school with CCT code "{cct_code}" already exists.')

        school = School.objects.create(
            schema_name=schema_name,
            subdomain=subdomain,
            cct_code=cct_code,
            name=name,
            short_name=subdomain.upper()[:20],
        )
        Domain.objects.create(domain=full_domain, tenant=school, is_primary=True)
        self.stdout.write(self.style.SUCCESS(f'  School created: {school.name} ({full_domain})'))

        # Admin users live inside the tenant schema
        connection.set_tenant(school)
        User = get_user_model()
        if not User.objects.filter(email=admin_email).exists():
            User.objects.create_school_admin(email=admin_email, password=admin_password)
            self.stdout.write(self.style.SUCCESS(f'  School admin created: {admin_email}'))
        else:
            self.stdout.write(f'  School admin already exists: {admin_email}')
        connection.set_schema_to_public()

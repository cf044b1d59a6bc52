from datetime import date
from types import SimpleNamespace
from unittest import mock

from django.test import RequestFactory, SimpleTestCase, override_settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import connection
from django.urls import resolve, reverse
from django_tenants.test.cases import TenantTestCase
from django_tenants.test.client import TenantClient
from django_tenants.utils import get_public_schema_name

from core.forms import EventTypeForm, SchoolCycleForm
from core.middleware import TenantNotFoundMiddleware
from core.models import CalendarEvent, EventType, SchoolCycle
from core.utils import subdomain_from_host, parse_date

User = get_user_model()


class SubdomainFromHostTests(SimpleTestCase):

    def test_subdomain_of_base_domain(self):
        self.assertEqual(subdomain_from_host('norte.example.com', ['example.com']), 'norte')

    def test_strips_port_and_lowercases(self):
        self.assertEqual(
            subdomain_from_host('Colegio-Norte.Example.com:8000', ['example.com']),
            'colegio-norte'
        )

    def test_bare_base_domain_has_no_subdomain(self):
        self.assertIsNone(subdomain_from_host('example.com', ['example.com']))

    def test_nested_subdomain_is_rejected(self):
        self.assertIsNone(subdomain_from_host('a.b.example.com', ['example.com']))

    def test_foreign_host(self):
        self.assertIsNone(subdomain_from_host('norte.other.org', ['example.com']))
        self.assertIsNone(subdomain_from_host('notexample.com', ['example.com']))

    def test_multiple_base_domains(self):
        bases = ['example.com', 'localhost']
        self.assertEqual(subdomain_from_host('sur.localhost:8000', bases), 'sur')

    def test_empty_host(self):
        self.assertIsNone(subdomain_from_host('', ['example.com']))
        self.assertIsNone(subdomain_from_host(None, ['example.com']))


class ParseDateTests(SimpleTestCase):

    def test_valid_date(self):
        self.assertEqual(parse_date('2024-09-02'), date(2024, 9, 2))

    def test_malformed_date_returns_default(self):
        self.assertEqual(parse_date('02/09/2024', default=date(2024, 1, 1)), date(2024, 1, 1))
        self.assertIsNone(parse_date(''))


class SchoolCycleFormTests(SimpleTestCase):

    def test_end_before_start_is_invalid(self):
        form = SchoolCycleForm(data={
            'name': '2024-2025',
            'start_date': '2025-07-01',
            'end_date': '2024-08-26',
            'status': 'active',
        })
        self.assertFalse(form.is_valid())
        self.assertIn('End date must be after start date.', form.non_field_errors())


class CoreTestCase(TenantTestCase):

    @classmethod
    def setup_tenant(cls, tenant):
        tenant.name = 'Test School'
        tenant.short_name = 'TEST'
        tenant.subdomain = 'test'
        tenant.cct_code = 'TEST0001'

    def setUp(self):
        super().setUp()
        self.client = TenantClient(self.tenant)
        self.admin_user = User.objects.create_school_admin(
            email='admin@school.com', password='testpass123'
        )
        self.teacher = User.objects.create_teacher(
            email='teacher@school.com', password='testpass123'
        )


class SchoolCycleModelTests(CoreTestCase):

    def test_only_one_active_cycle(self):
        first = SchoolCycle.objects.create(
            name='2023-2024', start_date=date(2023, 8, 28), end_date=date(2024, 7, 5),
            status=SchoolCycle.Status.ACTIVE,
        )
        second = SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        first.refresh_from_db()
        self.assertEqual(first.status, SchoolCycle.Status.INACTIVE)
        self.assertEqual(SchoolCycle.get_active(), second)

    def test_get_active_without_cycles(self):
        self.assertIsNone(SchoolCycle.get_active())

    def test_clean_rejects_inverted_dates(self):
        cycle = SchoolCycle(name='Bad', start_date=date(2025, 1, 1), end_date=date(2024, 1, 1))
        with self.assertRaises(ValidationError):
            cycle.full_clean()


class CycleViewTests(CoreTestCase):

    def test_anonymous_gets_401(self):
        response = self.client.get(reverse('core:cycle_list'))
        self.assertEqual(response.status_code, 401)

    def test_teacher_cannot_create_cycle(self):
        self.client.login(email='teacher@school.com', password='testpass123')
        response = self.client.post(reverse('core:cycle_create'), {
            'name': '2024-2025', 'start_date': '2024-08-26',
            'end_date': '2025-07-04', 'status': 'active',
        })
        self.assertEqual(response.status_code, 403)
        self.assertFalse(SchoolCycle.objects.exists())

    def test_admin_creates_and_lists_cycle(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('core:cycle_create'), {
            'name': '2024-2025', 'start_date': '2024-08-26',
            'end_date': '2025-07-04', 'status': 'active',
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['cycle']['status'], 'active')

        response = self.client.get(reverse('core:cycle_list'))
        self.assertEqual([c['name'] for c in response.json()['cycles']], ['2024-2025'])

    def test_duplicate_name_is_rejected(self):
        SchoolCycle.objects.create(name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4))
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('core:cycle_create'), {
            'name': '2024-2025', 'start_date': '2024-08-26',
            'end_date': '2025-07-04', 'status': 'inactive',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('name', response.json()['errors'])

    def test_active_cycle_cannot_be_deleted(self):
        cycle = SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('core:cycle_delete', args=[cycle.pk]))
        self.assertEqual(response.status_code, 400)
        self.assertTrue(SchoolCycle.objects.filter(pk=cycle.pk).exists())

    def test_index_reports_school_and_active_cycle(self):
        SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        self.client.login(email='admin@school.com', password='testpass123')
        data = self.client.get(reverse('core:index')).json()
        self.assertEqual(data['school']['subdomain'], 'test')
        self.assertEqual(data['active_cycle']['name'], '2024-2025')
        self.assertEqual(data['roles'], ['admin'])


@override_settings(BASE_DOMAINS=['localhost'], SHOW_PUBLIC_LANDING=False)
class TenantRoutingTests(CoreTestCase):

    def tearDown(self):
        # A rejected request leaves the connection on the public schema
        connection.set_tenant(self.tenant)
        super().tearDown()

    def test_unknown_host_returns_json_404(self):
        response = self.client.get('/cycles/', HTTP_HOST='nowhere.example.org')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'School not found.')

    def test_unknown_subdomain_returns_json_404(self):
        response = self.client.get('/cycles/', HTTP_HOST='ghost.localhost')
        self.assertEqual(response.status_code, 404)

    def test_school_resolved_from_subdomain(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.get('/cycles/', HTTP_HOST='test.localhost')
        self.assertEqual(response.status_code, 200)

    def test_inactive_school_returns_404(self):
        self.tenant.status = self.tenant.Status.INACTIVE
        self.tenant.save()
        try:
            response = self.client.get('/cycles/')
            self.assertEqual(response.status_code, 404)
        finally:
            self.tenant.status = self.tenant.Status.ACTIVE
            self.tenant.save()


@override_settings(BASE_DOMAINS=['localhost'], SHOW_PUBLIC_LANDING=False, ALLOWED_HOSTS=['*'])
class PublicPathFallbackTests(SimpleTestCase):
    """Platform paths on a host with no school are served by the public URL conf."""

    def setUp(self):
        self.middleware = TenantNotFoundMiddleware(lambda request: None)
        self.public = SimpleNamespace(schema_name=get_public_schema_name())
        tenant_model = mock.Mock()
        tenant_model.objects.filter.return_value.first.return_value = self.public
        patches = [
            mock.patch.object(TenantNotFoundMiddleware, 'find_tenant', return_value=None),
            mock.patch('core.middleware.get_tenant_model', return_value=tenant_model),
            mock.patch('core.middleware.connection'),
        ]
        for patcher in patches:
            patcher.start()
            self.addCleanup(patcher.stop)

    def test_health_on_unknown_host(self):
        request = RequestFactory().get('/health/', HTTP_HOST='10.0.0.5')
        self.assertIsNone(self.middleware.process_request(request))
        self.assertIs(request.tenant, self.public)
        self.assertEqual(request.urlconf, 'config.urls_public')
        self.assertEqual(resolve('/health/', urlconf=request.urlconf).url_name, 'health_check')

    def test_admin_on_unknown_host(self):
        request = RequestFactory().get('/admin/', HTTP_HOST='10.0.0.5')
        self.assertIsNone(self.middleware.process_request(request))
        self.assertEqual(request.urlconf, 'config.urls_public')

    def test_other_paths_still_rejected(self):
        request = RequestFactory().get('/cycles/', HTTP_HOST='10.0.0.5')
        response = self.middleware.process_request(request)
        self.assertEqual(response.status_code, 404)
        self.assertFalse(hasattr(request, 'urlconf'))


class CalendarTestCase(CoreTestCase):

    def setUp(self):
        super().setUp()
        self.cycle = SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        self.holiday = EventType.objects.create(name='Holiday', key='holiday', color='#16A34A')
        self.exams = EventType.objects.create(name='Exam week', key='exams')
        self.independence = CalendarEvent.objects.create(
            school_cycle=self.cycle, date=date(2024, 9, 16), event_type=self.holiday,
            description='Independence Day',
        )
        self.midterms = CalendarEvent.objects.create(
            school_cycle=self.cycle, date=date(2024, 11, 4), event_type=self.exams,
        )


class CalendarModelTests(CalendarTestCase):

    def test_date_outside_cycle_rejected(self):
        event = CalendarEvent(school_cycle=self.cycle, date=date(2025, 8, 1), event_type=self.holiday)
        with self.assertRaises(ValidationError) as ctx:
            event.full_clean()
        self.assertIn('date', ctx.exception.message_dict)

    def test_event_type_form_normalises(self):
        form = EventTypeForm(data={'name': 'Parents meeting', 'key': 'Parents-Meeting', 'color': '#4f46e5',
                                   'status': 'active'})
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['key'], 'parents-meeting')
        self.assertEqual(form.cleaned_data['color'], '#4F46E5')

    def test_event_type_bad_color(self):
        form = EventTypeForm(data={'name': 'Other', 'key': 'other', 'color': 'blue', 'status': 'active'})
        self.assertFalse(form.is_valid())
        self.assertIn('color', form.errors)


class CalendarViewTests(CalendarTestCase):

    def test_calendar_of_active_cycle(self):
        CalendarEvent.objects.create(
            school_cycle=self.cycle, date=date(2024, 12, 20), event_type=self.holiday,
            status=CalendarEvent.Status.INACTIVE,
        )
        self.client.login(email='teacher@school.com', password='testpass123')
        data = self.client.get(reverse('core:calendar')).json()
        self.assertEqual(data['school_cycle']['name'], '2024-2025')
        self.assertEqual([e['date'] for e in data['events']], ['2024-09-16', '2024-11-04'])
        self.assertEqual(data['events'][0]['event_type']['color'], '#16A34A')

    def test_calendar_filters(self):
        self.client.login(email='teacher@school.com', password='testpass123')
        data = self.client.get(reverse('core:calendar'), {'start': '2024-10-01', 'end': '2024-12-31'}).json()
        self.assertEqual([e['id'] for e in data['events']], [self.midterms.pk])
        data = self.client.get(reverse('core:calendar'), {'type': 'holiday'}).json()
        self.assertEqual([e['id'] for e in data['events']], [self.independence.pk])

    def test_calendar_without_active_cycle(self):
        SchoolCycle.objects.update(status=SchoolCycle.Status.INACTIVE)
        self.client.login(email='teacher@school.com', password='testpass123')
        data = self.client.get(reverse('core:calendar')).json()
        self.assertEqual(data, {'events': [], 'school_cycle': None})

    def test_create_event(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('core:event_create'), {
            'school_cycle': self.cycle.pk, 'date': '2024-12-20', 'event_type': self.holiday.pk,
            'description': 'Winter break', 'status': 'active',
        })
        self.assertEqual(response.status_code, 201)
        event = CalendarEvent.objects.get(description='Winter break')
        self.assertEqual(event.created_by, self.admin_user)

    def test_create_event_outside_cycle(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('core:event_create'), {
            'school_cycle': self.cycle.pk, 'date': '2025-08-20', 'event_type': self.holiday.pk,
            'status': 'active',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('date', response.json()['errors'])

    def test_inactive_event_type_not_selectable(self):
        self.client.login(email='admin@school.com', password='testpass123')
        self.client.post(reverse('core:event_type_delete', args=[self.exams.pk]))
        self.exams.refresh_from_db()
        self.assertEqual(self.exams.status, EventType.Status.INACTIVE)

        response = self.client.post(reverse('core:event_create'), {
            'school_cycle': self.cycle.pk, 'date': '2024-12-02', 'event_type': self.exams.pk,
            'status': 'active',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('event_type', response.json()['errors'])

        keys = [t['key'] for t in self.client.get(reverse('core:event_type_list')).json()['event_types']]
        self.assertEqual(keys, ['holiday'])

    def test_duplicate_event_type_key(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('core:event_type_create'), {
            'name': 'Holidays', 'key': 'Holiday', 'status': 'active',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('key', response.json()['errors'])

    def test_delete_event_is_soft(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('core:event_delete', args=[self.midterms.pk]))
        self.assertEqual(response.status_code, 200)
        self.midterms.refresh_from_db()
        self.assertEqual(self.midterms.status, CalendarEvent.Status.INACTIVE)

    def test_teacher_cannot_edit_calendar(self):
        self.client.login(email='teacher@school.com', password='testpass123')
        response = self.client.post(reverse('core:event_edit', args=[self.midterms.pk]), {
            'school_cycle': self.cycle.pk, 'date': '2024-11-05', 'event_type': self.exams.pk,
            'status': 'active',
        })
        self.assertEqual(response.status_code, 403)

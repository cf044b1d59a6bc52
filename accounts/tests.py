from django.test import TestCase
from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.urls import reverse
from django_tenants.test.cases import TenantTestCase
from django_tenants.test.client import TenantClient

from accounts.models import can_view_all

User = get_user_model()


class UserManagerTests(TestCase):
    """Tests for the custom UserManager (public schema)."""

    def test_create_user(self):
        user = User.objects.create_user(email='test@example.com', password='testpass123')
        self.assertEqual(user.email, 'test@example.com')
        self.assertTrue(user.check_password('testpass123'))
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_superuser)
        self.assertEqual(user.status, User.Status.ACTIVE)

    def test_create_user_without_email_raises_error(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='testpass123')

    def test_create_user_normalizes_email(self):
        user = User.objects.create_user(email='test@EXAMPLE.COM', password='testpass123')
        self.assertEqual(user.email, 'test@example.com')

    def test_create_superuser(self):
        user = User.objects.create_superuser(email='admin@example.com', password='adminpass123')
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)
        self.assertEqual(user.roles, ['superadmin'])

    def test_create_superuser_without_is_staff_raises_error(self):
        with self.assertRaises(ValueError):
            User.objects.create_superuser(
                email='admin@example.com', password='adminpass123', is_staff=False
            )


class TenantUserTests(TenantTestCase):
    """Role helpers inside a school schema."""

    @classmethod
    def setup_tenant(cls, tenant):
        tenant.name = 'Test School'
        tenant.subdomain = 'test'
        tenant.cct_code = 'TEST0001'

    def test_create_school_admin(self):
        user = User.objects.create_school_admin(email='principal@school.com', password='pass12345')
        self.assertTrue(user.is_school_admin)
        self.assertFalse(user.is_staff)
        self.assertEqual(user.role_label, 'School Admin')

    def test_create_auditor(self):
        user = User.objects.create_auditor(email='audit@school.com', password='pass12345')
        self.assertTrue(user.is_auditor)
        self.assertEqual(user.role_label, 'Auditor')

    def test_create_teacher(self):
        user = User.objects.create_teacher(email='teacher@school.com', password='pass12345')
        self.assertTrue(user.is_teacher)
        self.assertFalse(user.is_school_admin)
        self.assertEqual(user.roles, ['teacher'])

    def test_create_tutor(self):
        user = User.objects.create_tutor(email='tutor@example.com', password='pass12345')
        self.assertTrue(user.is_tutor)
        self.assertEqual(user.role_label, 'Tutor')

    def test_multiple_roles_are_ordered(self):
        user = User.objects.create_teacher(
            email='both@school.com', password='pass12345', is_tutor=True, is_school_admin=True
        )
        self.assertEqual(user.roles, ['admin', 'teacher', 'tutor'])

    def test_can_view_all(self):
        admin = User.objects.create_school_admin(email='a@school.com', password='pass12345')
        auditor = User.objects.create_auditor(email='b@school.com', password='pass12345')
        teacher = User.objects.create_teacher(email='c@school.com', password='pass12345')
        tutor = User.objects.create_tutor(email='d@school.com', password='pass12345')
        self.assertTrue(can_view_all(admin))
        self.assertTrue(can_view_all(auditor))
        self.assertFalse(can_view_all(teacher))
        self.assertFalse(can_view_all(tutor))
        self.assertFalse(can_view_all(AnonymousUser()))


class LoginViewTests(TenantTestCase):

    @classmethod
    def setup_tenant(cls, tenant):
        tenant.name = 'Test School'
        tenant.subdomain = 'test'
        tenant.cct_code = 'TEST0001'

    def setUp(self):
        super().setUp()
        self.client = TenantClient(self.tenant)
        self.teacher = User.objects.create_teacher(
            email='teacher@school.com', password='testpass123', first_name='Ana', last_name='Ruiz'
        )

    def test_login_and_me(self):
        response = self.client.post(reverse('accounts:login'), {
            'username': 'teacher@school.com', 'password': 'testpass123',
        })
        self.assertEqual(response.status_code, 200)
        me = self.client.get(reverse('accounts:me')).json()['user']
        self.assertEqual(me['full_name'], 'Ana Ruiz')
        self.assertEqual(me['roles'], ['teacher'])
        self.assertFalse(me['can_view_all'])

    def test_wrong_password(self):
        response = self.client.post(reverse('accounts:login'), {
            'username': 'teacher@school.com', 'password': 'nope',
        })
        self.assertEqual(response.status_code, 400)

    def test_inactive_status_cannot_login(self):
        self.teacher.status = User.Status.INACTIVE
        self.teacher.save()
        response = self.client.post(reverse('accounts:login'), {
            'username': 'teacher@school.com', 'password': 'testpass123',
        })
        self.assertEqual(response.status_code, 400)

    def test_me_requires_login(self):
        self.assertEqual(self.client.get(reverse('accounts:me')).status_code, 401)

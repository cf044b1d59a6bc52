from datetime import date

from django.urls import reverse
from django.contrib.auth import get_user_model
from django_tenants.test.cases import TenantTestCase
from django_tenants.test.client import TenantClient

from academics.models import ClassCatalog, Classroom, Group, StudentClass, Subject
from core.models import SchoolCycle
from students.forms import StudentForm
from students.models import Student
from students.views import visible_students

User = get_user_model()


class StudentsTestCase(TenantTestCase):
    """Base test case with one cycle, two groups and students of different tutors."""

    @classmethod
    def setup_tenant(cls, tenant):
        tenant.name = 'Test School'
        tenant.short_name = 'TEST'
        tenant.subdomain = 'test'
        tenant.cct_code = 'TEST0001'

    def setUp(self):
        super().setUp()
        self.client = TenantClient(self.tenant)

        self.admin_user = User.objects.create_school_admin(email='admin@school.com', password='testpass123')
        self.auditor = User.objects.create_auditor(email='auditor@school.com', password='testpass123')
        self.teacher = User.objects.create_teacher(email='teacher@school.com', password='testpass123')
        self.tutor = User.objects.create_tutor(email='tutor@example.com', password='testpass123')

        self.cycle = SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        self.group = Group.objects.create(name='A', grade='3')
        self.other_group = Group.objects.create(name='B', grade='3')

        self.lucia = Student.objects.create(
            name='Lucia', last_name='Mendez', enrollment='A001',
            group=self.group, school_cycle=self.cycle, tutor=self.tutor,
        )
        self.mateo = Student.objects.create(
            name='Mateo', last_name='Ortiz', enrollment='A002',
            group=self.other_group, school_cycle=self.cycle,
        )
        self.sofia = Student.objects.create(
            name='Sofia', last_name='Ruiz', enrollment='A003',
            group=self.other_group, school_cycle=self.cycle, has_scholarship=True,
        )

        math = ClassCatalog.objects.create(
            school_cycle=self.cycle, subject=Subject.objects.create(name='Mathematics'),
            classroom=Classroom.objects.create(name='Room A'), teacher=self.teacher,
            group=self.other_group, name='Math 3B',
        )
        StudentClass.objects.create(class_catalog=math, student=self.mateo)

    def _form_data(self, **overrides):
        data = {
            'name': 'Diego', 'last_name': 'Lopez', 'enrollment': ' a004 ',
            'group': self.group.pk, 'school_cycle': self.cycle.pk, 'status': 'active',
        }
        data.update(overrides)
        return data


class StudentModelTests(StudentsTestCase):

    def test_full_name_and_str(self):
        self.assertEqual(self.lucia.full_name, 'Lucia Mendez')
        self.assertEqual(str(self.lucia), 'Lucia Mendez (A001)')

    def test_defaults(self):
        self.assertTrue(self.mateo.is_active)
        self.assertFalse(self.mateo.has_scholarship)
        self.assertEqual(self.mateo.credit, 0)


class StudentFormTests(StudentsTestCase):

    def test_enrollment_normalised(self):
        form = StudentForm(data=self._form_data())
        self.assertTrue(form.is_valid(), form.errors)
        self.assertEqual(form.cleaned_data['enrollment'], 'A004')

    def test_duplicate_enrollment(self):
        form = StudentForm(data=self._form_data(enrollment='A001'))
        self.assertFalse(form.is_valid())
        self.assertIn('enrollment', form.errors)

    def test_admission_after_birth(self):
        form = StudentForm(data=self._form_data(birth_date='2015-05-01', admission_date='2014-09-01'))
        self.assertFalse(form.is_valid())
        self.assertIn('admission_date', form.errors)

    def test_inactive_group_not_allowed(self):
        self.other_group.status = 'inactive'
        self.other_group.save()
        form = StudentForm(data=self._form_data(group=self.other_group.pk))
        self.assertFalse(form.is_valid())
        self.assertIn('group', form.errors)


class VisibleStudentsTests(StudentsTestCase):

    def test_admin_and_auditor_see_everyone(self):
        self.assertEqual(visible_students(self.admin_user).count(), 3)
        self.assertEqual(visible_students(self.auditor).count(), 3)

    def test_tutor_sees_own_students(self):
        self.assertEqual(list(visible_students(self.tutor)), [self.lucia])

    def test_teacher_sees_enrolled_students(self):
        self.assertEqual(list(visible_students(self.teacher)), [self.mateo])


class StudentViewTests(StudentsTestCase):

    def test_requires_login(self):
        response = self.client.get(reverse('students:index'))
        self.assertEqual(response.status_code, 401)

    def test_index_filters(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.get(reverse('students:index'), {'group': self.other_group.pk})
        self.assertEqual({s['enrollment'] for s in response.json()['students']}, {'A002', 'A003'})

        response = self.client.get(reverse('students:index'), {'q': 'mendez'})
        self.assertEqual([s['enrollment'] for s in response.json()['students']], ['A001'])

    def test_tutor_cannot_open_other_student(self):
        self.client.login(email='tutor@example.com', password='testpass123')
        response = self.client.get(reverse('students:student_detail', args=[self.lucia.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['student']['tutor_id'], self.tutor.pk)

        response = self.client.get(reverse('students:student_detail', args=[self.mateo.pk]))
        self.assertEqual(response.status_code, 404)

    def test_create(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('students:student_create'), self._form_data(has_scholarship='on'))
        self.assertEqual(response.status_code, 201)
        student = Student.objects.get(enrollment='A004')
        self.assertTrue(student.has_scholarship)

    def test_create_requires_admin(self):
        self.client.login(email='auditor@school.com', password='testpass123')
        response = self.client.post(reverse('students:student_create'), self._form_data())
        self.assertEqual(response.status_code, 403)

    def test_edit_invalid(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(
            reverse('students:student_edit', args=[self.lucia.pk]), self._form_data(enrollment='A002')
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('enrollment', response.json()['errors'])

    def test_deactivate(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('students:student_deactivate', args=[self.sofia.pk]))
        self.assertEqual(response.status_code, 200)
        self.sofia.refresh_from_db()
        self.assertEqual(self.sofia.status, Student.Status.INACTIVE)

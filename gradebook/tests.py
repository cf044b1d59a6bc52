"""
Tests for the gradebook app.

Focuses on:
- Weighted term averages
- Rubric weight limits and grade bounds
- Closing/reopening terms and annual averages
- Role-based grade visibility
"""
from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase
from django.urls import reverse
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django_tenants.test.cases import TenantTestCase
from django_tenants.test.client import TenantClient

from academics.models import Subject, Classroom, Group, ClassCatalog, Term
from academics.utils import enroll_student
from core.models import SchoolCycle
from students.models import Student
from .models import GradeRubric, Assignment, Grade, TermAverage
from .utils import (
    weighted_average, available_weight, upsert_grade, upsert_term_average, close_term,
    reopen_term, annual_averages, annual_averages_for_class, grades_for_class_and_term,
)

User = get_user_model()


class WeightedAverageTests(SimpleTestCase):
    """Average calculation over unsaved instances."""

    def setUp(self):
        self.exams = GradeRubric(pk=1, name='Exams', weight=60)
        self.homework = GradeRubric(pk=2, name='Homework', weight=40)
        self.rubrics = [self.exams, self.homework]
        self.assignments = [
            Assignment(pk=10, grade_rubric_id=1, max_score=100),
            Assignment(pk=11, grade_rubric_id=1, max_score=50),
            Assignment(pk=20, grade_rubric_id=2, max_score=10),
        ]

    def test_all_rubrics_graded(self):
        # Exams 120/150 = 0.8 * 60, homework 5/10 = 0.5 * 40
        self.assertEqual(weighted_average(self.rubrics, self.assignments, {10: 80, 11: 40, 20: 5}), 68)

    def test_ungraded_rubric_is_left_out(self):
        self.assertEqual(weighted_average(self.rubrics, self.assignments, {10: 90}), 90)

    def test_rounds_half_up(self):
        self.assertEqual(weighted_average(self.rubrics, self.assignments, {10: Decimal('80.5')}), 81)

    def test_nothing_graded(self):
        self.assertEqual(weighted_average(self.rubrics, self.assignments, {}), 0)
        self.assertEqual(weighted_average([], [], {}), 0)

    def test_accepts_grade_instances(self):
        grades = [Grade(assignment_id=10, score=Decimal('70')), Grade(assignment_id=20, score=Decimal('10'))]
        # 0.7 * 60 + 1.0 * 40
        self.assertEqual(weighted_average(self.rubrics, self.assignments, grades), 82)


# =============================================================================
# BASE TEST CASE
# =============================================================================

class GradebookTestCase(TenantTestCase):
    """Base test case with a class, a term and two enrolled students."""

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
        self.other_teacher = User.objects.create_teacher(email='other@school.com', password='testpass123')
        self.tutor = User.objects.create_tutor(email='tutor@example.com', password='testpass123')

        self.cycle = SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        group = Group.objects.create(name='A', grade='3')
        self.math = ClassCatalog.objects.create(
            school_cycle=self.cycle, subject=Subject.objects.create(name='Mathematics'),
            classroom=Classroom.objects.create(name='Room A'), teacher=self.teacher,
            group=group, name='Math 3A',
        )

        self.year = Term.objects.create(
            class_catalog=self.math, name='Annual', key='Y',
            start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
        )
        self.term = Term.objects.create(
            class_catalog=self.math, parent=self.year, name='Bimestre 1', key='B1',
            start_date=date(2024, 8, 26), end_date=date(2024, 10, 25),
        )
        self.term_2 = Term.objects.create(
            class_catalog=self.math, parent=self.year, name='Bimestre 2', key='B2',
            start_date=date(2024, 10, 28), end_date=date(2024, 12, 20),
        )

        self.student = Student.objects.create(
            name='Lucia', last_name='Mendez', enrollment='A001',
            group=group, school_cycle=self.cycle, tutor=self.tutor,
        )
        self.other_student = Student.objects.create(
            name='Mateo', last_name='Ortiz', enrollment='A002', group=group, school_cycle=self.cycle,
        )
        self.enrollment = enroll_student(self.math, self.student)
        self.other_enrollment = enroll_student(self.math, self.other_student)

        self.exams = GradeRubric.objects.create(
            class_catalog=self.math, term=self.term, name='Exams', weight=60, created_by=self.teacher
        )
        self.homework = GradeRubric.objects.create(
            class_catalog=self.math, term=self.term, name='Homework', weight=40, created_by=self.teacher
        )
        self.exam_1 = Assignment.objects.create(
            class_catalog=self.math, term=self.term, grade_rubric=self.exams, name='Exam 1', max_score=100
        )
        self.task_1 = Assignment.objects.create(
            class_catalog=self.math, term=self.term, grade_rubric=self.homework, name='Task 1', max_score=10
        )


class RubricWeightTests(GradebookTestCase):

    def test_available_weight(self):
        self.assertEqual(available_weight(self.math, self.term), 0)
        self.assertEqual(available_weight(self.math, self.term, exclude_pk=self.exams.pk), 60)

    def test_weight_over_limit_is_rejected(self):
        self.homework.is_active = False
        self.homework.save()
        rubric = GradeRubric(class_catalog=self.math, term=self.term, name='Projects', weight=50)
        with self.assertRaises(ValidationError):
            rubric.full_clean()

    def test_inactive_rubric_does_not_use_weight(self):
        self.homework.is_active = False
        self.homework.save()
        self.assertEqual(available_weight(self.math, self.term), 40)
        rubric = GradeRubric(class_catalog=self.math, term=self.term, name='Projects', weight=40)
        rubric.full_clean()

    def test_term_of_another_class(self):
        other = ClassCatalog.objects.create(
            school_cycle=self.cycle, subject=self.math.subject, classroom=self.math.classroom,
            teacher=self.other_teacher, name='Other',
        )
        rubric = GradeRubric(class_catalog=other, term=self.term, name='Exams', weight=10)
        with self.assertRaises(ValidationError):
            rubric.full_clean()


class GradeTests(GradebookTestCase):

    def test_upsert_grade(self):
        grade, created = upsert_grade(self.enrollment, self.exam_1, 70, user=self.teacher)
        self.assertTrue(created)
        grade, created = upsert_grade(self.enrollment, self.exam_1, 75, 'Recovered', user=self.admin_user)
        self.assertFalse(created)
        self.assertEqual(Grade.objects.count(), 1)
        self.assertEqual(grade.score, 75)
        self.assertEqual(grade.created_by, self.teacher)
        self.assertEqual(grade.updated_by, self.admin_user)

    def test_score_above_max_is_rejected(self):
        with self.assertRaises(ValidationError):
            upsert_grade(self.enrollment, self.task_1, 11)
        self.assertFalse(Grade.objects.exists())

    def test_negative_score_is_rejected(self):
        with self.assertRaises(ValidationError):
            upsert_grade(self.enrollment, self.task_1, -1)


class TermLifecycleTests(GradebookTestCase):

    def test_close_term_stores_averages(self):
        upsert_grade(self.enrollment, self.exam_1, 80)
        upsert_grade(self.enrollment, self.task_1, 5)
        upsert_grade(self.other_enrollment, self.exam_1, 100)

        averages = close_term(self.term, self.math, self.teacher)

        self.assertEqual(len(averages), 2)
        stored = dict(TermAverage.objects.values_list('student_class_id', 'average_score'))
        self.assertEqual(stored[self.enrollment.pk], 68)
        self.assertEqual(stored[self.other_enrollment.pk], 100)
        self.term.refresh_from_db()
        self.assertTrue(self.term.is_closed)
        self.assertEqual(self.term.closed_by, self.teacher)

    def test_close_term_includes_inactive_enrollments(self):
        self.other_enrollment.status = 'inactive'
        self.other_enrollment.save()
        upsert_grade(self.other_enrollment, self.exam_1, 90)

        averages = close_term(self.term, self.math)

        self.assertEqual(len(averages), 2)
        average = TermAverage.objects.get(student_class=self.other_enrollment, term=self.term)
        self.assertEqual(average.average_score, 90)

    def test_closed_term_rejects_grades(self):
        close_term(self.term, self.math)
        with self.assertRaisesMessage(ValidationError, 'closed'):
            upsert_grade(self.enrollment, self.exam_1, 90)

    def test_closing_twice_is_rejected(self):
        close_term(self.term, self.math)
        with self.assertRaises(ValidationError):
            close_term(self.term, self.math)

    def test_reopen_deletes_averages(self):
        close_term(self.term, self.math)
        self.assertEqual(reopen_term(self.term, self.math), 2)
        self.term.refresh_from_db()
        self.assertEqual(self.term.status, Term.Status.ACTIVE)
        self.assertIsNone(self.term.closed_at)
        self.assertFalse(TermAverage.objects.exists())
        upsert_grade(self.enrollment, self.exam_1, 90)


class AnnualAverageTests(GradebookTestCase):

    def test_mean_of_present_averages(self):
        upsert_term_average(self.enrollment, self.term, 85)
        upsert_term_average(self.enrollment, self.term_2, 90)

        result = annual_averages(self.enrollment, self.year)

        self.assertEqual([row['term_name'] for row in result['terms']], ['Bimestre 1', 'Bimestre 2'])
        self.assertEqual(result['annual_average'], Decimal('87.5'))

    def test_missing_term_average(self):
        upsert_term_average(self.enrollment, self.term, 85)
        result = annual_averages(self.enrollment, self.year)
        self.assertIsNone(result['terms'][1]['average_score'])
        self.assertEqual(result['annual_average'], Decimal('85.0'))

    def test_no_averages(self):
        self.assertIsNone(annual_averages(self.enrollment, self.year)['annual_average'])

    def test_grouped_by_enrollment(self):
        upsert_term_average(self.enrollment, self.term, 85)
        grouped = annual_averages_for_class(self.math)
        self.assertEqual(grouped[self.enrollment.pk][0]['average_score'], 85)
        self.assertEqual(grouped[self.other_enrollment.pk], [])


class GradeVisibilityTests(GradebookTestCase):

    def setUp(self):
        super().setUp()
        upsert_grade(self.enrollment, self.exam_1, 80)
        upsert_grade(self.other_enrollment, self.exam_1, 90)

    def test_view_all_roles(self):
        self.assertEqual(grades_for_class_and_term(self.math, self.term, self.admin_user).count(), 2)
        self.assertEqual(grades_for_class_and_term(self.math, self.term, self.auditor).count(), 2)

    def test_teacher_sees_own_class_only(self):
        self.assertEqual(grades_for_class_and_term(self.math, self.term, self.teacher).count(), 2)
        self.assertEqual(grades_for_class_and_term(self.math, self.term, self.other_teacher).count(), 0)

    def test_tutor_sees_own_students(self):
        grades = grades_for_class_and_term(self.math, self.term, self.tutor)
        self.assertEqual([g.student_class_id for g in grades], [self.enrollment.pk])


class GradebookViewTests(GradebookTestCase):

    def test_rubric_over_weight_via_api(self):
        self.client.login(email='teacher@school.com', password='testpass123')
        response = self.client.post(
            reverse('gradebook:rubric_create', args=[self.math.pk, self.term.pk]),
            {'name': 'Projects', 'weight': 10, 'max_score': 100, 'is_active': 'on'},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('weight', response.json()['errors'])

    def test_only_creator_or_admin_edits_rubric(self):
        self.client.login(email='other@school.com', password='testpass123')
        response = self.client.post(
            reverse('gradebook:rubric_edit', args=[self.exams.pk]),
            {'name': 'Exams', 'weight': 50, 'max_score': 100, 'is_active': 'on'},
        )
        self.assertEqual(response.status_code, 403)

    def test_teacher_saves_grade(self):
        self.client.login(email='teacher@school.com', password='testpass123')
        url = reverse('gradebook:grade_save', args=[self.math.pk])
        data = {'student_class': self.enrollment.pk, 'assignment': self.exam_1.pk, 'score': '88.50'}
        self.assertEqual(self.client.post(url, data).status_code, 201)
        data['score'] = '90'
        self.assertEqual(self.client.post(url, data).status_code, 200)
        self.assertEqual(Grade.objects.get().score, Decimal('90'))

    def test_other_teacher_cannot_grade(self):
        self.client.login(email='other@school.com', password='testpass123')
        response = self.client.post(reverse('gradebook:grade_save', args=[self.math.pk]), {
            'student_class': self.enrollment.pk, 'assignment': self.exam_1.pk, 'score': '50',
        })
        self.assertEqual(response.status_code, 403)

    def test_grade_matrix_for_tutor(self):
        upsert_grade(self.enrollment, self.exam_1, 80)
        upsert_grade(self.other_enrollment, self.exam_1, 90)
        self.client.login(email='tutor@example.com', password='testpass123')
        response = self.client.get(reverse('gradebook:grade_matrix', args=[self.math.pk, self.term.pk]))
        self.assertEqual(response.status_code, 200)
        rows = response.json()['rows']
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['average'], 80)

    def test_close_and_reopen_via_api(self):
        upsert_grade(self.enrollment, self.exam_1, 70)
        self.client.login(email='teacher@school.com', password='testpass123')
        response = self.client.post(reverse('gradebook:term_close', args=[self.math.pk, self.term.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['averages']), 2)

        reopen_url = reverse('gradebook:term_reopen', args=[self.math.pk, self.term.pk])
        self.assertEqual(self.client.post(reopen_url).status_code, 403)

        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reopen_url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['deleted'], 2)

    def test_term_averages_passing_count(self):
        upsert_term_average(self.enrollment, self.term, 85)
        upsert_term_average(self.other_enrollment, self.term, 40)
        self.client.login(email='auditor@school.com', password='testpass123')
        data = self.client.get(reverse('gradebook:term_averages', args=[self.math.pk, self.term.pk])).json()
        self.assertEqual(data['passing'], 1)
        self.assertEqual(data['failing'], 1)

    def test_student_annual_average_view(self):
        upsert_term_average(self.enrollment, self.term, 85)
        upsert_term_average(self.enrollment, self.term_2, 90)
        self.client.login(email='tutor@example.com', password='testpass123')
        response = self.client.get(reverse(
            'gradebook:student_annual_average', args=[self.math.pk, self.year.pk, self.enrollment.pk]
        ))
        self.assertEqual(response.json()['annual_average'], 87.5)

"""
Tests for the academics app.

Focuses on:
- Time-slot overlap and schedule conflict detection
- Enrollment uniqueness
- Attendance upsert and summaries
- Class and attendance API permissions
"""
from datetime import date, time

from django.test import SimpleTestCase
from django.urls import reverse
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django_tenants.test.cases import TenantTestCase
from django_tenants.test.client import TenantClient

from academics.models import (
    Subject, Classroom, Group, Schedule, ClassCatalog, ClassSchedule, StudentClass, Attendance
)
from academics.utils import (
    times_overlap, schedule_conflicts, find_schedule_conflicts, assign_schedules,
    enroll_student, record_attendance, attendance_for_class, attendance_summary,
)
from core.models import SchoolCycle
from students.models import Student

User = get_user_model()


class TimesOverlapTests(SimpleTestCase):

    def test_overlapping_slots(self):
        self.assertTrue(times_overlap(time(8), time(9), time(8, 30), time(9, 30)))

    def test_contained_slot(self):
        self.assertTrue(times_overlap(time(8), time(10), time(8, 30), time(9)))

    def test_identical_slots(self):
        self.assertTrue(times_overlap(time(8), time(9), time(8), time(9)))

    def test_touching_slots_do_not_overlap(self):
        self.assertFalse(times_overlap(time(8), time(9), time(9), time(10)))
        self.assertFalse(times_overlap(time(9), time(10), time(8), time(9)))

    def test_disjoint_slots(self):
        self.assertFalse(times_overlap(time(8), time(9), time(11), time(12)))


class ScheduleConflictsTests(SimpleTestCase):
    """Conflict detection over unsaved instances."""

    def setUp(self):
        self.monday_8 = Schedule(name='M1', weekday=1, start_time=time(8), end_time=time(9))
        self.monday_830 = Schedule(name='M2', weekday=1, start_time=time(8, 30), end_time=time(9, 30))
        self.tuesday_8 = Schedule(name='T1', weekday=2, start_time=time(8), end_time=time(9))

    def _existing(self, schedule, teacher_id=1, classroom_id=1, group_id=None):
        other = ClassCatalog(
            name='Other', teacher_id=teacher_id, classroom_id=classroom_id, group_id=group_id
        )
        return ClassSchedule(class_catalog=other, schedule=schedule)

    def test_teacher_conflict(self):
        new_class = ClassCatalog(name='New', teacher_id=1, classroom_id=2)
        conflicts = schedule_conflicts(new_class, [self.monday_830], [self._existing(self.monday_8)])
        self.assertEqual([c['type'] for c in conflicts], ['teacher'])
        self.assertEqual(conflicts[0]['conflicting_class'], 'Other')

    def test_group_teacher_and_classroom_conflicts(self):
        new_class = ClassCatalog(name='New', teacher_id=1, classroom_id=1, group_id=5)
        conflicts = schedule_conflicts(
            new_class, [self.monday_8], [self._existing(self.monday_8, group_id=5)]
        )
        self.assertEqual({c['type'] for c in conflicts}, {'group', 'teacher', 'classroom'})

    def test_different_weekday_does_not_conflict(self):
        new_class = ClassCatalog(name='New', teacher_id=1, classroom_id=1)
        conflicts = schedule_conflicts(new_class, [self.tuesday_8], [self._existing(self.monday_8)])
        self.assertEqual(conflicts, [])

    def test_unrelated_class_does_not_conflict(self):
        new_class = ClassCatalog(name='New', teacher_id=2, classroom_id=2, group_id=3)
        conflicts = schedule_conflicts(
            new_class, [self.monday_8], [self._existing(self.monday_8, group_id=4)]
        )
        self.assertEqual(conflicts, [])


class AttendanceSummaryTests(SimpleTestCase):

    def test_rate_counts_present_and_justified(self):
        summary = attendance_summary(['present', 'present', 'justified', 'absent', 'unjustified'])
        self.assertEqual(summary['present'], 2)
        self.assertEqual(summary['justified'], 1)
        self.assertEqual(summary['absent'], 1)
        self.assertEqual(summary['unjustified'], 1)
        self.assertEqual(summary['total'], 5)
        self.assertEqual(summary['rate'], 60.0)

    def test_empty_records(self):
        summary = attendance_summary([])
        self.assertEqual(summary['total'], 0)
        self.assertEqual(summary['rate'], 0)

    def test_accepts_model_instances(self):
        records = [Attendance(state='present'), Attendance(state='absent'), Attendance(state='absent')]
        self.assertEqual(attendance_summary(records)['rate'], 33.3)


# =============================================================================
# BASE TEST CASE
# =============================================================================

class AcademicsTestCase(TenantTestCase):
    """Base test case with common setup for academics tests."""

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
        self.teacher = User.objects.create_teacher(email='teacher@school.com', password='testpass123')
        self.other_teacher = User.objects.create_teacher(email='other@school.com', password='testpass123')
        self.tutor = User.objects.create_tutor(email='tutor@example.com', password='testpass123')

        self.cycle = SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        self.subject = Subject.objects.create(name='Mathematics')
        self.room_a = Classroom.objects.create(name='Room A')
        self.room_b = Classroom.objects.create(name='Room B')
        self.group = Group.objects.create(name='A', grade='3')
        self.other_group = Group.objects.create(name='B', grade='3')

        self.monday_8 = Schedule.objects.create(name='Mon 1', weekday=1, start_time=time(8), end_time=time(9))
        self.monday_9 = Schedule.objects.create(name='Mon 2', weekday=1, start_time=time(9), end_time=time(10))
        self.monday_830 = Schedule.objects.create(
            name='Mon 1b', weekday=1, start_time=time(8, 30), end_time=time(9, 30)
        )

        self.math = ClassCatalog.objects.create(
            school_cycle=self.cycle, subject=self.subject, classroom=self.room_a,
            teacher=self.teacher, group=self.group, name='Math 3A',
        )
        ClassSchedule.objects.create(class_catalog=self.math, schedule=self.monday_8)

        self.student = Student.objects.create(
            name='Lucia', last_name='Mendez', enrollment='A001',
            group=self.group, school_cycle=self.cycle, tutor=self.tutor,
        )
        self.other_student = Student.objects.create(
            name='Mateo', last_name='Ortiz', enrollment='A002',
            group=self.group, school_cycle=self.cycle,
        )


class FindScheduleConflictsTests(AcademicsTestCase):

    def test_teacher_busy_in_other_room(self):
        new_class = ClassCatalog(
            school_cycle=self.cycle, subject=self.subject, classroom=self.room_b,
            teacher=self.teacher, group=self.other_group, name='Math 3B',
        )
        conflicts = find_schedule_conflicts(new_class, [self.monday_830])
        self.assertEqual([c['type'] for c in conflicts], ['teacher'])

    def test_adjacent_slot_is_free(self):
        new_class = ClassCatalog(
            school_cycle=self.cycle, subject=self.subject, classroom=self.room_a,
            teacher=self.teacher, group=self.group, name='Math 3A extra',
        )
        self.assertEqual(find_schedule_conflicts(new_class, [self.monday_9]), [])

    def test_editing_excludes_own_slots(self):
        self.assertEqual(
            find_schedule_conflicts(self.math, [self.monday_8], exclude_class_id=self.math.pk), []
        )

    def test_inactive_class_is_ignored(self):
        self.math.status = 'inactive'
        self.math.save()
        new_class = ClassCatalog(
            school_cycle=self.cycle, subject=self.subject, classroom=self.room_a,
            teacher=self.teacher, name='Other',
        )
        self.assertEqual(find_schedule_conflicts(new_class, [self.monday_8]), [])

    def test_assign_schedules_refuses_conflicts(self):
        science = ClassCatalog.objects.create(
            school_cycle=self.cycle, subject=Subject.objects.create(name='Science'),
            classroom=self.room_a, teacher=self.other_teacher, name='Science',
        )
        with self.assertRaises(ValidationError):
            assign_schedules(science, [self.monday_830])
        self.assertFalse(science.class_schedules.exists())

        assign_schedules(science, [self.monday_9])
        self.assertEqual(list(science.class_schedules.values_list('schedule', flat=True)), [self.monday_9.pk])


class EnrollmentTests(AcademicsTestCase):

    def test_enroll_student_once(self):
        enroll_student(self.math, self.student)
        with self.assertRaisesMessage(ValidationError, 'Student already enrolled'):
            enroll_student(self.math, self.student)
        self.assertEqual(StudentClass.objects.filter(student=self.student).count(), 1)

    def test_full_clean_reports_duplicate(self):
        enroll_student(self.math, self.student)
        duplicate = StudentClass(class_catalog=self.math, student=self.student)
        with self.assertRaisesMessage(ValidationError, 'Student already enrolled'):
            duplicate.full_clean()


class AttendanceTests(AcademicsTestCase):

    def setUp(self):
        super().setUp()
        self.enrollment = enroll_student(self.math, self.student)
        self.other_enrollment = enroll_student(self.math, self.other_student)

    def test_record_attendance_upserts(self):
        _, created = record_attendance(self.enrollment, date(2024, 9, 2), 'absent', user=self.teacher)
        self.assertTrue(created)
        attendance, created = record_attendance(
            self.enrollment, date(2024, 9, 2), 'justified', 'Medical note', user=self.admin_user
        )
        self.assertFalse(created)
        self.assertEqual(Attendance.objects.count(), 1)
        self.assertEqual(attendance.state, 'justified')
        self.assertEqual(attendance.created_by, self.teacher)
        self.assertEqual(attendance.updated_by, self.admin_user)

    def test_invalid_state(self):
        with self.assertRaises(ValidationError):
            record_attendance(self.enrollment, date(2024, 9, 2), 'late')

    def test_attendance_for_class_has_row_per_enrollment(self):
        record_attendance(self.enrollment, date(2024, 9, 2), 'present')
        rows = attendance_for_class(self.math, date(2024, 9, 2))
        self.assertEqual(len(rows), 2)
        by_student = {row['student'].pk: row['attendance'] for row in rows}
        self.assertEqual(by_student[self.student.pk].state, 'present')
        self.assertIsNone(by_student[self.other_student.pk])


class AcademicsViewTests(AcademicsTestCase):

    def test_class_create_with_conflict_is_rejected(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('academics:class_create'), {
            'school_cycle': self.cycle.pk, 'subject': self.subject.pk,
            'classroom': self.room_a.pk, 'teacher': self.other_teacher.pk,
            'name': 'Clash', 'status': 'active', 'schedules': [self.monday_830.pk],
        })
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['conflicts'][0]['type'], 'classroom')
        self.assertFalse(ClassCatalog.objects.filter(name='Clash').exists())

    def test_class_create_with_free_slot(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('academics:class_create'), {
            'school_cycle': self.cycle.pk, 'subject': self.subject.pk,
            'classroom': self.room_b.pk, 'teacher': self.other_teacher.pk,
            'name': 'Free', 'status': 'active', 'schedules': [self.monday_9.pk],
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.json()['class']['schedules']), 1)

    def test_teacher_records_attendance_for_own_class(self):
        enrollment = enroll_student(self.math, self.student)
        self.client.login(email='teacher@school.com', password='testpass123')
        response = self.client.post(reverse('academics:attendance_record', args=[self.math.pk]), {
            'student_class': enrollment.pk, 'date': '2024-09-02', 'state': 'absent',
        })
        self.assertEqual(response.status_code, 201)

        response = self.client.get(
            reverse('academics:class_attendance', args=[self.math.pk]), {'date': '2024-09-02'}
        )
        self.assertEqual(response.json()['summary']['absent'], 1)

    def test_other_teacher_cannot_record_attendance(self):
        enrollment = enroll_student(self.math, self.student)
        self.client.login(email='other@school.com', password='testpass123')
        response = self.client.post(reverse('academics:attendance_record', args=[self.math.pk]), {
            'student_class': enrollment.pk, 'date': '2024-09-02', 'state': 'present',
        })
        self.assertEqual(response.status_code, 403)

    def test_tutor_sees_only_classes_of_their_students(self):
        enroll_student(self.math, self.student)
        ClassCatalog.objects.create(
            school_cycle=self.cycle, subject=self.subject, classroom=self.room_b,
            teacher=self.other_teacher, name='Unrelated',
        )
        self.client.login(email='tutor@example.com', password='testpass123')
        names = [c['name'] for c in self.client.get(reverse('academics:class_list')).json()['classes']]
        self.assertEqual(names, ['Math 3A'])

    def test_duplicate_enrollment_via_api(self):
        self.client.login(email='admin@school.com', password='testpass123')
        url = reverse('academics:enroll_student', args=[self.math.pk])
        self.assertEqual(self.client.post(url, {'student': self.student.pk}).status_code, 201)
        response = self.client.post(url, {'student': self.student.pk})
        self.assertEqual(response.status_code, 400)
        self.assertIn('already enrolled', response.json()['error'])

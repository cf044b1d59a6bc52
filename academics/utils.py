import logging
from collections import Counter

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from .models import Attendance, ClassSchedule, Status, StudentClass

logger = logging.getLogger(__name__)


def times_overlap(a_start, a_end, b_start, b_end):
    """
    Half-open interval overlap: [a_start, a_end) against [b_start, b_end).
    Slots that only touch (08:00-09:00 and 09:00-10:00) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def schedule_conflicts(class_catalog, requested, existing):
    """
    Compare requested schedules against existing class schedules.

    Args:
        class_catalog: the class being scheduled
        requested: iterable of Schedule
        existing: iterable of ClassSchedule belonging to other classes

    Returns:
        list of dicts with ``type`` (group, teacher or classroom), ``message``
        and ``conflicting_class``.
    """
    conflicts = []
    for schedule in requested:
        for class_schedule in existing:
            other_slot = class_schedule.schedule
            if other_slot.weekday != schedule.weekday:
                continue
            if not times_overlap(schedule.start_time, schedule.end_time,
                                 other_slot.start_time, other_slot.end_time):
                continue

            other = class_schedule.class_catalog
            if class_catalog.group_id and other.group_id == class_catalog.group_id:
                conflicts.append({
                    'type': 'group',
                    'message': f"The group already has a class at this time: {schedule}",
                    'conflicting_class': other.name,
                })
            if other.teacher_id == class_catalog.teacher_id:
                conflicts.append({
                    'type': 'teacher',
                    'message': f"The teacher already has a class at this time: {schedule}",
                    'conflicting_class': other.name,
                })
            if other.classroom_id == class_catalog.classroom_id:
                conflicts.append({
                    'type': 'classroom',
                    'message': f"The classroom is already in use at this time: {schedule}",
                    'conflicting_class': other.name,
                })
    return conflicts


def find_schedule_conflicts(class_catalog, schedules, exclude_class_id=None):
    """
    Check requested time slots against every active class of the same cycle
    that shares the group, the teacher or the classroom.

    When editing a class pass its id as ``exclude_class_id`` so it does not
    conflict with its own current slots.
    """
    schedules = list(schedules)
    if not schedules:
        return []

    shared = Q(class_catalog__teacher_id=class_catalog.teacher_id) | Q(
        class_catalog__classroom_id=class_catalog.classroom_id
    )
    if class_catalog.group_id:
        shared |= Q(class_catalog__group_id=class_catalog.group_id)

    existing = ClassSchedule.objects.filter(
        shared,
        status=Status.ACTIVE,
        class_catalog__status=Status.ACTIVE,
        class_catalog__school_cycle_id=class_catalog.school_cycle_id,
        schedule__weekday__in={s.weekday for s in schedules},
    ).select_related('class_catalog', 'schedule')

    if exclude_class_id:
        existing = existing.exclude(class_catalog_id=exclude_class_id)

    return schedule_conflicts(class_catalog, schedules, list(existing))


@transaction.atomic
def assign_schedules(class_catalog, schedules):
    """
    Replace the time slots of a class. Refuses with a ValidationError when any
    slot conflicts with another class.
    """
    schedules = list(schedules)
    conflicts = find_schedule_conflicts(class_catalog, schedules, exclude_class_id=class_catalog.pk)
    if conflicts:
        logger.warning(
            f"Schedule assignment for class {class_catalog.pk} refused: {len(conflicts)} conflicts"
        )
        raise ValidationError([c['message'] for c in conflicts])

    ClassSchedule.objects.filter(class_catalog=class_catalog).delete()
    return ClassSchedule.objects.bulk_create([
        ClassSchedule(class_catalog=class_catalog, schedule=schedule)
        for schedule in schedules
    ])


def enroll_student(class_catalog, student, enrollment_date=None):
    """Enroll a student in a class. A student can only be enrolled once per class."""
    if StudentClass.objects.filter(class_catalog=class_catalog, student=student).exists():
        raise ValidationError("Student already enrolled in this class.")
    return StudentClass.objects.create(
        class_catalog=class_catalog,
        student=student,
        enrollment_date=enrollment_date or timezone.localdate(),
    )


def record_attendance(student_class, date, state, comments='', user=None):
    """
    Create or update the attendance of one enrollment on one date.

    Returns:
        tuple (Attendance, created)
    """
    if state not in Attendance.State.values:
        raise ValidationError(f"Invalid attendance state: {state}")

    attendance, created = Attendance.objects.update_or_create(
        student_class=student_class,
        date=date,
        defaults={
            'state': state,
            'comments': comments or '',
            'updated_by': user,
        },
        create_defaults={
            'state': state,
            'comments': comments or '',
            'created_by': user,
            'updated_by': user,
        },
    )
    return attendance, created


def attendance_for_class(class_catalog, date):
    """
    One row per active enrollment of the class with its attendance on the
    given date, or None when it has not been taken yet.
    """
    enrollments = StudentClass.objects.filter(
        class_catalog=class_catalog, status=Status.ACTIVE
    ).select_related('student')

    records = {
        a.student_class_id: a
        for a in Attendance.objects.filter(student_class__in=enrollments, date=date)
    }

    return [
        {
            'student_class': sc,
            'student': sc.student,
            'attendance': records.get(sc.pk),
        }
        for sc in enrollments
    ]


def attendance_summary(records):
    """
    Count attendance records by state.

    ``records`` may be Attendance instances or bare state strings. The rate
    counts present and justified absences as attended, in percent with one
    decimal.
    """
    counts = Counter(getattr(record, 'state', record) for record in records)
    total = sum(counts.values())
    attended = counts[Attendance.State.PRESENT] + counts[Attendance.State.JUSTIFIED]

    summary = {state: counts[state] for state in Attendance.State.values}
    summary['total'] = total
    summary['rate'] = round((attended / total) * 100, 1) if total > 0 else 0
    return summary

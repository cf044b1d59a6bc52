"""Permission helpers and serializers shared by the academics views."""
from django.db.models import Q

from accounts.models import can_view_all
from core.decorators import is_school_admin
from ..models import ClassCatalog


def can_manage_class(user, class_catalog):
    """Admins manage every class; a teacher manages the classes they teach."""
    return is_school_admin(user) or class_catalog.teacher_id == user.pk


def visible_classes(user):
    """
    View-all roles see every class, a teacher the classes they teach and a
    tutor the classes their students are enrolled in.
    """
    classes = ClassCatalog.objects.select_related(
        'subject', 'classroom', 'teacher', 'group', 'school_cycle'
    )
    if can_view_all(user):
        return classes
    query = Q(pk__in=[])
    if user.is_teacher:
        query |= Q(teacher=user)
    if user.is_tutor:
        query |= Q(enrollments__student__tutor=user)
    return classes.filter(query).distinct()


def serialize_schedule(schedule):
    return {
        'id': schedule.pk,
        'name': schedule.name,
        'weekday': schedule.weekday,
        'weekday_display': schedule.get_weekday_display(),
        'start_time': schedule.start_time.strftime('%H:%M'),
        'end_time': schedule.end_time.strftime('%H:%M'),
        'status': schedule.status,
    }


def serialize_class(class_catalog, include_schedules=False):
    data = {
        'id': class_catalog.pk,
        'name': class_catalog.name,
        'status': class_catalog.status,
        'school_cycle_id': class_catalog.school_cycle_id,
        'subject': {'id': class_catalog.subject_id, 'name': class_catalog.subject.name},
        'classroom': {'id': class_catalog.classroom_id, 'name': class_catalog.classroom.name},
        'teacher': {'id': class_catalog.teacher_id, 'name': class_catalog.teacher.full_name},
        'group': (
            {'id': class_catalog.group_id, 'name': str(class_catalog.group)}
            if class_catalog.group_id else None
        ),
    }
    if include_schedules:
        data['schedules'] = [
            serialize_schedule(cs.schedule)
            for cs in class_catalog.class_schedules.filter(status='active').select_related('schedule')
        ]
    return data


def serialize_term(term):
    return {
        'id': term.pk,
        'name': term.name,
        'key': term.key,
        'start_date': term.start_date.isoformat(),
        'end_date': term.end_date.isoformat(),
        'parent_id': term.parent_id,
        'status': term.status,
    }

"""Subjects, classrooms, groups and weekly time slots."""
import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from core.decorators import admin_required, api_login_required
from core.utils import form_errors_response
from ..forms import SubjectForm, ClassroomForm, GroupForm, ScheduleForm
from ..models import Subject, Classroom, Group, Schedule
from .base import serialize_schedule

logger = logging.getLogger(__name__)


def _save_form(request, form_class, serialize, instance=None):
    form = form_class(request.POST, instance=instance)
    if not form.is_valid():
        return form_errors_response(form)
    obj = form.save()
    logger.info(f"{obj.__class__.__name__} {obj.pk} saved by {request.user.email}")
    return JsonResponse(
        {'success': True, 'item': serialize(obj)},
        status=200 if instance else 201,
    )


def _filter_status(request, queryset):
    status = request.GET.get('status')
    return queryset.filter(status=status) if status else queryset


def serialize_subject(subject):
    return {
        'id': subject.pk, 'name': subject.name, 'description': subject.description,
        'credits': subject.credits, 'status': subject.status,
    }


def serialize_classroom(classroom):
    return {
        'id': classroom.pk, 'name': classroom.name, 'capacity': classroom.capacity,
        'location': classroom.location, 'status': classroom.status,
    }


def serialize_group(group):
    return {'id': group.pk, 'name': group.name, 'grade': group.grade, 'status': group.status}


@api_login_required
def subject_list(request):
    subjects = _filter_status(request, Subject.objects.all())
    return JsonResponse({'items': [serialize_subject(s) for s in subjects]})


@admin_required
@require_POST
def subject_create(request):
    return _save_form(request, SubjectForm, serialize_subject)


@admin_required
@require_POST
def subject_edit(request, pk):
    return _save_form(request, SubjectForm, serialize_subject, get_object_or_404(Subject, pk=pk))


@api_login_required
def classroom_list(request):
    classrooms = _filter_status(request, Classroom.objects.all())
    return JsonResponse({'items': [serialize_classroom(c) for c in classrooms]})


@admin_required
@require_POST
def classroom_create(request):
    return _save_form(request, ClassroomForm, serialize_classroom)


@admin_required
@require_POST
def classroom_edit(request, pk):
    return _save_form(request, ClassroomForm, serialize_classroom, get_object_or_404(Classroom, pk=pk))


@api_login_required
def group_list(request):
    groups = _filter_status(request, Group.objects.all())
    return JsonResponse({'items': [serialize_group(g) for g in groups]})


@admin_required
@require_POST
def group_create(request):
    return _save_form(request, GroupForm, serialize_group)


@admin_required
@require_POST
def group_edit(request, pk):
    return _save_form(request, GroupForm, serialize_group, get_object_or_404(Group, pk=pk))


@api_login_required
def schedule_list(request):
    schedules = _filter_status(request, Schedule.objects.all())
    weekday = request.GET.get('weekday')
    if weekday:
        schedules = schedules.filter(weekday=weekday)
    return JsonResponse({'items': [serialize_schedule(s) for s in schedules]})


@admin_required
@require_POST
def schedule_create(request):
    return _save_form(request, ScheduleForm, serialize_schedule)


@admin_required
@require_POST
def schedule_edit(request, pk):
    return _save_form(request, ScheduleForm, serialize_schedule, get_object_or_404(Schedule, pk=pk))

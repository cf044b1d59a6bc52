"""Classes, terms, time-slot assignment and student enrollment."""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from core.decorators import admin_required, api_login_required, teacher_or_admin_required
from core.utils import form_errors_response, json_error, validation_error_response
from students.models import Student
from ..forms import ClassCatalogForm, TermForm
from ..models import ClassCatalog, Schedule, Status, StudentClass, Term
from ..utils import assign_schedules, enroll_student, find_schedule_conflicts
from .base import can_manage_class, serialize_class, serialize_term, visible_classes

logger = logging.getLogger(__name__)


@api_login_required
def class_list(request):
    classes = visible_classes(request.user)

    cycle_id = request.GET.get('cycle')
    status = request.GET.get('status')
    if cycle_id:
        classes = classes.filter(school_cycle_id=cycle_id)
    if status:
        classes = classes.filter(status=status)

    return JsonResponse({'classes': [serialize_class(c) for c in classes]})


@api_login_required
def class_detail(request, pk):
    class_catalog = get_object_or_404(visible_classes(request.user), pk=pk)
    return JsonResponse({'class': serialize_class(class_catalog, include_schedules=True)})


def _save_class(request, instance=None):
    form = ClassCatalogForm(request.POST, instance=instance)
    if not form.is_valid():
        return form_errors_response(form)

    class_catalog = form.save(commit=False)
    if instance is None:
        class_catalog.created_by = request.user
    schedules = form.cleaned_data['schedules']

    conflicts = find_schedule_conflicts(
        class_catalog, schedules, exclude_class_id=instance.pk if instance else None
    )
    if conflicts:
        return json_error('Schedule conflicts detected.', conflicts=conflicts)

    with transaction.atomic():
        class_catalog.save()
        if schedules:
            assign_schedules(class_catalog, schedules)

    logger.info(f"Class {class_catalog.name} saved by {request.user.email}")
    return JsonResponse(
        {'success': True, 'class': serialize_class(class_catalog, include_schedules=True)},
        status=200 if instance else 201,
    )


@admin_required
@require_POST
def class_create(request):
    return _save_class(request)


@admin_required
@require_POST
def class_edit(request, pk):
    return _save_class(request, get_object_or_404(ClassCatalog, pk=pk))


@admin_required
@require_POST
def class_deactivate(request, pk):
    class_catalog = get_object_or_404(ClassCatalog, pk=pk)
    class_catalog.status = Status.INACTIVE
    class_catalog.save(update_fields=['status', 'updated_at'])
    return JsonResponse({'success': True})


@admin_required
def class_schedule_conflicts(request, pk=None):
    """
    Dry-run conflict check for a class's time slots.
    ``pk`` is the class being edited; query args mirror the class form.
    """
    instance = get_object_or_404(ClassCatalog, pk=pk) if pk else None
    form = ClassCatalogForm(request.GET, instance=instance)
    if not form.is_valid():
        return form_errors_response(form)
    class_catalog = form.save(commit=False)
    conflicts = find_schedule_conflicts(
        class_catalog, form.cleaned_data['schedules'], exclude_class_id=pk
    )
    return JsonResponse({'has_conflicts': bool(conflicts), 'conflicts': conflicts})


@admin_required
@require_POST
def class_schedules_assign(request, pk):
    class_catalog = get_object_or_404(ClassCatalog, pk=pk)
    schedule_ids = request.POST.getlist('schedules')
    schedules = list(Schedule.objects.filter(pk__in=schedule_ids, status=Status.ACTIVE))
    if len(schedules) != len(set(schedule_ids)):
        return json_error('Unknown or inactive schedule.')
    try:
        assign_schedules(class_catalog, schedules)
    except ValidationError as e:
        return validation_error_response(e)
    return JsonResponse({'success': True, 'class': serialize_class(class_catalog, include_schedules=True)})


# ============ TERMS ============

@api_login_required
def term_list(request, pk):
    class_catalog = get_object_or_404(visible_classes(request.user), pk=pk)
    terms = class_catalog.terms.all()
    return JsonResponse({'terms': [serialize_term(t) for t in terms]})


@teacher_or_admin_required
@require_POST
def term_create(request, pk):
    class_catalog = get_object_or_404(ClassCatalog, pk=pk)
    if not can_manage_class(request.user, class_catalog):
        return json_error('You are not assigned to this class.', status=403)

    form = TermForm(request.POST, class_catalog=class_catalog)
    if not form.is_valid():
        return form_errors_response(form)
    term = form.save(commit=False)
    term.class_catalog = class_catalog
    term.save()
    return JsonResponse({'success': True, 'term': serialize_term(term)}, status=201)


@teacher_or_admin_required
@require_POST
def term_edit(request, term_pk):
    term = get_object_or_404(Term.objects.select_related('class_catalog'), pk=term_pk)
    if not can_manage_class(request.user, term.class_catalog):
        return json_error('You are not assigned to this class.', status=403)
    if term.is_closed:
        return json_error('The term is closed. Reopen it before editing.')

    form = TermForm(request.POST, instance=term, class_catalog=term.class_catalog)
    if not form.is_valid():
        return form_errors_response(form)
    term = form.save()
    return JsonResponse({'success': True, 'term': serialize_term(term)})


# ============ ENROLLMENT ============

@api_login_required
def class_students(request, pk):
    class_catalog = get_object_or_404(visible_classes(request.user), pk=pk)
    enrollments = class_catalog.enrollments.select_related('student')
    status = request.GET.get('status')
    if status:
        enrollments = enrollments.filter(status=status)
    return JsonResponse({
        'students': [
            {
                'student_class_id': sc.pk,
                'student_id': sc.student_id,
                'enrollment': sc.student.enrollment,
                'full_name': sc.student.full_name,
                'enrollment_date': sc.enrollment_date.isoformat(),
                'status': sc.status,
            }
            for sc in enrollments
        ]
    })


@admin_required
@require_POST
def enroll(request, pk):
    class_catalog = get_object_or_404(ClassCatalog, pk=pk)
    student = get_object_or_404(Student, pk=request.POST.get('student'))
    try:
        student_class = enroll_student(class_catalog, student)
    except ValidationError as e:
        return validation_error_response(e)
    logger.info(f"Student {student.enrollment} enrolled in {class_catalog.name}")
    return JsonResponse({'success': True, 'student_class_id': student_class.pk}, status=201)


@admin_required
@require_POST
def unenroll(request, pk, student_class_pk):
    student_class = get_object_or_404(StudentClass, pk=student_class_pk, class_catalog_id=pk)
    student_class.status = Status.INACTIVE
    student_class.save(update_fields=['status'])
    return JsonResponse({'success': True})

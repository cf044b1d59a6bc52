"""Grade rubric and assignment management."""
import logging

from django.db.models import ProtectedError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from core.decorators import api_login_required, teacher_or_admin_required
from core.utils import form_errors_response, json_error
from ..forms import GradeRubricForm, AssignmentForm
from ..models import GradeRubric, Assignment
from ..utils import available_weight, can_edit_rubric
from .base import can_grade, get_visible_class_and_term, serialize_assignment, serialize_rubric

logger = logging.getLogger(__name__)


@api_login_required
def rubric_list(request, class_id, term_id):
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    rubrics = GradeRubric.objects.filter(class_catalog=class_catalog, term=term)
    return JsonResponse({
        'rubrics': [serialize_rubric(r) for r in rubrics],
        'available_weight': available_weight(class_catalog, term),
    })


@teacher_or_admin_required
@require_POST
def rubric_create(request, class_id, term_id):
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    if not can_grade(request.user, class_catalog):
        return json_error('You are not assigned to this class.', status=403)

    form = GradeRubricForm(request.POST, class_catalog=class_catalog, term=term)
    if not form.is_valid():
        return form_errors_response(form)
    rubric = form.save(commit=False)
    rubric.created_by = request.user
    rubric.save()
    logger.info(f"Rubric {rubric.name} ({rubric.weight}%) created for class {class_catalog.pk}")
    return JsonResponse({'success': True, 'rubric': serialize_rubric(rubric)}, status=201)


@teacher_or_admin_required
@require_POST
def rubric_edit(request, pk):
    rubric = get_object_or_404(GradeRubric.objects.select_related('term', 'class_catalog'), pk=pk)
    if not can_edit_rubric(request.user, rubric):
        return json_error("You don't have permission to update this rubric.", status=403)

    form = GradeRubricForm(request.POST, instance=rubric)
    if not form.is_valid():
        return form_errors_response(form)
    rubric = form.save()
    return JsonResponse({'success': True, 'rubric': serialize_rubric(rubric)})


@teacher_or_admin_required
@require_POST
def rubric_delete(request, pk):
    rubric = get_object_or_404(GradeRubric.objects.select_related('term'), pk=pk)
    if not can_edit_rubric(request.user, rubric):
        return json_error("You don't have permission to delete this rubric.", status=403)
    if rubric.term.is_closed:
        return json_error(f"The term {rubric.term.name} is closed.")
    try:
        rubric.delete()
    except ProtectedError:
        return json_error('The rubric has assignments. Deactivate it instead.')
    return JsonResponse({'success': True})


@api_login_required
def assignment_list(request, class_id, term_id):
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    assignments = Assignment.objects.filter(class_catalog=class_catalog, term=term)
    return JsonResponse({'assignments': [serialize_assignment(a) for a in assignments]})


@teacher_or_admin_required
@require_POST
def assignment_create(request, class_id, term_id):
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    if not can_grade(request.user, class_catalog):
        return json_error('You are not assigned to this class.', status=403)
    if term.is_closed:
        return json_error(f"The term {term.name} is closed.")

    form = AssignmentForm(request.POST, class_catalog=class_catalog, term=term)
    if not form.is_valid():
        return form_errors_response(form)
    assignment = form.save(commit=False)
    assignment.created_by = request.user
    assignment.save()
    return JsonResponse({'success': True, 'assignment': serialize_assignment(assignment)}, status=201)


@teacher_or_admin_required
@require_POST
def assignment_delete(request, pk):
    assignment = get_object_or_404(Assignment.objects.select_related('class_catalog', 'term'), pk=pk)
    if not can_grade(request.user, assignment.class_catalog):
        return json_error('You are not assigned to this class.', status=403)
    if assignment.term.is_closed:
        return json_error(f"The term {assignment.term.name} is closed.")
    assignment.delete()
    return JsonResponse({'success': True})

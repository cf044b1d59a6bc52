"""Closing and reopening terms, stored term averages and annual averages."""
import logging

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from academics.models import StudentClass, Term
from academics.views.base import visible_classes
from accounts.models import can_view_all
from core.decorators import admin_required, api_login_required, teacher_or_admin_required
from core.utils import form_errors_response, json_error, validation_error_response
from ..forms import TermAverageForm
from ..models import TermAverage
from ..utils import (
    annual_averages, annual_averages_for_class, close_term, reopen_term, upsert_term_average
)
from .. import config
from .base import can_grade, get_visible_class_and_term

logger = logging.getLogger(__name__)


@teacher_or_admin_required
@require_POST
def term_close(request, class_id, term_id):
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    if not can_grade(request.user, class_catalog):
        return json_error('You are not assigned to this class.', status=403)
    try:
        averages = close_term(term, class_catalog, request.user)
    except ValidationError as e:
        return validation_error_response(e)
    return JsonResponse({
        'success': True,
        'averages': [
            {'student_class_id': a.student_class_id, 'average_score': a.average_score}
            for a in averages
        ],
    })


@admin_required
@require_POST
def term_reopen(request, class_id, term_id):
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    if not term.is_closed:
        return json_error(f"The term {term.name} is not closed.")
    deleted = reopen_term(term, class_catalog)
    return JsonResponse({'success': True, 'deleted': deleted})


@api_login_required
def term_averages(request, class_id, term_id):
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    averages = TermAverage.objects.filter(
        term=term, student_class__class_catalog=class_catalog
    ).select_related('student_class__student')

    user = request.user
    if not (can_view_all(user) or class_catalog.teacher_id == user.pk):
        averages = averages.filter(student_class__student__tutor=user)

    scores = [a.average_score for a in averages]
    passing = [s for s in scores if s >= config.PASSING_AVERAGE]
    return JsonResponse({
        'averages': [
            {
                'student_class_id': a.student_class_id,
                'full_name': a.student_class.student.full_name,
                'average_score': a.average_score,
                'comments': a.comments,
            }
            for a in averages
        ],
        'passing': len(passing),
        'failing': len(scores) - len(passing),
    })


@teacher_or_admin_required
@require_POST
def term_average_save(request, class_id, term_id):
    """Manually set one stored average (e.g. after a recovery exam)."""
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    if not can_grade(request.user, class_catalog):
        return json_error('You are not assigned to this class.', status=403)

    form = TermAverageForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)
    student_class = get_object_or_404(
        StudentClass, pk=form.cleaned_data['student_class'], class_catalog=class_catalog
    )
    average = upsert_term_average(
        student_class, term, form.cleaned_data['average_score'],
        form.cleaned_data['comments'], request.user,
    )
    logger.info(f"Average of enrollment {student_class.pk} in term {term.pk} set by {request.user.email}")
    return JsonResponse({'success': True, 'average_score': average.average_score})


@api_login_required
def class_annual_averages(request, class_id):
    class_catalog = get_object_or_404(visible_classes(request.user), pk=class_id)
    grouped = annual_averages_for_class(class_catalog)

    user = request.user
    if not (can_view_all(user) or class_catalog.teacher_id == user.pk):
        own = set(
            StudentClass.objects.filter(class_catalog=class_catalog, student__tutor=user)
            .values_list('pk', flat=True)
        )
        grouped = {sc_id: rows for sc_id, rows in grouped.items() if sc_id in own}

    return JsonResponse({'averages': {str(k): v for k, v in grouped.items()}})


@api_login_required
def student_annual_average(request, class_id, term_id, student_class_id):
    """Sub-term averages of one enrollment under an annual term plus their mean."""
    class_catalog, parent_term = get_visible_class_and_term(request.user, class_id, term_id)
    student_class = get_object_or_404(StudentClass, pk=student_class_id, class_catalog=class_catalog)

    user = request.user
    if not (can_view_all(user) or class_catalog.teacher_id == user.pk
            or student_class.student.tutor_id == user.pk):
        return json_error("You don't have permission to view these records.", status=403)

    result = annual_averages(student_class, parent_term)
    annual = result['annual_average']
    return JsonResponse({
        'terms': result['terms'],
        'annual_average': float(annual) if annual is not None else None,
    })

"""Grade entry and the class grade matrix."""
import logging
from collections import defaultdict

from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from academics.models import StudentClass, Status
from accounts.models import can_view_all
from core.decorators import api_login_required, teacher_or_admin_required
from core.utils import form_errors_response, json_error, validation_error_response
from ..forms import GradeForm
from ..models import Assignment, GradeRubric
from ..utils import grades_for_class_and_term, upsert_grade, weighted_average
from .base import (
    can_grade, get_visible_class_and_term, serialize_assignment, serialize_grade, serialize_rubric
)

logger = logging.getLogger(__name__)


@api_login_required
def grade_matrix(request, class_id, term_id):
    """
    Students x assignments grid of a class in a term with each student's
    running average. Rows are limited to what the caller may see.
    """
    class_catalog, term = get_visible_class_and_term(request.user, class_id, term_id)
    user = request.user

    rubrics = list(GradeRubric.objects.filter(class_catalog=class_catalog, term=term, is_active=True))
    assignments = list(Assignment.objects.filter(class_catalog=class_catalog, term=term))
    grades = list(grades_for_class_and_term(class_catalog, term, user))

    enrollments = StudentClass.objects.filter(
        class_catalog=class_catalog, status=Status.ACTIVE
    ).select_related('student')
    if not (can_view_all(user) or class_catalog.teacher_id == user.pk):
        enrollments = enrollments.filter(student__tutor=user)

    grades_by_student = defaultdict(list)
    for grade in grades:
        grades_by_student[grade.student_class_id].append(grade)

    rows = []
    for sc in enrollments:
        student_grades = grades_by_student.get(sc.pk, [])
        rows.append({
            'student_class_id': sc.pk,
            'full_name': sc.student.full_name,
            'grades': [serialize_grade(g) for g in student_grades],
            'average': weighted_average(rubrics, assignments, student_grades),
        })

    return JsonResponse({
        'term': {'id': term.pk, 'name': term.name, 'status': term.status},
        'rubrics': [serialize_rubric(r) for r in rubrics],
        'assignments': [serialize_assignment(a) for a in assignments],
        'rows': rows,
    })


@teacher_or_admin_required
@require_POST
def grade_save(request, class_id):
    form = GradeForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)

    assignment = get_object_or_404(
        Assignment.objects.select_related('class_catalog', 'term'),
        pk=form.cleaned_data['assignment'], class_catalog_id=class_id,
    )
    if not can_grade(request.user, assignment.class_catalog):
        return json_error('You are not assigned to this class.', status=403)
    student_class = get_object_or_404(
        StudentClass, pk=form.cleaned_data['student_class'], class_catalog_id=class_id
    )

    try:
        grade, created = upsert_grade(
            student_class, assignment, form.cleaned_data['score'],
            form.cleaned_data['comments'], request.user,
        )
    except ValidationError as e:
        return validation_error_response(e)

    return JsonResponse(
        {'success': True, 'grade': serialize_grade(grade)},
        status=201 if created else 200,
    )

"""Lookups shared by the gradebook views."""
from django.shortcuts import get_object_or_404

from academics.models import Term
from academics.views.base import can_manage_class, visible_classes


def get_visible_class_and_term(user, class_id, term_id):
    """Class visible to the user and one of its terms, or 404."""
    class_catalog = get_object_or_404(visible_classes(user), pk=class_id)
    term = get_object_or_404(Term, pk=term_id, class_catalog=class_catalog)
    return class_catalog, term


def can_grade(user, class_catalog):
    return can_manage_class(user, class_catalog)


def serialize_rubric(rubric):
    return {
        'id': rubric.pk,
        'name': rubric.name,
        'weight': rubric.weight,
        'max_score': rubric.max_score,
        'is_active': rubric.is_active,
        'created_by_id': rubric.created_by_id,
    }


def serialize_assignment(assignment):
    return {
        'id': assignment.pk,
        'name': assignment.name,
        'description': assignment.description,
        'due_date': assignment.due_date.isoformat() if assignment.due_date else None,
        'max_score': assignment.max_score,
        'grade_rubric_id': assignment.grade_rubric_id,
    }


def serialize_grade(grade):
    return {
        'id': grade.pk,
        'student_class_id': grade.student_class_id,
        'assignment_id': grade.assignment_id,
        'score': str(grade.score),
        'comments': grade.comments,
    }

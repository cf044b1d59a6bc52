"""
Grade calculations and term lifecycle for the gradebook app.
"""
import logging
from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from academics.models import StudentClass, Term
from accounts.models import can_view_all
from core.decorators import is_school_admin
from .models import Assignment, Grade, GradeRubric, TermAverage

logger = logging.getLogger(__name__)


def _score_map(grades):
    """Accept a {assignment_id: score} mapping or an iterable of Grade."""
    if isinstance(grades, dict):
        items = grades.items()
    else:
        items = ((g.assignment_id, g.score) for g in grades)
    return {
        assignment_id: Decimal(str(score))
        for assignment_id, score in items
        if score is not None
    }


def weighted_average(rubrics, assignments, grades):
    """
    Term average of one student on a 0-100 integer scale.

    For each rubric the earned points of the graded assignments are divided
    by their maximum points. Those ratios are weighted by the rubric weight
    and normalised by the total weight of the rubrics that have at least one
    grade, so ungraded rubrics neither help nor hurt. Rounded half up.

    Args:
        rubrics: iterable of GradeRubric
        assignments: iterable of Assignment
        grades: the student's grades, as Grade instances or {assignment_id: score}

    Returns:
        int: the average, 0 when nothing has been graded
    """
    scores = _score_map(grades)
    by_rubric = defaultdict(list)
    for assignment in assignments:
        by_rubric[assignment.grade_rubric_id].append(assignment)

    weighted_total = Decimal('0')
    graded_weight = Decimal('0')

    for rubric in rubrics:
        graded = [a for a in by_rubric.get(rubric.pk, []) if a.pk in scores]
        max_total = sum((Decimal(a.max_score) for a in graded), Decimal('0'))
        if max_total <= 0:
            continue
        earned = sum((scores[a.pk] for a in graded), Decimal('0'))
        weighted_total += (earned / max_total) * Decimal(rubric.weight)
        graded_weight += Decimal(rubric.weight)

    if graded_weight == 0:
        return 0

    average = weighted_total / graded_weight * 100
    return int(average.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def available_weight(class_catalog, term, exclude_pk=None):
    """Weight still available for new active rubrics of a class in a term."""
    from . import config

    return config.MAX_TOTAL_WEIGHT - GradeRubric.used_weight(class_catalog, term, exclude_pk=exclude_pk)


def can_edit_rubric(user, rubric):
    """Only the rubric's creator or a school admin may change it."""
    return is_school_admin(user) or rubric.created_by_id == user.pk


def ensure_term_open(term):
    if term.is_closed:
        raise ValidationError(f"The term {term.name} is closed.")


def upsert_grade(student_class, assignment, score, comments='', user=None):
    """
    Create or update a grade.

    Returns:
        tuple (Grade, created)
    """
    # Stored status, not the one cached on the assignment
    ensure_term_open(Term.objects.get(pk=assignment.term_id))
    if student_class.class_catalog_id != assignment.class_catalog_id:
        raise ValidationError("The student is not enrolled in this class.")

    grade = Grade.objects.filter(student_class=student_class, assignment=assignment).first()
    created = grade is None
    if created:
        grade = Grade(student_class=student_class, assignment=assignment, created_by=user)
    grade.score = score
    grade.comments = comments or ''
    grade.updated_by = user
    grade.full_clean()
    grade.save()
    return grade, created


def upsert_term_average(student_class, term, average_score, comments='', user=None):
    average, _ = TermAverage.objects.update_or_create(
        student_class=student_class,
        term=term,
        defaults={
            'average_score': average_score,
            'comments': comments or '',
            'updated_by': user,
        },
        create_defaults={
            'average_score': average_score,
            'comments': comments or '',
            'created_by': user,
            'updated_by': user,
        },
    )
    return average


def class_term_averages(class_catalog, term):
    """
    Compute the current average of every enrollment of a class.

    Returns:
        list of (StudentClass, int) tuples
    """
    rubrics = list(GradeRubric.objects.filter(class_catalog=class_catalog, term=term, is_active=True))
    assignments = list(Assignment.objects.filter(class_catalog=class_catalog, term=term))
    enrollments = list(
        StudentClass.objects.filter(class_catalog=class_catalog)
        .select_related('student')
    )

    grades_by_student = defaultdict(dict)
    for grade in Grade.objects.filter(assignment__in=assignments, student_class__in=enrollments):
        grades_by_student[grade.student_class_id][grade.assignment_id] = grade.score

    return [
        (sc, weighted_average(rubrics, assignments, grades_by_student.get(sc.pk, {})))
        for sc in enrollments
    ]


def close_term(term, class_catalog=None, user=None):
    """
    Store the average of every enrolled student and close the term.
    Closed terms reject grade changes until reopened.

    Returns:
        list of TermAverage
    """
    class_catalog = class_catalog or term.class_catalog
    with transaction.atomic():
        term = Term.objects.select_for_update().get(pk=term.pk)
        ensure_term_open(term)

        averages = [
            upsert_term_average(sc, term, average, user=user)
            for sc, average in class_term_averages(class_catalog, term)
        ]

        term.status = Term.Status.CLOSED
        term.closed_at = timezone.now()
        term.closed_by = user
        term.save(update_fields=['status', 'closed_at', 'closed_by', 'updated_at'])

    logger.info(f"Term {term.pk} of class {class_catalog.pk} closed with {len(averages)} averages")
    return averages


def reopen_term(term, class_catalog=None):
    """
    Delete the stored averages of the class for the term and reopen it.

    Returns:
        int: number of averages deleted
    """
    class_catalog = class_catalog or term.class_catalog
    with transaction.atomic():
        term = Term.objects.select_for_update().get(pk=term.pk)
        deleted, _ = TermAverage.objects.filter(
            term=term, student_class__class_catalog=class_catalog
        ).delete()
        term.status = Term.Status.ACTIVE
        term.closed_at = None
        term.closed_by = None
        term.save(update_fields=['status', 'closed_at', 'closed_by', 'updated_at'])

    logger.info(f"Term {term.pk} of class {class_catalog.pk} reopened, {deleted} averages deleted")
    return deleted


def _mean(values):
    if not values:
        return None
    total = sum((Decimal(v) for v in values), Decimal('0'))
    return (total / len(values)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def annual_averages(student_class, parent_term):
    """
    Averages of a student in every sub-term of ``parent_term`` plus their mean.

    Returns:
        dict with ``terms`` (one row per child term, average None when the term
        has no stored average) and ``annual_average`` (mean of present ones).
    """
    children = list(parent_term.children.order_by('start_date'))
    stored = dict(
        TermAverage.objects.filter(student_class=student_class, term__in=children)
        .values_list('term_id', 'average_score')
    )

    rows = [
        {
            'term_id': term.pk,
            'term_name': term.name,
            'average_score': stored.get(term.pk),
        }
        for term in children
    ]
    present = [row['average_score'] for row in rows if row['average_score'] is not None]
    return {'terms': rows, 'annual_average': _mean(present)}


def annual_averages_for_class(class_catalog):
    """
    Every stored term average of a class grouped by enrollment.

    Returns:
        dict mapping student_class id to a list of {term_id, term_name, average_score}
    """
    grouped = {
        sc_id: []
        for sc_id in StudentClass.objects.filter(class_catalog=class_catalog).values_list('pk', flat=True)
    }
    averages = TermAverage.objects.filter(
        student_class__class_catalog=class_catalog
    ).select_related('term').order_by('term__start_date')

    for avg in averages:
        grouped[avg.student_class_id].append({
            'term_id': avg.term_id,
            'term_name': avg.term.name,
            'average_score': avg.average_score,
        })
    return grouped


def grades_for_class_and_term(class_catalog, term, user):
    """
    Grades of a class in a term visible to ``user``.

    View-all roles see every grade, the class's teacher sees the whole class,
    a tutor only the grades of their own students. Anyone else sees nothing.
    """
    grades = Grade.objects.filter(
        assignment__class_catalog=class_catalog, assignment__term=term
    ).select_related('assignment', 'student_class__student')

    if can_view_all(user):
        return grades
    if user.is_teacher and class_catalog.teacher_id == user.pk:
        return grades
    if user.is_tutor:
        return grades.filter(student_class__student__tutor=user)
    return grades.none()

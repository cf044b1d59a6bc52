from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Sum


class GradeRubric(models.Model):
    """
    A weighted evaluation criterion of a class in a term (e.g. Exams 40%,
    Homework 30%). Active weights of one class/term add up to at most 100.
    """
    class_catalog = models.ForeignKey(
        'academics.ClassCatalog', on_delete=models.CASCADE, related_name='grade_rubrics'
    )
    term = models.ForeignKey('academics.Term', on_delete=models.CASCADE, related_name='grade_rubrics')
    name = models.CharField(max_length=100)
    weight = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(100)],
        help_text="Percentage of the term average"
    )
    max_score = models.PositiveIntegerField(default=100)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-weight', 'name']
        verbose_name = "Grade Rubric"
        verbose_name_plural = "Grade Rubrics"

    def __str__(self):
        return f"{self.name} ({self.weight}%)"

    @classmethod
    def used_weight(cls, class_catalog, term, exclude_pk=None):
        rubrics = cls.objects.filter(class_catalog=class_catalog, term=term, is_active=True)
        if exclude_pk:
            rubrics = rubrics.exclude(pk=exclude_pk)
        return rubrics.aggregate(total=Sum('weight'))['total'] or 0

    def clean(self):
        from . import config

        if not (self.class_catalog_id and self.term_id and self.weight):
            return
        if self.term.class_catalog_id != self.class_catalog_id:
            raise ValidationError({'term': "The term does not belong to this class."})
        if self.is_active:
            available = config.MAX_TOTAL_WEIGHT - self.used_weight(
                self.class_catalog_id, self.term_id, exclude_pk=self.pk
            )
            if self.weight > available:
                raise ValidationError({
                    'weight': f"Weight exceeds the available {available}% for this term."
                })


class Assignment(models.Model):
    class_catalog = models.ForeignKey(
        'academics.ClassCatalog', on_delete=models.CASCADE, related_name='assignments'
    )
    term = models.ForeignKey('academics.Term', on_delete=models.CASCADE, related_name='assignments')
    grade_rubric = models.ForeignKey(GradeRubric, on_delete=models.PROTECT, related_name='assignments')
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    due_date = models.DateField(null=True, blank=True)
    max_score = models.PositiveIntegerField(default=100)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['due_date', 'name']

    def __str__(self):
        return f"{self.name} ({self.max_score} pts)"

    def clean(self):
        if self.grade_rubric_id and self.term_id and self.grade_rubric.term_id != self.term_id:
            raise ValidationError({'grade_rubric': "The rubric belongs to another term."})
        if self.max_score is not None and self.max_score < 1:
            raise ValidationError({'max_score': "Maximum score must be at least 1."})


class Grade(models.Model):
    """Score of one enrolled student on one assignment."""
    student_class = models.ForeignKey(
        'academics.StudentClass', on_delete=models.CASCADE, related_name='grades'
    )
    assignment = models.ForeignKey(Assignment, on_delete=models.CASCADE, related_name='grades')
    score = models.DecimalField(max_digits=6, decimal_places=2)
    comments = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ['student_class', 'assignment']

    def __str__(self):
        return f"{self.student_class.student} - {self.assignment.name}: {self.score}"

    def clean(self):
        if self.score is None or not self.assignment_id:
            return
        if self.score < 0:
            raise ValidationError({'score': "Score cannot be negative."})
        if self.score > Decimal(self.assignment.max_score):
            raise ValidationError({
                'score': f"Score cannot exceed the maximum of {self.assignment.max_score}."
            })


class TermAverage(models.Model):
    """Closed average of one enrolled student in one term (0-100)."""
    student_class = models.ForeignKey(
        'academics.StudentClass', on_delete=models.CASCADE, related_name='term_averages'
    )
    term = models.ForeignKey('academics.Term', on_delete=models.CASCADE, related_name='averages')
    average_score = models.PositiveSmallIntegerField(
        validators=[MaxValueValidator(100)]
    )
    comments = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ['student_class', 'term']
        verbose_name = "Term Average"
        verbose_name_plural = "Term Averages"

    def __str__(self):
        return f"{self.student_class.student} - {self.term.name}: {self.average_score}"

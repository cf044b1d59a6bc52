from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Student(models.Model):
    """
    Represents a student enrolled in the school.
    """
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')

    # Personal Information
    name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True)
    birth_date = models.DateField(null=True, blank=True)
    img_url = models.URLField(blank=True)

    # Admission Details
    enrollment = models.CharField(
        max_length=50,
        unique=True,
        help_text="Unique student ID/enrollment number"
    )
    admission_date = models.DateField(null=True, blank=True)
    group = models.ForeignKey(
        'academics.Group',
        on_delete=models.PROTECT,
        related_name='students'
    )
    school_cycle = models.ForeignKey(
        'core.SchoolCycle',
        on_delete=models.PROTECT,
        related_name='students'
    )
    tutor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='students',
        limit_choices_to={'is_tutor': True},
    )

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    has_scholarship = models.BooleanField(default=False)
    credit = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        help_text="Overpayments kept on account"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['last_name', 'name']
        indexes = [
            models.Index(fields=['school_cycle', 'status'], name='student_cycle_status_idx'),
            models.Index(fields=['group'], name='student_group_idx'),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.enrollment})"

    @property
    def full_name(self):
        return f"{self.name} {self.last_name}".strip()

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE

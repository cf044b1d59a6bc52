from decimal import Decimal

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MaxValueValidator, MinValueValidator
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _


class BillingRule(models.Model):
    """
    Policy applied to unpaid billings: an early-payment discount, a late fee,
    or a cutoff that marks billings overdue after some days late.
    """
    class Type(models.TextChoices):
        LATE_FEE = 'late_fee', _('Late Fee')
        EARLY_DISCOUNT = 'early_discount', _('Early Payment Discount')
        CUTOFF = 'cutoff', _('Cutoff')

    class Scope(models.TextChoices):
        STANDARD = 'standard', _('Standard Students')
        SCHOLARSHIP = 'scholarship', _('Scholarship Students')
        ALL_STUDENTS = 'all_students', _('All Students')

    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')

    class FeeType(models.TextChoices):
        PERCENTAGE = 'percentage', _('Percentage')
        FIXED = 'fixed', _('Fixed Amount')

    name = models.CharField(max_length=80, unique=True)
    description = models.TextField(max_length=400, blank=True)
    type = models.CharField(max_length=20, choices=Type.choices)
    scope = models.CharField(max_length=20, choices=Scope.choices, default=Scope.ALL_STUDENTS)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    fee_type = models.CharField(max_length=10, choices=FeeType.choices, blank=True)
    fee_value = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    start_day = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(31)],
        help_text="First day of the month the rule applies"
    )
    end_day = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(31)],
        help_text="Last day of the month the rule applies"
    )
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    used_count = models.PositiveIntegerField(default=0)
    cutoff_after_days = models.PositiveIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1)]
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"

    def clean(self):
        errors = {}
        if self.type == self.Type.CUTOFF:
            if not self.cutoff_after_days:
                errors['cutoff_after_days'] = "Cutoff rules need the days after which they apply."
        elif self.type in (self.Type.LATE_FEE, self.Type.EARLY_DISCOUNT):
            if not self.start_day:
                errors['start_day'] = "Start day is required."
            if not self.end_day:
                errors['end_day'] = "End day is required."
            if not self.fee_type:
                errors['fee_type'] = "Fee type is required."
            if not self.fee_value:
                errors['fee_value'] = "Fee value is required."
        if (self.fee_type == self.FeeType.PERCENTAGE and self.fee_value
                and self.fee_value > 100):
            errors['fee_value'] = "A percentage cannot exceed 100."
        if errors:
            raise ValidationError(errors)

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE

    @property
    def has_uses_left(self):
        return self.max_uses is None or self.used_count < self.max_uses


class BillingConfig(models.Model):
    """
    A charge (tuition, enrollment, ...) of a school cycle and the students it
    targets. Billings are generated per in-scope student.
    """
    class Scope(models.TextChoices):
        ALL_STUDENTS = 'all_students', _('All Students')
        SPECIFIC_GROUPS = 'specific_groups', _('Specific Groups')
        SPECIFIC_GRADES = 'specific_grades', _('Specific Grades')
        SPECIFIC_STUDENTS = 'specific_students', _('Specific Students')

    class Recurrence(models.TextChoices):
        FOUR_MONTHLY = 'four_monthly', _('Four-monthly')
        SEMIANNUAL = 'semiannual', _('Semiannual')
        SATURDAY = 'saturday', _('Saturday')
        MONTHLY = 'monthly', _('Monthly')
        DAILY = 'daily', _('Daily')
        WEEKLY = 'weekly', _('Weekly')
        ANNUAL = 'annual', _('Annual')
        ONE_TIME = 'one_time', _('One Time')

    class Type(models.TextChoices):
        ENROLLMENT = 'enrollment', _('Enrollment')
        TUITION = 'tuition', _('Tuition')
        EXAM = 'exam', _('Exam')
        SCHOOL_SUPPLIES = 'school_supplies', _('School Supplies')
        LIFE_INSURANCE = 'life_insurance', _('Life Insurance')
        MEAL_PLAN = 'meal_plan', _('Meal Plan')
        OTHER = 'other', _('Other')

    class Status(models.TextChoices):
        REQUIRED = 'required', _('Required')
        OPTIONAL = 'optional', _('Optional')
        INACTIVE = 'inactive', _('Inactive')

    school_cycle = models.ForeignKey(
        'core.SchoolCycle', on_delete=models.PROTECT, related_name='billing_configs'
    )
    scope = models.CharField(max_length=20, choices=Scope.choices, default=Scope.ALL_STUDENTS)
    target_groups = models.ManyToManyField('academics.Group', blank=True, related_name='billing_configs')
    target_grades = models.JSONField(default=list, blank=True)
    target_students = models.ManyToManyField(
        'students.Student', blank=True, related_name='targeted_billing_configs'
    )
    recurrence = models.CharField(max_length=20, choices=Recurrence.choices, default=Recurrence.MONTHLY)
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.TUITION)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    rules = models.ManyToManyField(BillingRule, blank=True, related_name='billing_configs')
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.REQUIRED)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Billing Configuration"
        indexes = [
            models.Index(fields=['school_cycle', 'status'], name='billcfg_cycle_status_idx'),
        ]

    def __str__(self):
        return f"{self.get_type_display()} - {self.amount} ({self.school_cycle})"

    def clean(self):
        if self.amount is not None and self.amount < 0:
            raise ValidationError({'amount': "Amount cannot be negative."})
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError({'end_date': "Start date must be before the end date."})

    @property
    def is_active(self):
        return self.status != self.Status.INACTIVE


class Billing(models.Model):
    """
    What one student owes for one billing config. ``total_amount`` is what is
    left to pay after discounts, late fees and payments.
    """
    class Status(models.TextChoices):
        PENDING = 'pending', _('Pending')
        PAID = 'paid', _('Paid')
        OVERDUE = 'overdue', _('Overdue')
        PARTIAL = 'partial', _('Partially Paid')
        LATE = 'late', _('Late')

    student = models.ForeignKey('students.Student', on_delete=models.CASCADE, related_name='billings')
    billing_config = models.ForeignKey(BillingConfig, on_delete=models.CASCADE, related_name='billings')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)

    amount = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    total_discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    late_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    late_fee_rule = models.ForeignKey(
        BillingRule, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    applied_discounts = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    paid_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['billing_config__start_date', 'created_at']
        unique_together = ['student', 'billing_config']
        indexes = [
            models.Index(fields=['billing_config', 'status'], name='billing_config_status_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.billing_config.get_type_display()} ({self.get_status_display()})"

    @property
    def is_paid(self):
        return self.status == self.Status.PAID


class Payment(models.Model):
    """A payment recorded at the school against a billing."""
    class Method(models.TextChoices):
        CASH = 'cash', _('Cash')
        BANK_TRANSFER = 'bank_transfer', _('Bank Transfer')
        CARD = 'card', _('Card')
        OTHER = 'other', _('Other')

    billing = models.ForeignKey(Billing, on_delete=models.PROTECT, related_name='payments')
    student = models.ForeignKey('students.Student', on_delete=models.PROTECT, related_name='payments')
    method = models.CharField(max_length=20, choices=Method.choices, default=Method.CASH)
    amount = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))]
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.student} - {self.amount} ({self.get_method_display()})"

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


class Status(models.TextChoices):
    ACTIVE = 'active', _('Active')
    INACTIVE = 'inactive', _('Inactive')


class Subject(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    credits = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Classroom(models.Model):
    name = models.CharField(max_length=50, unique=True)
    capacity = models.PositiveIntegerField(default=30, help_text="Maximum number of students")
    location = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name


class Group(models.Model):
    """
    A cohort of students (e.g. grade 3, group "A"). Billing configs can be
    scoped by group or by grade.
    """
    name = models.CharField(max_length=20, help_text="A, B, C, etc.")
    grade = models.CharField(max_length=20, help_text="1, 2, 3, etc.")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['grade', 'name']
        unique_together = ['name', 'grade']

    def __str__(self):
        return f"{self.grade}° {self.name}"


class Schedule(models.Model):
    """
    A weekly time slot.
    Example: Monday 08:00 - 08:50
    """
    class Weekday(models.IntegerChoices):
        MONDAY = 1, 'Monday'
        TUESDAY = 2, 'Tuesday'
        WEDNESDAY = 3, 'Wednesday'
        THURSDAY = 4, 'Thursday'
        FRIDAY = 5, 'Friday'
        SATURDAY = 6, 'Saturday'
        SUNDAY = 7, 'Sunday'

    name = models.CharField(max_length=50)
    weekday = models.PositiveSmallIntegerField(choices=Weekday.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['weekday', 'start_time']

    def __str__(self):
        return (
            f"{self.get_weekday_display()} "
            f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"
        )

    def clean(self):
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError({'end_time': "End time must be after start time."})


class ClassCatalog(models.Model):
    """
    A class offered in a school cycle: one subject taught by one teacher in
    one classroom, optionally to a whole group.
    """
    school_cycle = models.ForeignKey(
        'core.SchoolCycle', on_delete=models.PROTECT, related_name='classes'
    )
    subject = models.ForeignKey(Subject, on_delete=models.PROTECT, related_name='classes')
    classroom = models.ForeignKey(Classroom, on_delete=models.PROTECT, related_name='classes')
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='taught_classes',
        limit_choices_to={'is_teacher': True},
    )
    group = models.ForeignKey(
        Group, on_delete=models.SET_NULL, null=True, blank=True, related_name='classes'
    )
    name = models.CharField(max_length=100)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        indexes = [
            models.Index(fields=['school_cycle', 'status'], name='class_cycle_status_idx'),
            models.Index(fields=['teacher'], name='class_teacher_idx'),
        ]

    def __str__(self):
        return self.name


class Term(models.Model):
    """
    An evaluation period of a class (e.g. "Bimestre 1"). Sub-periods point to
    the annual term through ``parent``.
    """
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')
        CLOSED = 'closed', _('Closed')

    class_catalog = models.ForeignKey(ClassCatalog, on_delete=models.CASCADE, related_name='terms')
    parent = models.ForeignKey(
        'self', on_delete=models.CASCADE, null=True, blank=True, related_name='children'
    )
    name = models.CharField(max_length=50)
    key = models.CharField(max_length=20, help_text="Short code, e.g. B1")
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['start_date']

    def __str__(self):
        return f"{self.name} ({self.class_catalog})"

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError({'end_date': "End date must be after start date."})

    @property
    def is_closed(self):
        return self.status == self.Status.CLOSED


class ClassSchedule(models.Model):
    class_catalog = models.ForeignKey(ClassCatalog, on_delete=models.CASCADE, related_name='class_schedules')
    schedule = models.ForeignKey(Schedule, on_delete=models.CASCADE, related_name='class_schedules')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        unique_together = ['class_catalog', 'schedule']

    def __str__(self):
        return f"{self.class_catalog} - {self.schedule}"


class StudentClass(models.Model):
    """Enrollment of a student in a class."""
    class_catalog = models.ForeignKey(ClassCatalog, on_delete=models.CASCADE, related_name='enrollments')
    student = models.ForeignKey('students.Student', on_delete=models.CASCADE, related_name='enrollments')
    enrollment_date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    class Meta:
        ordering = ['student__last_name', 'student__name']
        unique_together = ['class_catalog', 'student']
        verbose_name = "Student Class"
        verbose_name_plural = "Student Classes"

    def __str__(self):
        return f"{self.student} - {self.class_catalog}"

    def validate_unique(self, exclude=None):
        duplicate = StudentClass.objects.filter(
            class_catalog_id=self.class_catalog_id, student_id=self.student_id
        ).exclude(pk=self.pk)
        if duplicate.exists():
            raise ValidationError("Student already enrolled in this class.")
        super().validate_unique(exclude=exclude)


class Attendance(models.Model):
    class State(models.TextChoices):
        PRESENT = 'present', _('Present')
        ABSENT = 'absent', _('Absent')
        JUSTIFIED = 'justified', _('Justified')
        UNJUSTIFIED = 'unjustified', _('Unjustified')

    student_class = models.ForeignKey(StudentClass, on_delete=models.CASCADE, related_name='attendance')
    date = models.DateField()
    state = models.CharField(max_length=12, choices=State.choices, default=State.PRESENT)
    comments = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date']
        unique_together = ['student_class', 'date']
        verbose_name_plural = "Attendance"

    def __str__(self):
        return f"{self.student_class.student} - {self.date}: {self.get_state_display()}"

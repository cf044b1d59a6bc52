from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from django.utils.translation import gettext_lazy as _


class SchoolCycle(models.Model):
    """
    A school year (e.g. 2024-2025). Classes, students and billing configs
    all hang off a cycle; only one cycle is active at a time.
    """
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        ARCHIVED = 'archived', _('Archived')
        INACTIVE = 'inactive', _('Inactive')

    name = models.CharField(max_length=50, unique=True, help_text="e.g., 2024-2025")
    start_date = models.DateField()
    end_date = models.DateField()
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.INACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-start_date']
        verbose_name = "School Cycle"
        verbose_name_plural = "School Cycles"

    def __str__(self):
        return self.name

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError({'end_date': "End date must be after start date."})

    def save(self, *args, **kwargs):
        # Ensure only one cycle is active
        if self.status == self.Status.ACTIVE:
            SchoolCycle.objects.filter(status=self.Status.ACTIVE).exclude(pk=self.pk).update(
                status=self.Status.INACTIVE
            )
        super().save(*args, **kwargs)

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE

    @classmethod
    def get_active(cls):
        """Get the active school cycle."""
        return cls.objects.filter(status=cls.Status.ACTIVE).first()


class EventType(models.Model):
    """Kind of calendar event (holiday, exam week, parents meeting...)."""
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')

    name = models.CharField(max_length=100)
    key = models.SlugField(max_length=50, unique=True, help_text="e.g., holiday")
    description = models.TextField(blank=True)
    color = models.CharField(
        max_length=7,
        blank=True,
        validators=[RegexValidator(r'^#[0-9A-Fa-f]{6}$', "Enter a hex color such as #4F46E5.")],
    )
    icon = models.CharField(max_length=50, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE


class CalendarEvent(models.Model):
    """A dated event on the calendar of a school cycle."""
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')

    school_cycle = models.ForeignKey(SchoolCycle, on_delete=models.PROTECT, related_name='calendar_events')
    date = models.DateField()
    event_type = models.ForeignKey(EventType, on_delete=models.PROTECT, related_name='events')
    description = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date']
        indexes = [
            models.Index(fields=['school_cycle', 'date'], name='calendar_cycle_date_idx'),
        ]

    def __str__(self):
        return f"{self.event_type} ({self.date})"

    def clean(self):
        cycle = self.school_cycle if self.school_cycle_id else None
        if cycle and self.date and not (cycle.start_date <= self.date <= cycle.end_date):
            raise ValidationError({'date': "The date must fall within the school cycle."})

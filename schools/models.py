from django.db import models
from django.utils.translation import gettext_lazy as _
from django_tenants.models import TenantMixin, DomainMixin


class School(TenantMixin):
    """
    A school tenant. Each school lives in its own PostgreSQL schema and is
    reached through its own subdomain.
    """
    class Status(models.TextChoices):
        ACTIVE = 'active', _('Active')
        INACTIVE = 'inactive', _('Inactive')

    # Basic Info
    name = models.CharField(max_length=100)
    short_name = models.CharField(max_length=20, blank=True, help_text="Short name for sidebar display")
    subdomain = models.SlugField(max_length=63, unique=True, help_text="e.g. 'colegio-norte' for colegio-norte.example.com")
    cct_code = models.CharField(max_length=20, unique=True, verbose_name="CCT Code", help_text="Official school work-centre code")
    description = models.TextField(blank=True)
    img_url = models.URLField(blank=True)

    # Contact & Address
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=20, blank=True)
    address = models.TextField(blank=True)

    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)

    # Metadata
    created_on = models.DateField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    auto_create_schema = True

    def __str__(self):
        return self.name

    @property
    def display_name(self):
        """Return short_name if available, otherwise name."""
        return self.short_name or self.name

    @property
    def is_active(self):
        return self.status == self.Status.ACTIVE


class Domain(DomainMixin):
    pass

import re
from django import forms
from django.contrib import admin
from django.core.exceptions import ValidationError
from django_tenants.utils import schema_context, get_public_schema_name

from .models import School, Domain


class SchoolForm(forms.ModelForm):
    class Meta:
        model = School
        fields = '__all__'

    def clean_schema_name(self):
        """
        Schema names must be lowercase, alphanumeric, or underscore. No hyphens.
        """
        schema_name = (self.cleaned_data.get('schema_name') or '').lower()
        if not re.match(r'^[a-z0-9_]+$', schema_name):
            raise ValidationError(
                "Invalid format. Use only lowercase letters, numbers, and underscores."
            )
        if schema_name in ['public', 'www', 'admin', 'postgres']:
            raise ValidationError(f"The name '{schema_name}' is reserved.")
        return schema_name


class DomainInline(admin.TabularInline):
    model = Domain
    extra = 0
    min_num = 1
    fields = ('domain', 'is_primary')
    verbose_name = "School Domain"


@admin.register(School)
class SchoolAdmin(admin.ModelAdmin):
    form = SchoolForm
    inlines = [DomainInline]

    list_display = ('name', 'subdomain', 'cct_code', 'status', 'created_on')
    list_filter = ('status',)
    search_fields = ('name', 'subdomain', 'cct_code')
    readonly_fields = ('created_on',)

    def save_model(self, request, obj, form, change):
        # Schools always live in the public schema
        with schema_context(get_public_schema_name()):
            super().save_model(request, obj, form, change)

    def delete_model(self, request, obj):
        with schema_context(get_public_schema_name()):
            super().delete_model(request, obj)

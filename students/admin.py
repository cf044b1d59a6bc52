from django.contrib import admin

from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('enrollment', 'name', 'last_name', 'group', 'school_cycle', 'status', 'has_scholarship')
    list_filter = ('status', 'has_scholarship', 'school_cycle', 'group')
    search_fields = ('enrollment', 'name', 'last_name')

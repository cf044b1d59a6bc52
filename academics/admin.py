from django.contrib import admin

from .models import (
    Subject, Classroom, Group, Schedule, ClassCatalog, Term, ClassSchedule, StudentClass, Attendance
)


class ClassScheduleInline(admin.TabularInline):
    model = ClassSchedule
    extra = 0


@admin.register(ClassCatalog)
class ClassCatalogAdmin(admin.ModelAdmin):
    list_display = ('name', 'subject', 'teacher', 'classroom', 'group', 'school_cycle', 'status')
    list_filter = ('status', 'school_cycle')
    search_fields = ('name',)
    inlines = [ClassScheduleInline]


@admin.register(Term)
class TermAdmin(admin.ModelAdmin):
    list_display = ('name', 'key', 'class_catalog', 'parent', 'start_date', 'end_date', 'status')
    list_filter = ('status',)


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ('student_class', 'date', 'state')
    list_filter = ('state', 'date')


admin.site.register([Subject, Classroom, Group, Schedule, StudentClass])

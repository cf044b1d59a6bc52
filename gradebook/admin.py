from django.contrib import admin

from .models import GradeRubric, Assignment, Grade, TermAverage


@admin.register(GradeRubric)
class GradeRubricAdmin(admin.ModelAdmin):
    list_display = ('name', 'class_catalog', 'term', 'weight', 'max_score', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('name',)


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ('name', 'class_catalog', 'term', 'grade_rubric', 'due_date', 'max_score')
    search_fields = ('name',)


@admin.register(Grade)
class GradeAdmin(admin.ModelAdmin):
    list_display = ('student_class', 'assignment', 'score', 'updated_at')
    raw_id_fields = ('student_class', 'assignment')


@admin.register(TermAverage)
class TermAverageAdmin(admin.ModelAdmin):
    list_display = ('student_class', 'term', 'average_score', 'updated_at')
    raw_id_fields = ('student_class',)

from django.urls import path
from .views import grades, rubrics, terms

app_name = 'gradebook'

urlpatterns = [
    # Rubrics & assignments
    path('classes/<int:class_id>/terms/<int:term_id>/rubrics/', rubrics.rubric_list, name='rubric_list'),
    path('classes/<int:class_id>/terms/<int:term_id>/rubrics/create/', rubrics.rubric_create, name='rubric_create'),
    path('rubrics/<int:pk>/edit/', rubrics.rubric_edit, name='rubric_edit'),
    path('rubrics/<int:pk>/delete/', rubrics.rubric_delete, name='rubric_delete'),
    path('classes/<int:class_id>/terms/<int:term_id>/assignments/', rubrics.assignment_list, name='assignment_list'),
    path('classes/<int:class_id>/terms/<int:term_id>/assignments/create/', rubrics.assignment_create, name='assignment_create'),
    path('assignments/<int:pk>/delete/', rubrics.assignment_delete, name='assignment_delete'),

    # Grades
    path('classes/<int:class_id>/terms/<int:term_id>/grades/', grades.grade_matrix, name='grade_matrix'),
    path('classes/<int:class_id>/grades/save/', grades.grade_save, name='grade_save'),

    # Terms & averages
    path('classes/<int:class_id>/terms/<int:term_id>/close/', terms.term_close, name='term_close'),
    path('classes/<int:class_id>/terms/<int:term_id>/reopen/', terms.term_reopen, name='term_reopen'),
    path('classes/<int:class_id>/terms/<int:term_id>/averages/', terms.term_averages, name='term_averages'),
    path('classes/<int:class_id>/terms/<int:term_id>/averages/save/', terms.term_average_save, name='term_average_save'),
    path('classes/<int:class_id>/terms/<int:term_id>/annual/<int:student_class_id>/',
         terms.student_annual_average, name='student_annual_average'),
    path('classes/<int:class_id>/annual/', terms.class_annual_averages, name='class_annual_averages'),
]

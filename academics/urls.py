from django.urls import path
from .views import attendance, catalog, classes

app_name = 'academics'

urlpatterns = [
    # Catalog
    path('subjects/', catalog.subject_list, name='subject_list'),
    path('subjects/create/', catalog.subject_create, name='subject_create'),
    path('subjects/<int:pk>/edit/', catalog.subject_edit, name='subject_edit'),
    path('classrooms/', catalog.classroom_list, name='classroom_list'),
    path('classrooms/create/', catalog.classroom_create, name='classroom_create'),
    path('classrooms/<int:pk>/edit/', catalog.classroom_edit, name='classroom_edit'),
    path('groups/', catalog.group_list, name='group_list'),
    path('groups/create/', catalog.group_create, name='group_create'),
    path('groups/<int:pk>/edit/', catalog.group_edit, name='group_edit'),
    path('schedules/', catalog.schedule_list, name='schedule_list'),
    path('schedules/create/', catalog.schedule_create, name='schedule_create'),
    path('schedules/<int:pk>/edit/', catalog.schedule_edit, name='schedule_edit'),

    # Classes
    path('classes/', classes.class_list, name='class_list'),
    path('classes/create/', classes.class_create, name='class_create'),
    path('classes/conflicts/', classes.class_schedule_conflicts, name='class_conflicts'),
    path('classes/<int:pk>/', classes.class_detail, name='class_detail'),
    path('classes/<int:pk>/edit/', classes.class_edit, name='class_edit'),
    path('classes/<int:pk>/deactivate/', classes.class_deactivate, name='class_deactivate'),
    path('classes/<int:pk>/conflicts/', classes.class_schedule_conflicts, name='class_edit_conflicts'),
    path('classes/<int:pk>/schedules/', classes.class_schedules_assign, name='class_schedules_assign'),

    # Terms
    path('classes/<int:pk>/terms/', classes.term_list, name='term_list'),
    path('classes/<int:pk>/terms/create/', classes.term_create, name='term_create'),
    path('terms/<int:term_pk>/edit/', classes.term_edit, name='term_edit'),

    # Enrollment
    path('classes/<int:pk>/students/', classes.class_students, name='class_students'),
    path('classes/<int:pk>/students/enroll/', classes.enroll, name='enroll_student'),
    path('classes/<int:pk>/students/<int:student_class_pk>/remove/', classes.unenroll, name='unenroll_student'),

    # Attendance
    path('classes/<int:pk>/attendance/', attendance.class_attendance, name='class_attendance'),
    path('classes/<int:pk>/attendance/record/', attendance.attendance_record, name='attendance_record'),
    path('classes/<int:pk>/attendance/summary/', attendance.class_attendance_summary, name='attendance_summary'),
]

import logging

from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_POST

from accounts.models import can_view_all
from core.decorators import admin_required, api_login_required
from core.utils import form_errors_response
from .forms import StudentForm
from .models import Student

logger = logging.getLogger(__name__)


def visible_students(user):
    """Students the user may see: everyone for view-all roles, else their own."""
    if can_view_all(user):
        return Student.objects.all()
    query = Q(pk__in=[])
    if user.is_teacher:
        query |= Q(enrollments__class_catalog__teacher=user)
    if user.is_tutor:
        query |= Q(tutor=user)
    return Student.objects.filter(query).distinct()


def serialize_student(student):
    return {
        'id': student.pk,
        'enrollment': student.enrollment,
        'name': student.name,
        'last_name': student.last_name,
        'full_name': student.full_name,
        'birth_date': student.birth_date.isoformat() if student.birth_date else None,
        'admission_date': student.admission_date.isoformat() if student.admission_date else None,
        'group': {'id': student.group_id, 'name': str(student.group), 'grade': student.group.grade},
        'school_cycle_id': student.school_cycle_id,
        'tutor_id': student.tutor_id,
        'status': student.status,
        'has_scholarship': student.has_scholarship,
        'credit': str(student.credit),
    }


@api_login_required
def index(request):
    students = visible_students(request.user).select_related('group')

    cycle_id = request.GET.get('cycle')
    group_id = request.GET.get('group')
    status = request.GET.get('status')
    search = request.GET.get('q', '').strip()

    if cycle_id:
        students = students.filter(school_cycle_id=cycle_id)
    if group_id:
        students = students.filter(group_id=group_id)
    if status:
        students = students.filter(status=status)
    if search:
        students = students.filter(
            Q(name__icontains=search) | Q(last_name__icontains=search) | Q(enrollment__icontains=search)
        )

    return JsonResponse({'students': [serialize_student(s) for s in students]})


@api_login_required
def student_detail(request, pk):
    student = get_object_or_404(visible_students(request.user).select_related('group'), pk=pk)
    return JsonResponse({'student': serialize_student(student)})


@admin_required
@require_POST
def student_create(request):
    form = StudentForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)
    student = form.save()
    logger.info(f"Student {student.enrollment} created by {request.user.email}")
    return JsonResponse({'success': True, 'student': serialize_student(student)}, status=201)


@admin_required
@require_POST
def student_edit(request, pk):
    student = get_object_or_404(Student, pk=pk)
    form = StudentForm(request.POST, instance=student)
    if not form.is_valid():
        return form_errors_response(form)
    student = form.save()
    return JsonResponse({'success': True, 'student': serialize_student(student)})


@admin_required
@require_POST
def student_deactivate(request, pk):
    student = get_object_or_404(Student, pk=pk)
    student.status = Student.Status.INACTIVE
    student.save(update_fields=['status', 'updated_at'])
    logger.info(f"Student {student.enrollment} deactivated by {request.user.email}")
    return JsonResponse({'success': True})

"""Attendance taking and attendance summaries."""
import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_POST

from core.decorators import api_login_required, teacher_or_admin_required
from core.utils import form_errors_response, json_error, parse_date
from ..forms import AttendanceForm
from ..models import Attendance, ClassCatalog, StudentClass
from ..utils import attendance_for_class, attendance_summary, record_attendance
from .base import can_manage_class, visible_classes

logger = logging.getLogger(__name__)


def serialize_attendance(attendance):
    if attendance is None:
        return None
    return {
        'id': attendance.pk,
        'date': attendance.date.isoformat(),
        'state': attendance.state,
        'comments': attendance.comments,
    }


@api_login_required
def class_attendance(request, pk):
    """Attendance sheet of a class for one date (defaults to today)."""
    class_catalog = get_object_or_404(visible_classes(request.user), pk=pk)
    target_date = parse_date(request.GET.get('date'), default=timezone.localdate())

    rows = attendance_for_class(class_catalog, target_date)
    taken = [row['attendance'] for row in rows if row['attendance'] is not None]

    return JsonResponse({
        'date': target_date.isoformat(),
        'rows': [
            {
                'student_class_id': row['student_class'].pk,
                'student_id': row['student'].pk,
                'full_name': row['student'].full_name,
                'attendance': serialize_attendance(row['attendance']),
            }
            for row in rows
        ],
        'summary': attendance_summary(taken),
    })


@teacher_or_admin_required
@require_POST
def attendance_record(request, pk):
    class_catalog = get_object_or_404(ClassCatalog, pk=pk)
    if not can_manage_class(request.user, class_catalog):
        return json_error('You are not assigned to this class.', status=403)

    form = AttendanceForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)

    student_class = get_object_or_404(
        StudentClass, pk=form.cleaned_data['student_class'], class_catalog=class_catalog
    )
    attendance, created = record_attendance(
        student_class,
        form.cleaned_data['date'],
        form.cleaned_data['state'],
        form.cleaned_data['comments'],
        request.user,
    )
    return JsonResponse(
        {'success': True, 'attendance': serialize_attendance(attendance)},
        status=201 if created else 200,
    )


@api_login_required
def class_attendance_summary(request, pk):
    """Per-student attendance summary of a class over a date range."""
    class_catalog = get_object_or_404(visible_classes(request.user), pk=pk)
    start_date = parse_date(request.GET.get('start'))
    end_date = parse_date(request.GET.get('end'))

    records = Attendance.objects.filter(student_class__class_catalog=class_catalog)
    if start_date:
        records = records.filter(date__gte=start_date)
    if end_date:
        records = records.filter(date__lte=end_date)

    by_student = {}
    for record in records.select_related('student_class__student'):
        by_student.setdefault(record.student_class, []).append(record)

    return JsonResponse({
        'summary': attendance_summary(records),
        'students': [
            {
                'student_class_id': sc.pk,
                'full_name': sc.student.full_name,
                **attendance_summary(student_records),
            }
            for sc, student_records in by_student.items()
        ],
    })

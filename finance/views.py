"""
Finance API: billing rules, billing configs, billings and payments.
"""
import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_POST

from accounts.models import can_view_all
from core.decorators import admin_required, api_login_required, view_all_required
from core.models import SchoolCycle
from core.utils import form_errors_response, json_error, parse_date, validation_error_response
from students.models import Student
from .forms import BillingConfigForm, BillingRuleForm, BillingStatusForm, PaymentForm
from .models import Billing, BillingConfig, BillingRule
from .services import (
    apply_billing_policies, apply_config_policies, generate_billings, mark_overdue,
    payment_stats, payments_page, process_payment, serialize_billing, sync_billing_amounts,
)
from .utils import ZERO

logger = logging.getLogger(__name__)


def serialize_rule(rule):
    return {
        'id': rule.pk,
        'name': rule.name,
        'description': rule.description,
        'type': rule.type,
        'scope': rule.scope,
        'status': rule.status,
        'fee_type': rule.fee_type or None,
        'fee_value': str(rule.fee_value) if rule.fee_value is not None else None,
        'start_day': rule.start_day,
        'end_day': rule.end_day,
        'max_uses': rule.max_uses,
        'used_count': rule.used_count,
        'cutoff_after_days': rule.cutoff_after_days,
    }


def serialize_config(billing_config):
    return {
        'id': billing_config.pk,
        'school_cycle_id': billing_config.school_cycle_id,
        'scope': billing_config.scope,
        'target_groups': [g.pk for g in billing_config.target_groups.all()],
        'target_grades': billing_config.target_grades,
        'target_students': [s.pk for s in billing_config.target_students.all()],
        'recurrence': billing_config.recurrence,
        'type': billing_config.type,
        'amount': str(billing_config.amount),
        'rules': [r.pk for r in billing_config.rules.all()],
        'start_date': billing_config.start_date.isoformat(),
        'end_date': billing_config.end_date.isoformat() if billing_config.end_date else None,
        'status': billing_config.status,
    }


def _affected(billings):
    return [
        {
            'student_id': b.student_id,
            'full_name': b.student.full_name,
            'enrollment': b.student.enrollment,
            'group': str(b.student.group),
            'billing_id': b.pk,
        }
        for b in billings
    ]


# =============================================================================
# BILLING RULES
# =============================================================================

@view_all_required
def rule_list(request):
    rules = BillingRule.objects.all()
    return JsonResponse({'rules': [serialize_rule(r) for r in rules]})


@admin_required
@require_POST
def rule_create(request):
    form = BillingRuleForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)
    rule = form.save(commit=False)
    rule.created_by = request.user
    rule.updated_by = request.user
    rule.save()
    logger.info(f"Billing rule {rule.name} created by {request.user.email}")
    return JsonResponse({'success': True, 'rule': serialize_rule(rule)}, status=201)


@admin_required
@require_POST
def rule_edit(request, pk):
    rule = get_object_or_404(BillingRule, pk=pk)
    form = BillingRuleForm(request.POST, instance=rule)
    if not form.is_valid():
        return form_errors_response(form)
    rule = form.save(commit=False)
    rule.updated_by = request.user
    rule.save()
    return JsonResponse({'success': True, 'rule': serialize_rule(rule)})


@admin_required
@require_POST
def rule_delete(request, pk):
    rule = get_object_or_404(BillingRule, pk=pk)
    name = rule.name
    rule.delete()
    logger.info(f"Billing rule {name} deleted by {request.user.email}")
    return JsonResponse({'success': True})


# =============================================================================
# BILLING CONFIGS
# =============================================================================

@view_all_required
def config_list(request):
    """Configs of a cycle (the active one by default), inactive ones hidden unless asked for."""
    configs = BillingConfig.objects.prefetch_related('target_groups', 'target_students', 'rules')
    cycle_id = request.GET.get('cycle')
    if cycle_id:
        configs = configs.filter(school_cycle_id=cycle_id)
    else:
        active = SchoolCycle.get_active()
        configs = configs.filter(school_cycle=active) if active else configs.none()
    if request.GET.get('all') != '1':
        configs = configs.exclude(status=BillingConfig.Status.INACTIVE)
    return JsonResponse({'configs': [serialize_config(c) for c in configs]})


@view_all_required
def config_detail(request, pk):
    billing_config = get_object_or_404(BillingConfig, pk=pk)
    stats = payment_stats(billing_config)
    stats['total_amount'] = str(stats['total_amount'])
    stats['collected_amount'] = str(stats['collected_amount'])
    return JsonResponse({'config': serialize_config(billing_config), 'stats': stats})


@admin_required
@require_POST
def config_create(request):
    """Create a config, generate its billings and apply its rules right away."""
    form = BillingConfigForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)

    with transaction.atomic():
        billing_config = form.save(commit=False)
        billing_config.created_by = request.user
        billing_config.updated_by = request.user
        billing_config.save()
        form.save_m2m()
        created = generate_billings(billing_config)
        apply_config_policies(billing_config, timezone.localdate())

    billings = Billing.objects.filter(pk__in=[b.pk for b in created]).select_related('student__group')
    return JsonResponse({
        'success': True,
        'message': f"{len(created)} billings generated",
        'config': serialize_config(billing_config),
        'affected_students': _affected(billings),
    }, status=201)


@admin_required
@require_POST
def config_edit(request, pk):
    """Save a config, bill newly targeted students and re-price unpaid billings."""
    billing_config = get_object_or_404(BillingConfig, pk=pk)
    form = BillingConfigForm(request.POST, instance=billing_config)
    if not form.is_valid():
        return form_errors_response(form)

    with transaction.atomic():
        billing_config = form.save(commit=False)
        billing_config.updated_by = request.user
        billing_config.save()
        form.save_m2m()
        created = generate_billings(billing_config)
        updated = sync_billing_amounts(billing_config) if billing_config.is_active else 0

    return JsonResponse({
        'success': True,
        'message': f"{len(created)} billings generated, {updated} updated",
        'config': serialize_config(billing_config),
    })


@admin_required
@require_POST
def config_delete(request, pk):
    """Soft delete: the config becomes inactive and keeps its billings."""
    billing_config = get_object_or_404(BillingConfig, pk=pk)
    billing_config.status = BillingConfig.Status.INACTIVE
    billing_config.updated_by = request.user
    billing_config.save(update_fields=['status', 'updated_by', 'updated_at'])
    logger.info(f"Billing config {billing_config.pk} deactivated by {request.user.email}")
    return JsonResponse({'success': True})


@view_all_required
def config_billings(request, pk):
    billing_config = get_object_or_404(BillingConfig, pk=pk)
    today = timezone.localdate()
    billings = billing_config.billings.select_related('student__group', 'billing_config')
    status = request.GET.get('status')
    if status:
        billings = billings.filter(status=status)
    return JsonResponse({
        'billings': [
            {**serialize_billing(b, today), 'student': {
                'id': b.student_id, 'full_name': b.student.full_name, 'enrollment': b.student.enrollment,
            }}
            for b in billings
        ],
    })


@admin_required
@require_POST
def config_mark_overdue(request, pk):
    billing_config = get_object_or_404(BillingConfig, pk=pk)
    updated = mark_overdue(billing_config)
    return JsonResponse({'success': True, 'updated': updated})


@admin_required
@require_POST
def run_policies(request):
    """Run the billing policies now instead of waiting for the daily task."""
    today = parse_date(request.POST.get('date'), timezone.localdate())
    result = apply_billing_policies(today)
    return JsonResponse({'success': True, **result})


# =============================================================================
# BILLINGS & PAYMENTS
# =============================================================================

@view_all_required
def payments_dashboard(request):
    school_cycle = None
    cycle_id = request.GET.get('cycle')
    if cycle_id:
        school_cycle = get_object_or_404(SchoolCycle, pk=cycle_id)
    return JsonResponse(payments_page(school_cycle))


@api_login_required
def student_billings(request, student_id):
    """Billings of one student; tutors only see their own students."""
    student = get_object_or_404(Student, pk=student_id)
    if not (can_view_all(request.user) or student.tutor_id == request.user.pk):
        return json_error("You don't have permission to view these records.", status=403)

    today = timezone.localdate()
    billings = student.billings.select_related('billing_config').exclude(
        billing_config__status=BillingConfig.Status.INACTIVE
    )
    return JsonResponse({
        'student': {'id': student.pk, 'full_name': student.full_name, 'credit': str(student.credit)},
        'billings': [serialize_billing(b, today) for b in billings],
    })


@admin_required
@require_POST
def payment_create(request):
    form = PaymentForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)

    billing = get_object_or_404(Billing.objects.select_related('student'), pk=form.cleaned_data['billing'])
    try:
        result = process_payment(
            billing, billing.student, form.cleaned_data['method'],
            form.cleaned_data['amount'], request.user,
        )
    except ValidationError as e:
        return validation_error_response(e)

    return JsonResponse({
        'success': True,
        'payment_id': result['payment'].pk,
        'billing': {
            'id': result['billing'].pk,
            'previous_status': result['previous_status'],
            'status': result['billing'].status,
            'previous_remaining': str(result['previous_remaining']),
            'remaining': str(result['remaining']),
            'overpayment': str(result['overpayment']),
        },
        'student': {
            'previous_credit': str(result['previous_credit']),
            'credit': str(result['credit']),
        },
    }, status=201)


@admin_required
@require_POST
def billing_status(request, pk):
    billing = get_object_or_404(Billing, pk=pk)
    form = BillingStatusForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)

    billing.status = form.cleaned_data['status']
    if billing.status == Billing.Status.PAID:
        billing.paid_at = billing.paid_at or timezone.now()
        billing.total_amount = ZERO
    else:
        billing.paid_at = None
    billing.save(update_fields=['status', 'paid_at', 'total_amount', 'updated_at'])
    logger.warning(f"Billing {billing.pk} manually set to {billing.status} by {request.user.email}")
    return JsonResponse({'success': True, 'status': billing.status})

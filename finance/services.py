"""
Billing generation, the daily policy run and payment processing.
"""
import logging
from collections import defaultdict

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, F, Q, Sum
from django.utils import timezone

from core.models import SchoolCycle
from students.models import Student
from .models import Billing, BillingConfig, BillingRule, Payment
from .utils import ZERO, apply_rules, days_late, due_date_for, money, student_payment_status

logger = logging.getLogger(__name__)


def students_in_scope(billing_config):
    """Active students of the config's cycle targeted by its scope."""
    students = Student.objects.filter(
        school_cycle=billing_config.school_cycle, status=Student.Status.ACTIVE
    ).select_related('group')

    scope = billing_config.scope
    if scope == BillingConfig.Scope.SPECIFIC_GROUPS:
        return students.filter(group__in=billing_config.target_groups.all())
    if scope == BillingConfig.Scope.SPECIFIC_GRADES:
        return students.filter(group__grade__in=billing_config.target_grades or [])
    if scope == BillingConfig.Scope.SPECIFIC_STUDENTS:
        return students.filter(pk__in=billing_config.target_students.all())
    return students


def generate_billings(billing_config):
    """
    Create the missing billings of a config, one per in-scope student.
    Inactive configs generate nothing.

    Returns:
        list of the created Billing
    """
    if not billing_config.is_active:
        logger.info(f"Billing config {billing_config.pk} is inactive, no billings generated")
        return []

    existing = set(billing_config.billings.values_list('student_id', flat=True))
    new_billings = [
        Billing(
            student=student,
            billing_config=billing_config,
            amount=billing_config.amount,
            total_amount=billing_config.amount,
        )
        for student in students_in_scope(billing_config)
        if student.pk not in existing
    ]
    created = Billing.objects.bulk_create(new_billings)
    logger.info(f"Generated {len(created)} billings for config {billing_config.pk}")
    return created


def paid_amounts(billings):
    """{billing_id: sum of its payments}"""
    rows = (
        Payment.objects.filter(billing__in=billings)
        .values('billing_id')
        .annotate(total=Sum('amount'))
    )
    return {row['billing_id']: row['total'] for row in rows}


def sync_billing_amounts(billing_config, today=None):
    """
    Re-price the unpaid billings of a config after an edit.

    The new amount is copied to every unpaid billing and the config's rules
    run again, so percentage discounts and fees follow the new amount.

    Returns:
        int: number of billings whose amount changed
    """
    today = today or timezone.localdate()
    with transaction.atomic():
        updated = (
            billing_config.billings.exclude(status=Billing.Status.PAID)
            .exclude(amount=billing_config.amount)
            .update(amount=billing_config.amount, updated_at=timezone.now())
        )
        apply_config_policies(billing_config, today)
    logger.info(f"Re-priced {updated} billings of config {billing_config.pk}")
    return updated


def apply_config_policies(billing_config, today):
    """
    Apply the rules of one config to its unpaid billings.

    Returns:
        int: number of billings whose values changed
    """
    rules = list(billing_config.rules.filter(status=BillingRule.Status.ACTIVE).order_by('pk'))
    billings = list(
        billing_config.billings.exclude(status=Billing.Status.PAID)
        .select_related('student', 'late_fee_rule', 'billing_config')
    )
    paid = paid_amounts(billings)
    rules_by_pk = {rule.pk: rule for rule in rules}
    fields = ['status', 'total_discount', 'applied_discounts', 'late_fee', 'late_fee_rule', 'total_amount']
    now = timezone.now()

    changed = []
    for billing in billings:
        result = apply_rules(billing, rules, today, paid.get(billing.pk, ZERO))
        for rule_pk in result.pop('new_rule_ids'):
            rule = rules_by_pk[rule_pk]
            rule.used_count += 1
            BillingRule.objects.filter(pk=rule_pk).update(used_count=F('used_count') + 1)

        if all(getattr(billing, field) == result[field] for field in fields):
            continue
        for field in fields:
            setattr(billing, field, result[field])
        billing.updated_at = now
        if billing.status == Billing.Status.PAID and billing.paid_at is None:
            billing.paid_at = now
        changed.append(billing)

    Billing.objects.bulk_update(changed, fields + ['paid_at', 'updated_at'])
    return len(changed)


def apply_billing_policies(today=None):
    """
    Apply the rules of every active config of the current school to its
    unpaid billings. Run daily by ``finance.tasks.apply_billing_policies_task``.

    Returns:
        dict with the number of configs processed and billings updated
    """
    today = today or timezone.localdate()
    configs = BillingConfig.objects.exclude(status=BillingConfig.Status.INACTIVE)

    updated = 0
    processed = 0
    with transaction.atomic():
        for billing_config in configs:
            updated += apply_config_policies(billing_config, today)
            processed += 1

    logger.info(f"Billing policies for {today}: {processed} configs, {updated} billings updated")
    return {'configs': processed, 'updated': updated}


def process_payment(billing, student, method, amount, user=None):
    """
    Record a payment against a billing.

    The remaining amount goes down by the payment. A billing fully covered
    is marked paid and any excess is added to the student's credit; anything
    less leaves it partial.

    Returns:
        dict summarising the payment, the billing and the student credit
    """
    amount = money(amount)
    if amount <= 0:
        raise ValidationError({'amount': "Payment amount must be greater than zero."})
    if billing.student_id != student.pk:
        raise ValidationError("The billing does not belong to this student.")

    with transaction.atomic():
        billing = Billing.objects.select_for_update().get(pk=billing.pk)
        student = Student.objects.select_for_update().get(pk=student.pk)
        if billing.is_paid:
            raise ValidationError("This billing is already paid.")

        payment = Payment.objects.create(
            billing=billing, student=student, method=method, amount=amount, created_by=user
        )

        previous_status = billing.status
        previous_remaining = billing.total_amount
        remaining = previous_remaining - amount
        overpayment = ZERO

        if remaining <= 0:
            billing.status = Billing.Status.PAID
            billing.paid_at = timezone.now()
            overpayment = -remaining
            billing.total_amount = ZERO
        else:
            billing.status = Billing.Status.PARTIAL
            billing.total_amount = remaining
        billing.save(update_fields=['status', 'paid_at', 'total_amount', 'updated_at'])

        previous_credit = student.credit
        if overpayment:
            student.credit = previous_credit + overpayment
            student.save(update_fields=['credit', 'updated_at'])

    logger.info(
        f"Payment {payment.pk} of {amount} on billing {billing.pk} by {student.enrollment}: "
        f"{previous_status} -> {billing.status}"
    )
    return {
        'payment': payment,
        'billing': billing,
        'previous_status': previous_status,
        'previous_remaining': previous_remaining,
        'remaining': billing.total_amount,
        'overpayment': overpayment,
        'previous_credit': previous_credit,
        'credit': student.credit,
    }


def mark_overdue(billing_config, now=None):
    """
    Mark the pending billings of a config overdue once its end date passed.

    Returns:
        int: number of billings marked
    """
    today = timezone.localdate(now) if now else timezone.localdate()
    if not billing_config.end_date or today <= billing_config.end_date:
        return 0
    updated = billing_config.billings.filter(status=Billing.Status.PENDING).update(
        status=Billing.Status.OVERDUE, updated_at=timezone.now()
    )
    logger.info(f"Marked {updated} billings of config {billing_config.pk} overdue")
    return updated


def payment_stats(billing_config):
    """Counts per status, billed total and collected total of a config."""
    stats = billing_config.billings.aggregate(
        total=Count('pk'),
        pending=Count('pk', filter=Q(status=Billing.Status.PENDING)),
        paid=Count('pk', filter=Q(status=Billing.Status.PAID)),
        overdue=Count('pk', filter=Q(status=Billing.Status.OVERDUE)),
        partial=Count('pk', filter=Q(status=Billing.Status.PARTIAL)),
        late=Count('pk', filter=Q(status=Billing.Status.LATE)),
        total_amount=Sum('amount'),
        collected_amount=Sum('amount', filter=Q(status=Billing.Status.PAID)),
    )
    stats['total_amount'] = stats['total_amount'] or ZERO
    stats['collected_amount'] = stats['collected_amount'] or ZERO
    return stats


def serialize_billing(billing, today):
    due = due_date_for(billing)
    billing_config = billing.billing_config
    return {
        'id': billing.pk,
        'type': billing_config.type,
        'type_display': billing_config.get_type_display(),
        'config_status': billing_config.status,
        'status': billing.status,
        'amount': str(billing.amount),
        'total_amount': str(billing.total_amount),
        'paid_amount': str(max(ZERO, billing.amount - billing.total_discount + billing.late_fee
                               - billing.total_amount)),
        'total_discount': str(billing.total_discount),
        'late_fee': str(billing.late_fee),
        'late_fee_rule_id': billing.late_fee_rule_id,
        'applied_discounts': billing.applied_discounts,
        'start_date': billing_config.start_date.isoformat(),
        'end_date': billing_config.end_date.isoformat() if billing_config.end_date else None,
        'due_date': due.isoformat(),
        'days_late': 0 if billing.is_paid else days_late(due, today),
        'paid_at': billing.paid_at.isoformat() if billing.paid_at else None,
    }


def payments_page(school_cycle=None, today=None):
    """
    One summary row per active student of a cycle (the active one by
    default) for the payments dashboard.
    """
    today = today or timezone.localdate()
    school_cycle = school_cycle or SchoolCycle.get_active()
    if school_cycle is None:
        return {'students': [], 'school_cycle': None}

    students = list(
        Student.objects.filter(school_cycle=school_cycle, status=Student.Status.ACTIVE)
        .select_related('group', 'tutor')
    )
    billings_by_student = defaultdict(list)
    for billing in (
        Billing.objects.filter(student__in=students)
        .select_related('billing_config')
    ):
        billings_by_student[billing.student_id].append(billing)

    rows = []
    for student in students:
        billings = billings_by_student.get(student.pk, [])
        standing, worst = student_payment_status(billings, today)
        unpaid = [b for b in billings if not b.is_paid]
        rows.append({
            'id': student.pk,
            'full_name': student.full_name,
            'grade': student.group.grade,
            'group': student.group.name,
            'enrollment': student.enrollment,
            'tutor': student.tutor.full_name if student.tutor else None,
            'tutor_id': student.tutor_id,
            'pending_amount': str(sum((b.total_amount for b in unpaid), ZERO)),
            'days_late': worst,
            'status': standing,
            'credit': str(student.credit),
            'billings': [serialize_billing(b, today) for b in billings],
        })

    return {
        'students': rows,
        'school_cycle': {
            'id': school_cycle.pk,
            'name': school_cycle.name,
            'start_date': school_cycle.start_date.isoformat(),
            'end_date': school_cycle.end_date.isoformat(),
            'is_active': school_cycle.is_active,
        },
    }

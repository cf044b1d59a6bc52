"""
Billing calculations for the finance app.

Everything here works on model instances and never writes to the
database, so the daily policy run and the views share the same arithmetic.
"""
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.utils import timezone

from . import config
from .models import Billing, BillingRule

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')

# Student payment standing
STANDING_CURRENT = 'current'
STANDING_LATE = 'late'
STANDING_DELINQUENT = 'delinquent'


def money(value):
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def due_date_for(billing):
    """
    Date a billing is due: the config's end date, otherwise its start date
    plus the default term, otherwise the billing's creation plus the same.
    """
    billing_config = billing.billing_config
    due_days = timedelta(days=config.DEFAULT_DUE_DAYS)
    if billing_config.end_date:
        return billing_config.end_date
    if billing_config.start_date:
        return billing_config.start_date + due_days
    created = timezone.localdate(billing.created_at) if billing.created_at else timezone.localdate()
    return created + due_days


def days_late(due, today):
    return max(0, (today - due).days)


def in_day_window(rule, day):
    """
    Whether a day of the month falls in the rule's window. Both ends are
    inclusive; a window whose start is after its end wraps over the month
    end (25..5 covers the 25th through the 5th).
    """
    if not rule.start_day or not rule.end_day:
        return False
    if rule.start_day <= rule.end_day:
        return rule.start_day <= day <= rule.end_day
    return day >= rule.start_day or day <= rule.end_day


def rule_applies_to_student(rule, student):
    if rule.scope == BillingRule.Scope.ALL_STUDENTS:
        return True
    if rule.scope == BillingRule.Scope.SCHOLARSHIP:
        return student.has_scholarship
    return not student.has_scholarship


def rule_amount(rule, base):
    """Value of a discount or fee over ``base``."""
    if rule.fee_type == BillingRule.FeeType.PERCENTAGE:
        return money(base * rule.fee_value / 100)
    return money(rule.fee_value or 0)


def apply_rules(billing, rules, today, paid=ZERO):
    """
    Re-price one billing under the rules of its config.

    Early discounts count while the billing is not past due: those already
    granted are kept and new ones are granted inside their day window while
    the rule has uses left. Stacked discounts never exceed the amount, and
    all of them are dropped once the billing is past due and unpaid. A past
    due billing gets at most one late fee, from the first rule whose window
    contains today; once chosen the rule sticks and its fee follows the
    billing amount. Granted discounts are likewise recomputed on the current
    amount. Cutoff rules mark the billing
    overdue when it is later than their days.

    Args:
        billing: the Billing, with ``billing_config`` and ``student`` loaded
        rules: BillingRule instances of the config, in priority order
        today: the date the policies run for
        paid: sum of the payments already made on the billing

    Returns:
        dict of the new billing values plus ``new_rule_ids``, the discounts
        granted by this run
    """
    paid = money(paid)
    if billing.status == Billing.Status.PAID:
        return {
            'status': billing.status,
            'total_discount': billing.total_discount,
            'applied_discounts': billing.applied_discounts,
            'late_fee': billing.late_fee,
            'late_fee_rule': billing.late_fee_rule,
            'total_amount': billing.total_amount,
            'new_rule_ids': [],
        }

    student = billing.student
    late = days_late(due_date_for(billing), today)
    past_due = late > 0
    applicable = [r for r in rules if r.is_active and rule_applies_to_student(r, student)]

    # Discounts
    granted = {d.get('rule_id') for d in billing.applied_discounts or []}
    discounts = []
    discount_total = ZERO
    new_rule_ids = []
    if not past_due:
        for rule in applicable:
            if rule.type != BillingRule.Type.EARLY_DISCOUNT:
                continue
            if rule.pk not in granted:
                if not (in_day_window(rule, today.day) and rule.has_uses_left):
                    continue
                new_rule_ids.append(rule.pk)
            discount = rule_amount(rule, billing.amount)
            discount_total += discount
            discounts.append({
                'rule_id': rule.pk,
                'name': rule.name,
                'type': 'discount',
                'percentage': (
                    str(rule.fee_value) if rule.fee_type == BillingRule.FeeType.PERCENTAGE else None
                ),
                'amount': str(discount),
            })
    total_discount = min(discount_total, billing.amount)

    # Late fee
    late_fee, late_fee_rule = ZERO, None
    if past_due:
        if billing.late_fee_rule_id:
            late_fee_rule = billing.late_fee_rule
            late_fee = rule_amount(late_fee_rule, billing.amount)
        else:
            for rule in applicable:
                if rule.type == BillingRule.Type.LATE_FEE and in_day_window(rule, today.day):
                    late_fee, late_fee_rule = rule_amount(rule, billing.amount), rule
                    break

    cutoff = any(
        rule.type == BillingRule.Type.CUTOFF and rule.cutoff_after_days
        and late > rule.cutoff_after_days
        for rule in applicable
    )

    remaining = max(ZERO, money(billing.amount - total_discount + late_fee - paid))
    if paid > 0 and remaining == 0:
        status = Billing.Status.PAID
    elif cutoff or billing.status == Billing.Status.OVERDUE:
        status = Billing.Status.OVERDUE
    elif paid > 0:
        status = Billing.Status.PARTIAL
    elif past_due:
        status = Billing.Status.LATE
    else:
        status = Billing.Status.PENDING

    return {
        'status': status,
        'total_discount': total_discount,
        'applied_discounts': discounts,
        'late_fee': late_fee,
        'late_fee_rule': late_fee_rule,
        'total_amount': remaining,
        'new_rule_ids': new_rule_ids,
    }


def student_payment_status(billings, today):
    """
    Standing of a student from their unpaid billings: current, late (up to
    the delinquency threshold) or delinquent.

    Returns:
        tuple (standing, worst days late)
    """
    unpaid = [b for b in billings if b.status != Billing.Status.PAID]
    if not unpaid:
        return STANDING_CURRENT, 0
    worst = max(days_late(due_date_for(b), today) for b in unpaid)
    if worst > config.DELINQUENT_AFTER_DAYS:
        return STANDING_DELINQUENT, worst
    if worst > 0:
        return STANDING_LATE, worst
    return STANDING_CURRENT, worst

"""
Tests for the finance app.

Focuses on:
- Billing rule application (discounts, late fees, cutoffs)
- Scoped billing generation and re-pricing
- Payment processing and student credit
- The daily policy task and finance API permissions
"""
from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal
from io import StringIO

from django.test import SimpleTestCase
from django.urls import reverse
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django_celery_beat.models import PeriodicTask
from django_tenants.test.cases import TenantTestCase
from django_tenants.test.client import TenantClient

from academics.models import Group
from core.models import SchoolCycle
from students.models import Student
from .models import Billing, BillingConfig, BillingRule, Payment
from .services import (
    students_in_scope, generate_billings, sync_billing_amounts, apply_billing_policies,
    process_payment, mark_overdue, payment_stats, payments_page,
)
from .tasks import apply_tenant_billing_policies
from .utils import (
    apply_rules, due_date_for, days_late, in_day_window, rule_applies_to_student,
    student_payment_status,
)

User = get_user_model()


def make_rule(pk, rule_type, **kwargs):
    defaults = {'name': f'Rule {pk}', 'scope': BillingRule.Scope.ALL_STUDENTS, 'status': 'active'}
    defaults.update(kwargs)
    return BillingRule(pk=pk, type=rule_type, **defaults)


class RuleHelperTests(SimpleTestCase):

    def test_day_window(self):
        rule = make_rule(1, 'early_discount', start_day=1, end_day=5)
        self.assertTrue(in_day_window(rule, 1))
        self.assertTrue(in_day_window(rule, 5))
        self.assertFalse(in_day_window(rule, 6))

    def test_day_window_wraps_month_end(self):
        rule = make_rule(1, 'late_fee', start_day=25, end_day=5)
        self.assertTrue(in_day_window(rule, 28))
        self.assertTrue(in_day_window(rule, 3))
        self.assertFalse(in_day_window(rule, 10))

    def test_scope(self):
        standard = Student(has_scholarship=False)
        scholar = Student(has_scholarship=True)
        rule = make_rule(1, 'early_discount', scope=BillingRule.Scope.SCHOLARSHIP)
        self.assertTrue(rule_applies_to_student(rule, scholar))
        self.assertFalse(rule_applies_to_student(rule, standard))
        rule.scope = BillingRule.Scope.STANDARD
        self.assertTrue(rule_applies_to_student(rule, standard))
        rule.scope = BillingRule.Scope.ALL_STUDENTS
        self.assertTrue(rule_applies_to_student(rule, scholar))

    def test_due_date_fallbacks(self):
        billing = Billing(billing_config=BillingConfig(start_date=date(2024, 9, 1), end_date=date(2024, 9, 10)))
        self.assertEqual(due_date_for(billing), date(2024, 9, 10))
        billing.billing_config.end_date = None
        self.assertEqual(due_date_for(billing), date(2024, 10, 1))

    def test_days_late(self):
        self.assertEqual(days_late(date(2024, 9, 10), date(2024, 9, 15)), 5)
        self.assertEqual(days_late(date(2024, 9, 10), date(2024, 9, 1)), 0)

    def test_rule_validation(self):
        with self.assertRaises(ValidationError):
            make_rule(1, 'cutoff').clean()
        with self.assertRaises(ValidationError):
            make_rule(1, 'late_fee', fee_type='fixed', fee_value=Decimal('10')).clean()
        with self.assertRaises(ValidationError):
            make_rule(
                1, 'early_discount', fee_type='percentage', fee_value=Decimal('150'), start_day=1, end_day=5
            ).clean()
        make_rule(1, 'cutoff', cutoff_after_days=15).clean()


class ApplyRulesTests(SimpleTestCase):
    """Rule application over unsaved instances. The billing is due on Sep 10."""

    def setUp(self):
        self.billing_config = BillingConfig(
            start_date=date(2024, 9, 1), end_date=date(2024, 9, 10), amount=Decimal('1000.00')
        )
        self.student = Student(name='Lucia', has_scholarship=False)
        self.billing = Billing(
            pk=1, billing_config=self.billing_config, student=self.student,
            amount=Decimal('1000.00'), total_amount=Decimal('1000.00'),
        )
        self.early = make_rule(
            1, 'early_discount', fee_type='percentage', fee_value=Decimal('10'), start_day=1, end_day=5
        )
        self.late = make_rule(2, 'late_fee', fee_type='fixed', fee_value=Decimal('150'), start_day=1, end_day=31)
        self.cutoff = make_rule(3, 'cutoff', cutoff_after_days=15)
        self.rules = [self.early, self.late, self.cutoff]

    def test_early_discount_inside_window(self):
        result = apply_rules(self.billing, self.rules, date(2024, 9, 3))
        self.assertEqual(result['total_discount'], Decimal('100.00'))
        self.assertEqual(result['total_amount'], Decimal('900.00'))
        self.assertEqual(result['status'], Billing.Status.PENDING)
        self.assertEqual(result['new_rule_ids'], [1])
        self.assertEqual(result['applied_discounts'][0]['amount'], '100.00')

    def test_no_discount_outside_window(self):
        result = apply_rules(self.billing, self.rules, date(2024, 9, 8))
        self.assertEqual(result['total_discount'], Decimal('0.00'))
        self.assertEqual(result['new_rule_ids'], [])

    def test_granted_discount_is_kept_until_due(self):
        self.billing.applied_discounts = [{'rule_id': 1, 'amount': '100.00'}]
        result = apply_rules(self.billing, self.rules, date(2024, 9, 8))
        self.assertEqual(result['total_discount'], Decimal('100.00'))
        self.assertEqual(result['new_rule_ids'], [])

    def test_past_due_drops_discounts_and_adds_late_fee(self):
        self.billing.applied_discounts = [{'rule_id': 1, 'amount': '100.00'}]
        result = apply_rules(self.billing, self.rules, date(2024, 9, 12))
        self.assertEqual(result['total_discount'], Decimal('0.00'))
        self.assertEqual(result['applied_discounts'], [])
        self.assertEqual(result['late_fee'], Decimal('150.00'))
        self.assertEqual(result['late_fee_rule'], self.late)
        self.assertEqual(result['total_amount'], Decimal('1150.00'))
        self.assertEqual(result['status'], Billing.Status.LATE)

    def test_only_first_late_fee_applies(self):
        second = make_rule(4, 'late_fee', fee_type='percentage', fee_value=Decimal('50'), start_day=1, end_day=31)
        result = apply_rules(self.billing, [self.late, second], date(2024, 9, 12))
        self.assertEqual(result['late_fee'], Decimal('150.00'))

    def test_chosen_late_fee_sticks(self):
        second = make_rule(4, 'late_fee', fee_type='percentage', fee_value=Decimal('50'), start_day=1, end_day=31)
        self.billing.late_fee_rule = second
        self.billing.late_fee = Decimal('500.00')
        result = apply_rules(self.billing, [self.late, second], date(2024, 9, 12))
        self.assertEqual(result['late_fee'], Decimal('500.00'))
        self.assertEqual(result['late_fee_rule'], second)

    def test_late_fee_only_inside_window(self):
        self.late.start_day, self.late.end_day = 15, 20
        result = apply_rules(self.billing, [self.late], date(2024, 9, 12))
        self.assertEqual(result['late_fee'], Decimal('0.00'))
        self.assertEqual(result['status'], Billing.Status.LATE)

    def test_max_uses_reached(self):
        self.early.max_uses = 5
        self.early.used_count = 5
        result = apply_rules(self.billing, self.rules, date(2024, 9, 3))
        self.assertEqual(result['total_discount'], Decimal('0.00'))

    def test_stacked_discounts_capped_at_amount(self):
        rules = [
            make_rule(5, 'early_discount', fee_type='fixed', fee_value=Decimal('700'), start_day=1, end_day=5),
            make_rule(6, 'early_discount', fee_type='fixed', fee_value=Decimal('700'), start_day=1, end_day=5),
        ]
        result = apply_rules(self.billing, rules, date(2024, 9, 3))
        self.assertEqual(result['total_discount'], Decimal('1000.00'))
        self.assertEqual(result['total_amount'], Decimal('0.00'))

    def test_cutoff_marks_overdue(self):
        result = apply_rules(self.billing, self.rules, date(2024, 9, 30))
        self.assertEqual(result['status'], Billing.Status.OVERDUE)
        result = apply_rules(self.billing, self.rules, date(2024, 9, 20))
        self.assertEqual(result['status'], Billing.Status.LATE)

    def test_rule_scope_respected(self):
        self.early.scope = BillingRule.Scope.SCHOLARSHIP
        result = apply_rules(self.billing, self.rules, date(2024, 9, 3))
        self.assertEqual(result['total_discount'], Decimal('0.00'))

    def test_partial_payment(self):
        result = apply_rules(self.billing, self.rules, date(2024, 9, 3), paid=Decimal('400'))
        self.assertEqual(result['total_amount'], Decimal('500.00'))
        self.assertEqual(result['status'], Billing.Status.PARTIAL)

    def test_paid_billing_untouched(self):
        self.billing.status = Billing.Status.PAID
        self.billing.total_amount = Decimal('0.00')
        result = apply_rules(self.billing, self.rules, date(2024, 9, 30))
        self.assertEqual(result['status'], Billing.Status.PAID)
        self.assertEqual(result['late_fee'], Decimal('0.00'))


class StudentPaymentStatusTests(SimpleTestCase):

    def _billing(self, end_date, status=Billing.Status.PENDING):
        return Billing(
            billing_config=BillingConfig(start_date=date(2024, 9, 1), end_date=end_date), status=status
        )

    def test_current_without_unpaid(self):
        billings = [self._billing(date(2024, 9, 10), status=Billing.Status.PAID)]
        self.assertEqual(student_payment_status(billings, date(2024, 12, 1)), ('current', 0))
        self.assertEqual(student_payment_status([], date(2024, 12, 1)), ('current', 0))

    def test_late(self):
        billings = [self._billing(date(2024, 9, 10)), self._billing(date(2024, 9, 30))]
        self.assertEqual(student_payment_status(billings, date(2024, 9, 20)), ('late', 10))

    def test_delinquent(self):
        billings = [self._billing(date(2024, 9, 10))]
        self.assertEqual(student_payment_status(billings, date(2024, 10, 20)), ('delinquent', 40))


# =============================================================================
# BASE TEST CASE
# =============================================================================

class FinanceTestCase(TenantTestCase):
    """Base test case with a cycle, three groups and a handful of students."""

    @classmethod
    def setup_tenant(cls, tenant):
        tenant.name = 'Test School'
        tenant.short_name = 'TEST'
        tenant.subdomain = 'test'
        tenant.cct_code = 'TEST0001'

    def setUp(self):
        super().setUp()
        self.client = TenantClient(self.tenant)

        self.admin_user = User.objects.create_school_admin(email='admin@school.com', password='testpass123')
        self.tutor = User.objects.create_tutor(email='tutor@example.com', password='testpass123')
        self.other_tutor = User.objects.create_tutor(email='other@example.com', password='testpass123')

        self.cycle = SchoolCycle.objects.create(
            name='2024-2025', start_date=date(2024, 8, 26), end_date=date(2025, 7, 4),
            status=SchoolCycle.Status.ACTIVE,
        )
        self.old_cycle = SchoolCycle.objects.create(
            name='2023-2024', start_date=date(2023, 8, 28), end_date=date(2024, 7, 5),
            status=SchoolCycle.Status.ARCHIVED,
        )
        self.group_3a = Group.objects.create(name='A', grade='3')
        self.group_3b = Group.objects.create(name='B', grade='3')
        self.group_4a = Group.objects.create(name='A', grade='4')

        self.lucia = Student.objects.create(
            name='Lucia', last_name='Mendez', enrollment='A001',
            group=self.group_3a, school_cycle=self.cycle, tutor=self.tutor,
        )
        self.mateo = Student.objects.create(
            name='Mateo', last_name='Ortiz', enrollment='A002', group=self.group_3b, school_cycle=self.cycle,
        )
        self.sofia = Student.objects.create(
            name='Sofia', last_name='Ruiz', enrollment='A003', group=self.group_4a,
            school_cycle=self.cycle, has_scholarship=True,
        )
        Student.objects.create(
            name='Diego', last_name='Lopez', enrollment='A004', group=self.group_3a,
            school_cycle=self.cycle, status=Student.Status.INACTIVE,
        )
        Student.objects.create(
            name='Ana', last_name='Soto', enrollment='A005', group=self.group_3a, school_cycle=self.old_cycle,
        )

        self.tuition = BillingConfig.objects.create(
            school_cycle=self.cycle, type=BillingConfig.Type.TUITION, amount=Decimal('1000.00'),
            start_date=date(2024, 9, 1), end_date=date(2024, 9, 10),
        )


class ScopeAndGenerationTests(FinanceTestCase):

    def test_all_students_of_cycle(self):
        self.assertEqual(
            set(students_in_scope(self.tuition)), {self.lucia, self.mateo, self.sofia}
        )

    def test_specific_groups(self):
        self.tuition.scope = BillingConfig.Scope.SPECIFIC_GROUPS
        self.tuition.save()
        self.tuition.target_groups.set([self.group_3b])
        self.assertEqual(list(students_in_scope(self.tuition)), [self.mateo])

    def test_specific_grades(self):
        self.tuition.scope = BillingConfig.Scope.SPECIFIC_GRADES
        self.tuition.target_grades = ['3']
        self.tuition.save()
        self.assertEqual(set(students_in_scope(self.tuition)), {self.lucia, self.mateo})

    def test_specific_students(self):
        self.tuition.scope = BillingConfig.Scope.SPECIFIC_STUDENTS
        self.tuition.save()
        self.tuition.target_students.set([self.sofia])
        self.assertEqual(list(students_in_scope(self.tuition)), [self.sofia])

    def test_generate_billings_once(self):
        self.assertEqual(len(generate_billings(self.tuition)), 3)
        self.assertEqual(generate_billings(self.tuition), [])
        billing = Billing.objects.get(student=self.lucia)
        self.assertEqual(billing.total_amount, Decimal('1000.00'))
        self.assertEqual(billing.status, Billing.Status.PENDING)

    def test_inactive_config_generates_nothing(self):
        self.tuition.status = BillingConfig.Status.INACTIVE
        self.tuition.save()
        self.assertEqual(generate_billings(self.tuition), [])
        self.assertFalse(Billing.objects.exists())

    def test_sync_amounts_keeps_payments(self):
        generate_billings(self.tuition)
        billing = Billing.objects.get(student=self.lucia)
        process_payment(billing, self.lucia, Payment.Method.CASH, Decimal('300'))

        self.tuition.amount = Decimal('1200.00')
        self.tuition.save()
        self.assertEqual(sync_billing_amounts(self.tuition), 3)

        billing.refresh_from_db()
        self.assertEqual(billing.amount, Decimal('1200.00'))
        self.assertEqual(billing.total_amount, Decimal('900.00'))


class PaymentTests(FinanceTestCase):

    def setUp(self):
        super().setUp()
        generate_billings(self.tuition)
        self.billing = Billing.objects.get(student=self.lucia)

    def test_partial_then_overpayment(self):
        result = process_payment(self.billing, self.lucia, Payment.Method.CASH, Decimal('400'), self.admin_user)
        self.assertEqual(result['billing'].status, Billing.Status.PARTIAL)
        self.assertEqual(result['remaining'], Decimal('600.00'))

        result = process_payment(self.billing, self.lucia, Payment.Method.CARD, Decimal('650'))
        self.assertEqual(result['billing'].status, Billing.Status.PAID)
        self.assertEqual(result['overpayment'], Decimal('50.00'))
        self.assertIsNotNone(result['billing'].paid_at)

        self.lucia.refresh_from_db()
        self.assertEqual(self.lucia.credit, Decimal('50.00'))
        self.assertEqual(Payment.objects.filter(billing=self.billing).count(), 2)

    def test_exact_payment(self):
        result = process_payment(self.billing, self.lucia, Payment.Method.BANK_TRANSFER, Decimal('1000'))
        self.assertEqual(result['billing'].status, Billing.Status.PAID)
        self.assertEqual(result['overpayment'], Decimal('0.00'))

    def test_paid_billing_rejects_payment(self):
        process_payment(self.billing, self.lucia, Payment.Method.CASH, Decimal('1000'))
        with self.assertRaises(ValidationError):
            process_payment(self.billing, self.lucia, Payment.Method.CASH, Decimal('10'))

    def test_wrong_student(self):
        with self.assertRaises(ValidationError):
            process_payment(self.billing, self.mateo, Payment.Method.CASH, Decimal('10'))

    def test_non_positive_amount(self):
        with self.assertRaises(ValidationError):
            process_payment(self.billing, self.lucia, Payment.Method.CASH, Decimal('0'))


class PolicyRunTests(FinanceTestCase):

    def setUp(self):
        super().setUp()
        self.early = BillingRule.objects.create(
            name='Early payment', type=BillingRule.Type.EARLY_DISCOUNT, fee_type='percentage',
            fee_value=Decimal('10'), start_day=1, end_day=5,
        )
        self.late = BillingRule.objects.create(
            name='Late payment', type=BillingRule.Type.LATE_FEE, fee_type='fixed',
            fee_value=Decimal('150'), start_day=1, end_day=31,
        )
        self.tuition.rules.set([self.early, self.late])
        generate_billings(self.tuition)

    def test_discounts_before_due_date(self):
        result = apply_billing_policies(date(2024, 9, 3))
        self.assertEqual(result, {'configs': 1, 'updated': 3})
        billing = Billing.objects.get(student=self.lucia)
        self.assertEqual(billing.total_discount, Decimal('100.00'))
        self.assertEqual(billing.total_amount, Decimal('900.00'))
        self.early.refresh_from_db()
        self.assertEqual(self.early.used_count, 3)

    def test_amount_edit_recomputes_discounts(self):
        apply_billing_policies(date(2024, 9, 3))
        self.tuition.amount = Decimal('2000.00')
        self.tuition.save()

        self.assertEqual(sync_billing_amounts(self.tuition, date(2024, 9, 4)), 3)

        billing = Billing.objects.get(student=self.lucia)
        self.assertEqual(billing.amount, Decimal('2000.00'))
        self.assertEqual(billing.total_discount, Decimal('200.00'))
        self.assertEqual(billing.applied_discounts[0]['amount'], '200.00')
        self.assertEqual(billing.total_amount, Decimal('1800.00'))
        self.early.refresh_from_db()
        self.assertEqual(self.early.used_count, 3)

    def test_amount_edit_then_payment_charges_new_price(self):
        apply_billing_policies(date(2024, 9, 3))
        self.tuition.amount = Decimal('2000.00')
        self.tuition.save()
        sync_billing_amounts(self.tuition, date(2024, 9, 4))

        billing = Billing.objects.get(student=self.lucia)
        result = process_payment(billing, self.lucia, Payment.Method.CASH, Decimal('1800'))
        self.assertEqual(result['billing'].status, Billing.Status.PAID)
        self.assertEqual(result['overpayment'], Decimal('0.00'))

    def test_amount_edit_recomputes_late_fee(self):
        self.late.fee_type = 'percentage'
        self.late.fee_value = Decimal('10')
        self.late.save()
        apply_billing_policies(date(2024, 9, 12))
        self.tuition.amount = Decimal('2000.00')
        self.tuition.save()

        sync_billing_amounts(self.tuition, date(2024, 9, 13))

        billing = Billing.objects.get(student=self.lucia)
        self.assertEqual(billing.late_fee, Decimal('200.00'))
        self.assertEqual(billing.total_amount, Decimal('2200.00'))

    def test_second_run_grants_nothing_new(self):
        apply_billing_policies(date(2024, 9, 3))
        result = apply_billing_policies(date(2024, 9, 4))
        self.assertEqual(result['updated'], 0)
        self.early.refresh_from_db()
        self.assertEqual(self.early.used_count, 3)

    def test_late_fee_after_due_date(self):
        apply_billing_policies(date(2024, 9, 3))
        apply_billing_policies(date(2024, 9, 12))
        billing = Billing.objects.get(student=self.lucia)
        self.assertEqual(billing.status, Billing.Status.LATE)
        self.assertEqual(billing.total_discount, Decimal('0.00'))
        self.assertEqual(billing.late_fee, Decimal('150.00'))
        self.assertEqual(billing.late_fee_rule, self.late)
        self.assertEqual(billing.total_amount, Decimal('1150.00'))

    def test_paid_billings_are_skipped(self):
        billing = Billing.objects.get(student=self.lucia)
        process_payment(billing, self.lucia, Payment.Method.CASH, Decimal('1000'))
        apply_billing_policies(date(2024, 9, 12))
        billing.refresh_from_db()
        self.assertEqual(billing.status, Billing.Status.PAID)
        self.assertEqual(billing.late_fee, Decimal('0.00'))

    def test_inactive_config_is_skipped(self):
        self.tuition.status = BillingConfig.Status.INACTIVE
        self.tuition.save()
        self.assertEqual(apply_billing_policies(date(2024, 9, 3)), {'configs': 0, 'updated': 0})

    def test_tenant_task(self):
        result = apply_tenant_billing_policies(self.tenant.schema_name, '2024-09-03')
        self.assertEqual(result['tenant'], self.tenant.schema_name)
        self.assertEqual(result['updated'], 3)

    def test_setup_billing_schedule(self):
        call_command('setup_billing_schedule', stdout=StringIO())
        task = PeriodicTask.objects.get(name='Apply billing policies')
        self.assertEqual(task.task, 'finance.tasks.apply_billing_policies_task')
        self.assertEqual(task.crontab.hour, '15')
        self.assertEqual(task.crontab.minute, '28')


class ReportingTests(FinanceTestCase):

    def setUp(self):
        super().setUp()
        generate_billings(self.tuition)

    def test_mark_overdue(self):
        self.assertEqual(mark_overdue(self.tuition, datetime(2024, 9, 5, 12, tzinfo=dt_timezone.utc)), 0)
        self.assertEqual(mark_overdue(self.tuition, datetime(2024, 9, 20, 12, tzinfo=dt_timezone.utc)), 3)
        self.assertEqual(Billing.objects.filter(status=Billing.Status.OVERDUE).count(), 3)

    def test_payment_stats(self):
        billing = Billing.objects.get(student=self.lucia)
        process_payment(billing, self.lucia, Payment.Method.CASH, Decimal('1000'))
        stats = payment_stats(self.tuition)
        self.assertEqual(stats['total'], 3)
        self.assertEqual(stats['paid'], 1)
        self.assertEqual(stats['pending'], 2)
        self.assertEqual(stats['total_amount'], Decimal('3000.00'))
        self.assertEqual(stats['collected_amount'], Decimal('1000.00'))

    def test_payments_page(self):
        page = payments_page(today=date(2024, 9, 20))
        self.assertEqual(page['school_cycle']['name'], '2024-2025')
        rows = {row['enrollment']: row for row in page['students']}
        self.assertEqual(set(rows), {'A001', 'A002', 'A003'})
        self.assertEqual(rows['A001']['status'], 'late')
        self.assertEqual(rows['A001']['days_late'], 10)
        self.assertEqual(rows['A001']['pending_amount'], '1000.00')
        self.assertEqual(len(rows['A001']['billings']), 1)

    def test_payments_page_without_cycle(self):
        SchoolCycle.objects.update(status=SchoolCycle.Status.INACTIVE)
        self.assertEqual(payments_page(), {'students': [], 'school_cycle': None})


class FinanceViewTests(FinanceTestCase):

    def test_config_create_generates_billings(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:config_create'), {
            'school_cycle': self.cycle.pk, 'scope': 'specific_grades', 'target_grades': ['3'],
            'target_groups': [self.group_4a.pk], 'recurrence': 'monthly', 'type': 'exam',
            'amount': '250.00', 'start_date': '2024-09-01', 'end_date': '2024-09-30', 'status': 'required',
        })
        self.assertEqual(response.status_code, 201)
        self.assertEqual(len(response.json()['affected_students']), 2)
        billing_config = BillingConfig.objects.get(type='exam')
        self.assertEqual(billing_config.target_grades, ['3'])
        self.assertFalse(billing_config.target_groups.exists())

    def test_config_scope_needs_targets(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:config_create'), {
            'school_cycle': self.cycle.pk, 'scope': 'specific_groups', 'recurrence': 'monthly',
            'type': 'exam', 'amount': '250.00', 'start_date': '2024-09-01', 'status': 'required',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('target_groups', response.json()['errors'])

    def test_config_dates_and_amount_validated(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:config_create'), {
            'school_cycle': self.cycle.pk, 'scope': 'all_students', 'recurrence': 'monthly',
            'type': 'exam', 'amount': '-1', 'start_date': '2024-09-30', 'end_date': '2024-09-01',
            'status': 'required',
        })
        self.assertEqual(response.status_code, 400)
        errors = response.json()['errors']
        self.assertIn('amount', errors)
        self.assertIn('end_date', errors)

    def test_config_delete_is_soft(self):
        generate_billings(self.tuition)
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:config_delete', args=[self.tuition.pk]))
        self.assertEqual(response.status_code, 200)
        self.tuition.refresh_from_db()
        self.assertEqual(self.tuition.status, BillingConfig.Status.INACTIVE)
        self.assertEqual(Billing.objects.count(), 3)

    def test_rule_create_validation(self):
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:rule_create'), {
            'name': 'Cutoff', 'type': 'cutoff', 'scope': 'all_students', 'status': 'active',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('cutoff_after_days', response.json()['errors'])

        response = self.client.post(reverse('finance:rule_create'), {
            'name': 'Cutoff', 'type': 'cutoff', 'scope': 'all_students', 'status': 'active',
            'cutoff_after_days': 15,
        })
        self.assertEqual(response.status_code, 201)

    def test_payment_create(self):
        generate_billings(self.tuition)
        billing = Billing.objects.get(student=self.lucia)
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:payment_create'), {
            'billing': billing.pk, 'method': 'cash', 'amount': '1100.00',
        })
        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data['billing']['status'], 'paid')
        self.assertEqual(data['student']['credit'], '100.00')

    def test_tutor_cannot_record_payment(self):
        generate_billings(self.tuition)
        billing = Billing.objects.get(student=self.lucia)
        self.client.login(email='tutor@example.com', password='testpass123')
        response = self.client.post(reverse('finance:payment_create'), {
            'billing': billing.pk, 'method': 'cash', 'amount': '100.00',
        })
        self.assertEqual(response.status_code, 403)

    def test_manual_paid_status_clears_remaining(self):
        generate_billings(self.tuition)
        billing = Billing.objects.get(student=self.lucia)
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:billing_status', args=[billing.pk]), {'status': 'paid'})
        self.assertEqual(response.status_code, 200)
        billing.refresh_from_db()
        self.assertEqual(billing.status, Billing.Status.PAID)
        self.assertEqual(billing.total_amount, Decimal('0.00'))
        self.assertIsNotNone(billing.paid_at)

    def test_config_edit_reprices_billings(self):
        generate_billings(self.tuition)
        self.client.login(email='admin@school.com', password='testpass123')
        response = self.client.post(reverse('finance:config_edit', args=[self.tuition.pk]), {
            'school_cycle': self.cycle.pk, 'scope': 'all_students', 'recurrence': 'monthly',
            'type': 'tuition', 'amount': '1500.00', 'start_date': '2024-09-01', 'end_date': '2024-09-10',
            'status': 'required',
        })
        self.assertEqual(response.status_code, 200)
        billing = Billing.objects.get(student=self.lucia)
        self.assertEqual(billing.amount, Decimal('1500.00'))
        self.assertEqual(billing.total_amount, Decimal('1500.00'))

    def test_tutor_sees_only_own_students_billings(self):
        generate_billings(self.tuition)
        self.client.login(email='tutor@example.com', password='testpass123')
        response = self.client.get(reverse('finance:student_billings', args=[self.lucia.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()['billings']), 1)

        self.client.login(email='other@example.com', password='testpass123')
        response = self.client.get(reverse('finance:student_billings', args=[self.lucia.pk]))
        self.assertEqual(response.status_code, 403)

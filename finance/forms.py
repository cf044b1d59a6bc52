from decimal import Decimal

from django import forms

from academics.models import Group
from students.models import Student
from .models import Billing, BillingConfig, BillingRule, Payment


class BillingRuleForm(forms.ModelForm):
    """Form for creating/editing billing rules."""

    class Meta:
        model = BillingRule
        fields = [
            'name', 'description', 'type', 'scope', 'status',
            'fee_type', 'fee_value', 'start_day', 'end_day',
            'max_uses', 'cutoff_after_days',
        ]

    def clean(self):
        cleaned_data = super().clean()
        rule_type = cleaned_data.get('type')

        # Cutoff rules carry no fee or window
        if rule_type == BillingRule.Type.CUTOFF:
            cleaned_data['fee_type'] = ''
            cleaned_data['fee_value'] = None
            cleaned_data['start_day'] = None
            cleaned_data['end_day'] = None
        elif rule_type:
            cleaned_data['cutoff_after_days'] = None

        return cleaned_data


class BillingConfigForm(forms.ModelForm):
    """
    Billing config create/edit. Only the targets of the chosen scope are
    kept; the other target lists are cleared.
    """
    target_grades = forms.MultipleChoiceField(required=False)

    class Meta:
        model = BillingConfig
        fields = [
            'school_cycle', 'scope', 'target_groups', 'target_grades', 'target_students',
            'recurrence', 'type', 'amount', 'rules', 'start_date', 'end_date', 'status',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        grades = Group.objects.order_by('grade').values_list('grade', flat=True).distinct()
        self.fields['target_grades'].choices = [(g, g) for g in grades]
        self.fields['target_students'].queryset = Student.objects.filter(status=Student.Status.ACTIVE)

    def clean_amount(self):
        amount = self.cleaned_data.get('amount')
        if amount is not None and amount < 0:
            raise forms.ValidationError("Amount cannot be negative.")
        return amount

    def clean(self):
        cleaned_data = super().clean()
        scope = cleaned_data.get('scope')
        start_date = cleaned_data.get('start_date')
        end_date = cleaned_data.get('end_date')

        if start_date and end_date and start_date > end_date:
            self.add_error('end_date', "Start date must be before the end date.")

        required_target = {
            BillingConfig.Scope.SPECIFIC_GROUPS: ('target_groups', "Select at least one group."),
            BillingConfig.Scope.SPECIFIC_GRADES: ('target_grades', "Select at least one grade."),
            BillingConfig.Scope.SPECIFIC_STUDENTS: ('target_students', "Select at least one student."),
        }
        if scope in required_target:
            field, message = required_target[scope]
            if not cleaned_data.get(field):
                self.add_error(field, message)

        if scope:
            if scope != BillingConfig.Scope.SPECIFIC_GROUPS:
                cleaned_data['target_groups'] = Group.objects.none()
            if scope != BillingConfig.Scope.SPECIFIC_GRADES:
                cleaned_data['target_grades'] = []
            if scope != BillingConfig.Scope.SPECIFIC_STUDENTS:
                cleaned_data['target_students'] = Student.objects.none()

        return cleaned_data


class PaymentForm(forms.Form):
    """A payment taken at the school against one billing."""
    billing = forms.IntegerField()
    method = forms.ChoiceField(choices=Payment.Method.choices, initial=Payment.Method.CASH)
    amount = forms.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))


class BillingStatusForm(forms.Form):
    """Manual status correction of a billing."""
    status = forms.ChoiceField(choices=Billing.Status.choices)

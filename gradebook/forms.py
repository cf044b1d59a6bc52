from django import forms

from .models import GradeRubric, Assignment
from .utils import available_weight
from . import config


class GradeRubricForm(forms.ModelForm):
    """Rubric create/edit for one class and term."""

    class Meta:
        model = GradeRubric
        fields = ['name', 'weight', 'max_score', 'is_active']

    def __init__(self, *args, class_catalog=None, term=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.class_catalog = class_catalog or self.instance.class_catalog
        self.term = term or self.instance.term
        self.instance.class_catalog = self.class_catalog
        self.instance.term = self.term
        if not self.instance.pk:
            self.fields['max_score'].initial = config.DEFAULT_MAX_SCORE

    def clean(self):
        cleaned_data = super().clean()
        weight = cleaned_data.get('weight')
        is_active = cleaned_data.get('is_active')

        if self.term.is_closed:
            raise forms.ValidationError(f"The term {self.term.name} is closed.")

        if weight and is_active:
            available = available_weight(self.class_catalog, self.term, exclude_pk=self.instance.pk)
            if weight > available:
                self.add_error(
                    'weight', f"Weight exceeds the available {available}% for this term."
                )

        return cleaned_data


class AssignmentForm(forms.ModelForm):

    class Meta:
        model = Assignment
        fields = ['grade_rubric', 'name', 'description', 'due_date', 'max_score']

    def __init__(self, *args, class_catalog=None, term=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.class_catalog = class_catalog or self.instance.class_catalog
        self.term = term or self.instance.term
        self.instance.class_catalog = self.class_catalog
        self.instance.term = self.term
        self.fields['grade_rubric'].queryset = GradeRubric.objects.filter(
            class_catalog=self.class_catalog, term=self.term, is_active=True
        )
        if not self.instance.pk:
            self.fields['max_score'].initial = config.DEFAULT_MAX_SCORE


class GradeForm(forms.Form):
    student_class = forms.IntegerField()
    assignment = forms.IntegerField()
    score = forms.DecimalField(max_digits=6, decimal_places=2, min_value=0)
    comments = forms.CharField(required=False)


class TermAverageForm(forms.Form):
    """Manual override of a stored term average."""
    student_class = forms.IntegerField()
    average_score = forms.IntegerField(min_value=0, max_value=100)
    comments = forms.CharField(required=False)

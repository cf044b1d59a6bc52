from django import forms
from academics.models import Group
from .models import Student


class StudentForm(forms.ModelForm):

    class Meta:
        model = Student
        fields = [
            'name', 'last_name', 'birth_date', 'img_url',
            'enrollment', 'admission_date', 'group', 'school_cycle', 'tutor',
            'status', 'has_scholarship',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['group'].queryset = Group.objects.filter(status='active')

    def clean_enrollment(self):
        enrollment = (self.cleaned_data.get('enrollment') or '').strip().upper()
        if not enrollment:
            raise forms.ValidationError("Enrollment number is required.")
        return enrollment

    def clean(self):
        cleaned_data = super().clean()
        birth_date = cleaned_data.get('birth_date')
        admission_date = cleaned_data.get('admission_date')

        if birth_date and admission_date and admission_date <= birth_date:
            self.add_error('admission_date', 'Admission date must be after the birth date.')

        return cleaned_data

from django import forms
from django.contrib.auth import get_user_model

from .models import (
    Subject, Classroom, Group, Schedule, ClassCatalog, Term, Attendance, Status
)

User = get_user_model()


class SubjectForm(forms.ModelForm):
    class Meta:
        model = Subject
        fields = ['name', 'description', 'credits', 'status']


class ClassroomForm(forms.ModelForm):
    class Meta:
        model = Classroom
        fields = ['name', 'capacity', 'location', 'status']

    def clean_capacity(self):
        capacity = self.cleaned_data.get('capacity')
        if capacity is not None and capacity < 1:
            raise forms.ValidationError("Capacity must be at least 1.")
        return capacity


class GroupForm(forms.ModelForm):
    class Meta:
        model = Group
        fields = ['name', 'grade', 'status']


class ScheduleForm(forms.ModelForm):
    class Meta:
        model = Schedule
        fields = ['name', 'weekday', 'start_time', 'end_time', 'status']

    def clean(self):
        cleaned_data = super().clean()
        start_time = cleaned_data.get('start_time')
        end_time = cleaned_data.get('end_time')

        if start_time and end_time and start_time >= end_time:
            raise forms.ValidationError('End time must be after start time.')

        return cleaned_data


class ClassCatalogForm(forms.ModelForm):
    """Class creation/edit. Time slots are posted as a list of schedule ids."""
    schedules = forms.ModelMultipleChoiceField(
        queryset=Schedule.objects.filter(status=Status.ACTIVE),
        required=False,
    )

    class Meta:
        model = ClassCatalog
        fields = ['school_cycle', 'subject', 'classroom', 'teacher', 'group', 'name', 'status']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['teacher'].queryset = User.objects.filter(is_teacher=True, is_active=True)
        self.fields['subject'].queryset = Subject.objects.filter(status=Status.ACTIVE)
        self.fields['classroom'].queryset = Classroom.objects.filter(status=Status.ACTIVE)


class TermForm(forms.ModelForm):
    class Meta:
        model = Term
        fields = ['name', 'key', 'start_date', 'end_date', 'parent', 'status']

    def __init__(self, *args, class_catalog=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.class_catalog = class_catalog
        if class_catalog is not None:
            self.fields['parent'].queryset = Term.objects.filter(class_catalog=class_catalog)

    def clean(self):
        cleaned_data = super().clean()
        start_date = cleaned_data.get('start_date')
        end_date = cleaned_data.get('end_date')
        parent = cleaned_data.get('parent')

        if start_date and end_date and start_date >= end_date:
            raise forms.ValidationError("End date must be after start date.")

        if parent and start_date and end_date:
            if start_date < parent.start_date or end_date > parent.end_date:
                self.add_error('parent', f"Dates must fall within {parent.name}.")

        return cleaned_data


class AttendanceForm(forms.Form):
    student_class = forms.IntegerField()
    date = forms.DateField()
    state = forms.ChoiceField(choices=Attendance.State.choices)
    comments = forms.CharField(max_length=255, required=False)

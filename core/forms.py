from django import forms
from .models import CalendarEvent, EventType, SchoolCycle


class SchoolCycleForm(forms.ModelForm):
    class Meta:
        model = SchoolCycle
        fields = ['name', 'start_date', 'end_date', 'status']

    def clean(self):
        cleaned_data = super().clean()
        start_date = cleaned_data.get('start_date')
        end_date = cleaned_data.get('end_date')

        if start_date and end_date and start_date >= end_date:
            raise forms.ValidationError("End date must be after start date.")

        return cleaned_data


class EventTypeForm(forms.ModelForm):
    class Meta:
        model = EventType
        fields = ['name', 'key', 'description', 'color', 'icon', 'status']

    def clean_key(self):
        return self.cleaned_data['key'].strip().lower()

    def clean_color(self):
        return (self.cleaned_data.get('color') or '').upper()


class CalendarEventForm(forms.ModelForm):
    """Calendar event create/edit. Only active event types can be chosen."""

    class Meta:
        model = CalendarEvent
        fields = ['school_cycle', 'date', 'event_type', 'description', 'status']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['event_type'].queryset = EventType.objects.filter(status=EventType.Status.ACTIVE)

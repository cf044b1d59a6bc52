from django.contrib import admin

from .models import CalendarEvent, EventType, SchoolCycle


@admin.register(SchoolCycle)
class SchoolCycleAdmin(admin.ModelAdmin):
    list_display = ('name', 'start_date', 'end_date', 'status')
    list_filter = ('status',)


@admin.register(EventType)
class EventTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'key', 'color', 'icon', 'status')
    list_filter = ('status',)
    search_fields = ('name', 'key')


@admin.register(CalendarEvent)
class CalendarEventAdmin(admin.ModelAdmin):
    list_display = ('date', 'event_type', 'school_cycle', 'status')
    list_filter = ('school_cycle', 'event_type', 'status')
    date_hierarchy = 'date'

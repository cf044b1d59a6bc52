import logging

from django.shortcuts import get_object_or_404
from django.http import JsonResponse
from django.views.decorators.http import require_POST

from .decorators import admin_required, api_login_required
from .forms import CalendarEventForm, EventTypeForm, SchoolCycleForm
from .models import CalendarEvent, EventType, SchoolCycle
from .utils import form_errors_response, json_error, parse_date

logger = logging.getLogger(__name__)


def serialize_cycle(cycle):
    return {
        'id': cycle.pk,
        'name': cycle.name,
        'start_date': cycle.start_date.isoformat(),
        'end_date': cycle.end_date.isoformat(),
        'status': cycle.status,
    }


@api_login_required
def index(request):
    """School landing data: the tenant, the active cycle and the caller's roles."""
    school = request.tenant
    cycle = SchoolCycle.get_active()
    return JsonResponse({
        'school': {
            'name': school.name,
            'short_name': school.display_name,
            'subdomain': school.subdomain,
            'cct_code': school.cct_code,
        },
        'active_cycle': serialize_cycle(cycle) if cycle else None,
        'roles': request.user.roles,
    })


@api_login_required
def cycle_list(request):
    cycles = SchoolCycle.objects.all()
    status = request.GET.get('status')
    if status:
        cycles = cycles.filter(status=status)
    return JsonResponse({'cycles': [serialize_cycle(c) for c in cycles]})


@admin_required
@require_POST
def cycle_create(request):
    form = SchoolCycleForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)
    cycle = form.save()
    logger.info(f"School cycle {cycle.name} created by {request.user.email}")
    return JsonResponse({'success': True, 'cycle': serialize_cycle(cycle)}, status=201)


@admin_required
@require_POST
def cycle_edit(request, pk):
    cycle = get_object_or_404(SchoolCycle, pk=pk)
    form = SchoolCycleForm(request.POST, instance=cycle)
    if not form.is_valid():
        return form_errors_response(form)
    cycle = form.save()
    return JsonResponse({'success': True, 'cycle': serialize_cycle(cycle)})


@admin_required
@require_POST
def cycle_activate(request, pk):
    cycle = get_object_or_404(SchoolCycle, pk=pk)
    cycle.status = SchoolCycle.Status.ACTIVE
    cycle.save()
    logger.info(f"School cycle {cycle.name} activated by {request.user.email}")
    return JsonResponse({'success': True, 'cycle': serialize_cycle(cycle)})


@admin_required
@require_POST
def cycle_delete(request, pk):
    cycle = get_object_or_404(SchoolCycle, pk=pk)
    if cycle.is_active:
        return json_error("Cannot delete the active school cycle.")
    cycle.delete()
    return JsonResponse({'success': True})


# =============================================================================
# SCHOOL CALENDAR
# =============================================================================

def serialize_event_type(event_type):
    return {
        'id': event_type.pk,
        'name': event_type.name,
        'key': event_type.key,
        'description': event_type.description,
        'color': event_type.color or None,
        'icon': event_type.icon or None,
        'status': event_type.status,
    }


def serialize_event(event):
    return {
        'id': event.pk,
        'school_cycle_id': event.school_cycle_id,
        'date': event.date.isoformat(),
        'event_type': serialize_event_type(event.event_type),
        'description': event.description,
        'status': event.status,
    }


@api_login_required
def event_type_list(request):
    event_types = EventType.objects.all()
    if request.GET.get('all') != '1':
        event_types = event_types.filter(status=EventType.Status.ACTIVE)
    return JsonResponse({'event_types': [serialize_event_type(t) for t in event_types]})


@admin_required
@require_POST
def event_type_create(request):
    form = EventTypeForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)
    event_type = form.save()
    return JsonResponse({'success': True, 'event_type': serialize_event_type(event_type)}, status=201)


@admin_required
@require_POST
def event_type_edit(request, pk):
    event_type = get_object_or_404(EventType, pk=pk)
    form = EventTypeForm(request.POST, instance=event_type)
    if not form.is_valid():
        return form_errors_response(form)
    event_type = form.save()
    return JsonResponse({'success': True, 'event_type': serialize_event_type(event_type)})


@admin_required
@require_POST
def event_type_delete(request, pk):
    """Soft delete: existing events keep their type."""
    event_type = get_object_or_404(EventType, pk=pk)
    event_type.status = EventType.Status.INACTIVE
    event_type.save(update_fields=['status', 'updated_at'])
    logger.info(f"Event type {event_type.key} deactivated by {request.user.email}")
    return JsonResponse({'success': True})


@api_login_required
def calendar(request):
    """
    Active events of a cycle (the active one by default), optionally
    narrowed by ``start``/``end`` dates and an event type ``type`` key.
    """
    cycle_id = request.GET.get('cycle')
    if cycle_id:
        cycle = get_object_or_404(SchoolCycle, pk=cycle_id)
    else:
        cycle = SchoolCycle.get_active()
        if cycle is None:
            return JsonResponse({'events': [], 'school_cycle': None})

    events = cycle.calendar_events.filter(status=CalendarEvent.Status.ACTIVE).select_related('event_type')
    start = parse_date(request.GET.get('start'))
    end = parse_date(request.GET.get('end'))
    if start:
        events = events.filter(date__gte=start)
    if end:
        events = events.filter(date__lte=end)
    event_key = request.GET.get('type')
    if event_key:
        events = events.filter(event_type__key=event_key)

    return JsonResponse({
        'events': [serialize_event(e) for e in events],
        'school_cycle': serialize_cycle(cycle),
    })


@admin_required
@require_POST
def event_create(request):
    form = CalendarEventForm(request.POST)
    if not form.is_valid():
        return form_errors_response(form)
    event = form.save(commit=False)
    event.created_by = request.user
    event.save()
    return JsonResponse({'success': True, 'event': serialize_event(event)}, status=201)


@admin_required
@require_POST
def event_edit(request, pk):
    event = get_object_or_404(CalendarEvent, pk=pk)
    form = CalendarEventForm(request.POST, instance=event)
    if not form.is_valid():
        return form_errors_response(form)
    event = form.save()
    return JsonResponse({'success': True, 'event': serialize_event(event)})


@admin_required
@require_POST
def event_delete(request, pk):
    event = get_object_or_404(CalendarEvent, pk=pk)
    event.status = CalendarEvent.Status.INACTIVE
    event.save(update_fields=['status', 'updated_at'])
    return JsonResponse({'success': True})

from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    path('', views.index, name='index'),
    path('cycles/', views.cycle_list, name='cycle_list'),
    path('cycles/create/', views.cycle_create, name='cycle_create'),
    path('cycles/<int:pk>/edit/', views.cycle_edit, name='cycle_edit'),
    path('cycles/<int:pk>/activate/', views.cycle_activate, name='cycle_activate'),
    path('cycles/<int:pk>/delete/', views.cycle_delete, name='cycle_delete'),

    path('calendar/', views.calendar, name='calendar'),
    path('calendar/create/', views.event_create, name='event_create'),
    path('calendar/<int:pk>/edit/', views.event_edit, name='event_edit'),
    path('calendar/<int:pk>/delete/', views.event_delete, name='event_delete'),
    path('event-types/', views.event_type_list, name='event_type_list'),
    path('event-types/create/', views.event_type_create, name='event_type_create'),
    path('event-types/<int:pk>/edit/', views.event_type_edit, name='event_type_edit'),
    path('event-types/<int:pk>/delete/', views.event_type_delete, name='event_type_delete'),
]

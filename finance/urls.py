from django.urls import path
from . import views

app_name = 'finance'

urlpatterns = [
    # Billing rules
    path('rules/', views.rule_list, name='rule_list'),
    path('rules/create/', views.rule_create, name='rule_create'),
    path('rules/<int:pk>/edit/', views.rule_edit, name='rule_edit'),
    path('rules/<int:pk>/delete/', views.rule_delete, name='rule_delete'),

    # Billing configs
    path('configs/', views.config_list, name='config_list'),
    path('configs/create/', views.config_create, name='config_create'),
    path('configs/<int:pk>/', views.config_detail, name='config_detail'),
    path('configs/<int:pk>/edit/', views.config_edit, name='config_edit'),
    path('configs/<int:pk>/delete/', views.config_delete, name='config_delete'),
    path('configs/<int:pk>/billings/', views.config_billings, name='config_billings'),
    path('configs/<int:pk>/mark-overdue/', views.config_mark_overdue, name='config_mark_overdue'),
    path('policies/run/', views.run_policies, name='run_policies'),

    # Billings & payments
    path('payments/', views.payments_dashboard, name='payments_dashboard'),
    path('payments/create/', views.payment_create, name='payment_create'),
    path('students/<int:student_id>/billings/', views.student_billings, name='student_billings'),
    path('billings/<int:pk>/status/', views.billing_status, name='billing_status'),
]

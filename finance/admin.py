from django.contrib import admin

from .models import BillingRule, BillingConfig, Billing, Payment


@admin.register(BillingRule)
class BillingRuleAdmin(admin.ModelAdmin):
    list_display = ('name', 'type', 'scope', 'fee_type', 'fee_value', 'start_day', 'end_day', 'status')
    list_filter = ('type', 'scope', 'status')
    search_fields = ('name',)
    readonly_fields = ('used_count',)


@admin.register(BillingConfig)
class BillingConfigAdmin(admin.ModelAdmin):
    list_display = ('type', 'school_cycle', 'scope', 'amount', 'start_date', 'end_date', 'status')
    list_filter = ('status', 'type', 'scope', 'school_cycle')
    filter_horizontal = ('target_groups', 'target_students', 'rules')


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    readonly_fields = ('student', 'method', 'amount', 'created_by', 'created_at')
    can_delete = False


@admin.register(Billing)
class BillingAdmin(admin.ModelAdmin):
    list_display = ('student', 'billing_config', 'status', 'amount', 'total_amount', 'late_fee', 'paid_at')
    list_filter = ('status', 'billing_config__type')
    search_fields = ('student__name', 'student__last_name', 'student__enrollment')
    raw_id_fields = ('student',)
    inlines = [PaymentInline]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('student', 'billing', 'method', 'amount', 'created_at')
    list_filter = ('method',)
    search_fields = ('student__enrollment',)

# apps/memberships/admin.py

from django.contrib import admin
from .models import MembershipType, Membership, Recharge, Consumption, SequenceCounter


class ReadOnlyLedgerAdmin(admin.ModelAdmin):
    """Ledger rows are append-only; the admin only shows them"""

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class RechargeInline(admin.TabularInline):
    model = Recharge
    extra = 0
    fields = ('receipt_number', 'recharge_type', 'amount', 'bonus_amount', 'payment_method', 'recharge_date')
    readonly_fields = fields
    can_delete = False


class ConsumptionInline(admin.TabularInline):
    model = Consumption
    extra = 0
    fields = ('receipt_number', 'service_name', 'amount', 'count', 'therapist_name', 'date')
    readonly_fields = fields
    can_delete = False


@admin.register(MembershipType)
class MembershipTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'price', 'value_amount', 'service_count', 'validity_days', 'is_active')
    list_filter = ('category', 'is_active')
    search_fields = ('name',)


@admin.register(Membership)
class MembershipAdmin(admin.ModelAdmin):
    list_display = ('card_number', 'customer', 'card_type', 'status', 'balance', 'count', 'expiry_date')
    list_filter = ('card_type', 'status')
    search_fields = ('card_number', 'customer__child_name', 'customer__phone')
    readonly_fields = ('card_number', 'balance', 'count', 'initial_amount',
                       'last_recharge_date', 'last_consume_date')
    raw_id_fields = ('customer',)
    inlines = [RechargeInline, ConsumptionInline]

    fieldsets = (
        ('Card', {
            'fields': ('card_number', 'card_type', 'membership_type', 'customer', 'status')
        }),
        ('Balances', {
            'fields': ('balance', 'count', 'initial_amount')
        }),
        ('Dates', {
            'fields': ('issue_date', 'expiry_date', 'last_recharge_date', 'last_consume_date')
        }),
        ('Notes', {
            'fields': ('notes',),
            'classes': ('collapse',)
        }),
    )


@admin.register(Recharge)
class RechargeAdmin(ReadOnlyLedgerAdmin):
    list_display = ('receipt_number', 'membership', 'recharge_type', 'amount', 'payment_method', 'recharge_date')
    list_filter = ('recharge_type', 'payment_method', 'is_initial')
    search_fields = ('receipt_number', 'membership__card_number')


@admin.register(Consumption)
class ConsumptionAdmin(ReadOnlyLedgerAdmin):
    list_display = ('receipt_number', 'membership', 'service_name', 'amount', 'count', 'date')
    search_fields = ('receipt_number', 'membership__card_number', 'child_name')


@admin.register(SequenceCounter)
class SequenceCounterAdmin(ReadOnlyLedgerAdmin):
    list_display = ('prefix', 'last_value', 'updated_at')

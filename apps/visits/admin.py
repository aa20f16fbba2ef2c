from django.contrib import admin
from .models import Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ('service_type', 'customer', 'therapist', 'service_date', 'service_fee',
                    'payment_method', 'rating')
    list_filter = ('payment_method', 'service_type', 'therapist')
    search_fields = ('service_type', 'customer__child_name', 'customer__phone')
    readonly_fields = ('card_debit',)
    raw_id_fields = ('customer', 'membership')
    date_hierarchy = 'service_date'

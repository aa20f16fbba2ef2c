from django.contrib import admin
from .models import InventoryItem, InventoryTransaction


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'stock', 'unit', 'warning_threshold', 'cost_price', 'selling_price', 'is_active')
    list_filter = ('category', 'is_active')
    search_fields = ('name', 'supplier')
    readonly_fields = ('stock',)


@admin.register(InventoryTransaction)
class InventoryTransactionAdmin(admin.ModelAdmin):
    list_display = ('item', 'type', 'quantity', 'unit_price', 'total_price', 'stock_after', 'transaction_date')
    list_filter = ('type',)
    search_fields = ('item__name', 'notes')
    readonly_fields = ('total_price', 'stock_after')

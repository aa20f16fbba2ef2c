# apps/inventory/filters.py

from django.db.models import F
from django_filters import rest_framework as filters

from core.filters import DateRangeFilterSet
from .models import InventoryItem, InventoryTransaction


class InventoryItemFilter(filters.FilterSet):
    name = filters.CharFilter(field_name='name', lookup_expr='icontains')
    low_stock = filters.BooleanFilter(method='filter_low_stock')

    class Meta:
        model = InventoryItem
        fields = ['name', 'category', 'low_stock']

    def filter_low_stock(self, queryset, name, value):
        if value:
            return queryset.filter(stock__lte=F('warning_threshold'))
        return queryset.filter(stock__gt=F('warning_threshold'))


class InventoryTransactionFilter(DateRangeFilterSet):
    date_field = 'transaction_date'

    class Meta:
        model = InventoryTransaction
        fields = ['item', 'type', 'start_date', 'end_date']

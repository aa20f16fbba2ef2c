# apps/memberships/filters.py

from django.utils import timezone
from django_filters import rest_framework as filters

from core.filters import DateRangeFilterSet
from .models import Membership, Recharge, Consumption


class MembershipFilter(filters.FilterSet):
    """Filter for membership cards"""

    card_number = filters.CharFilter(field_name='card_number', lookup_expr='icontains')
    card_type = filters.CharFilter(field_name='card_type')
    status = filters.CharFilter(field_name='status')
    customer_id = filters.NumberFilter(field_name='customer_id')
    expired = filters.BooleanFilter(method='filter_expired')

    class Meta:
        model = Membership
        fields = ['card_number', 'card_type', 'status', 'customer_id', 'expired']

    def filter_expired(self, queryset, name, value):
        """Filter by expiry date rather than stored status"""
        if value:
            return queryset.filter(expiry_date__lt=timezone.now())
        return queryset.filter(expiry_date__gte=timezone.now())


class RechargeFilter(DateRangeFilterSet):
    date_field = 'recharge_date'

    class Meta:
        model = Recharge
        fields = ['start_date', 'end_date', 'payment_method']


class ConsumptionFilter(DateRangeFilterSet):
    date_field = 'date'

    class Meta:
        model = Consumption
        fields = ['start_date', 'end_date', 'therapist']

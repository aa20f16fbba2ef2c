# apps/visits/filters.py

from core.filters import DateRangeFilterSet
from .models import Service


class ServiceFilter(DateRangeFilterSet):
    """Filter for service visits"""

    date_field = 'service_date'

    class Meta:
        model = Service
        fields = ['customer', 'therapist', 'membership', 'payment_method', 'service_type']

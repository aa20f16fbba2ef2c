# core/filters.py

from django_filters import rest_framework as filters

from core.utils.utils import start_of_day, end_of_day


class DateRangeFilterSet(filters.FilterSet):
    """Inclusive start_date/end_date (YYYY-MM-DD) on `date_field`"""

    date_field = None

    start_date = filters.DateFilter(method='filter_start_date')
    end_date = filters.DateFilter(method='filter_end_date')

    def filter_start_date(self, queryset, name, value):
        return queryset.filter(**{f'{self.date_field}__gte': start_of_day(value)})

    def filter_end_date(self, queryset, name, value):
        return queryset.filter(**{f'{self.date_field}__lte': end_of_day(value)})

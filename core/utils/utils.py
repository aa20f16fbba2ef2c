# core/utils/utils.py
import calendar
from datetime import datetime, time, timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError


# ===========================================
# DATES & REPORTING WINDOWS
# ===========================================
def local_now():
    return timezone.localtime(timezone.now())


def start_of_day(value):
    """Aware datetime at local midnight for a date"""
    return timezone.make_aware(datetime.combine(value, time.min))


def end_of_day(value):
    return timezone.make_aware(datetime.combine(value, time.max))


def add_months(value, months):
    """Shift a date/datetime by whole calendar months, clamping the day to the month end"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_window(now=None):
    """[first instant, last instant] of the current local calendar month"""
    now = timezone.localtime(now or timezone.now())
    first = now.date().replace(day=1)
    last = first.replace(day=calendar.monthrange(first.year, first.month)[1])
    return start_of_day(first), end_of_day(last)


def parse_date_param(value, name):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError({name: 'Invalid date format. Use YYYY-MM-DD.'})


def resolve_window(query_params):
    """
    Read startDate/endDate (YYYY-MM-DD) from query params.

    Without either date the window is the current calendar month; a single
    date on its own is rejected. The end date is inclusive.
    """
    start_date = query_params.get('startDate') or query_params.get('start_date')
    end_date = query_params.get('endDate') or query_params.get('end_date')

    if not start_date and not end_date:
        return month_window()
    if not end_date:
        raise ValidationError({'endDate': 'endDate is required when startDate is given.'})
    if not start_date:
        raise ValidationError({'startDate': 'startDate is required when endDate is given.'})

    start = parse_date_param(start_date, 'startDate')
    end = parse_date_param(end_date, 'endDate')
    if start > end:
        raise ValidationError({'startDate': 'Start date must be before end date.'})
    return start_of_day(start), end_of_day(end)


def previous_window(start, end):
    """Window of equal length ending right before `start`"""
    duration = end - start
    return start - duration, start - timedelta(milliseconds=1)


def days_window(days):
    """Last `days` local days, today included"""
    today = local_now().date()
    return start_of_day(today - timedelta(days=days - 1)), end_of_day(today)


# ===========================================
# NUMBERS
# ===========================================
def round_half_up(value, places=0):
    exponent = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    return int(rounded) if places == 0 else float(rounded)


def growth_rate(current, previous):
    """Percentage change vs the previous period; 100 when there is no baseline"""
    if not previous:
        return 100
    return round_half_up((Decimal(str(current)) - Decimal(str(previous))) / Decimal(str(previous)) * 100, 1)


def percentage(part, total):
    return round_half_up(Decimal(str(part)) / Decimal(str(total)) * 100) if total else 0


# ===========================================
# SEQUENCE NUMBERS
# ===========================================
def generate_sequence_number(prefix, digits, model, field):
    """
    Next identifier `{prefix}{n:0{digits}d}` for a date-scoped prefix.

    The counter row for the prefix is locked for the rest of the caller's
    transaction. A new counter is seeded from the greatest identifier already
    stored in `model.field` with the same prefix.
    """
    from apps.memberships.models import SequenceCounter

    with transaction.atomic():
        counter, created = SequenceCounter.objects.select_for_update().get_or_create(
            prefix=prefix,
            defaults={'last_value': 0}
        )

        if created:
            last_identifier = (
                model.objects
                .filter(**{f'{field}__startswith': prefix})
                .order_by(f'-{field}')
                .values_list(field, flat=True)
                .first()
            )
            if last_identifier:
                try:
                    counter.last_value = int(last_identifier[len(prefix):])
                except ValueError:
                    counter.last_value = 0

        counter.last_value += 1
        counter.save(update_fields=['last_value', 'updated_at'])

    return f'{prefix}{counter.last_value:0{digits}d}'

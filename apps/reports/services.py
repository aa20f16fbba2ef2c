# apps/reports/services.py
import math
from datetime import timedelta
from decimal import Decimal

from django.db.models import Sum, Count, Avg, Max, Q
from django.db.models.functions import TruncDate, TruncMonth, TruncYear
from django.utils import timezone

from core import constants
from core.constants import CardStatus, CardType, ServicePaymentModes
from core.utils.utils import (
    add_months, growth_rate, percentage, previous_window,
    round_half_up, start_of_day, end_of_day
)
from apps.customers.models import Customer
from apps.memberships.models import Membership, Recharge
from apps.visits.models import Service


def _sum(queryset, field):
    return queryset.aggregate(total=Sum(field))['total'] or Decimal('0.00')


class ReportService:
    """Read-only business statistics over a [start, end] window"""

    @staticmethod
    def _services(start, end):
        return Service.objects.filter(service_date__gte=start, service_date__lte=end)

    @staticmethod
    def _period(start, end):
        return {
            'start_date': timezone.localtime(start).date().isoformat(),
            'end_date': timezone.localtime(end).date().isoformat(),
        }

    # ===========================================
    # OVERVIEW
    # ===========================================
    @staticmethod
    def overview(start, end):
        """Headline numbers compared with the preceding window of equal length"""
        prev_start, prev_end = previous_window(start, end)

        def figures(window_start, window_end):
            services = ReportService._services(window_start, window_end)
            return {
                'service_count': services.count(),
                'income': _sum(services, 'service_fee'),
                'new_members': Membership.objects.filter(
                    issue_date__gte=window_start, issue_date__lte=window_end
                ).count(),
                'avg_rating': services.filter(rating__gt=0).aggregate(avg=Avg('rating'))['avg'] or 0,
            }

        current = figures(start, end)
        previous = figures(prev_start, prev_end)

        return {
            'service_count': current['service_count'],
            'service_growth_rate': growth_rate(current['service_count'], previous['service_count']),
            'total_income': current['income'],
            'income_growth_rate': growth_rate(current['income'], previous['income']),
            'new_members': current['new_members'],
            'member_growth_rate': growth_rate(current['new_members'], previous['new_members']),
            'avg_rating': round_half_up(current['avg_rating'], 1),
            'rating_change': round_half_up(current['avg_rating'] - previous['avg_rating'], 1),
        }

    # ===========================================
    # REVENUE TREND
    # ===========================================
    @staticmethod
    def _granularity(start, end):
        days = round((end - start).total_seconds() / 86400)
        if days <= constants.DAILY_TREND_MAX_DAYS:
            return 'day'
        if days <= constants.MONTHLY_TREND_MAX_DAYS:
            return 'month'
        return 'year'

    @staticmethod
    def _bucket_keys(start, end, granularity):
        """Every period key between start and end, in order"""
        first = timezone.localtime(start).date()
        last = timezone.localtime(end).date()
        keys = []

        if granularity == 'day':
            current = first
            while current <= last:
                keys.append(current.isoformat())
                current += timedelta(days=1)
        elif granularity == 'month':
            current = first.replace(day=1)
            while current <= last:
                keys.append(current.strftime('%Y-%m'))
                current = add_months(current, 1)
        else:
            keys = [str(year) for year in range(first.year, last.year + 1)]
        return keys

    @staticmethod
    def _revenue_by_bucket(start, end, granularity):
        trunc = {'day': TruncDate, 'month': TruncMonth, 'year': TruncYear}[granularity]
        key_format = {'day': '%Y-%m-%d', 'month': '%Y-%m', 'year': '%Y'}[granularity]

        rows = (
            ReportService._services(start, end)
            .annotate(bucket=trunc('service_date'))
            .order_by()
            .values('bucket')
            .annotate(revenue=Sum('service_fee'))
        )
        return {row['bucket'].strftime(key_format): row['revenue'] or Decimal('0.00') for row in rows}

    @staticmethod
    def _last_year_key(key, granularity):
        """Same period one year earlier (Feb 29 maps to Feb 28)"""
        if granularity == 'year':
            return str(int(key) - 1)
        year, rest = key.split('-', 1)
        if granularity == 'day' and rest == '02-29':
            rest = '02-28'
        return f"{int(year) - 1}-{rest}"

    @staticmethod
    def revenue_trend(start, end):
        """
        Service revenue per day, month or year across the window.

        Periods without services are filled with zero. Each period carries the
        revenue of the same period one year earlier.
        """
        granularity = ReportService._granularity(start, end)
        keys = ReportService._bucket_keys(start, end, granularity)

        current = ReportService._revenue_by_bucket(start, end, granularity)
        last_year = ReportService._revenue_by_bucket(
            add_months(start, -12), add_months(end, -12), granularity
        )

        series = []
        for key in keys:
            series.append({
                'period': key,
                'revenue': current.get(key, Decimal('0.00')),
                'last_year_revenue': last_year.get(ReportService._last_year_key(key, granularity), Decimal('0.00')),
            })

        return {
            'granularity': granularity,
            'period': ReportService._period(start, end),
            'series': series,
        }

    # ===========================================
    # INCOME
    # ===========================================
    @staticmethod
    def income_composition(start, end):
        """Split of income into new cards, services paid directly and recharges"""
        new_card = _sum(
            Membership.objects.filter(issue_date__gte=start, issue_date__lte=end),
            'initial_amount'
        )
        service = _sum(
            ReportService._services(start, end).exclude(payment_method=ServicePaymentModes.MEMBERSHIP),
            'service_fee'
        )
        recharge = _sum(
            Recharge.objects.filter(recharge_date__gte=start, recharge_date__lte=end, is_initial=False),
            'amount'
        )
        total = new_card + service + recharge

        categories = [
            ('new_card', 'New cards', new_card),
            ('service', 'Services', service),
            ('recharge', 'Recharges', recharge),
        ]
        return {
            'total': total,
            'categories': [
                {'key': key, 'name': name, 'amount': amount, 'percentage': percentage(amount, total)}
                for key, name, amount in categories
            ],
        }

    @staticmethod
    def card_revenue(start, end):
        """New-card and renewal income per card type"""
        new_cards = {
            row['card_type']: row['total']
            for row in Membership.objects.filter(issue_date__gte=start, issue_date__lte=end)
            .order_by().values('card_type').annotate(total=Sum('initial_amount'))
        }
        renewals = {
            row['membership__card_type']: row['total']
            for row in Recharge.objects.filter(
                recharge_date__gte=start, recharge_date__lte=end, is_initial=False
            ).order_by().values('membership__card_type').annotate(total=Sum('amount'))
        }

        result = []
        for card_type, label in CardType.choices:
            new_amount = new_cards.get(card_type) or Decimal('0.00')
            renewal_amount = renewals.get(card_type) or Decimal('0.00')
            result.append({
                'card_type': card_type,
                'label': label,
                'new_card_amount': new_amount,
                'renewal_amount': renewal_amount,
                'total': new_amount + renewal_amount,
            })
        return result

    # ===========================================
    # THERAPISTS & CUSTOMERS
    # ===========================================
    @staticmethod
    def therapist_performance(start, end):
        rated = Q(rating__gt=0)
        rows = (
            ReportService._services(start, end)
            .filter(therapist__isnull=False)
            .order_by()
            .values('therapist', 'therapist__name')
            .annotate(
                service_count=Count('id'),
                revenue=Sum('service_fee'),
                total_duration=Sum('duration'),
                rating_count=Count('id', filter=rated),
                avg_rating=Avg('rating', filter=rated),
                good_ratings=Count('id', filter=Q(rating__gte=4)),
            )
        )

        prev_start, prev_end = previous_window(start, end)
        previous_counts = {
            row['therapist']: row['service_count']
            for row in ReportService._services(prev_start, prev_end)
            .filter(therapist__isnull=False)
            .order_by()
            .values('therapist')
            .annotate(service_count=Count('id'))
        }

        result = []
        for row in rows:
            result.append({
                'therapist_id': row['therapist'],
                'name': row['therapist__name'],
                'service_count': row['service_count'],
                'service_hours': round_half_up((row['total_duration'] or 0) / 60, 1),
                'total_duration': row['total_duration'] or 0,
                'revenue': row['revenue'] or Decimal('0.00'),
                'avg_rating': round_half_up(row['avg_rating'] or 0, 1),
                'satisfaction_rate': percentage(row['good_ratings'], row['rating_count']),
                'growth_rate': growth_rate(row['service_count'], previous_counts.get(row['therapist'], 0)),
            })

        result.sort(key=lambda item: item['service_count'], reverse=True)
        return result

    @staticmethod
    def customer_activity(start, end):
        """How many customers visited once, 2-3 times, ... within the window"""
        visits = (
            ReportService._services(start, end)
            .order_by()
            .values('customer')
            .annotate(visits=Count('id'))
        )

        buckets = {label: 0 for label, _, _ in constants.ACTIVITY_BUCKETS}
        for row in visits:
            for label, low, high in constants.ACTIVITY_BUCKETS:
                if row['visits'] >= low and (high is None or row['visits'] <= high):
                    buckets[label] += 1
                    break

        return [{'range': label, 'count': count} for label, count in buckets.items()]

    @staticmethod
    def customer_constitution():
        rows = (
            Customer.objects.filter(is_active=True)
            .order_by()
            .values('constitution')
            .annotate(count=Count('id'))
        )

        distribution = {}
        for row in rows:
            label = row['constitution'] or 'unknown'
            distribution[label] = distribution.get(label, 0) + row['count']

        return sorted(
            [{'constitution': label, 'count': count} for label, count in distribution.items()],
            key=lambda item: item['count'],
            reverse=True
        )

    @staticmethod
    def inactive_customers(threshold_days=constants.INACTIVE_DEFAULT_DAYS,
                           limit=constants.INACTIVE_CUSTOMER_LIMIT, now=None):
        """Customers whose last visit is at least `threshold_days` ago, longest inactive first"""
        now = now or timezone.now()
        cutoff = now - timedelta(days=threshold_days)

        rows = (
            Service.objects.filter(customer__is_active=True)
            .order_by()
            .values('customer')
            .annotate(last_visit=Max('service_date'))
            .filter(last_visit__lte=cutoff)
            .order_by('last_visit')[:limit]
        )
        last_visits = {row['customer']: row['last_visit'] for row in rows}
        customers = Customer.objects.in_bulk(list(last_visits))

        result = []
        for customer_id, last_visit in last_visits.items():
            customer = customers[customer_id]
            result.append({
                'customer_id': customer.id,
                'child_name': customer.child_name,
                'parent_name': customer.parent_name,
                'phone': customer.phone,
                'last_visit': last_visit,
                'inactive_days': math.floor((now - last_visit).total_seconds() / 86400),
                'membership_status': customer.derive_membership_status(now),
            })
        return result

    @staticmethod
    def today_overview(now=None):
        now = now or timezone.now()
        today = timezone.localtime(now).date()
        start, end = start_of_day(today), end_of_day(today)
        services = ReportService._services(start, end)

        return {
            'date': today.isoformat(),
            'today_visits': services.count(),
            'today_revenue': _sum(services, 'service_fee'),
            'today_new_members': Membership.objects.filter(issue_date__gte=start, issue_date__lte=end).count(),
            'expiring_cards': Membership.objects.filter(
                status=CardStatus.ACTIVE,
                expiry_date__gte=now,
                expiry_date__lte=now + timedelta(days=constants.EXPIRING_SOON_DAYS),
            ).count(),
        }

    # ===========================================
    # COMBINED
    # ===========================================
    @staticmethod
    def dashboard(start, end):
        """All window statistics in one payload"""
        return {
            'period': ReportService._period(start, end),
            'overview': ReportService.overview(start, end),
            'revenue_trend': ReportService.revenue_trend(start, end),
            'income_composition': ReportService.income_composition(start, end),
            'card_revenue': ReportService.card_revenue(start, end),
            'therapist_performance': ReportService.therapist_performance(start, end),
            'customer_activity': ReportService.customer_activity(start, end),
            'customer_constitution': ReportService.customer_constitution(),
            'inactive_customers': ReportService.inactive_customers(),
        }

    @staticmethod
    def export_sheets(start, end):
        """Dashboard sections flattened into sheet name -> rows for the Excel export"""
        data = ReportService.dashboard(start, end)
        overview = data['overview']
        return {
            'Overview': [{**data['period'], **overview}],
            'Revenue trend': data['revenue_trend']['series'],
            'Income composition': data['income_composition']['categories'],
            'Card revenue': data['card_revenue'],
            'Therapists': data['therapist_performance'],
            'Customer activity': data['customer_activity'],
            'Constitution': data['customer_constitution'],
            'Inactive customers': data['inactive_customers'],
        }

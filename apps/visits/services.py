# apps/visits/services.py
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Avg, Count, Q, Sum
from django.db.models.functions import TruncWeek
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from core.constants import ServicePaymentModes
from core.utils.utils import add_months, end_of_day, growth_rate, month_window, round_half_up, start_of_day
from apps.memberships.services import MembershipService
from .models import Service

logger = logging.getLogger(__name__)


class VisitService:
    """
    Keeps card balances in step with services paid by membership.

    This is a second debit path next to membership consumptions: the fee is
    taken straight from the card balance and no consumption receipt is written.
    """

    @staticmethod
    def _charge_card(service):
        if service.payment_method != ServicePaymentModes.MEMBERSHIP:
            service.card_debit = 0
            return
        if service.membership is None:
            raise ValidationError({'membership': 'A membership card is required when paying by membership.'})
        if service.membership.customer_id != service.customer_id:
            raise ValidationError({'membership': 'The membership card belongs to another customer.'})

        service.membership.refresh_from_db()
        MembershipService.debit_balance(service.membership, service.service_fee)
        service.card_debit = service.service_fee

    @staticmethod
    def _refund_card(service):
        if service.membership_id and service.card_debit > 0:
            MembershipService.credit_balance(service.membership, service.card_debit)
            service.card_debit = 0

    @staticmethod
    @transaction.atomic
    def create_service(serializer):
        service = serializer.save()
        VisitService._charge_card(service)
        service.save(update_fields=['card_debit'])
        logger.info(f"Service {service.id} recorded for customer {service.customer_id} ({service.payment_method})")
        return service

    @staticmethod
    @transaction.atomic
    def update_service(serializer):
        """
        Refund the previous card charge, then charge again with the new values.

        Edits that leave card, payment method and fee untouched keep the
        existing charge, so notes on a since-frozen card can still be fixed.
        """
        previous = serializer.instance.__class__.objects.select_related('membership').get(
            pk=serializer.instance.pk
        )
        service = serializer.save()
        if (
            service.payment_method == previous.payment_method
            and service.membership_id == previous.membership_id
            and service.service_fee == previous.service_fee
        ):
            return service

        VisitService._refund_card(previous)
        VisitService._charge_card(service)
        service.save(update_fields=['card_debit'])
        return service

    @staticmethod
    @transaction.atomic
    def delete_service(service):
        logger.info(f"Deleting service {service.id}")
        VisitService._refund_card(service)
        service.delete()

    # ===========================================
    # STATISTICS
    # ===========================================
    @staticmethod
    def _type_distribution(services):
        rows = (
            services.order_by()
            .values('service_type')
            .annotate(count=Count('id'))
            .order_by('-count', 'service_type')
        )
        return [{'service_type': row['service_type'], 'count': row['count']} for row in rows]

    @staticmethod
    def stats(now=None):
        """Today's takings, this month against last month, type mix and therapist workload"""
        now = now or timezone.now()
        today = timezone.localtime(now).date()
        month_start, month_end = month_window(now)
        last_start, last_end = month_window(add_months(timezone.localtime(month_start), -1))

        today_services = Service.objects.filter(
            service_date__gte=start_of_day(today), service_date__lte=end_of_day(today)
        )
        month_services = Service.objects.filter(service_date__gte=month_start, service_date__lte=month_end)
        month_count = month_services.count()
        last_month_count = Service.objects.filter(
            service_date__gte=last_start, service_date__lte=last_end
        ).count()

        workload = (
            month_services.filter(therapist__isnull=False)
            .order_by()
            .values('therapist', 'therapist__name', 'therapist__title')
            .annotate(count=Count('id'))
            .order_by('-count', 'therapist__name')
        )

        return {
            'today': {
                'service_count': today_services.count(),
                'income': today_services.aggregate(total=Sum('service_fee'))['total'] or Decimal('0.00'),
            },
            'month': {
                'service_count': month_count,
                'growth_rate': growth_rate(month_count, last_month_count),
            },
            'service_types': VisitService._type_distribution(month_services),
            'therapist_workload': [
                {
                    'therapist_id': row['therapist'],
                    'name': row['therapist__name'],
                    'title': row['therapist__title'],
                    'count': row['count'],
                }
                for row in workload
            ],
        }

    @staticmethod
    def therapist_stats(therapist, now=None):
        """One therapist's last month: volume, revenue, hours, rating and weekly trend"""
        now = now or timezone.now()
        services = Service.objects.filter(
            therapist=therapist, service_date__gte=add_months(now, -1), service_date__lte=now
        )
        totals = services.aggregate(
            service_count=Count('id'),
            revenue=Sum('service_fee'),
            total_duration=Sum('duration'),
            avg_rating=Avg('rating', filter=Q(rating__gt=0)),
        )
        weekly = (
            services.annotate(week=TruncWeek('service_date'))
            .order_by()
            .values('week')
            .annotate(count=Count('id'), revenue=Sum('service_fee'))
            .order_by('week')
        )
        total_duration = totals['total_duration'] or 0

        return {
            'therapist_id': therapist.id,
            'name': therapist.name,
            'service_count': totals['service_count'],
            'revenue': totals['revenue'] or Decimal('0.00'),
            'total_duration': total_duration,
            'work_hours': round_half_up(total_duration / 60, 1),
            'avg_rating': round_half_up(totals['avg_rating'] or 0, 1),
            'weekly_trend': [
                {
                    'week': timezone.localtime(row['week']).date().isoformat(),
                    'count': row['count'],
                    'revenue': row['revenue'] or Decimal('0.00'),
                }
                for row in weekly
            ],
            'service_type_distribution': VisitService._type_distribution(services),
        }

# apps/memberships/services.py
import logging
from datetime import timedelta
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, F
from django.db.models.functions import TruncMonth
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from core import constants
from core.constants import CardStatus, CardType, RechargeType
from core.exceptions import ConcurrentUpdate, PolicyViolation, duplicate_key_guard
from core.utils.utils import add_months, local_now, month_window, start_of_day
from apps.customers.models import Customer
from .models import Membership, Recharge, Consumption

logger = logging.getLogger(__name__)


class MembershipService:
    """Card lifecycle: issuance, recharge, consumption and status changes"""

    @staticmethod
    def _get_card(membership_id, lock=False):
        queryset = Membership.objects.select_related('customer')
        if lock:
            queryset = queryset.select_for_update()
        membership = queryset.filter(pk=membership_id).first()
        if membership is None:
            raise NotFound('Membership card not found.')
        return membership

    @staticmethod
    def _expire_if_due(membership, now):
        """Lazily move an active card past its expiry date to `expired`"""
        if membership.status == CardStatus.ACTIVE and membership.is_expired(now):
            membership.status = CardStatus.EXPIRED
            membership.save(update_fields=['status', 'updated_at'])
            logger.info(f"Card {membership.card_number} marked expired (expiry {membership.expiry_date})")
            return True
        return False

    @staticmethod
    @transaction.atomic
    def issue_card(customer_id, card_type, expiry_date, initial_amount=Decimal('0.00'),
                   bonus_amount=Decimal('0.00'), count=0, payment_method='cash',
                   membership_type=None, notes='', operator_name=''):
        """
        Issue a new card to a customer.

        A positive initial amount is recorded as the card's first recharge and
        credited together with the bonus.
        """
        customer = Customer.objects.filter(pk=customer_id, is_active=True).first()
        if customer is None:
            raise NotFound('Customer not found.')
        if card_type not in CardType.values:
            raise ValidationError({'card_type': f'Invalid card type "{card_type}".'})

        initial_amount = Decimal(initial_amount or 0)
        bonus_amount = Decimal(bonus_amount or 0)
        now = timezone.now()

        with duplicate_key_guard():
            membership = Membership.objects.create(
                card_type=card_type,
                membership_type=membership_type,
                customer=customer,
                balance=initial_amount + bonus_amount if initial_amount > 0 else Decimal('0.00'),
                count=count or 0,
                initial_amount=initial_amount,
                issue_date=now,
                expiry_date=expiry_date,
                status=CardStatus.ACTIVE,
                last_recharge_date=now if initial_amount > 0 else None,
                notes=notes,
                operator_name=operator_name,
            )

        recharge = None
        if initial_amount > 0:
            with duplicate_key_guard():
                recharge = Recharge.objects.create(
                    membership=membership,
                    customer=customer,
                    recharge_type=RechargeType.AMOUNT,
                    amount=initial_amount,
                    bonus_amount=bonus_amount,
                    recharge_count=count or 0,
                    payment_method=payment_method or 'cash',
                    is_initial=True,
                    recharge_date=now,
                    notes='Card issued',
                    operator_name=operator_name,
                )

        customer.refresh_membership_status()

        logger.info(
            f"Issued card {membership.card_number} ({card_type}) to customer {customer.id}, "
            f"initial amount {initial_amount}, bonus {bonus_amount}"
        )
        return membership, recharge

    @staticmethod
    @transaction.atomic
    def recharge(membership_id, recharge_type, total_amount, payment_method, count=None,
                 amount=None, extend_months=None, bonus_amount=Decimal('0.00'),
                 notes='', operator_name=''):
        """Top up a card and record the recharge receipt"""
        membership = MembershipService._get_card(membership_id, lock=True)

        if membership.status not in (CardStatus.ACTIVE, CardStatus.EXPIRED):
            logger.warning(f"Recharge refused for card {membership.card_number}: status {membership.status}")
            raise PolicyViolation(
                f'Cannot recharge a {membership.get_status_display().lower()} card.'
            )
        total_amount = Decimal(total_amount or 0)
        if total_amount <= 0:
            raise ValidationError({'total_amount': 'Total recharge amount must be greater than 0.'})
        if not payment_method:
            raise ValidationError({'payment_method': 'Payment method is required.'})

        count = int(count or 0)
        amount = Decimal(amount or 0)
        extend_months = int(extend_months or 0)
        bonus_amount = Decimal(bonus_amount or 0)
        now = timezone.now()

        with duplicate_key_guard():
            recharge = Recharge.objects.create(
                membership=membership,
                customer=membership.customer,
                recharge_type=recharge_type,
                amount=total_amount,
                bonus_amount=bonus_amount,
                recharge_count=count,
                extend_months=extend_months,
                payment_method=payment_method,
                recharge_date=now,
                notes=notes,
                operator_name=operator_name,
            )

        is_value_card = membership.card_type == CardType.VALUE

        if recharge_type == RechargeType.COUNT:
            if count > 0:
                membership.count += count
        elif recharge_type == RechargeType.AMOUNT:
            if is_value_card:
                membership.balance += total_amount + bonus_amount
            elif amount > 0:
                membership.balance += amount + bonus_amount
        elif recharge_type == RechargeType.EXTEND:
            MembershipService._extend(membership, extend_months, now)
        elif recharge_type == RechargeType.MIXED:
            if count > 0:
                membership.count += count
            if amount > 0:
                membership.balance += amount + bonus_amount
            elif is_value_card:
                membership.balance += total_amount + bonus_amount
            MembershipService._extend(membership, extend_months, now)
        elif is_value_card:
            # unknown recharge type: a value card still gets the money
            membership.balance += total_amount + bonus_amount

        membership.last_recharge_date = now
        if membership.status == CardStatus.EXPIRED and membership.expiry_date > now:
            membership.status = CardStatus.ACTIVE
        membership.save()

        membership.customer.refresh_membership_status()

        logger.info(
            f"Recharged card {membership.card_number} ({recharge_type}): paid {total_amount}, "
            f"balance {membership.balance}, count {membership.count}, receipt {recharge.receipt_number}"
        )
        return membership, recharge

    @staticmethod
    def _extend(membership, months, now):
        """Extend from the current expiry if still in the future, else from now"""
        if months <= 0:
            return
        base = membership.expiry_date if membership.expiry_date > now else now
        membership.expiry_date = add_months(base, months)

    @staticmethod
    def record_consumption(membership_id, service_name, amount, count, therapist=None,
                           therapist_name='', date=None, notes='', operator_name=''):
        """
        Debit a card for one service and record the consumption receipt.

        The debit is a conditional update guarded by the remaining count and
        balance, so two requests cannot overdraw the same card.
        """
        amount = Decimal(amount if amount is not None else 0)
        count = int(count or 0)
        if not service_name:
            raise ValidationError({'service_name': 'Service name is required.'})
        if amount < 0:
            raise ValidationError({'amount': 'Amount cannot be negative.'})
        if count <= 0:
            raise ValidationError({'count': 'Count must be greater than 0.'})

        now = timezone.now()
        date = date or now

        with transaction.atomic():
            membership = MembershipService._get_card(membership_id)
            expired_now = MembershipService._expire_if_due(membership, now)

            if not expired_now:
                return MembershipService._debit_for_consumption(
                    membership, service_name, amount, count, therapist,
                    therapist_name, date, notes, operator_name
                )

        membership.customer.refresh_membership_status()
        raise PolicyViolation(
            f'Card {membership.card_number} expired on {timezone.localtime(membership.expiry_date):%Y-%m-%d}.'
        )

    @staticmethod
    def _debit_for_consumption(membership, service_name, amount, count, therapist,
                               therapist_name, date, notes, operator_name):
        if membership.status != CardStatus.ACTIVE:
            logger.warning(f"Consumption refused for card {membership.card_number}: status {membership.status}")
            raise PolicyViolation(
                f'Cannot record consumption on a {membership.get_status_display().lower()} card.'
            )
        if membership.tracks_count and count > membership.count:
            raise PolicyViolation(
                f'Insufficient remaining count: {membership.count} left, {count} requested.'
            )
        if membership.tracks_balance and amount > membership.balance:
            raise PolicyViolation(
                f'Insufficient balance: {membership.balance} left, {amount} requested.'
            )

        with duplicate_key_guard():
            consumption = Consumption.objects.create(
                membership=membership,
                customer=membership.customer,
                child_name=membership.customer.child_name,
                service_name=service_name,
                amount=amount,
                count=count,
                therapist=therapist,
                therapist_name=therapist_name or (therapist.name if therapist else ''),
                date=date,
                notes=notes,
                operator_name=operator_name,
            )

        guard = {'pk': membership.pk, 'status': CardStatus.ACTIVE}
        changes = {'last_consume_date': date, 'updated_at': timezone.now()}
        if membership.tracks_count:
            guard['count__gte'] = count
            changes['count'] = F('count') - count
        if membership.tracks_balance:
            guard['balance__gte'] = amount
            changes['balance'] = F('balance') - amount

        if not Membership.objects.filter(**guard).update(**changes):
            logger.warning(f"Concurrent change on card {membership.card_number}, consumption rolled back")
            raise ConcurrentUpdate()

        membership.refresh_from_db()
        if membership.card_type == CardType.COUNT and membership.count <= 0:
            membership.status = CardStatus.DEPLETED
            membership.save(update_fields=['status', 'updated_at'])
            membership.customer.refresh_membership_status()
            logger.info(f"Card {membership.card_number} depleted")

        logger.info(
            f"Consumption {consumption.receipt_number} on card {membership.card_number}: "
            f"{service_name}, amount {amount}, count {count}"
        )
        return membership, consumption

    @staticmethod
    @transaction.atomic
    def update_status(membership_id, status, reason=''):
        """Overwrite the card status; any status may follow any other"""
        if status not in CardStatus.values:
            raise ValidationError({'status': f'Invalid status "{status}".'})

        membership = MembershipService._get_card(membership_id, lock=True)
        previous = membership.status
        membership.status = status

        if reason:
            stamp = local_now().strftime('%Y-%m-%d %H:%M:%S')
            line = f"[{stamp}] status changed to {status}, reason: {reason}"
            membership.notes = f"{membership.notes}\n{line}" if membership.notes else line

        membership.save(update_fields=['status', 'notes', 'updated_at'])
        membership.customer.refresh_membership_status()

        logger.info(f"Card {membership.card_number} status {previous} -> {status}")
        return membership

    # ===========================================
    # MEMBERSHIP PAYMENT PATH (services paid by card)
    # ===========================================
    @staticmethod
    def debit_balance(membership, amount):
        """Take a service fee from an active card's balance; no consumption receipt is written"""
        amount = Decimal(amount or 0)
        if amount <= 0:
            return
        if membership.status != CardStatus.ACTIVE:
            logger.warning(f"Service payment refused for card {membership.card_number}: status {membership.status}")
            raise PolicyViolation(
                f'Cannot pay with a {membership.get_status_display().lower()} card.'
            )
        if membership.is_expired():
            raise PolicyViolation(
                f'Card {membership.card_number} expired on {timezone.localtime(membership.expiry_date):%Y-%m-%d}.'
            )
        if membership.balance < amount:
            raise PolicyViolation(
                f'Insufficient balance: {membership.balance} left, {amount} requested.'
            )
        updated = Membership.objects.filter(
            pk=membership.pk, status=CardStatus.ACTIVE, balance__gte=amount
        ).update(
            balance=F('balance') - amount,
            last_consume_date=timezone.now(),
            updated_at=timezone.now(),
        )
        if not updated:
            raise ConcurrentUpdate()
        membership.refresh_from_db()
        logger.info(f"Debited {amount} from card {membership.card_number} for a service")

    @staticmethod
    def credit_balance(membership, amount):
        """Return a previously debited service fee to the card"""
        amount = Decimal(amount or 0)
        if amount <= 0:
            return
        Membership.objects.filter(pk=membership.pk).update(
            balance=F('balance') + amount,
            updated_at=timezone.now(),
        )
        membership.refresh_from_db()
        logger.info(f"Refunded {amount} to card {membership.card_number}")

    # ===========================================
    # DASHBOARD
    # ===========================================
    @staticmethod
    def stats(now=None):
        """Card counts, type mix, six-month issuance trend and attention lists"""
        now = now or timezone.now()
        soon = now + timedelta(days=constants.EXPIRING_SOON_DAYS)
        month_start, month_end = month_window(now)

        cards = Membership.objects.all()
        active = cards.filter(status=CardStatus.ACTIVE)
        expiring = active.filter(expiry_date__gte=now, expiry_date__lte=soon)

        type_distribution = {card_type: 0 for card_type in CardType.values}
        for row in cards.order_by().values('card_type').annotate(total=Count('id')):
            type_distribution[row['card_type']] = row['total']

        trend_start = start_of_day(add_months(timezone.localtime(month_start).date(), -5))
        months = [
            add_months(timezone.localtime(trend_start).date(), offset).strftime('%Y-%m')
            for offset in range(6)
        ]
        monthly_trends = {month: {card_type: 0 for card_type in CardType.values} for month in months}
        issued = (
            cards.filter(issue_date__gte=trend_start, issue_date__lte=month_end)
            .annotate(month=TruncMonth('issue_date'))
            .order_by()
            .values('month', 'card_type')
            .annotate(total=Count('id'))
        )
        for row in issued:
            key = row['month'].strftime('%Y-%m')
            if key in monthly_trends:
                monthly_trends[key][row['card_type']] = row['total']

        expiring_cards = [
            {
                'id': card.id,
                'card_number': card.card_number,
                'customer': card.customer.child_name,
                'card_type': card.card_type,
                'expiry_date': card.expiry_date,
                'remaining_days': card.remaining_days(now),
            }
            for card in expiring.select_related('customer').order_by('expiry_date')[:5]
        ]
        low_count_cards = [
            {
                'id': card.id,
                'card_number': card.card_number,
                'customer': card.customer.child_name,
                'count': card.count,
            }
            for card in active.filter(
                card_type__in=[CardType.COUNT, CardType.MIXED],
                count__lte=constants.LOW_COUNT_THRESHOLD,
            ).select_related('customer').order_by('count')[:5]
        ]

        return {
            'total_count': cards.count(),
            'active_count': active.count(),
            'expiring_count': expiring.count(),
            'expired_count': cards.filter(status=CardStatus.EXPIRED).count(),
            'card_type_distribution': type_distribution,
            'new_card_this_month': cards.filter(issue_date__gte=month_start, issue_date__lte=month_end).count(),
            'monthly_trends': [{'month': month, **counts} for month, counts in monthly_trends.items()],
            'expiring_cards': expiring_cards,
            'low_count_cards': low_count_cards,
        }

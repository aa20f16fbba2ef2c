# apps/memberships/models.py

import math
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from core import constants
from core.constants import CardType, CardStatus, PaymentModes, RechargeType
from core.mixins.audit_fields import AuditFieldsMixin
from core.utils.utils import generate_sequence_number, local_now


class SequenceCounter(models.Model):
    """Last issued sequence value per identifier prefix (e.g. MK202401, RC20240115)"""

    prefix = models.CharField(max_length=20, unique=True)
    last_value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'sequence_counters'

    def __str__(self):
        return f"{self.prefix}: {self.last_value}"


class MembershipType(AuditFieldsMixin, models.Model):
    """Card template offered at the front desk; never touched by ledger operations"""

    name = models.CharField(max_length=100)
    category = models.CharField(max_length=10, choices=CardType.choices)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    value_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    service_count = models.PositiveIntegerField(default=0)
    validity_days = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = 'membership_types'
        ordering = ['category', 'price']

    def __str__(self):
        return f"{self.name} ({self.get_category_display()})"


class Membership(AuditFieldsMixin, models.Model):
    """
    A customer's membership card.

    Which balance fields matter depends on the card type: count cards use
    `count`, value cards use `balance`, period cards only `expiry_date`, and
    mixed cards use both `count` and `balance`. Balances only move through
    MembershipService (and the membership payment path of services).
    """

    card_number = models.CharField(max_length=20, unique=True, blank=True, editable=False)
    card_type = models.CharField(max_length=10, choices=CardType.choices)
    membership_type = models.ForeignKey(
        MembershipType,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='memberships'
    )
    customer = models.ForeignKey(
        'customers.Customer',
        on_delete=models.PROTECT,
        related_name='memberships'
    )

    balance = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    count = models.PositiveIntegerField(default=0)
    initial_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )

    issue_date = models.DateTimeField(default=timezone.now)
    expiry_date = models.DateTimeField()
    status = models.CharField(max_length=10, choices=CardStatus.choices, default=CardStatus.ACTIVE)

    last_recharge_date = models.DateTimeField(null=True, blank=True)
    last_consume_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'memberships'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['card_number']),
            models.Index(fields=['customer', 'status']),
            models.Index(fields=['status', 'expiry_date']),
            models.Index(fields=['issue_date']),
        ]

    def __str__(self):
        return f"{self.card_number} ({self.get_card_type_display()})"

    def save(self, *args, **kwargs):
        if not self.card_number:
            # MK + yyyyMM + 3-digit monthly sequence
            prefix = f"{constants.CARD_NUMBER_PREFIX}{local_now().strftime(constants.CARD_NUMBER_DATE_FORMAT)}"
            self.card_number = generate_sequence_number(
                prefix, constants.CARD_NUMBER_DIGITS, Membership, 'card_number'
            )
        super().save(*args, **kwargs)

    def is_expired(self, now=None):
        return self.expiry_date < (now or timezone.now())

    def remaining_days(self, now=None):
        """Whole days left until expiry, rounded up; negative once expired"""
        seconds = (self.expiry_date - (now or timezone.now())).total_seconds()
        return math.ceil(seconds / 86400)

    @property
    def tracks_count(self):
        return self.card_type in (CardType.COUNT, CardType.MIXED)

    @property
    def tracks_balance(self):
        return self.card_type in (CardType.VALUE, CardType.MIXED)


class AppendOnlyLedgerMixin(models.Model):
    """Ledger rows are written once; corrections are new rows"""

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError(f"{self.__class__.__name__} records cannot be modified")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError(f"{self.__class__.__name__} records cannot be deleted")

    class Meta:
        abstract = True


class Recharge(AuditFieldsMixin, AppendOnlyLedgerMixin, models.Model):
    """One top-up of a card: money paid and what it bought"""

    membership = models.ForeignKey(Membership, on_delete=models.PROTECT, related_name='recharges')
    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='recharges')

    recharge_type = models.CharField(max_length=10, default=RechargeType.AMOUNT)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Total amount paid"
    )
    bonus_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    recharge_count = models.PositiveIntegerField(default=0)
    extend_months = models.PositiveIntegerField(default=0)
    payment_method = models.CharField(max_length=10, choices=PaymentModes.choices)
    is_initial = models.BooleanField(default=False, help_text="Payment made when the card was issued")

    receipt_number = models.CharField(max_length=20, unique=True, blank=True, editable=False)
    recharge_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'membership_recharges'
        ordering = ['-recharge_date']
        indexes = [
            models.Index(fields=['membership', 'recharge_date']),
            models.Index(fields=['recharge_date']),
        ]

    def __str__(self):
        return f"{self.receipt_number} - {self.amount}"

    def save(self, *args, **kwargs):
        if not self.receipt_number:
            prefix = f"{constants.RECHARGE_RECEIPT_PREFIX}{local_now().strftime(constants.RECEIPT_DATE_FORMAT)}"
            self.receipt_number = generate_sequence_number(
                prefix, constants.RECEIPT_DIGITS, Recharge, 'receipt_number'
            )
        super().save(*args, **kwargs)


class Consumption(AuditFieldsMixin, AppendOnlyLedgerMixin, models.Model):
    """One use of a card; customer and child name are copied for reporting"""

    membership = models.ForeignKey(Membership, on_delete=models.PROTECT, related_name='consumptions')
    customer = models.ForeignKey('customers.Customer', on_delete=models.PROTECT, related_name='consumptions')
    child_name = models.CharField(max_length=100, blank=True)

    service_name = models.CharField(max_length=100)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    count = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    therapist = models.ForeignKey(
        'customers.Therapist',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='consumptions'
    )
    therapist_name = models.CharField(max_length=100, blank=True)

    receipt_number = models.CharField(max_length=20, unique=True, blank=True, editable=False)
    date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'membership_consumptions'
        ordering = ['-date']
        indexes = [
            models.Index(fields=['membership', 'date']),
            models.Index(fields=['customer', 'date']),
        ]

    def __str__(self):
        return f"{self.receipt_number} - {self.service_name}"

    def save(self, *args, **kwargs):
        if not self.receipt_number:
            prefix = f"{constants.CONSUMPTION_RECEIPT_PREFIX}{local_now().strftime(constants.RECEIPT_DATE_FORMAT)}"
            self.receipt_number = generate_sequence_number(
                prefix, constants.RECEIPT_DIGITS, Consumption, 'receipt_number'
            )
        super().save(*args, **kwargs)

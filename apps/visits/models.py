# apps/visits/models.py

from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.utils import timezone

from core.constants import ServicePaymentModes
from core.mixins.audit_fields import AuditFieldsMixin


class Service(AuditFieldsMixin, models.Model):
    """A clinic visit: one service performed by a therapist for a customer"""

    customer = models.ForeignKey(
        'customers.Customer',
        on_delete=models.PROTECT,
        related_name='services'
    )
    membership = models.ForeignKey(
        'memberships.Membership',
        on_delete=models.PROTECT,
        related_name='services',
        null=True,
        blank=True
    )
    therapist = models.ForeignKey(
        'customers.Therapist',
        on_delete=models.SET_NULL,
        related_name='services',
        null=True,
        blank=True
    )

    service_type = models.CharField(max_length=100)
    service_date = models.DateTimeField(default=timezone.now)
    service_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    payment_method = models.CharField(
        max_length=12,
        choices=ServicePaymentModes.choices,
        default=ServicePaymentModes.CASH
    )
    # Amount taken from the card balance, returned if the service is changed or removed
    card_debit = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        editable=False
    )

    duration = models.PositiveIntegerField(default=0, help_text="Minutes")
    rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )

    symptoms = models.TextField(blank=True)
    diagnosis = models.TextField(blank=True)
    treatment = models.TextField(blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'services'
        ordering = ['-service_date']
        indexes = [
            models.Index(fields=['service_date']),
            models.Index(fields=['customer', 'service_date']),
            models.Index(fields=['therapist', 'service_date']),
        ]

    def __str__(self):
        return f"{self.service_type} - {self.customer} ({self.service_date:%Y-%m-%d})"

    @property
    def paid_by_membership(self):
        return self.payment_method == ServicePaymentModes.MEMBERSHIP

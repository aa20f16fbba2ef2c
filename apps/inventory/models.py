# apps/inventory/models.py

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from core.constants import StockTransactionType, DEFAULT_STOCK_WARNING
from core.mixins.audit_fields import AuditFieldsMixin
from core.mixins.soft_delete import SoftDeleteMixin


class InventoryItem(AuditFieldsMixin, SoftDeleteMixin, models.Model):
    """A consumable or retail product kept in stock"""

    STOCK_NONE = 'none'
    STOCK_LOW = 'low'
    STOCK_SUFFICIENT = 'sufficient'

    name = models.CharField(max_length=100)
    category = models.CharField(max_length=50, blank=True)
    specification = models.CharField(max_length=100, blank=True)
    unit = models.CharField(max_length=20, default='pcs')

    cost_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    selling_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    stock = models.PositiveIntegerField(default=0)
    warning_threshold = models.PositiveIntegerField(default=DEFAULT_STOCK_WARNING)
    supplier = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        db_table = 'inventory_items'
        ordering = ['name']
        indexes = [
            models.Index(fields=['category']),
        ]

    def __str__(self):
        return f"{self.name} ({self.stock} {self.unit})"

    @property
    def stock_status(self):
        if self.stock == 0:
            return self.STOCK_NONE
        if self.stock <= self.warning_threshold:
            return self.STOCK_LOW
        return self.STOCK_SUFFICIENT

    @property
    def total_value(self):
        return self.cost_price * self.stock


class InventoryTransaction(AuditFieldsMixin, models.Model):
    """Stock movement; `stock_after` is the running balance after the movement"""

    item = models.ForeignKey(InventoryItem, on_delete=models.PROTECT, related_name='transactions')
    type = models.CharField(max_length=5, choices=StockTransactionType.choices)
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    stock_after = models.PositiveIntegerField()
    supplier = models.CharField(max_length=100, blank=True)
    notes = models.TextField(blank=True)
    transaction_date = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'inventory_transactions'
        ordering = ['-transaction_date', '-id']
        indexes = [
            models.Index(fields=['item', 'transaction_date']),
            models.Index(fields=['type', 'transaction_date']),
        ]

    def __str__(self):
        return f"{self.get_type_display()} {self.quantity} x {self.item.name}"

    def save(self, *args, **kwargs):
        self.total_price = self.unit_price * self.quantity
        super().save(*args, **kwargs)

# apps/inventory/services.py
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Sum, Count
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from core.constants import StockTransactionType
from core.exceptions import PolicyViolation
from core.utils.utils import month_window
from .models import InventoryItem, InventoryTransaction

logger = logging.getLogger(__name__)


class InventoryService:
    """Stock movements with a running balance and a transaction log"""

    @staticmethod
    def _get_item(item_id):
        item = InventoryItem.objects.filter(pk=item_id, is_active=True).first()
        if item is None:
            raise NotFound('Inventory item not found.')
        return item

    @staticmethod
    @transaction.atomic
    def stock_in(item_id, quantity, cost_price=None, supplier='', notes='', operator_name=''):
        if quantity is None or quantity <= 0:
            raise ValidationError({'quantity': 'Quantity must be greater than 0.'})

        item = InventoryService._get_item(item_id)
        changes = {'stock': F('stock') + quantity, 'updated_at': timezone.now()}
        if cost_price is not None:
            changes['cost_price'] = cost_price
        if supplier:
            changes['supplier'] = supplier
        InventoryItem.objects.filter(pk=item.pk).update(**changes)
        item.refresh_from_db()

        entry = InventoryTransaction.objects.create(
            item=item,
            type=StockTransactionType.STOCK_IN,
            quantity=quantity,
            unit_price=item.cost_price,
            stock_after=item.stock,
            supplier=supplier or item.supplier,
            notes=notes,
            operator_name=operator_name,
        )
        logger.info(f"Stock in: {quantity} x {item.name}, stock now {item.stock}")
        return item, entry

    @staticmethod
    @transaction.atomic
    def stock_out(item_id, quantity, reason='', notes='', operator_name=''):
        if quantity is None or quantity <= 0:
            raise ValidationError({'quantity': 'Quantity must be greater than 0.'})

        item = InventoryService._get_item(item_id)
        if item.stock < quantity:
            raise PolicyViolation(f'Insufficient stock: {item.stock} {item.unit} left, {quantity} requested.')

        updated = InventoryItem.objects.filter(pk=item.pk, stock__gte=quantity).update(
            stock=F('stock') - quantity,
            updated_at=timezone.now(),
        )
        if not updated:
            raise PolicyViolation('Insufficient stock.')
        item.refresh_from_db()

        entry = InventoryTransaction.objects.create(
            item=item,
            type=StockTransactionType.STOCK_OUT,
            quantity=quantity,
            unit_price=item.selling_price,
            stock_after=item.stock,
            notes=f"{reason}: {notes}" if reason and notes else (reason or notes),
            operator_name=operator_name,
        )
        if item.stock_status != InventoryItem.STOCK_SUFFICIENT:
            logger.warning(f"{item.name} stock is {item.stock_status} ({item.stock} {item.unit})")
        logger.info(f"Stock out: {quantity} x {item.name}, stock now {item.stock}")
        return item, entry

    @staticmethod
    def stats(now=None):
        """Item count, stock value, low-stock count and this month's movements"""
        items = InventoryItem.objects.filter(is_active=True)
        total_value = sum((item.total_value for item in items), Decimal('0.00'))
        low_stock = items.filter(stock__lte=F('warning_threshold')).count()

        month_start, month_end = month_window(now)
        movements = {
            row['type']: row
            for row in InventoryTransaction.objects.filter(
                transaction_date__gte=month_start,
                transaction_date__lte=month_end,
            ).order_by().values('type').annotate(quantity=Sum('quantity'), entries=Count('id'))
        }

        def movement(kind):
            row = movements.get(kind, {})
            return {'quantity': row.get('quantity') or 0, 'entries': row.get('entries') or 0}

        return {
            'total_items': items.count(),
            'total_value': total_value,
            'low_stock_count': low_stock,
            'month_in': movement(StockTransactionType.STOCK_IN),
            'month_out': movement(StockTransactionType.STOCK_OUT),
        }

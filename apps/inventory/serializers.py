# apps/inventory/serializers.py
from decimal import Decimal

from rest_framework import serializers

from .models import InventoryItem, InventoryTransaction


class InventoryItemSerializer(serializers.ModelSerializer):
    stock_status = serializers.CharField(read_only=True)
    total_value = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = InventoryItem
        fields = [
            'id', 'name', 'category', 'specification', 'unit', 'cost_price',
            'selling_price', 'stock', 'warning_threshold', 'stock_status', 'total_value',
            'supplier', 'notes', 'is_active', 'created_at', 'updated_at',
        ]
        # stock only changes through stock-in / stock-out
        read_only_fields = ['stock', 'is_active', 'created_at', 'updated_at']


class InventoryTransactionSerializer(serializers.ModelSerializer):
    item_name = serializers.CharField(source='item.name', read_only=True)

    class Meta:
        model = InventoryTransaction
        fields = [
            'id', 'item', 'item_name', 'type', 'quantity', 'unit_price', 'total_price',
            'stock_after', 'supplier', 'notes', 'operator_name', 'transaction_date',
        ]
        read_only_fields = fields


class StockInSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    cost_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.00'), required=False
    )
    supplier = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    operator_name = serializers.CharField(required=False, allow_blank=True, default='')


class StockOutSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1)
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    operator_name = serializers.CharField(required=False, allow_blank=True, default='')

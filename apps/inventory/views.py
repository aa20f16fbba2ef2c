# apps/inventory/views.py
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.mixins.envelope import EnvelopeResponseMixin
from .filters import InventoryItemFilter, InventoryTransactionFilter
from .models import InventoryItem, InventoryTransaction
from .serializers import (
    InventoryItemSerializer, InventoryTransactionSerializer,
    StockInSerializer, StockOutSerializer
)
from .services import InventoryService


class InventoryItemViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """Stock items; stock levels move only through stock_in / stock_out"""

    queryset = InventoryItem.objects.filter(is_active=True)
    serializer_class = InventoryItemSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = InventoryItemFilter
    lookup_value_regex = r'\d+'

    @action(detail=True, methods=['post'], url_path='stock-in')
    def stock_in(self, request, pk=None):
        serializer = StockInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item, entry = InventoryService.stock_in(pk, **serializer.validated_data)
        return Response({
            'success': True,
            'message': 'Stock added successfully',
            'data': {
                'item': InventoryItemSerializer(item).data,
                'transaction': InventoryTransactionSerializer(entry).data,
            }
        })

    @action(detail=True, methods=['post'], url_path='stock-out')
    def stock_out(self, request, pk=None):
        serializer = StockOutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item, entry = InventoryService.stock_out(pk, **serializer.validated_data)
        return Response({
            'success': True,
            'message': 'Stock removed successfully',
            'data': {
                'item': InventoryItemSerializer(item).data,
                'transaction': InventoryTransactionSerializer(entry).data,
            }
        })

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return Response(InventoryService.stats())


class InventoryTransactionViewSet(EnvelopeResponseMixin, viewsets.ReadOnlyModelViewSet):
    """Stock movement log"""

    queryset = InventoryTransaction.objects.select_related('item')
    serializer_class = InventoryTransactionSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = InventoryTransactionFilter

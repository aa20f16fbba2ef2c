# apps/memberships/views.py
import logging

from django.db.models import Sum
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response

from core.mixins.envelope import EnvelopeResponseMixin
from .filters import MembershipFilter, RechargeFilter, ConsumptionFilter
from .models import MembershipType, Membership
from .serializers import (
    MembershipTypeSerializer, MembershipSerializer, IssueCardSerializer,
    CardStatusSerializer, RechargeSerializer, RechargeRequestSerializer,
    ConsumptionSerializer, ConsumptionRequestSerializer
)
from .services import MembershipService

logger = logging.getLogger(__name__)


class MembershipTypeViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """Card templates"""

    queryset = MembershipType.objects.all()
    serializer_class = MembershipTypeSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['category', 'is_active']


class MembershipViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """Membership cards and their recharge/consumption ledgers"""

    queryset = Membership.objects.select_related('customer', 'membership_type')
    serializer_class = MembershipSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = MembershipFilter
    lookup_value_regex = r'\d+'

    def create(self, request, *args, **kwargs):
        """Issue a card, optionally with an initial payment"""
        serializer = IssueCardSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        membership, recharge = MembershipService.issue_card(
            customer_id=data['customer'],
            card_type=data['card_type'],
            expiry_date=data['expiry_date'],
            initial_amount=data['initial_amount'],
            bonus_amount=data['bonus_amount'],
            count=data['count'],
            payment_method=data['payment_method'],
            membership_type=data.get('membership_type'),
            notes=data['notes'],
            operator_name=data['operator_name'],
        )

        return Response({
            'success': True,
            'message': 'Membership card issued successfully',
            'data': MembershipSerializer(membership).data,
            'recharge': RechargeSerializer(recharge).data if recharge else None,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Card dashboard figures"""
        return Response(MembershipService.stats())

    @action(detail=False, methods=['get'], url_path=r'customer/(?P<customer_id>\d+)')
    def by_customer(self, request, customer_id=None):
        """All cards of one customer, newest first"""
        memberships = self.get_queryset().filter(customer_id=customer_id)
        return Response(MembershipSerializer(memberships, many=True).data)

    @action(detail=True, methods=['get', 'post'])
    def recharge(self, request, pk=None):
        """GET: recharge history; POST: top up the card"""
        if request.method == 'GET':
            membership = self.get_object()
            return self._ledger_history(
                membership.recharges.select_related('membership'),
                RechargeFilter, RechargeSerializer, extra_sums={'total_extend_months': 'extend_months'},
                count_field='recharge_count'
            )

        serializer = RechargeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        membership, recharge = MembershipService.recharge(
            pk,
            recharge_type=data['recharge_type'],
            total_amount=data['total_amount'],
            payment_method=data['payment_method'],
            count=data['count'],
            amount=data['amount'],
            extend_months=data['extend_months'],
            bonus_amount=data['bonus_amount'],
            notes=data['notes'],
            operator_name=data['operator_name'],
        )

        return Response({
            'success': True,
            'message': 'Recharge completed successfully',
            'data': {
                'membership': MembershipSerializer(membership).data,
                'recharge': RechargeSerializer(recharge).data,
            }
        })

    @action(detail=True, methods=['get', 'post'])
    def consumption(self, request, pk=None):
        """GET: consumption history; POST: record a consumption"""
        if request.method == 'GET':
            membership = self.get_object()
            return self._ledger_history(
                membership.consumptions.select_related('membership'),
                ConsumptionFilter, ConsumptionSerializer, count_field='count'
            )

        serializer = ConsumptionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        membership, consumption = MembershipService.record_consumption(
            pk,
            service_name=data['service_name'],
            amount=data['amount'],
            count=data['count'],
            therapist=data.get('therapist'),
            therapist_name=data['therapist_name'],
            date=data.get('date'),
            notes=data['notes'],
            operator_name=data['operator_name'],
        )

        return Response({
            'success': True,
            'message': 'Consumption recorded successfully',
            'data': {
                'membership': MembershipSerializer(membership).data,
                'consumption': ConsumptionSerializer(consumption).data,
            }
        })

    @action(detail=True, methods=['patch', 'put'], url_path='status')
    def update_status(self, request, pk=None):
        """Change card status, logging the reason in the card notes"""
        serializer = CardStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        membership = MembershipService.update_status(
            pk,
            status=serializer.validated_data['status'],
            reason=serializer.validated_data['reason'],
        )
        return Response(MembershipSerializer(membership).data)

    def _ledger_history(self, queryset, filterset_class, serializer_class, count_field,
                        extra_sums=None):
        """Paginated ledger rows plus totals over every row matching the filters"""
        filterset = filterset_class(self.request.query_params, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        queryset = filterset.qs

        aggregates = {'total_amount': Sum('amount'), 'total_count': Sum(count_field)}
        for key, field in (extra_sums or {}).items():
            aggregates[key] = Sum(field)
        totals = queryset.aggregate(**aggregates)
        summary = {key: value or 0 for key, value in totals.items()}

        page = self.paginate_queryset(queryset)
        if page is not None:
            data = serializer_class(page, many=True).data
            return self.paginator.get_paginated_response(data, extra={'summary': summary})

        return Response({
            'success': True,
            'data': serializer_class(queryset, many=True).data,
            'summary': summary,
        })

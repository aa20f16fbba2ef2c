# apps/memberships/serializers.py
from decimal import Decimal

from rest_framework import serializers
from rest_framework.settings import ISO_8601

from core.constants import CardStatus, CardType, PaymentModes
from apps.customers.models import Therapist
from apps.customers.serializers import MinimalCustomerSerializer
from .models import MembershipType, Membership, Recharge, Consumption

DATETIME_INPUT_FORMATS = [ISO_8601, '%Y-%m-%d']


# ===========================================
# CARD TEMPLATES
# ===========================================
class MembershipTypeSerializer(serializers.ModelSerializer):

    class Meta:
        model = MembershipType
        fields = [
            'id', 'name', 'category', 'price', 'value_amount', 'service_count',
            'validity_days', 'description', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


# ===========================================
# CARDS
# ===========================================
class MembershipSerializer(serializers.ModelSerializer):
    """Card details; balances are owned by the ledger and cannot be edited here"""

    customer_details = MinimalCustomerSerializer(source='customer', read_only=True)
    membership_type_name = serializers.CharField(source='membership_type.name', read_only=True, default=None)
    remaining_days = serializers.SerializerMethodField()
    is_expired = serializers.SerializerMethodField()
    expiry_date = serializers.DateTimeField(input_formats=DATETIME_INPUT_FORMATS)

    class Meta:
        model = Membership
        fields = [
            'id', 'card_number', 'card_type', 'membership_type', 'membership_type_name',
            'customer', 'customer_details', 'balance', 'count', 'initial_amount',
            'issue_date', 'expiry_date', 'status', 'remaining_days', 'is_expired',
            'last_recharge_date', 'last_consume_date', 'notes', 'operator_name',
            'created_at', 'updated_at',
        ]
        read_only_fields = [
            'card_number', 'card_type', 'customer', 'balance', 'count', 'initial_amount',
            'issue_date', 'status', 'last_recharge_date', 'last_consume_date',
            'created_at', 'updated_at',
        ]

    def get_remaining_days(self, obj):
        return obj.remaining_days()

    def get_is_expired(self, obj):
        return obj.is_expired()


class IssueCardSerializer(serializers.Serializer):
    """Input for issuing a new card"""

    customer = serializers.IntegerField()
    card_type = serializers.ChoiceField(choices=CardType.choices)
    membership_type = serializers.PrimaryKeyRelatedField(
        queryset=MembershipType.objects.filter(is_active=True),
        required=False,
        allow_null=True
    )
    expiry_date = serializers.DateTimeField(input_formats=DATETIME_INPUT_FORMATS)
    count = serializers.IntegerField(min_value=0, required=False, default=0)
    initial_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
        required=False, default=Decimal('0.00')
    )
    bonus_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
        required=False, default=Decimal('0.00')
    )
    payment_method = serializers.ChoiceField(choices=PaymentModes.choices, required=False, default=PaymentModes.CASH)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    operator_name = serializers.CharField(required=False, allow_blank=True, default='')


class CardStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=CardStatus.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default='')


# ===========================================
# LEDGER
# ===========================================
class RechargeSerializer(serializers.ModelSerializer):
    card_number = serializers.CharField(source='membership.card_number', read_only=True)

    class Meta:
        model = Recharge
        fields = [
            'id', 'receipt_number', 'membership', 'card_number', 'customer',
            'recharge_type', 'amount', 'bonus_amount', 'recharge_count', 'extend_months',
            'payment_method', 'is_initial', 'recharge_date', 'notes', 'operator_name',
            'created_at',
        ]
        read_only_fields = fields


class RechargeRequestSerializer(serializers.Serializer):
    """Input for topping up a card"""

    recharge_type = serializers.CharField(max_length=10)
    count = serializers.IntegerField(min_value=0, required=False, default=0)
    amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
        required=False, default=Decimal('0.00')
    )
    extend_months = serializers.IntegerField(min_value=0, required=False, default=0)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    bonus_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0.00'),
        required=False, default=Decimal('0.00')
    )
    payment_method = serializers.ChoiceField(choices=PaymentModes.choices)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    operator_name = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_total_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Total recharge amount must be greater than 0.')
        return value


class ConsumptionSerializer(serializers.ModelSerializer):
    card_number = serializers.CharField(source='membership.card_number', read_only=True)

    class Meta:
        model = Consumption
        fields = [
            'id', 'receipt_number', 'membership', 'card_number', 'customer', 'child_name',
            'service_name', 'amount', 'count', 'therapist', 'therapist_name',
            'date', 'notes', 'operator_name', 'created_at',
        ]
        read_only_fields = fields


class ConsumptionRequestSerializer(serializers.Serializer):
    """Input for recording a card consumption"""

    service_name = serializers.CharField(max_length=100)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.00'))
    count = serializers.IntegerField(min_value=1)
    therapist = serializers.PrimaryKeyRelatedField(
        queryset=Therapist.objects.filter(is_active=True),
        required=False,
        allow_null=True
    )
    therapist_name = serializers.CharField(required=False, allow_blank=True, default='')
    date = serializers.DateTimeField(input_formats=DATETIME_INPUT_FORMATS, required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    operator_name = serializers.CharField(required=False, allow_blank=True, default='')

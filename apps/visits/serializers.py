# apps/visits/serializers.py
from rest_framework import serializers

from apps.customers.models import Customer, Therapist
from apps.memberships.models import Membership
from apps.memberships.serializers import DATETIME_INPUT_FORMATS
from .models import Service


class ServiceSerializer(serializers.ModelSerializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.filter(is_active=True))
    therapist = serializers.PrimaryKeyRelatedField(
        queryset=Therapist.objects.filter(is_active=True),
        required=False,
        allow_null=True
    )
    membership = serializers.PrimaryKeyRelatedField(
        queryset=Membership.objects.all(),
        required=False,
        allow_null=True
    )
    customer_name = serializers.CharField(source='customer.child_name', read_only=True)
    therapist_name = serializers.CharField(source='therapist.name', read_only=True, default=None)
    card_number = serializers.CharField(source='membership.card_number', read_only=True, default=None)
    service_date = serializers.DateTimeField(input_formats=DATETIME_INPUT_FORMATS, required=False)

    class Meta:
        model = Service
        fields = [
            'id', 'customer', 'customer_name', 'membership', 'card_number',
            'therapist', 'therapist_name', 'service_type', 'service_date',
            'service_fee', 'payment_method', 'card_debit', 'duration', 'rating',
            'symptoms', 'diagnosis', 'treatment', 'notes', 'operator_name',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['card_debit', 'created_at', 'updated_at']

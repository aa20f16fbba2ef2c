# apps/customers/serializers.py
from rest_framework import serializers

from .models import Customer, Therapist


class CustomerSerializer(serializers.ModelSerializer):
    child_age = serializers.IntegerField(read_only=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'child_name', 'child_gender', 'child_birthdate', 'child_age',
            'parent_name', 'relationship', 'phone', 'email', 'address',
            'constitution', 'main_symptoms', 'allergy_history', 'medical_history',
            'source', 'notes', 'membership_status', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['membership_status', 'is_active', 'created_at', 'updated_at']


class MinimalCustomerSerializer(serializers.ModelSerializer):
    """Minimal customer serializer"""

    class Meta:
        model = Customer
        fields = ['id', 'child_name', 'parent_name', 'phone']


class TherapistSerializer(serializers.ModelSerializer):

    class Meta:
        model = Therapist
        fields = [
            'id', 'name', 'gender', 'phone', 'title', 'specialties',
            'experience_years', 'notes', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['is_active', 'created_at', 'updated_at']

    def validate_specialties(self, value):
        if not all(isinstance(item, str) for item in value):
            raise serializers.ValidationError('Specialties must be a list of strings.')
        return value

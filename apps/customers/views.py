# apps/customers/views.py
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response

from core.mixins.envelope import EnvelopeResponseMixin
from apps.visits.services import VisitService
from .models import Customer, Therapist
from .serializers import CustomerSerializer, TherapistSerializer


class CustomerViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """Customer records; deleting a customer deactivates it"""

    queryset = Customer.objects.filter(is_active=True)
    serializer_class = CustomerSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['child_gender', 'membership_status', 'constitution', 'source']
    search_fields = ['child_name', 'parent_name', 'phone']


class TherapistViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """Therapist roster"""

    queryset = Therapist.objects.filter(is_active=True)
    serializer_class = TherapistSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['gender', 'title']
    search_fields = ['name', 'phone', 'title']

    @action(detail=True, methods=['get'])
    def stats(self, request, pk=None):
        """Workload, revenue and rating over the last month"""
        return Response(VisitService.therapist_stats(self.get_object()))

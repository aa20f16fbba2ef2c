# apps/visits/views.py
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.mixins.envelope import EnvelopeResponseMixin
from .filters import ServiceFilter
from .models import Service
from .serializers import ServiceSerializer
from .services import VisitService


class ServiceViewSet(EnvelopeResponseMixin, viewsets.ModelViewSet):
    """Service visits; card-paid services move the card balance"""

    queryset = Service.objects.select_related('customer', 'therapist', 'membership')
    serializer_class = ServiceSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = ServiceFilter

    def perform_create(self, serializer):
        VisitService.create_service(serializer)

    def perform_update(self, serializer):
        VisitService.update_service(serializer)

    def perform_destroy(self, instance):
        VisitService.delete_service(instance)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Today, this month against last month, type mix and therapist workload"""
        return Response(VisitService.stats())

# core/views.py
from django.utils import timezone
from rest_framework.decorators import api_view
from rest_framework.response import Response


@api_view(['GET'])
def health_check(request):
    return Response({
        'success': True,
        'status': 'ok',
        'timestamp': timezone.now().isoformat(),
    })

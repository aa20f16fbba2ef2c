# core/middleware/request_logging.py
import logging

from django.utils import timezone

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """Log method, path, status and duration of every API request"""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if self._should_skip(request):
            return self.get_response(request)

        start_time = timezone.now()
        response = self.get_response(request)
        duration_ms = (timezone.now() - start_time).total_seconds() * 1000

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.path} -> {response.status_code} ({duration_ms:.1f} ms) "
            f"from {self._get_client_ip(request)}"
        )
        return response

    def _should_skip(self, request):
        skip_paths = [
            '/admin/',
            '/static/',
            '/favicon.ico',
            '/api/health/',
        ]
        # CORS preflight
        if request.method == 'OPTIONS':
            return True
        return any(request.path.startswith(path) for path in skip_paths)

    def _get_client_ip(self, request):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR', '')

# core/middleware/__init__.py

from .request_logging import RequestLoggingMiddleware

__all__ = ['RequestLoggingMiddleware']

import logging
import time
from typing import Callable

from django.conf import settings
from django.http import HttpRequest, HttpResponse

logger = logging.getLogger('django.request')

# static assets and the admin are never interesting here
IGNORED_PREFIXES = ('/static/', '/admin/', '/favicon.ico')


class SlowRequestLoggingMiddleware:
    """Log API requests slower than SLOW_REQUEST_LOG_MS with the caller's role."""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response
        self.enabled = bool(getattr(settings, 'SLOW_REQUEST_LOG_ENABLED', True))
        self.threshold_ms = int(getattr(settings, 'SLOW_REQUEST_LOG_MS', 1200))

    def __call__(self, request: HttpRequest):
        if not self.enabled or request.path.startswith(IGNORED_PREFIXES):
            return self.get_response(request)

        started = time.perf_counter()
        response = self.get_response(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        if elapsed_ms >= self.threshold_ms:
            user = getattr(request, 'user', None)
            authenticated = user is not None and user.is_authenticated
            logger.warning(
                'SLOW_REQUEST method=%s path=%s status=%s duration_ms=%.2f user=%s role=%s',
                request.method,
                request.path,
                getattr(response, 'status_code', None),
                elapsed_ms,
                user.username if authenticated else 'anonymous',
                getattr(user, 'role', '-') if authenticated else '-',
            )
        return response

import logging
import time

logger = logging.getLogger(__name__)


EXEMPT_PREFIXES = (
    "/static/",
    "/admin/jsi18n/",
)


class RequestLogMiddleware:
    """Log one line per API request with caller, status and duration."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path
        if path.startswith(EXEMPT_PREFIXES):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        user = getattr(request, "user", None)
        user_label = user.get_username() if user is not None and user.is_authenticated else "-"
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.1f ms, user=%s)",
            request.method,
            path,
            response.status_code,
            elapsed_ms,
            user_label,
        )
        return response

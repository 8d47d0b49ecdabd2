import logging

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Framework errors keep DRF's shape plus a ``message``; the rest become a 500 body."""
    response = exception_handler(exc, context)
    if response is not None:
        data = response.data
        if isinstance(data, list):
            response.data = {"message": " ".join(str(item) for item in data), "errors": data}
        elif isinstance(data, dict) and "message" not in data:
            if "detail" in data:
                data["message"] = str(data["detail"])
            else:
                data = {"message": "Validation failed.", "errors": data}
                response.data = data
        return response

    request = context.get("request")
    view = context.get("view")
    logger.exception(
        "Unhandled error in %s %s (view=%s, user=%s)",
        getattr(request, "method", "-"),
        getattr(request, "path", "-"),
        view.__class__.__name__ if view is not None else "-",
        getattr(getattr(request, "user", None), "pk", None),
    )
    body = {
        "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
        "message": "An unexpected error occurred.",
        "detailed_message": str(exc) if settings.DEBUG else None,
    }
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

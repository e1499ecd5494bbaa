"""
Common middleware for the storefront payment backend
Request tracing for webhook deliveries.
"""

import contextvars
import logging
import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

# Request id of the delivery currently being handled, read by RequestIDFilter
current_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("current_request_id", default="-")

# ===============================================================================
# REQUEST ID MIDDLEWARE
# ===============================================================================


class RequestIDMiddleware:
    """Add unique request ID for tracing and log correlation"""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        # Reuse an upstream id when the load balancer supplies one
        request_id = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        request.META["REQUEST_ID"] = request_id
        token = current_request_id.set(request_id)

        try:
            response = self.get_response(request)
        finally:
            current_request_id.reset(token)

        # Add to response headers for debugging
        response["X-Request-ID"] = request_id
        return response


# ===============================================================================
# LOGGING FILTER
# ===============================================================================


class RequestIDFilter(logging.Filter):
    """Attach the current request id to every log record"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id.get()
        return True

"""
Observability middleware.

Structured request logging with correlation ids, tagged with the API
surface (engine-facing license API, management API or operational
endpoints) and the active OpenTelemetry trace when there is one.
"""

import logging
import time
import uuid
from typing import Callable, Dict, Optional

from django.http import HttpRequest, HttpResponse
from opentelemetry import trace
from opentelemetry.trace import format_span_id, format_trace_id

logger = logging.getLogger(__name__)

LICENSE_API_PREFIX = "/api/v1/license/"
MANAGEMENT_API_PREFIX = "/api/v1/management/"


def api_surface(path: str) -> str:
    """Name the API a request path belongs to."""
    if path.startswith(LICENSE_API_PREFIX):
        return "license"
    if path.startswith(MANAGEMENT_API_PREFIX):
        return "management"
    return "ops"


def request_status(status_code: int) -> str:
    if status_code >= 500:
        return "server_error"
    if status_code >= 400:
        return "client_error"
    return "success"


class ObservabilityMiddleware:
    """
    Middleware for request observability.

    This middleware:
    1. Generates correlation IDs for request tracing
    2. Logs request/response information
    3. Adds correlation ID and duration to response headers
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """
        Process request and add observability.

        Args:
            request: HTTP request

        Returns:
            HTTP response with observability headers
        """
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.correlation_id = correlation_id  # type: ignore

        log_extra: Dict[str, Optional[str]] = {
            "correlation_id": correlation_id,
            "api": api_surface(request.path),
            "method": request.method,
            "path": request.path,
        }
        trace_id = self._trace_ids(request, log_extra)

        start_time = time.time()
        logger.info(
            "Request started",
            extra={**log_extra, "remote_addr": request.META.get("REMOTE_ADDR")},
        )

        try:
            response = self.get_response(request)
        except Exception as e:
            logger.error(
                "Request failed",
                extra={
                    **log_extra,
                    "request_status": "exception",
                    "error_type": type(e).__name__,
                    "duration_ms": round((time.time() - start_time) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        status = request_status(response.status_code)
        log_extra.update(
            request_status=status,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )
        if response.status_code >= 500:
            logger.error("Request completed with server error", extra=log_extra)
        elif response.status_code >= 400:
            # Rejected licenses are routine; keep them at warning.
            logger.warning("Request completed with client error", extra=log_extra)
        else:
            logger.info("Request completed successfully", extra=log_extra)

        response["X-Correlation-ID"] = correlation_id
        response["X-Request-Status"] = status
        response["X-Request-Duration"] = f"{duration:.3f}"
        if trace_id:
            response["X-Trace-ID"] = trace_id
        return response

    @staticmethod
    def _trace_ids(request: HttpRequest, log_extra: Dict[str, Optional[str]]) -> Optional[str]:
        span_context = trace.get_current_span().get_span_context()
        if not span_context.is_valid:
            return None
        trace_id = format_trace_id(span_context.trace_id)
        request.trace_id = trace_id  # type: ignore
        log_extra["trace_id"] = trace_id
        log_extra["span_id"] = format_span_id(span_context.span_id)
        return trace_id

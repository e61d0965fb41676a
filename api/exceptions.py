"""
API exception handlers.

This module maps domain exceptions to REST API error responses.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    ActivationLimitReachedError,
    ActivationNotFoundError,
    DomainException,
    HardwareMismatchError,
    InvalidHardwareIdentifierError,
    InvalidKeyMaterialError,
    InvalidSignatureError,
    InvalidTierError,
    LicenseExpiredError,
    LicenseNotFoundError,
    LicenseRevokedError,
    MalformedTokenError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
DOMAIN_STATUS_CODES = (
    (LicenseNotFoundError, status.HTTP_404_NOT_FOUND),
    (ActivationNotFoundError, status.HTTP_404_NOT_FOUND),
    (LicenseExpiredError, status.HTTP_403_FORBIDDEN),
    (LicenseRevokedError, status.HTTP_403_FORBIDDEN),
    (HardwareMismatchError, status.HTTP_403_FORBIDDEN),
    (ActivationLimitReachedError, status.HTTP_403_FORBIDDEN),
    (InvalidSignatureError, status.HTTP_401_UNAUTHORIZED),
    (MalformedTokenError, status.HTTP_400_BAD_REQUEST),
    (InvalidTierError, status.HTTP_400_BAD_REQUEST),
    (InvalidHardwareIdentifierError, status.HTTP_400_BAD_REQUEST),
    (InvalidKeyMaterialError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, trace_id)
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        code = exc.default_code.upper().replace("-", "_")
        detail = response.data.get("detail", exc.default_detail) if isinstance(
            response.data, dict
        ) else response.data
        response.data = {"error": {"code": code, "message": detail}}
    elif isinstance(exc, Http404):
        response = Response(
            {"error": {"code": "NOT_FOUND", "message": "Resource not found"}},
            status=status.HTTP_404_NOT_FOUND,
        )
    else:
        response = _handle_unexpected_exception(exc, trace_id)

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def domain_status_code(exc: DomainException) -> int:
    """HTTP status for a domain exception."""
    for exc_type, status_code in DOMAIN_STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", getattr(request, "correlation_id", None))


def _handle_domain_exception(exc: DomainException, trace_id: Optional[str]) -> Response:
    """Handle domain-specific exceptions."""
    status_code = domain_status_code(exc)
    if status_code >= 500:
        logger.error(
            "Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id}
        )
    else:
        logger.warning(
            "Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id}
        )
    return Response({"error": {"code": exc.code, "message": exc.message}}, status=status_code)


def _handle_unexpected_exception(exc: Exception, trace_id: Optional[str]) -> Response:
    """Handle unexpected or untracked exceptions."""
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    return Response(
        {"error": {"code": "INTERNAL_ERROR", "message": "An internal error occurred"}},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def validation_error_response(errors: Dict[str, Any]) -> Response:
    """400 response for an invalid request body or query string."""
    return Response(
        {"error": {"code": "VALIDATION_ERROR", "message": "Invalid request", "details": errors}},
        status=status.HTTP_400_BAD_REQUEST,
    )

"""
API key authentication middleware.

This middleware protects the management API (license issuance,
revocation and listing). Engine-facing endpoints authenticate with the
license itself and are not covered.
"""

import hashlib
import hmac
import logging
from typing import Optional

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)

MANAGEMENT_PREFIX = "/api/v1/management/"


def hash_api_key(api_key: str) -> str:
    """SHA-256 hex digest stored in LICENSE_MANAGEMENT_API_KEY_HASHES."""
    return hashlib.sha256(api_key.encode()).hexdigest()


class APIKeyAuthenticationMiddleware(MiddlewareMixin):
    """
    Middleware for API key authentication.

    This middleware:
    1. Validates API keys for management APIs (/api/v1/management/*)
    2. Compares key hashes, never raw keys
    3. Returns 401 Unauthorized if authentication fails
    """

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and validate authentication.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 401 if authentication fails, None otherwise
        """
        if not request.path.startswith(MANAGEMENT_PREFIX):
            return None
        return self._authenticate_management_api(request)

    def _authenticate_management_api(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Authenticate management API request.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 401 if auth fails, None if successful
        """
        api_key = request.headers.get("X-API-Key") or request.headers.get(
            "Authorization", ""
        ).replace("Bearer ", "")

        if not api_key:
            return JsonResponse(
                {
                    "error": {
                        "code": "MISSING_API_KEY",
                        "message": "Missing API key. Provide X-API-Key header.",
                    }
                },
                status=401,
            )

        api_key_hash = hash_api_key(api_key)
        allowed = getattr(settings, "LICENSE_MANAGEMENT_API_KEY_HASHES", [])
        if not any(hmac.compare_digest(api_key_hash, known) for known in allowed):
            logger.warning("Invalid API key attempted: %s...", api_key[:4])
            return JsonResponse(
                {"error": {"code": "INVALID_API_KEY", "message": "Invalid API key"}},
                status=401,
            )

        request.api_key_hash = api_key_hash  # type: ignore
        return None

"""
Engine-side license client.

Engines validate their license against the license server on every run
and fall back to offline verification of the signed token when the
server cannot be reached in time. Offline results cannot see
revocation, so the fallback is only honored for a limited grace period
after the last successful online check.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from core.domain.exceptions import (
    ActivationLimitReachedError,
    DomainException,
    HardwareMismatchError,
    InvalidSignatureError,
    LicenseExpiredError,
    LicenseNotFoundError,
    LicenseRevokedError,
    LicenseServerUnavailableError,
    MalformedTokenError,
)
from licenses.domain.entitlements import EntitlementResolver
from licenses.domain.keys import KeyRing
from licenses.domain.services import verify_offline
from licenses.domain.token import LicenseCodec

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5
OFFLINE_GRACE_PERIOD = timedelta(days=7)
USER_AGENT = "license-trust-engine/1.0"

ONLINE_ERROR_MESSAGES = {
    "LICENSE_NOT_FOUND": (
        "The license server does not know this license. Check that the full "
        "license token was copied from the portal, or contact support."
    ),
    "LICENSE_EXPIRED": (
        "This license has expired. Renew the subscription in the portal and "
        "download the new license."
    ),
    "LICENSE_REVOKED": (
        "This license was revoked by the license server. Download your current "
        "license from the portal or contact support."
    ),
    "HARDWARE_MISMATCH": (
        "This machine is not activated for the license. Activate it, or "
        "deactivate a machine you no longer use."
    ),
    "ACTIVATION_LIMIT_REACHED": (
        "Every activation of this license is in use. Deactivate a machine you "
        "no longer use, or upgrade the license."
    ),
    "INVALID_SIGNATURE": (
        "The license server could not verify this license. Download it again "
        "from the portal or contact support."
    ),
    "MALFORMED_TOKEN": (
        "This license text is incomplete or damaged. Copy the full license "
        "token from the portal again."
    ),
}

SERVER_UNREACHABLE_MESSAGE = (
    "The license server has not been reachable for more than {days} days. "
    "Reconnect this machine to the internet so the license can be refreshed, "
    "or contact support."
)

_ERRORS_BY_CODE = {
    "LICENSE_NOT_FOUND": LicenseNotFoundError,
    "LICENSE_EXPIRED": LicenseExpiredError,
    "LICENSE_REVOKED": LicenseRevokedError,
    "HARDWARE_MISMATCH": HardwareMismatchError,
    "ACTIVATION_LIMIT_REACHED": ActivationLimitReachedError,
    "INVALID_SIGNATURE": InvalidSignatureError,
    "MALFORMED_TOKEN": MalformedTokenError,
}


@dataclass
class ValidationOutcome:
    """Result of a client-side validation."""

    license_id: str
    tier: str
    expires_at: datetime
    max_pipelines: int
    online: bool
    check_interval: Optional[int] = None
    features: List[str] = field(default_factory=list)
    message: str = ""


class LicenseClient:
    """
    Client for the engine-facing license API.

    Example:
        client = LicenseClient.from_public_keys(
            "https://license.example.com", "k1:MCowBQYDK2VwAyEA..."
        )
        outcome = client.validate(token, hardware_id)
    """

    def __init__(
        self,
        base_url: str,
        codec: LicenseCodec,
        timeout: float = DEFAULT_TIMEOUT,
        grace_period: timedelta = OFFLINE_GRACE_PERIOD,
        last_online_success: Optional[datetime] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize client.

        Args:
            base_url: License server base URL
            codec: Codec holding the trusted verification keys
            timeout: Deadline in seconds for each online call
            grace_period: How long offline results are honored after the
                last successful online check
            last_online_success: Persisted time of the last successful
                online check; None allows the offline fallback
            session: Optional requests session
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.grace_period = grace_period
        self.last_online_success = last_online_success
        self.session = session or requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self.codec = codec
        self._rejected: Dict[str, DomainException] = {}

    @classmethod
    def from_public_keys(cls, base_url: str, public_keys: str, **kwargs) -> "LicenseClient":
        """Build a client from a ``kid:base64,kid:base64`` key list."""
        return cls(base_url, LicenseCodec(KeyRing.from_config(public_keys)), **kwargs)

    def validate(
        self, token: str, hardware_id: str = "", now: Optional[datetime] = None
    ) -> ValidationOutcome:
        """
        Validate online, falling back to offline verification.

        Business outcomes reported by the server (revoked, expired,
        hardware mismatch) are final and never retried offline. Only
        an unreachable or failing server triggers the fallback.

        Args:
            token: License token
            hardware_id: Hardware identity of this machine
            now: Evaluation time (defaults to now)

        Returns:
            ValidationOutcome

        Raises:
            DomainException: With an actionable message when the license
                cannot be used
        """
        now = now or datetime.now(timezone.utc)
        try:
            data = self._post("/api/v1/license/validate", {"license": token, "hardware_id": hardware_id})
        except LicenseServerUnavailableError as e:
            logger.warning("Online license check failed, using offline check: %s", e.message)
            return self.validate_offline(token, hardware_id, now)
        except DomainException as e:
            self._rejected[token] = e
            raise

        self._rejected.pop(token, None)
        self.last_online_success = now
        return ValidationOutcome(
            license_id=data["license_id"],
            tier=data["tier"],
            expires_at=datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00")),
            max_pipelines=data["max_pipelines"],
            online=True,
            check_interval=data.get("check_interval"),
            features=list(data.get("features", [])),
        )

    def validate_offline(
        self, token: str, hardware_id: str = "", now: Optional[datetime] = None
    ) -> ValidationOutcome:
        """
        Verify the token locally within the offline grace period.

        A token the server rejected during this process lifetime stays
        rejected.

        Raises:
            LicenseServerUnavailableError: If the grace period has run out
            InvalidSignatureError: If the signature does not verify
            MalformedTokenError: If the token cannot be parsed
            LicenseExpiredError: If the embedded expiry has passed
            HardwareMismatchError: If the token is bound to other hardware
        """
        now = now or datetime.now(timezone.utc)
        if token in self._rejected:
            raise self._rejected[token]
        if self.last_online_success and now - self.last_online_success > self.grace_period:
            raise LicenseServerUnavailableError(
                SERVER_UNREACHABLE_MESSAGE.format(days=self.grace_period.days)
            )

        payload = verify_offline(self.codec, token, hardware_id, now)
        return ValidationOutcome(
            license_id=str(payload.license_id),
            tier=payload.tier.value,
            expires_at=payload.expires_at,
            max_pipelines=EntitlementResolver.max_pipelines(payload.tier),
            online=False,
            features=sorted(EntitlementResolver.features(payload.tier)),
            message=(
                "Validated offline. The license will be checked with the "
                "server again once it is reachable."
            ),
        )

    def activate(
        self,
        token: str,
        hardware_id: str,
        hostname: str = "",
        platform: str = "",
        version: str = "",
    ) -> Dict[str, Any]:
        """
        Activate this machine. Activation always needs the server.

        Returns:
            Activation response body
        """
        return self._post(
            "/api/v1/license/activate",
            {
                "license": token,
                "hardware_id": hardware_id,
                "hostname": hostname,
                "platform": platform,
                "version": version,
            },
        )

    def deactivate(self, token: str, hardware_id: str) -> Dict[str, Any]:
        """Release this machine's activation."""
        return self._post(
            "/api/v1/license/deactivate", {"license": token, "hardware_id": hardware_id}
        )

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(self.base_url + path, json=body, timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as e:
            raise LicenseServerUnavailableError(f"License server unreachable: {e}") from e

        if response.status_code >= 500:
            raise LicenseServerUnavailableError(
                f"License server error: HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError:
            raise LicenseServerUnavailableError(
                f"Unexpected license server response: HTTP {response.status_code}"
            ) from None

        if response.ok:
            return data
        raise self._error_from_response(data)

    @staticmethod
    def _error_from_response(data: Dict[str, Any]) -> DomainException:
        error = data.get("error") if isinstance(data, dict) else None
        code = error.get("code", "") if isinstance(error, dict) else ""
        error_class = _ERRORS_BY_CODE.get(code)
        if error_class is None:
            return LicenseServerUnavailableError(f"License server rejected the request: {code or data}")
        return error_class(ONLINE_ERROR_MESSAGES[code])

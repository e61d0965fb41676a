"""
License domain entity.

This is the core domain entity representing a license record: the
mutable source of truth behind an immutable signed token.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.domain.value_objects import LicenseStatus, Tier
from licenses.domain.token import TOKEN_VERSION, LicensePayload


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    Grants a tier of product entitlement to an owner for a bounded
    time window. Instances are immutable; state changes return new
    instances.
    """

    id: uuid.UUID
    owner_id: uuid.UUID
    tier: Tier
    status: LicenseStatus
    issued_at: datetime
    expires_at: datetime
    max_activations: int
    hardware_id: str
    key_id: str
    token: str
    revoked_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate license entity."""
        if not self.owner_id:
            raise ValueError("Owner ID is required")
        if self.max_activations < 1:
            raise ValueError("Max activations must be at least 1")
        if self.expires_at <= self.issued_at:
            raise ValueError("Expiry must be after issue time")

    @classmethod
    def create(
        cls,
        owner_id: uuid.UUID,
        tier: Tier,
        valid_days: int,
        max_activations: int,
        hardware_id: str = "",
        license_id: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None,
    ) -> "License":
        """
        Create a new License entity.

        Issue and expiry times are truncated to whole seconds to match
        the token encoding. created_at keeps full precision so licenses
        issued within the same second still list in issue order.

        Args:
            owner_id: Owner (user) UUID
            tier: License tier
            valid_days: Validity window in days
            max_activations: Activation cap for the tier
            hardware_id: Optional hardware binding
            license_id: Optional UUID (generated if not provided)
            now: Issue time (defaults to now)

        Returns:
            License entity instance
        """
        if valid_days < 1:
            raise ValueError("valid_days must be positive")
        now = now or _now()
        issued_at = now.replace(microsecond=0)
        return cls(
            id=license_id or uuid.uuid4(),
            owner_id=owner_id,
            tier=tier,
            status=LicenseStatus.ACTIVE,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(days=valid_days),
            max_activations=max_activations,
            hardware_id=hardware_id or "",
            key_id="",
            token="",
            revoked_at=None,
            created_at=now,
            updated_at=now,
        )

    def is_expired(self, current_time: Optional[datetime] = None) -> bool:
        """
        Check whether the validity window has passed.

        Args:
            current_time: Current time (defaults to now)

        Returns:
            True once current_time is past expires_at
        """
        return (current_time or _now()) > self.expires_at

    def is_revoked(self) -> bool:
        return self.status == LicenseStatus.REVOKED or self.revoked_at is not None

    def is_usable(self, current_time: Optional[datetime] = None) -> bool:
        """True if the license is active and not expired."""
        return self.status == LicenseStatus.ACTIVE and not self.is_expired(current_time)

    def effective_status(self, current_time: Optional[datetime] = None) -> LicenseStatus:
        """
        Status derived from stored state and the clock.

        Revocation wins over expiry.
        """
        if self.is_revoked():
            return LicenseStatus.REVOKED
        if self.status == LicenseStatus.EXPIRED or self.is_expired(current_time):
            return LicenseStatus.EXPIRED
        return LicenseStatus.ACTIVE

    def revoke(self, current_time: Optional[datetime] = None) -> "License":
        """
        Create a new License instance with revoked status.

        Revoking an already revoked license returns it unchanged.

        Returns:
            New License instance with revoked status
        """
        if self.is_revoked():
            return self
        now = current_time or _now()
        return replace(self, status=LicenseStatus.REVOKED, revoked_at=now, updated_at=now)

    def mark_expired(self) -> "License":
        """
        Create a new License instance with expired status.

        Revoked licenses keep their revoked status.

        Returns:
            New License instance with expired status
        """
        if self.is_revoked() or self.status == LicenseStatus.EXPIRED:
            return self
        return replace(self, status=LicenseStatus.EXPIRED, updated_at=_now())

    def with_token(self, token: str, key_id: str) -> "License":
        """Attach the minted token and the id of the key that signed it."""
        return replace(self, token=token, key_id=key_id)

    def to_payload(self, issuer: str = "") -> LicensePayload:
        """
        Canonical token payload for this license.

        Args:
            issuer: Issuer name embedded in the token

        Returns:
            Unsigned LicensePayload
        """
        return LicensePayload(
            license_id=self.id,
            owner_id=self.owner_id,
            tier=self.tier,
            issued_at=self.issued_at,
            expires_at=self.expires_at,
            key_id=self.key_id,
            hardware_id=self.hardware_id,
            issuer=issuer,
            version=TOKEN_VERSION,
        )

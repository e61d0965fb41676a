"""
License domain events.

Domain events represent something that happened in the license domain.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from core.domain.events import DomainEvent


class LicenseIssued(DomainEvent):
    """Event raised when a license is issued."""

    def __init__(
        self,
        license_id: uuid.UUID,
        owner_id: uuid.UUID,
        tier: str,
        expires_at: datetime,
        replaced_license_ids: Optional[list] = None,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseIssued event.

        Args:
            license_id: License UUID
            owner_id: Owner UUID
            tier: Tier value
            expires_at: Expiration datetime
            replaced_license_ids: Licenses revoked by this re-issuance
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or datetime.now(timezone.utc),
            aggregate_id=str(license_id),
            event_type="LicenseIssued",
        )
        self.license_id = license_id
        self.owner_id = owner_id
        self.tier = tier
        self.expires_at = expires_at
        self.replaced_license_ids = list(replaced_license_ids or [])

    def payload(self):
        return {
            "owner_id": str(self.owner_id),
            "tier": self.tier,
            "expires_at": self.expires_at.isoformat(),
            "replaced_license_ids": [str(i) for i in self.replaced_license_ids],
        }


class LicenseRevoked(DomainEvent):
    """Event raised when a license is revoked."""

    def __init__(
        self,
        license_id: uuid.UUID,
        owner_id: uuid.UUID,
        reason: str = "",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseRevoked event.

        Args:
            license_id: License UUID
            owner_id: Owner UUID
            reason: Why the license was revoked
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or datetime.now(timezone.utc),
            aggregate_id=str(license_id),
            event_type="LicenseRevoked",
        )
        self.license_id = license_id
        self.owner_id = owner_id
        self.reason = reason

    def payload(self):
        return {"owner_id": str(self.owner_id), "reason": self.reason}


class LicenseExpired(DomainEvent):
    """Event raised when a license is found past its expiry."""

    def __init__(
        self,
        license_id: uuid.UUID,
        owner_id: uuid.UUID,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or datetime.now(timezone.utc),
            aggregate_id=str(license_id),
            event_type="LicenseExpired",
        )
        self.license_id = license_id
        self.owner_id = owner_id

    def payload(self):
        return {"owner_id": str(self.owner_id)}

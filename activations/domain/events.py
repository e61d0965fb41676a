"""
Activation domain events.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from core.domain.events import DomainEvent


class LicenseActivated(DomainEvent):
    """Event raised when a license is activated on new hardware."""

    def __init__(
        self,
        activation_id: uuid.UUID,
        license_id: uuid.UUID,
        hardware_id: str,
        hostname: str = "",
        ip_address: str = "",
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseActivated event.

        Args:
            activation_id: Activation UUID
            license_id: License UUID
            hardware_id: Hardware identity
            hostname: Machine hostname
            ip_address: Client IP address
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or datetime.now(timezone.utc),
            aggregate_id=str(license_id),
            event_type="LicenseActivated",
        )
        self.activation_id = activation_id
        self.license_id = license_id
        self.hardware_id = hardware_id
        self.hostname = hostname
        self.ip_address = ip_address

    def payload(self):
        return {
            "activation_id": str(self.activation_id),
            "hardware_id": self.hardware_id,
            "hostname": self.hostname,
            "ip_address": self.ip_address,
        }


class LicenseDeactivated(DomainEvent):
    """Event raised when an activation slot is freed."""

    def __init__(
        self,
        activation_id: uuid.UUID,
        license_id: uuid.UUID,
        hardware_id: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseDeactivated event.

        Args:
            activation_id: Activation UUID
            license_id: License UUID
            hardware_id: Hardware identity
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or datetime.now(timezone.utc),
            aggregate_id=str(license_id),
            event_type="LicenseDeactivated",
        )
        self.activation_id = activation_id
        self.license_id = license_id
        self.hardware_id = hardware_id

    def payload(self):
        return {"activation_id": str(self.activation_id), "hardware_id": self.hardware_id}

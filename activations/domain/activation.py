"""
Activation domain entity.

An activation binds a license to one hardware identity and consumes one
of the license's activation slots until it is deactivated.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import HardwareIdentifier


@dataclass(frozen=True)
class Activation:
    """
    Activation domain entity.

    Live while deactivated_at is None. Deactivation is soft so the
    record stays as an audit trail.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    hardware_id: HardwareIdentifier
    hostname: str
    platform: str
    version: str
    ip_address: str
    activated_at: datetime
    last_seen_at: datetime
    deactivated_at: Optional[datetime]

    def __post_init__(self):
        """Validate activation entity."""
        if not self.license_id:
            raise ValueError("License ID is required")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        hardware_id: str,
        hostname: str = "",
        platform: str = "",
        version: str = "",
        ip_address: str = "",
        activation_id: Optional[uuid.UUID] = None,
        now: Optional[datetime] = None,
    ) -> "Activation":
        """
        Create a new Activation entity.

        Args:
            license_id: License UUID
            hardware_id: Hardware identity of the machine
            hostname: Machine hostname
            platform: OS/architecture reported by the engine
            version: Engine version
            ip_address: Client IP address
            activation_id: Optional UUID (generated if not provided)
            now: Activation time (defaults to now)

        Returns:
            Activation entity instance
        """
        now = now or datetime.now(timezone.utc)
        return cls(
            id=activation_id or uuid.uuid4(),
            license_id=license_id,
            hardware_id=HardwareIdentifier(hardware_id),
            hostname=hostname or "",
            platform=platform or "",
            version=version or "",
            ip_address=ip_address or "",
            activated_at=now,
            last_seen_at=now,
            deactivated_at=None,
        )

    @property
    def is_active(self) -> bool:
        return self.deactivated_at is None

    def refresh(
        self,
        hostname: str,
        platform: str,
        version: str,
        ip_address: str,
        now: Optional[datetime] = None,
    ) -> "Activation":
        """
        Create a new instance for the same hardware reconnecting.

        Returns:
            New Activation instance with updated machine details
        """
        now = now or datetime.now(timezone.utc)
        return replace(
            self,
            hostname=hostname or "",
            platform=platform or "",
            version=version or "",
            ip_address=ip_address or "",
            activated_at=now,
            last_seen_at=now,
        )

    def deactivate(self, now: Optional[datetime] = None) -> "Activation":
        """
        Create a new Activation instance with deactivated status.

        Returns:
            New Activation instance, or self if already deactivated
        """
        if not self.is_active:
            return self
        return replace(self, deactivated_at=now or datetime.now(timezone.utc))

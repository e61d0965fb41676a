"""
License DTOs for API responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from licenses.domain.license import License


@dataclass
class LicenseDTO:
    """DTO for license information."""

    id: uuid.UUID
    owner_id: uuid.UUID
    tier: str
    status: str
    issued_at: datetime
    expires_at: datetime
    max_activations: int
    hardware_id: str
    revoked_at: Optional[datetime]
    created_at: datetime

    @classmethod
    def from_entity(cls, license: License, now: Optional[datetime] = None) -> "LicenseDTO":
        """Build from a domain entity, reporting the effective status."""
        return cls(
            id=license.id,
            owner_id=license.owner_id,
            tier=license.tier.value,
            status=license.effective_status(now).value,
            issued_at=license.issued_at,
            expires_at=license.expires_at,
            max_activations=license.max_activations,
            hardware_id=license.hardware_id,
            revoked_at=license.revoked_at,
            created_at=license.created_at,
        )


@dataclass
class IssueLicenseResponseDTO:
    """DTO for issue license response."""

    license: LicenseDTO
    token: str
    revoked_license_ids: List[uuid.UUID] = field(default_factory=list)


@dataclass
class ValidationResultDTO:
    """DTO for a successful validation."""

    valid: bool
    license_id: uuid.UUID
    owner_id: uuid.UUID
    tier: str
    expires_at: datetime
    max_activations: int
    max_pipelines: int
    limits: Dict[str, int]
    features: List[str]
    check_interval: int


@dataclass
class EntitlementsDTO:
    """DTO for an owner's entitlements."""

    owner_id: uuid.UUID
    tier: Optional[str]
    max_pipelines: int
    active_licenses: int

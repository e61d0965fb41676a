"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from enum import Enum

from core.domain.exceptions import InvalidHardwareIdentifierError, InvalidTierError

HARDWARE_ID_MAX_LENGTH = 255


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


class Tier(Enum):
    """License tier value object."""

    COMMUNITY = "community"
    TRIAL = "trial"
    PRO = "pro"
    ENTERPRISE = "enterprise"

    def __str__(self) -> str:
        """Return tier as string."""
        return self.value

    @classmethod
    def parse(cls, value) -> "Tier":
        """
        Parse a tier from its string form.

        Args:
            value: Tier string (case-insensitive) or Tier

        Returns:
            Tier member

        Raises:
            InvalidTierError: If the value is not a known tier
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidTierError(f"Invalid license tier: {value!r}") from None

    @property
    def family(self) -> str:
        """
        Re-issuance family of the tier.

        Issuing a license revokes the owner's prior active license of the
        same family. Paid and trial tiers form one family.
        """
        if self is Tier.COMMUNITY:
            return "community"
        return "commercial"


class LicenseStatus(Enum):
    """License status value object."""

    ACTIVE = "active"
    EXPIRED = "expired"
    REVOKED = "revoked"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


@dataclass(frozen=True)
class HardwareIdentifier(ValueObject):
    """Hardware identity of a machine running the engine."""

    value: str

    def __post_init__(self):
        """Validate hardware identifier."""
        if not self.value or not self.value.strip():
            raise InvalidHardwareIdentifierError("Hardware identifier cannot be empty")
        if len(self.value) > HARDWARE_ID_MAX_LENGTH:
            raise InvalidHardwareIdentifierError("Hardware identifier too long")

    def __str__(self) -> str:
        """Return identifier as string."""
        return self.value

"""
Activation repository port (interface).

This defines the contract for the activation ledger's storage.
Implementations are in the infrastructure layer.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from activations.domain.activation import Activation


class ActivationRepository(ABC):
    """
    Abstract repository for Activation entities.

    Implementations wrap storage failures in PersistenceError.
    """

    @abstractmethod
    async def activate(self, activation: Activation) -> Tuple[Activation, bool]:
        """
        Atomically bind a hardware identity to a license.

        Under a lock on the license: re-checks that the license is active
        and unexpired, refreshes an existing live activation for the same
        hardware, or inserts a new one if the live count is below the
        license's max_activations.

        Args:
            activation: Candidate activation

        Returns:
            Tuple of (stored activation, created)

        Raises:
            LicenseNotFoundError: If the license does not exist
            LicenseRevokedError: If the license is revoked
            LicenseExpiredError: If the license is expired
            ActivationLimitReachedError: If no slot is free
        """
        pass

    @abstractmethod
    async def deactivate(
        self, license_id: uuid.UUID, hardware_id: str, deactivated_at: datetime
    ) -> Optional[Activation]:
        """
        Soft-delete the live activation of a hardware identity.

        Args:
            license_id: License UUID
            hardware_id: Hardware identity
            deactivated_at: Deactivation time

        Returns:
            Deactivated activation, or None if none was live
        """
        pass

    @abstractmethod
    async def find_by_id(self, activation_id: uuid.UUID) -> Optional[Activation]:
        """
        Find an activation by ID.

        Args:
            activation_id: Activation UUID

        Returns:
            Activation entity or None if not found
        """
        pass

    @abstractmethod
    async def find_live(
        self, license_id: uuid.UUID, hardware_id: str
    ) -> Optional[Activation]:
        """
        Find the live activation of a hardware identity.

        Args:
            license_id: License UUID
            hardware_id: Hardware identity

        Returns:
            Activation entity or None if not found
        """
        pass

    @abstractmethod
    async def find_all_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        """
        Find all activations for a license (live and deactivated), newest first.

        Args:
            license_id: License UUID

        Returns:
            List of Activation entities
        """
        pass

    @abstractmethod
    async def count_live(self, license_id: uuid.UUID) -> int:
        """
        Count live activations of a license.

        Args:
            license_id: License UUID

        Returns:
            Number of activations without deactivated_at
        """
        pass

    @abstractmethod
    async def touch(self, activation_id: uuid.UUID, seen_at: datetime) -> None:
        """
        Record that an activation was seen.

        Args:
            activation_id: Activation UUID
            seen_at: Time of the validation
        """
        pass

"""
License repository port (interface).

This defines the contract for the license store.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
import uuid

from activations.domain.activation import Activation
from licenses.domain.license import License


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    Implementations wrap storage failures in PersistenceError.
    """

    @abstractmethod
    async def save(self, license: License) -> License:
        """
        Save a license entity.

        Args:
            license: License entity to save

        Returns:
            Saved license entity
        """
        pass

    @abstractmethod
    async def issue(
        self,
        license: License,
        initial_activation: Optional[Activation] = None,
    ) -> Tuple[License, List[uuid.UUID]]:
        """
        Atomically store a newly issued license.

        In one transaction: locks and revokes the owner's active licenses
        of the same tier family, inserts the new license and, when given,
        its initial activation. Concurrent issuances for one owner must
        leave exactly one license of the family active.

        Args:
            license: New license (with token attached)
            initial_activation: Activation bound at issue time

        Returns:
            Tuple of (saved license entity, revoked license ids)
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_owner(self, owner_id: uuid.UUID) -> List[License]:
        """
        Find all licenses of an owner, newest first.

        Args:
            owner_id: Owner UUID

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def revoke(
        self, license_id: uuid.UUID, revoked_at: datetime
    ) -> Optional[License]:
        """
        Mark a license revoked.

        Args:
            license_id: License UUID
            revoked_at: Revocation time

        Returns:
            Revoked license, or None if it does not exist
        """
        pass

    @abstractmethod
    async def mark_expired(self, license_id: uuid.UUID) -> bool:
        """
        Flip an active license to expired.

        Args:
            license_id: License UUID

        Returns:
            True if a row changed
        """
        pass

    @abstractmethod
    async def find_stale_active(self, now: datetime, limit: int = None) -> List[License]:
        """
        Find licenses still marked active although their expiry passed.

        Args:
            now: Reference time
            limit: Optional maximum number of rows

        Returns:
            List of License entities
        """
        pass

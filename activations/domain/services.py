"""
Activation domain services.

The activation ledger binds licenses to hardware identities and
enforces the per-license activation cap.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from activations.domain.activation import Activation
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import (
    HardwareMismatchError,
    LicenseNotFoundError,
)
from licenses.domain.services import LicenseValidator, parse_license_id
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ActivationLedger:
    """Domain service for activating and deactivating hardware."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
    ):
        self.license_repository = license_repository
        self.activation_repository = activation_repository

    async def activate(
        self,
        license_id,
        hardware_id: str,
        hostname: str = "",
        platform: str = "",
        version: str = "",
        ip_address: str = "",
        now: Optional[datetime] = None,
    ) -> Tuple[Activation, bool]:
        """
        Activate a license on a machine.

        The license state is checked before the ledger is touched, then
        re-checked by the repository under the license lock. The same
        hardware reconnecting refreshes its existing activation instead
        of consuming a new slot.

        Args:
            license_id: License UUID (or its string form)
            hardware_id: Hardware identity
            hostname: Machine hostname
            platform: Machine platform
            version: Engine version
            ip_address: Client IP address
            now: Activation time (defaults to now)

        Returns:
            Tuple of (activation, created)

        Raises:
            LicenseNotFoundError: If the license does not exist
            LicenseRevokedError: If the license is revoked
            LicenseExpiredError: If the license is expired
            HardwareMismatchError: If the license is bound to other hardware
            ActivationLimitReachedError: If every slot is taken
        """
        now = now or datetime.now(timezone.utc)
        license_uuid = parse_license_id(license_id)
        candidate = Activation.create(
            license_id=license_uuid,
            hardware_id=hardware_id,
            hostname=hostname,
            platform=platform,
            version=version,
            ip_address=ip_address,
            now=now,
        )

        license = await self.license_repository.find_by_id(license_uuid)
        if license is None:
            raise LicenseNotFoundError()
        LicenseValidator.ensure_usable(license, now)
        if license.hardware_id and license.hardware_id != str(candidate.hardware_id):
            raise HardwareMismatchError()

        activation, created = await self.activation_repository.activate(candidate)
        logger.info(
            "License %s %s on hardware %s",
            license_uuid,
            "activated" if created else "re-activated",
            activation.hardware_id,
        )
        return activation, created

    async def deactivate(
        self,
        license_id,
        hardware_id: str,
        now: Optional[datetime] = None,
    ) -> Optional[Activation]:
        """
        Free the activation slot held by a machine.

        Deactivating hardware that holds no live activation is a no-op
        so callers can retry safely.

        Args:
            license_id: License UUID (or its string form)
            hardware_id: Hardware identity
            now: Deactivation time (defaults to now)

        Returns:
            The deactivated activation, or None if nothing was live
        """
        license_uuid = parse_license_id(license_id)
        deactivated = await self.activation_repository.deactivate(
            license_uuid, hardware_id, now or datetime.now(timezone.utc)
        )
        if deactivated is None:
            logger.debug("No live activation of %s on %s", license_uuid, hardware_id)
        return deactivated

    async def count_live(self, license_id: uuid.UUID) -> int:
        return await self.activation_repository.count_live(license_id)

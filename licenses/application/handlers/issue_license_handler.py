"""
IssueLicenseHandler.

Handles the issue license command.
"""

from django.conf import settings

from core.infrastructure.events import event_bus
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.dto.license_dto import IssueLicenseResponseDTO, LicenseDTO
from licenses.domain.events import LicenseIssued, LicenseRevoked
from licenses.domain.services import LicenseIssuer
from licenses.domain.token import LicenseCodec
from licenses.ports.license_repository import LicenseRepository


class IssueLicenseHandler:
    """Handler for IssueLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        codec: LicenseCodec,
        issuer_name: str = None,
    ):
        """Initialize handler with repository and signing codec."""
        self.license_repository = license_repository
        self.issuer = LicenseIssuer(
            license_repository,
            codec,
            issuer_name if issuer_name is not None else settings.LICENSE_ISSUER,
        )

    async def handle(self, command: IssueLicenseCommand) -> IssueLicenseResponseDTO:
        """
        Handle issue license command.

        Args:
            command: IssueLicenseCommand

        Returns:
            IssueLicenseResponseDTO with the license and its token

        Raises:
            InvalidTierError: If the tier is unknown
            ValueError: If valid_days is not positive
            PersistenceError: If the license could not be stored
        """
        valid_days = command.valid_days
        if valid_days is None:
            valid_days = settings.LICENSE_DEFAULT_VALID_DAYS

        license, token, superseded = await self.issuer.issue(
            owner_id=command.owner_id,
            tier=command.tier,
            valid_days=valid_days,
            hardware_id=command.hardware_id,
        )

        # Publish events
        for revoked_id in superseded:
            await event_bus.publish(
                LicenseRevoked(
                    license_id=revoked_id,
                    owner_id=license.owner_id,
                    reason=f"superseded by {license.id}",
                    occurred_at=license.issued_at,
                )
            )
        await event_bus.publish(
            LicenseIssued(
                license_id=license.id,
                owner_id=license.owner_id,
                tier=license.tier.value,
                expires_at=license.expires_at,
                replaced_license_ids=superseded,
                occurred_at=license.issued_at,
            )
        )

        return IssueLicenseResponseDTO(
            license=LicenseDTO.from_entity(license),
            token=token,
            revoked_license_ids=superseded,
        )

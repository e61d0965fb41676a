"""
RevokeLicenseHandler.

Handles the revoke license command.
"""
from datetime import datetime, timezone

from core.domain.exceptions import LicenseNotFoundError
from core.infrastructure.events import event_bus
from licenses.application.commands.revoke_license import RevokeLicenseCommand
from licenses.application.dto.license_dto import LicenseDTO
from licenses.domain.events import LicenseRevoked
from licenses.ports.license_repository import LicenseRepository


class RevokeLicenseHandler:
    """Handler for RevokeLicenseCommand."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repositories."""
        self.license_repository = license_repository

    async def handle(self, command: RevokeLicenseCommand) -> LicenseDTO:
        """
        Handle revoke license command.

        Revoking an already revoked license succeeds without a new event.
        Tokens already handed out keep verifying offline until they expire.

        Args:
            command: RevokeLicenseCommand

        Returns:
            LicenseDTO of the revoked license

        Raises:
            LicenseNotFoundError: If license not found
        """
        license = await self.license_repository.find_by_id(command.license_id)
        if not license:
            raise LicenseNotFoundError(f"License {command.license_id} not found")

        if license.is_revoked():
            return LicenseDTO.from_entity(license)

        now = datetime.now(timezone.utc)
        revoked = await self.license_repository.revoke(license.id, now)

        # Publish event
        await event_bus.publish(
            LicenseRevoked(
                license_id=revoked.id,
                owner_id=revoked.owner_id,
                reason=command.reason,
                occurred_at=now,
            )
        )

        return LicenseDTO.from_entity(revoked)

"""
DeactivateLicenseHandler.

Handler for freeing a machine's activation slot.
"""

from activations.application.commands.deactivate_license import DeactivateLicenseCommand
from activations.application.dto.activation_dto import DeactivateLicenseResponseDTO
from activations.domain.events import LicenseDeactivated
from activations.domain.services import ActivationLedger
from activations.ports.activation_repository import ActivationRepository
from core.infrastructure.events import event_bus
from licenses.domain.services import resolve_license_id
from licenses.domain.token import LicenseCodec
from licenses.ports.license_repository import LicenseRepository


class DeactivateLicenseHandler:
    """Handler for DeactivateLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
        codec: LicenseCodec,
    ):
        """Initialize handler with repositories."""
        self.codec = codec
        self.ledger = ActivationLedger(license_repository, activation_repository)

    async def handle(self, command: DeactivateLicenseCommand) -> DeactivateLicenseResponseDTO:
        """
        Handle deactivate license command.

        Deactivation is allowed for revoked and expired licenses so a
        customer can always release a machine.

        Args:
            command: DeactivateLicenseCommand

        Returns:
            DeactivateLicenseResponseDTO; deactivated is False when the
            machine held no live activation
        """
        license_id = resolve_license_id(self.codec, command.license_id_or_token)
        deactivated = await self.ledger.deactivate(license_id, command.hardware_id)

        if deactivated is None:
            return DeactivateLicenseResponseDTO(
                license_id=license_id,
                deactivated=False,
                message="No active activation for this machine",
            )

        # Publish event
        await event_bus.publish(
            LicenseDeactivated(
                activation_id=deactivated.id,
                license_id=license_id,
                hardware_id=str(deactivated.hardware_id),
                occurred_at=deactivated.deactivated_at,
            )
        )

        return DeactivateLicenseResponseDTO(
            license_id=license_id,
            deactivated=True,
            message="License deactivated successfully",
        )

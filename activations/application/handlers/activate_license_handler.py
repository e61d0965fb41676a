"""
ActivateLicenseHandler.

Handler for activating a license on a machine.
"""
import logging

from activations.application.commands.activate_license import ActivateLicenseCommand
from activations.application.dto.activation_dto import ActivateLicenseResponseDTO
from activations.domain.events import LicenseActivated
from activations.domain.services import ActivationLedger
from activations.ports.activation_repository import ActivationRepository
from core import metrics
from core.domain.exceptions import ActivationLimitReachedError
from core.infrastructure.events import event_bus
from licenses.domain.services import resolve_license_id
from licenses.domain.token import LicenseCodec
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ActivateLicenseHandler:
    """Handler for ActivateLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
        codec: LicenseCodec,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.activation_repository = activation_repository
        self.codec = codec
        self.ledger = ActivationLedger(license_repository, activation_repository)

    async def handle(self, command: ActivateLicenseCommand) -> ActivateLicenseResponseDTO:
        """
        Handle activate license command.

        Args:
            command: ActivateLicenseCommand

        Returns:
            ActivateLicenseResponseDTO with activation details

        Raises:
            LicenseNotFoundError: If license not found
            LicenseRevokedError: If the license is revoked
            LicenseExpiredError: If the license is expired
            HardwareMismatchError: If the license is bound to other hardware
            ActivationLimitReachedError: If every activation slot is taken
            InvalidSignatureError: If a token was given and does not verify
        """
        license_id = resolve_license_id(self.codec, command.license_id_or_token)

        try:
            activation, created = await self.ledger.activate(
                license_id,
                command.hardware_id,
                hostname=command.hostname,
                platform=command.platform,
                version=command.version,
                ip_address=command.ip_address,
            )
        except ActivationLimitReachedError:
            metrics.activation_limit_reached_total.inc()
            raise

        # Publish event for new slots only
        if created:
            await event_bus.publish(
                LicenseActivated(
                    activation_id=activation.id,
                    license_id=license_id,
                    hardware_id=str(activation.hardware_id),
                    hostname=activation.hostname,
                    ip_address=activation.ip_address,
                    occurred_at=activation.activated_at,
                )
            )

        license = await self.license_repository.find_by_id(license_id)
        used = await self.ledger.count_live(license_id)

        return ActivateLicenseResponseDTO(
            activation_id=activation.id,
            license_id=license_id,
            tier=license.tier.value,
            expires_at=license.expires_at,
            created=created,
            activations_used=used,
            max_activations=license.max_activations,
            message=(
                "License activated successfully"
                if created
                else "License already activated on this machine"
            ),
        )

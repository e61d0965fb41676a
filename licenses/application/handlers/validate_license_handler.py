"""
ValidateLicenseHandler.

Handles online license validation for engines.
"""
import logging
from datetime import datetime, timezone

from django.conf import settings

from activations.ports.activation_repository import ActivationRepository
from core import metrics
from core.domain.exceptions import DomainException, LicenseExpiredError
from core.infrastructure.events import event_bus
from licenses.application.dto.license_dto import ValidationResultDTO
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.domain.entitlements import EntitlementResolver
from licenses.domain.events import LicenseExpired
from licenses.domain.services import LicenseValidator
from licenses.domain.token import LicenseCodec
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ValidateLicenseHandler:
    """Handler for ValidateLicenseQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
        codec: LicenseCodec,
    ):
        """Initialize handler with repositories and verification codec."""
        self.validator = LicenseValidator(license_repository, activation_repository, codec)

    async def handle(self, query: ValidateLicenseQuery) -> ValidationResultDTO:
        """
        Handle validate license query.

        Args:
            query: ValidateLicenseQuery

        Returns:
            ValidationResultDTO with the license entitlements

        Raises:
            LicenseNotFoundError: If the license does not exist
            LicenseRevokedError: If the license is revoked
            LicenseExpiredError: If the license is expired
            HardwareMismatchError: If the hardware is not activated
            InvalidSignatureError: If a token was given and does not verify
            MalformedTokenError: If a token was given and cannot be parsed
        """
        now = datetime.now(timezone.utc)
        try:
            license = await self.validator.validate(
                query.license_id_or_token, query.hardware_id, now
            )
        except LicenseExpiredError as e:
            metrics.license_validations_total.labels(mode="online", result=e.code).inc()
            if e.status_changed:
                await event_bus.publish(
                    LicenseExpired(license_id=e.license_id, owner_id=e.owner_id, occurred_at=now)
                )
            raise
        except DomainException as e:
            metrics.license_validations_total.labels(mode="online", result=e.code).inc()
            raise

        metrics.license_validations_total.labels(mode="online", result="VALID").inc()
        return ValidationResultDTO(
            valid=True,
            license_id=license.id,
            owner_id=license.owner_id,
            tier=license.tier.value,
            expires_at=license.expires_at,
            max_activations=license.max_activations,
            max_pipelines=EntitlementResolver.max_pipelines(license.tier),
            limits=EntitlementResolver.limits(license.tier).to_dict(),
            features=sorted(EntitlementResolver.features(license.tier)),
            check_interval=settings.LICENSE_ONLINE_CHECK_INTERVAL,
        )

"""
Django implementation of ActivationRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.utils import timezone

from activations.domain.activation import Activation
from activations.infrastructure.models import Activation as ActivationModel
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import (
    ActivationLimitReachedError,
    LicenseExpiredError,
    LicenseNotFoundError,
    LicenseRevokedError,
)
from core.domain.value_objects import HardwareIdentifier, LicenseStatus
from core.infrastructure.database import persistence_errors
from licenses.infrastructure.models import License as LicenseModel

logger = logging.getLogger(__name__)


class DjangoActivationRepository(ActivationRepository):
    """
    Django ORM implementation of ActivationRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Serializes activations per license with a row lock
    3. Wraps database errors in PersistenceError
    """

    def _to_domain(self, model: ActivationModel) -> Activation:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Activation model

        Returns:
            Activation domain entity
        """
        return Activation(
            id=model.id,
            license_id=model.license_id,
            hardware_id=HardwareIdentifier(model.hardware_id),
            hostname=model.hostname,
            platform=model.platform,
            version=model.version,
            ip_address=model.ip_address,
            activated_at=model.activated_at,
            last_seen_at=model.last_seen_at,
            deactivated_at=model.deactivated_at,
        )

    def _to_model(self, activation: Activation) -> ActivationModel:
        """
        Build an unsaved Django model from a domain entity.

        Args:
            activation: Activation domain entity

        Returns:
            Django Activation model
        """
        return ActivationModel(
            id=activation.id,
            license_id=activation.license_id,
            hardware_id=str(activation.hardware_id),
            hostname=activation.hostname,
            platform=activation.platform,
            version=activation.version,
            ip_address=activation.ip_address,
            activated_at=activation.activated_at,
            last_seen_at=activation.last_seen_at,
            deactivated_at=activation.deactivated_at,
        )

    def _live(self, license_id: uuid.UUID, hardware_id: str):
        return ActivationModel.objects.filter(
            license_id=license_id,
            hardware_id=hardware_id,
            deactivated_at__isnull=True,
        )

    def _refresh(self, model: ActivationModel, activation: Activation) -> ActivationModel:
        refreshed = self._to_domain(model).refresh(
            activation.hostname,
            activation.platform,
            activation.version,
            activation.ip_address,
            activation.activated_at,
        )
        model.hostname = refreshed.hostname
        model.platform = refreshed.platform
        model.version = refreshed.version
        model.ip_address = refreshed.ip_address
        model.activated_at = refreshed.activated_at
        model.last_seen_at = refreshed.last_seen_at
        model.save(
            update_fields=[
                "hostname",
                "platform",
                "version",
                "ip_address",
                "activated_at",
                "last_seen_at",
            ]
        )
        return model

    @sync_to_async
    def activate(self, activation: Activation) -> Tuple[Activation, bool]:
        """
        Atomically bind a hardware identity to a license.

        The license row is locked for the whole count-then-insert so two
        concurrent activations of the same license cannot both take the
        last free slot.

        Args:
            activation: Candidate activation

        Returns:
            Tuple of (stored activation, created)
        """
        hardware_id = str(activation.hardware_id)
        now = activation.activated_at
        with persistence_errors("activation"), transaction.atomic():
            try:
                license = LicenseModel.objects.select_for_update().get(id=activation.license_id)
            except LicenseModel.DoesNotExist:
                raise LicenseNotFoundError() from None

            if license.status == LicenseStatus.REVOKED.value:
                raise LicenseRevokedError()
            if license.status == LicenseStatus.EXPIRED.value or license.expires_at < now:
                raise LicenseExpiredError(
                    f"License expired on {license.expires_at:%Y-%m-%d}"
                )

            existing = self._live(license.id, hardware_id).first()
            if existing is not None:
                return self._to_domain(self._refresh(existing, activation)), False

            live = ActivationModel.objects.filter(
                license_id=license.id, deactivated_at__isnull=True
            ).count()
            if live >= license.max_activations:
                raise ActivationLimitReachedError(
                    f"All {license.max_activations} activations of this license are in use"
                )

            try:
                with transaction.atomic():
                    model = self._to_model(activation)
                    model.save(force_insert=True)
            except IntegrityError:
                # Same hardware inserted by a concurrent request.
                existing = self._live(license.id, hardware_id).first()
                if existing is None:
                    raise
                logger.debug("Concurrent activation of %s on %s", license.id, hardware_id)
                return self._to_domain(self._refresh(existing, activation)), False
            return self._to_domain(model), True

    @sync_to_async
    def deactivate(
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
        with persistence_errors("deactivation"), transaction.atomic():
            model = self._live(license_id, hardware_id).select_for_update().first()
            if model is None:
                return None
            model.deactivated_at = deactivated_at
            model.save(update_fields=["deactivated_at"])
            return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, activation_id: uuid.UUID) -> Optional[Activation]:
        """
        Find an activation by ID.

        Args:
            activation_id: Activation UUID

        Returns:
            Activation entity or None if not found
        """
        with persistence_errors("activation lookup"):
            try:
                return self._to_domain(ActivationModel.objects.get(id=activation_id))
            except ActivationModel.DoesNotExist:
                return None

    @sync_to_async
    def find_live(self, license_id: uuid.UUID, hardware_id: str) -> Optional[Activation]:
        with persistence_errors("activation lookup"):
            model = self._live(license_id, hardware_id).first()
            return self._to_domain(model) if model else None

    @sync_to_async
    def find_all_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        """
        Find all activations for a license, newest first.

        Args:
            license_id: License UUID

        Returns:
            List of Activation entities
        """
        with persistence_errors("activation listing"):
            models = ActivationModel.objects.filter(license_id=license_id).order_by(
                "-activated_at"
            )
            return [self._to_domain(model) for model in models]

    @sync_to_async
    def count_live(self, license_id: uuid.UUID) -> int:
        with persistence_errors("activation count"):
            return ActivationModel.objects.filter(
                license_id=license_id, deactivated_at__isnull=True
            ).count()

    @sync_to_async
    def touch(self, activation_id: uuid.UUID, seen_at: datetime) -> None:
        with persistence_errors("activation touch"):
            ActivationModel.objects.filter(id=activation_id).update(
                last_seen_at=seen_at or timezone.now()
            )

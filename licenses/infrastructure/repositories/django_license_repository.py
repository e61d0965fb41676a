"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import connection, transaction
from django.utils import timezone

from activations.domain.activation import Activation
from activations.infrastructure.models import Activation as ActivationModel
from core.domain.value_objects import LicenseStatus, Tier
from core.infrastructure.database import persistence_errors
from licenses.domain.license import License
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Wraps database errors in PersistenceError
    """

    def _to_domain(self, model: LicenseModel) -> License:
        """
        Convert Django model to domain entity.

        Args:
            model: Django License model

        Returns:
            License domain entity
        """
        return License(
            id=model.id,
            owner_id=model.owner_id,
            tier=Tier(model.tier),
            status=LicenseStatus(model.status),
            issued_at=model.issued_at,
            expires_at=model.expires_at,
            max_activations=model.max_activations,
            hardware_id=model.hardware_id,
            key_id=model.key_id,
            token=model.token,
            revoked_at=model.revoked_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, license: License) -> LicenseModel:
        """
        Convert domain entity to Django model.

        Args:
            license: License domain entity

        Returns:
            Django License model
        """
        model, created = LicenseModel.objects.get_or_create(
            id=license.id,
            defaults={
                "owner_id": license.owner_id,
                "tier": license.tier.value,
                "status": license.status.value,
                "max_activations": license.max_activations,
                "hardware_id": license.hardware_id,
                "key_id": license.key_id,
                "token": license.token,
                "issued_at": license.issued_at,
                "expires_at": license.expires_at,
                "revoked_at": license.revoked_at,
                "created_at": license.created_at,
                "updated_at": license.updated_at,
            },
        )
        # Update if exists
        if not created:
            model.status = license.status.value
            model.max_activations = license.max_activations
            model.expires_at = license.expires_at
            model.revoked_at = license.revoked_at
            model.updated_at = license.updated_at
        return model

    @sync_to_async
    def save(self, license: License) -> License:
        """
        Save a license entity.

        Args:
            license: License entity to save

        Returns:
            Saved license entity
        """
        with persistence_errors("license save"):
            model = self._to_model(license)
            model.save()
            return self._to_domain(model)

    @staticmethod
    def _lock_owner(owner_id: uuid.UUID) -> None:
        """
        Serialize issuance per owner for the rest of the transaction.

        Row locks cannot cover an owner with no licenses yet, so
        PostgreSQL takes a transaction-scoped advisory lock keyed on the
        owner. SQLite already serializes writers.
        """
        if connection.vendor != "postgresql":
            return
        with connection.cursor() as cursor:
            cursor.execute(
                "SELECT pg_advisory_xact_lock(%s)",
                [uuid.UUID(str(owner_id)).int & 0x7FFFFFFFFFFFFFFF],
            )

    @sync_to_async
    def issue(
        self,
        license: License,
        initial_activation: Optional[Activation] = None,
    ) -> Tuple[License, List[uuid.UUID]]:
        """
        Atomically store a newly issued license.

        The owner's active, unexpired licenses of the same tier family
        are locked and revoked in the same transaction, so concurrent
        issuances for one owner leave exactly one of them active.

        Args:
            license: New license (with token attached)
            initial_activation: Activation bound at issue time

        Returns:
            Tuple of (saved license entity, revoked license ids)
        """
        family_tiers = [tier.value for tier in Tier if tier.family == license.tier.family]
        with persistence_errors("license issue"), transaction.atomic():
            self._lock_owner(license.owner_id)
            superseded = list(
                LicenseModel.objects.select_for_update()
                .filter(
                    owner_id=license.owner_id,
                    status=LicenseStatus.ACTIVE.value,
                    tier__in=family_tiers,
                    expires_at__gt=license.issued_at,
                )
                .exclude(id=license.id)
                .order_by("-created_at")
                .values_list("id", flat=True)
            )
            if superseded:
                LicenseModel.objects.filter(id__in=superseded).update(
                    status=LicenseStatus.REVOKED.value,
                    revoked_at=license.issued_at,
                    updated_at=license.issued_at,
                )
            model = self._to_model(license)
            model.save()
            if initial_activation is not None:
                ActivationModel.objects.create(
                    id=initial_activation.id,
                    license_id=model.id,
                    hardware_id=str(initial_activation.hardware_id),
                    hostname=initial_activation.hostname,
                    platform=initial_activation.platform,
                    version=initial_activation.version,
                    ip_address=initial_activation.ip_address,
                    activated_at=initial_activation.activated_at,
                    last_seen_at=initial_activation.last_seen_at,
                )
            return self._to_domain(model), superseded

    @sync_to_async
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        with persistence_errors("license lookup"):
            try:
                model = LicenseModel.objects.get(id=license_id)
                return self._to_domain(model)
            except LicenseModel.DoesNotExist:
                return None

    @sync_to_async
    def find_by_owner(self, owner_id: uuid.UUID) -> List[License]:
        """
        Find all licenses of an owner, newest first.

        Args:
            owner_id: Owner UUID

        Returns:
            List of License entities
        """
        with persistence_errors("license listing"):
            models = LicenseModel.objects.filter(owner_id=owner_id).order_by(
                "-created_at", "-issued_at"
            )
            return [self._to_domain(model) for model in models]

    @sync_to_async
    def revoke(self, license_id: uuid.UUID, revoked_at: datetime) -> Optional[License]:
        """
        Mark a license revoked. Already revoked licenses keep their
        original revocation time.
        """
        with persistence_errors("license revoke"), transaction.atomic():
            LicenseModel.objects.filter(id=license_id).exclude(
                status=LicenseStatus.REVOKED.value
            ).update(
                status=LicenseStatus.REVOKED.value,
                revoked_at=revoked_at,
                updated_at=revoked_at,
            )
            try:
                return self._to_domain(LicenseModel.objects.get(id=license_id))
            except LicenseModel.DoesNotExist:
                return None

    @sync_to_async
    def mark_expired(self, license_id: uuid.UUID) -> bool:
        """Flip an active license to expired. Revoked rows are left alone."""
        with persistence_errors("license expiry"):
            updated = LicenseModel.objects.filter(
                id=license_id, status=LicenseStatus.ACTIVE.value
            ).update(status=LicenseStatus.EXPIRED.value, updated_at=timezone.now())
            return updated > 0

    @sync_to_async
    def find_stale_active(self, now: datetime, limit: int = None) -> List[License]:
        with persistence_errors("stale license lookup"):
            queryset = LicenseModel.objects.filter(
                status=LicenseStatus.ACTIVE.value, expires_at__lt=now
            ).order_by("expires_at")
            if limit:
                queryset = queryset[:limit]
            return [self._to_domain(model) for model in queryset]


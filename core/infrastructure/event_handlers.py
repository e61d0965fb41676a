"""
Event handlers for domain events.

These handlers process domain events for side effects: audit rows,
metrics and cache invalidation. They run after the state change has
been committed.
"""

import logging

from asgiref.sync import sync_to_async
from django.db import IntegrityError

from activations.domain.events import LicenseActivated, LicenseDeactivated
from core import metrics
from core.domain.events import DomainEvent, EventHandler
from licenses.domain.events import LicenseExpired, LicenseIssued, LicenseRevoked

logger = logging.getLogger(__name__)

_AUDIT_ACTIONS = {
    "LicenseIssued": ("license", "license_issued"),
    "LicenseRevoked": ("license", "license_revoked"),
    "LicenseExpired": ("license", "license_expired"),
    "LicenseActivated": ("activation", "license_activated"),
    "LicenseDeactivated": ("activation", "license_deactivated"),
}


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes one AuditLog row per domain event. The event id is unique, so
    a redelivered event is recorded once.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        entity_type, action = _AUDIT_ACTIONS.get(event.event_type, ("license", event.event_type))
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )
        await self._write(event, entity_type, action)

    @sync_to_async
    def _write(self, event: DomainEvent, entity_type: str, action: str) -> None:
        from licenses.infrastructure.models import AuditLog

        try:
            AuditLog.objects.create(
                event_id=event.event_id,
                entity_type=entity_type,
                entity_id=event.aggregate_id,
                action=action,
                changes=event.payload(),
                occurred_at=event.occurred_at,
            )
        except IntegrityError:
            logger.debug("Audit entry for event %s already recorded", event.event_id)


class MetricsEventHandler(EventHandler):
    """Event handler that counts domain events in Prometheus."""

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, LicenseIssued):
            metrics.licenses_issued_total.labels(tier=event.tier).inc()
        elif isinstance(event, LicenseRevoked):
            metrics.licenses_revoked_total.inc()
        elif isinstance(event, LicenseExpired):
            metrics.licenses_expired_total.inc()
        elif isinstance(event, LicenseActivated):
            metrics.licenses_activated_total.inc()
        elif isinstance(event, LicenseDeactivated):
            metrics.licenses_deactivated_total.inc()


class EntitlementCacheInvalidationHandler(EventHandler):
    """
    Event handler for cache invalidation.

    Drops the owner's cached entitlements when one of their licenses
    changes state.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for cache invalidation.

        Args:
            event: Domain event carrying owner_id
        """
        from licenses.application.services.entitlement_cache_service import (
            EntitlementCacheService,
        )

        owner_id = getattr(event, "owner_id", None)
        if owner_id is None:
            logger.warning(
                "Could not find owner for cache invalidation (event: %s, aggregate_id: %s)",
                event.event_type,
                event.aggregate_id,
            )
            return
        await EntitlementCacheService.invalidate_entitlements(owner_id)


# Register event handlers
def register_event_handlers():
    """Register all event handlers with the event bus."""
    from core.infrastructure.events import event_bus

    audit_handler = AuditLogEventHandler()
    metrics_handler = MetricsEventHandler()
    cache_handler = EntitlementCacheInvalidationHandler()

    for event_type in (
        LicenseIssued,
        LicenseRevoked,
        LicenseExpired,
        LicenseActivated,
        LicenseDeactivated,
    ):
        event_bus.subscribe(event_type, audit_handler)
        event_bus.subscribe(event_type, metrics_handler)

    # Entitlements depend on license state only
    for event_type in (LicenseIssued, LicenseRevoked, LicenseExpired):
        event_bus.subscribe(event_type, cache_handler)

    logger.info("Event handlers registered")

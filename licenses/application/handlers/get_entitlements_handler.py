"""
GetEntitlementsHandler.

Resolves an owner's pipeline entitlement across their licenses.
"""
from datetime import datetime, timezone

from licenses.application.dto.license_dto import EntitlementsDTO
from licenses.application.queries.get_entitlements import GetEntitlementsQuery
from licenses.application.services.entitlement_cache_service import (
    CACHE_TTL_ENTITLEMENTS,
    EntitlementCacheService,
)
from licenses.domain.entitlements import EntitlementResolver
from licenses.ports.license_repository import LicenseRepository


class GetEntitlementsHandler:
    """Handler for GetEntitlementsQuery."""

    def __init__(self, license_repository: LicenseRepository, use_cache: bool = True):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.use_cache = use_cache

    async def handle(self, query: GetEntitlementsQuery) -> EntitlementsDTO:
        """
        Handle get entitlements query.

        Args:
            query: GetEntitlementsQuery

        Returns:
            EntitlementsDTO with the best usable tier and its pipeline limit
        """
        if self.use_cache:
            cached = await EntitlementCacheService.get_entitlements(query.owner_id)
            if cached is not None:
                return cached

        now = datetime.now(timezone.utc)
        licenses = await self.license_repository.find_by_owner(query.owner_id)
        best = EntitlementResolver.best_tier(licenses, now)
        entitlements = EntitlementsDTO(
            owner_id=query.owner_id,
            tier=best.value if best else None,
            max_pipelines=EntitlementResolver.max_pipelines_for(licenses, now),
            active_licenses=sum(1 for license in licenses if license.is_usable(now)),
        )

        if self.use_cache:
            # Never cache past the next expiry.
            ttl = CACHE_TTL_ENTITLEMENTS
            for license in licenses:
                if license.is_usable(now):
                    remaining = int((license.expires_at - now).total_seconds())
                    ttl = max(1, min(ttl, remaining))
            await EntitlementCacheService.set_entitlements(entitlements, ttl=ttl)
        return entitlements

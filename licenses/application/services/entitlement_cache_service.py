"""
Entitlement cache service.

Caches the per-owner entitlement summary. Entries are dropped by the
cache invalidation event handler whenever a license of the owner is
issued, revoked or expires.
"""
import logging
import uuid
from typing import Optional

from core.infrastructure.cache_adapters import cache_adapter
from licenses.application.dto.license_dto import EntitlementsDTO

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
CACHE_TTL_ENTITLEMENTS = 300  # 5 minutes


class EntitlementCacheService:
    """Service for caching owner entitlements."""

    @staticmethod
    def _entitlements_key(owner_id: uuid.UUID) -> str:
        """Generate cache key for owner entitlements."""
        return f"license:entitlements:{owner_id}"

    @staticmethod
    async def get_entitlements(owner_id: uuid.UUID) -> Optional[EntitlementsDTO]:
        """
        Get cached entitlements.

        Args:
            owner_id: Owner UUID

        Returns:
            Cached EntitlementsDTO or None
        """
        cached = await cache_adapter.get(EntitlementCacheService._entitlements_key(owner_id))
        if not cached:
            return None
        try:
            return EntitlementsDTO(
                owner_id=uuid.UUID(cached["owner_id"]),
                tier=cached["tier"],
                max_pipelines=cached["max_pipelines"],
                active_licenses=cached["active_licenses"],
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Error deserializing cached entitlements: %s", e)
            return None

    @staticmethod
    async def set_entitlements(entitlements: EntitlementsDTO, ttl: int = None) -> None:
        """
        Cache entitlements.

        Args:
            entitlements: EntitlementsDTO to cache
            ttl: Time to live in seconds
        """
        await cache_adapter.set(
            EntitlementCacheService._entitlements_key(entitlements.owner_id),
            {
                "owner_id": str(entitlements.owner_id),
                "tier": entitlements.tier,
                "max_pipelines": entitlements.max_pipelines,
                "active_licenses": entitlements.active_licenses,
            },
            timeout=ttl or CACHE_TTL_ENTITLEMENTS,
        )

    @staticmethod
    async def invalidate_entitlements(owner_id: uuid.UUID) -> None:
        """
        Invalidate cached entitlements of an owner.

        Args:
            owner_id: Owner UUID
        """
        await cache_adapter.delete(EntitlementCacheService._entitlements_key(owner_id))
        logger.info("Invalidated entitlements cache for owner %s", owner_id)

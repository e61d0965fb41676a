"""
Tier entitlements.

Maps a license tier to concrete limits: hardware activations, concurrent
pipelines, source/table/throughput limits and feature flags. "Unlimited"
is represented by a bounded sentinel so limits stay plain integers.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, Optional

from core.domain.value_objects import Tier

UNLIMITED = 999_999


@dataclass(frozen=True)
class TierLimits:
    """Resource limits of a tier. UNLIMITED means no practical bound."""

    max_sources: int
    max_tables: int
    max_throughput: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "max_sources": self.max_sources,
            "max_tables": self.max_tables,
            "max_throughput": self.max_throughput,
        }


_MAX_ACTIVATIONS: Dict[Tier, int] = {
    Tier.COMMUNITY: 1,
    Tier.TRIAL: 2,
    Tier.PRO: 10,
    Tier.ENTERPRISE: UNLIMITED,
}

_MAX_PIPELINES: Dict[Tier, int] = {
    Tier.COMMUNITY: 1,
    Tier.TRIAL: 5,
    Tier.PRO: 10,
    Tier.ENTERPRISE: UNLIMITED,
}

_LIMITS: Dict[Tier, TierLimits] = {
    Tier.COMMUNITY: TierLimits(max_sources=1, max_tables=10, max_throughput=1000),
    Tier.TRIAL: TierLimits(max_sources=5, max_tables=50, max_throughput=10000),
    Tier.PRO: TierLimits(max_sources=10, max_tables=100, max_throughput=50000),
    Tier.ENTERPRISE: TierLimits(
        max_sources=UNLIMITED, max_tables=UNLIMITED, max_throughput=UNLIMITED
    ),
}

COMMUNITY_FEATURES = frozenset({"postgresql", "mysql", "mariadb"})
PRO_FEATURES = COMMUNITY_FEATURES | {
    "mongodb",
    "sqlserver",
    "cassandra",
    "dynamodb",
    "snapshot",
    "kafka_output",
    "grpc_output",
}
ENTERPRISE_FEATURES = PRO_FEATURES | {"oracle", "ha", "raft_cluster", "sso", "ldap", "audit_log"}

_FEATURES: Dict[Tier, FrozenSet[str]] = {
    Tier.COMMUNITY: COMMUNITY_FEATURES,
    Tier.TRIAL: PRO_FEATURES,
    Tier.PRO: PRO_FEATURES,
    Tier.ENTERPRISE: ENTERPRISE_FEATURES,
}


def clamp_limit(value: int) -> int:
    """Keep a limit within [0, UNLIMITED]."""
    return max(0, min(int(value), UNLIMITED))


def is_unlimited(value: int) -> bool:
    return value >= UNLIMITED


class EntitlementResolver:
    """Pure functions from tier (and license sets) to entitlements."""

    @staticmethod
    def max_activations(tier) -> int:
        """
        Maximum concurrent hardware activations for a tier.

        Args:
            tier: Tier or tier string

        Returns:
            Activation cap (UNLIMITED for enterprise)
        """
        return _MAX_ACTIVATIONS[Tier.parse(tier)]

    @staticmethod
    def max_pipelines(tier) -> int:
        """
        Maximum concurrent pipelines for a tier.

        Args:
            tier: Tier or tier string

        Returns:
            Pipeline cap (UNLIMITED for enterprise)
        """
        return _MAX_PIPELINES[Tier.parse(tier)]

    @staticmethod
    def limits(tier) -> TierLimits:
        return _LIMITS[Tier.parse(tier)]

    @staticmethod
    def features(tier) -> FrozenSet[str]:
        return _FEATURES[Tier.parse(tier)]

    @staticmethod
    def has_feature(tier, feature: str) -> bool:
        return feature in _FEATURES[Tier.parse(tier)]

    @staticmethod
    def max_pipelines_for(licenses: Iterable, now: Optional[datetime] = None) -> int:
        """
        Pipeline entitlement of an owner holding several licenses.

        Takes the best tier among licenses that are active and not
        expired. Limits never stack.

        Args:
            licenses: License entities of one owner
            now: Evaluation time (defaults to now)

        Returns:
            Maximum pipeline limit, 0 when no license is usable
        """
        best = 0
        for license in licenses:
            if license.is_usable(now):
                best = max(best, EntitlementResolver.max_pipelines(license.tier))
        return best

    @staticmethod
    def best_tier(licenses: Iterable, now: Optional[datetime] = None) -> Optional[Tier]:
        """Tier of the usable license with the highest pipeline limit."""
        best = None
        for license in licenses:
            if not license.is_usable(now):
                continue
            if best is None or _MAX_PIPELINES[license.tier] > _MAX_PIPELINES[best]:
                best = license.tier
        return best

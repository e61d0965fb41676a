"""
GetEntitlementsQuery.
"""
import uuid
from dataclasses import dataclass


@dataclass
class GetEntitlementsQuery:
    """Query to resolve an owner's entitlements across their licenses."""

    owner_id: uuid.UUID

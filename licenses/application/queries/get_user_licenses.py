"""
GetUserLicensesQuery.
"""
import uuid
from dataclasses import dataclass


@dataclass
class GetUserLicensesQuery:
    """Query to list every license of an owner."""

    owner_id: uuid.UUID

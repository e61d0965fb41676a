"""
GetLicenseActivationsQuery.
"""
import uuid
from dataclasses import dataclass


@dataclass
class GetLicenseActivationsQuery:
    """Query to list a license's activations, live and deactivated."""

    license_id: uuid.UUID

"""
ValidateLicenseQuery.

Query to validate a license online, addressed by license id or token.
"""
from dataclasses import dataclass


@dataclass
class ValidateLicenseQuery:
    """Query to validate a license for a hardware identity."""

    license_id_or_token: str
    hardware_id: str = ""  # empty means identity-only check

"""
RevokeLicenseCommand.
"""
import uuid
from dataclasses import dataclass


@dataclass
class RevokeLicenseCommand:
    """Command to revoke a license."""

    license_id: uuid.UUID
    reason: str = ""

"""
IssueLicenseCommand.

Command to issue a license (and its signed token) to an owner.
"""
import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class IssueLicenseCommand:
    """
    Command to issue a license.

    Issuing a license revokes the owner's active license of the same
    tier family.
    """

    owner_id: uuid.UUID
    tier: str
    valid_days: Optional[int] = None  # LICENSE_DEFAULT_VALID_DAYS when None
    hardware_id: str = ""

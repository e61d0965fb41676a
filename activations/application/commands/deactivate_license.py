"""
DeactivateLicenseCommand.
"""
from dataclasses import dataclass


@dataclass
class DeactivateLicenseCommand:
    """Command to free the activation slot held by a machine."""

    license_id_or_token: str
    hardware_id: str

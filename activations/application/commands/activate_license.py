"""
ActivateLicenseCommand.

Command to bind a license to a machine.
"""
from dataclasses import dataclass


@dataclass
class ActivateLicenseCommand:
    """
    Command to activate a license on a hardware identity.

    license_id_or_token accepts a license UUID or a license token whose
    signature must verify.
    """

    license_id_or_token: str
    hardware_id: str
    hostname: str = ""
    platform: str = ""
    version: str = ""
    ip_address: str = ""

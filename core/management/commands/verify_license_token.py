"""
Django management command to check a license token offline.

Runs the same checks an engine runs without network access: signature,
expiry and hardware binding. Revocation is not visible offline.
"""

from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainException
from licenses.domain.services import verify_offline
from licenses.infrastructure.key_store import get_codec


class Command(BaseCommand):
    """Command to verify a license token offline."""

    help = "Verify a license token's signature and expiry"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("token", help="License token")
        parser.add_argument("--hardware-id", default="", help="Hardware id of this machine")

    def handle(self, *args, **options):
        """Execute the command."""
        try:
            payload = verify_offline(get_codec(), options["token"], options["hardware_id"])
        except DomainException as e:
            raise CommandError(f"{e.code}: {e.message}") from e

        # pylint: disable=no-member
        self.stdout.write(self.style.SUCCESS("License token is valid"))
        self.stdout.write(f"License ID: {payload.license_id}")
        self.stdout.write(f"Owner ID:   {payload.owner_id}")
        self.stdout.write(f"Tier:       {payload.tier.value}")
        self.stdout.write(f"Expires:    {payload.expires_at:%Y-%m-%d}")
        self.stdout.write(f"Key ID:     {payload.key_id}")

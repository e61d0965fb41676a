"""
Django management command to generate a license signing key pair.

Prints the settings to export on the issuing server. Only the public key
and key id belong in engine builds.
"""

from django.core.management.base import BaseCommand

from licenses.domain.keys import generate_key_pair


class Command(BaseCommand):
    """Command to generate an Ed25519 signing key pair."""

    help = "Generate an Ed25519 key pair for signing licenses"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("--key-id", default=None, help="Key id (random when omitted)")

    def handle(self, *args, **options):
        """Execute the command."""
        key_pair = generate_key_pair(options["key_id"])
        private_b64, public_b64 = key_pair.serialize()

        self.stdout.write(f"LICENSE_KEY_ID={key_pair.key_id}")
        self.stdout.write(f"LICENSE_PRIVATE_KEY={private_b64}")
        self.stdout.write(f"LICENSE_PUBLIC_KEY={public_b64}")
        self.stdout.write(f"LICENSE_PUBLIC_KEYS={key_pair.key_id}:{public_b64}")
        # pylint: disable=no-member
        self.stderr.write(
            self.style.WARNING("Keep LICENSE_PRIVATE_KEY secret; it can mint any license.")
        )

"""
Django management command to issue a license from the command line.
"""

import uuid

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainException
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.handlers.issue_license_handler import IssueLicenseHandler
from licenses.infrastructure.key_store import get_codec
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository


class Command(BaseCommand):
    """Command to issue a license to an owner."""

    help = "Issue a signed license and print its token"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument("owner_id", type=uuid.UUID, help="Owner (user) UUID")
        parser.add_argument(
            "tier", choices=["community", "trial", "pro", "enterprise"], help="License tier"
        )
        parser.add_argument("--days", type=int, default=None, help="Validity in days")
        parser.add_argument("--hardware-id", default="", help="Bind the license to a machine")

    def handle(self, *args, **options):
        """Execute the command."""
        handler = IssueLicenseHandler(DjangoLicenseRepository(), get_codec())
        command = IssueLicenseCommand(
            owner_id=options["owner_id"],
            tier=options["tier"],
            valid_days=options["days"],
            hardware_id=options["hardware_id"],
        )
        try:
            result = async_to_sync(handler.handle)(command)
        except (DomainException, ValueError) as e:
            raise CommandError(str(e)) from e

        license = result.license
        self.stdout.write(f"License ID: {license.id}")
        self.stdout.write(f"Tier:       {license.tier}")
        self.stdout.write(f"Expires:    {license.expires_at:%Y-%m-%d}")
        for revoked_id in result.revoked_license_ids:
            self.stdout.write(f"Revoked:    {revoked_id}")
        self.stdout.write(result.token)

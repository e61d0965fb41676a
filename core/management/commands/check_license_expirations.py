"""
Django management command to check and mark expired licenses.

Celery beat runs the same sweep hourly; this command is for cron-based
deployments and manual runs.
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand
from django.utils import timezone

from core.tasks import EXPIRY_BATCH_SIZE, expire_stale_licenses
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to check and mark expired licenses."""

    help = "Flip active licenses past their expiry to expired"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - don't actually update licenses",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=EXPIRY_BATCH_SIZE,
            help="Maximum licenses to process",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        now = timezone.now()

        if options["dry_run"]:
            stale = async_to_sync(DjangoLicenseRepository().find_stale_active)(
                now, limit=options["limit"]
            )
            self.stdout.write(f"Found {len(stale)} expired license(s)")
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for license in stale[:10]:  # Show first 10
                self.stdout.write(f"  - License {license.id} expired at {license.expires_at}")
            return

        updated = async_to_sync(expire_stale_licenses)(now, limit=options["limit"])
        logger.info("Marked %d license(s) as expired", updated)
        self.stdout.write(
            # pylint: disable=no-member
            self.style.SUCCESS(f"Successfully marked {updated} license(s) as expired")
        )

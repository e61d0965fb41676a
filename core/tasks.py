"""
Celery tasks for background processing.

Periodic sweep that flips stale active licenses to expired.
"""
import logging
from datetime import datetime, timezone

from asgiref.sync import async_to_sync

from LicenseTrustService.celery import app
from core.infrastructure.events import event_bus
from licenses.domain.events import LicenseExpired
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

logger = logging.getLogger(__name__)

# Rows flipped per run; the next run picks up the rest.
EXPIRY_BATCH_SIZE = 500


async def expire_stale_licenses(now: datetime = None, limit: int = EXPIRY_BATCH_SIZE) -> int:
    """
    Flip active licenses past their expiry to expired.

    Validation already treats such licenses as expired; this keeps the
    stored status and the audit trail in step with the clock.

    Args:
        now: Cut-off time (defaults to now)
        limit: Maximum licenses to flip

    Returns:
        Number of licenses flipped
    """
    now = now or datetime.now(timezone.utc)
    repository = DjangoLicenseRepository()
    flipped = 0
    for license in await repository.find_stale_active(now, limit=limit):
        if await repository.mark_expired(license.id):
            flipped += 1
            await event_bus.publish(
                LicenseExpired(license_id=license.id, owner_id=license.owner_id, occurred_at=now)
            )
    return flipped


@app.task(bind=True, max_retries=3)
def expire_licenses_task(self):
    """
    Celery task for the hourly expiry sweep.

    Returns:
        Number of licenses flipped to expired
    """
    from core.domain.exceptions import PersistenceError

    try:
        flipped = async_to_sync(expire_stale_licenses)()
    except PersistenceError as exc:
        logger.error("License expiry sweep failed: %s", exc, exc_info=True)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
    logger.info("License expiry sweep flipped %d license(s)", flipped)
    return flipped

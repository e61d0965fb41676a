"""
GetUserLicensesHandler.

Handles listing an owner's licenses.
"""
from datetime import datetime, timezone
from typing import List

from licenses.application.dto.license_dto import LicenseDTO
from licenses.application.queries.get_user_licenses import GetUserLicensesQuery
from licenses.ports.license_repository import LicenseRepository


class GetUserLicensesHandler:
    """Handler for GetUserLicensesQuery."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repositories."""
        self.license_repository = license_repository

    async def handle(self, query: GetUserLicensesQuery) -> List[LicenseDTO]:
        """
        Handle get user licenses query.

        Statuses are reported as of now, so a license past its expiry
        shows as expired even before its row is flipped.

        Args:
            query: GetUserLicensesQuery

        Returns:
            List of LicenseDTO, newest first
        """
        now = datetime.now(timezone.utc)
        licenses = await self.license_repository.find_by_owner(query.owner_id)
        return [LicenseDTO.from_entity(license, now) for license in licenses]

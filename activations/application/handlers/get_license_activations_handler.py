"""
GetLicenseActivationsHandler.

Handler for listing a license's activation ledger.
"""

from activations.application.dto.activation_dto import ActivationDTO, LicenseActivationsDTO
from activations.application.queries.get_license_activations import GetLicenseActivationsQuery
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import LicenseNotFoundError
from licenses.ports.license_repository import LicenseRepository


class GetLicenseActivationsHandler:
    """Handler for GetLicenseActivationsQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.activation_repository = activation_repository

    async def handle(self, query: GetLicenseActivationsQuery) -> LicenseActivationsDTO:
        """
        Handle get license activations query.

        Args:
            query: GetLicenseActivationsQuery

        Returns:
            LicenseActivationsDTO, newest activation first

        Raises:
            LicenseNotFoundError: If license not found
        """
        license = await self.license_repository.find_by_id(query.license_id)
        if not license:
            raise LicenseNotFoundError(f"License {query.license_id} not found")

        activations = await self.activation_repository.find_all_by_license(license.id)
        return LicenseActivationsDTO(
            license_id=license.id,
            max_activations=license.max_activations,
            activations_used=sum(1 for a in activations if a.is_active),
            activations=[ActivationDTO.from_entity(a) for a in activations],
        )

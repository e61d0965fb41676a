"""
Management API views.

These endpoints are used by the licensing portal and operators to:
- Issue licenses and hand out their tokens
- Revoke licenses
- List an owner's licenses and entitlements
- Inspect a license's activations

Every request needs a management API key (X-API-Key header), checked by
APIKeyAuthenticationMiddleware.
"""

import uuid

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.handlers.get_license_activations_handler import (
    GetLicenseActivationsHandler,
)
from activations.application.queries.get_license_activations import GetLicenseActivationsQuery
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from api.exceptions import validation_error_response
from api.v1.license.serializers import ValidationResultSerializer
from api.v1.management.serializers import (
    EntitlementsSerializer,
    IssueLicenseRequestSerializer,
    IssueLicenseResponseSerializer,
    LicenseActivationsSerializer,
    LicenseDTOSerializer,
    OwnerQuerySerializer,
    RevokeLicenseRequestSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.commands.revoke_license import RevokeLicenseCommand
from licenses.application.handlers.get_entitlements_handler import GetEntitlementsHandler
from licenses.application.handlers.get_user_licenses_handler import GetUserLicensesHandler
from licenses.application.handlers.issue_license_handler import IssueLicenseHandler
from licenses.application.handlers.revoke_license_handler import RevokeLicenseHandler
from licenses.application.handlers.validate_license_handler import ValidateLicenseHandler
from licenses.application.queries.get_entitlements import GetEntitlementsQuery
from licenses.application.queries.get_user_licenses import GetUserLicensesQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.infrastructure.key_store import get_codec
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

# Initialize repositories (in production, use DI container)
_license_repo = DjangoLicenseRepository()
_activation_repo = DjangoActivationRepository()

tracer = get_tracer(__name__)

UNAUTHORIZED = {401: {"description": "Unauthorized - Missing or invalid API key"}}

OWNER_ID_PARAMETER = OpenApiParameter(
    name="owner_id",
    type=uuid.UUID,
    location=OpenApiParameter.QUERY,
    required=True,
    description="Owner (customer account) id",
)


class LicenseCollectionView(APIView):
    """View for issuing and listing licenses."""

    @extend_schema(
        operation_id="issue_license",
        summary="Issue License",
        description=(
            "Issue a signed license to an owner. The owner's active license "
            "of the same tier family is revoked. The token is returned once "
            "and can be validated offline with the public key."
        ),
        tags=["Management API"],
        request=IssueLicenseRequestSerializer,
        responses={
            201: IssueLicenseResponseSerializer,
            400: {"description": "Bad Request"},
            **UNAUTHORIZED,
        },
    )
    def post(self, request: Request) -> Response:
        """Issue a license."""
        return async_to_sync(self._handle_issue_license)(request)

    async def _handle_issue_license(self, request: Request) -> Response:
        """Async handler for issue license."""
        with tracer.start_as_current_span("issue_license") as span:
            span.set_attribute("operation", "issue_license")

            serializer = IssueLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            span.set_attribute("owner.id", str(data["owner_id"]))
            span.set_attribute("license.tier", data["tier"])

            handler = IssueLicenseHandler(_license_repo, get_codec())
            result = await handler.handle(
                IssueLicenseCommand(
                    owner_id=data["owner_id"],
                    tier=data["tier"],
                    valid_days=data.get("valid_days"),
                    hardware_id=data["hardware_id"],
                )
            )

            span.set_attribute("license.id", str(result.license.id))
            span.set_attribute("licenses.revoked", len(result.revoked_license_ids))
            span.set_status(Status(StatusCode.OK))
            return Response(
                IssueLicenseResponseSerializer(result).data, status=status.HTTP_201_CREATED
            )

    @extend_schema(
        operation_id="list_user_licenses",
        summary="List Licenses",
        description="List every license of an owner, newest first.",
        tags=["Management API"],
        parameters=[OWNER_ID_PARAMETER],
        responses={
            200: LicenseDTOSerializer(many=True),
            400: {"description": "Bad Request"},
            **UNAUTHORIZED,
        },
    )
    def get(self, request: Request) -> Response:
        """List an owner's licenses."""
        return async_to_sync(self._handle_list_licenses)(request)

    async def _handle_list_licenses(self, request: Request) -> Response:
        """Async handler for list licenses."""
        with tracer.start_as_current_span("list_user_licenses") as span:
            span.set_attribute("operation", "list_user_licenses")

            query_serializer = OwnerQuerySerializer(data=request.query_params)
            if not query_serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(query_serializer.errors)

            owner_id = query_serializer.validated_data["owner_id"]
            span.set_attribute("owner.id", str(owner_id))

            handler = GetUserLicensesHandler(_license_repo)
            licenses = await handler.handle(GetUserLicensesQuery(owner_id=owner_id))

            span.set_attribute("licenses.count", len(licenses))
            span.set_status(Status(StatusCode.OK))
            return Response(
                LicenseDTOSerializer(licenses, many=True).data, status=status.HTTP_200_OK
            )


class LicenseDetailView(APIView):
    """View for checking and revoking a single license."""

    @extend_schema(
        operation_id="check_license",
        summary="Check License",
        description=(
            "Identity-only online validation of a license: reports whether it "
            "is usable right now, without a hardware check."
        ),
        tags=["Management API"],
        responses={
            200: ValidationResultSerializer,
            403: {"description": "License expired or revoked"},
            404: {"description": "License not found"},
            **UNAUTHORIZED,
        },
    )
    def get(self, request: Request, license_id: uuid.UUID) -> Response:
        """Check a license."""
        return async_to_sync(self._handle_check_license)(request, license_id)

    async def _handle_check_license(self, request: Request, license_id: uuid.UUID) -> Response:
        """Async handler for check license."""
        with tracer.start_as_current_span("check_license") as span:
            span.set_attribute("operation", "check_license")
            span.set_attribute("license.id", str(license_id))

            handler = ValidateLicenseHandler(_license_repo, _activation_repo, get_codec())
            result = await handler.handle(ValidateLicenseQuery(license_id_or_token=str(license_id)))

            span.set_status(Status(StatusCode.OK))
            return Response(ValidationResultSerializer(result).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="revoke_license",
        summary="Revoke License",
        description=(
            "Revoke a license. Online validation fails from now on; tokens "
            "already handed out keep verifying offline until they expire. "
            "Revoking twice is harmless."
        ),
        tags=["Management API"],
        request=RevokeLicenseRequestSerializer,
        responses={
            200: LicenseDTOSerializer,
            404: {"description": "License not found"},
            **UNAUTHORIZED,
        },
    )
    def delete(self, request: Request, license_id: uuid.UUID) -> Response:
        """Revoke a license."""
        return async_to_sync(self._handle_revoke_license)(request, license_id)

    async def _handle_revoke_license(self, request: Request, license_id: uuid.UUID) -> Response:
        """Async handler for revoke license."""
        with tracer.start_as_current_span("revoke_license") as span:
            span.set_attribute("operation", "revoke_license")
            span.set_attribute("license.id", str(license_id))

            serializer = RevokeLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            handler = RevokeLicenseHandler(_license_repo)
            result = await handler.handle(
                RevokeLicenseCommand(
                    license_id=license_id, reason=serializer.validated_data["reason"]
                )
            )

            span.set_status(Status(StatusCode.OK))
            return Response(LicenseDTOSerializer(result).data, status=status.HTTP_200_OK)


class LicenseActivationsView(APIView):
    """View for a license's activation ledger."""

    @extend_schema(
        operation_id="get_license_activations",
        summary="List License Activations",
        description="List live and deactivated activations of a license.",
        tags=["Management API"],
        responses={
            200: LicenseActivationsSerializer,
            404: {"description": "License not found"},
            **UNAUTHORIZED,
        },
    )
    def get(self, request: Request, license_id: uuid.UUID) -> Response:
        """List activations of a license."""
        return async_to_sync(self._handle_get_activations)(request, license_id)

    async def _handle_get_activations(self, request: Request, license_id: uuid.UUID) -> Response:
        """Async handler for get license activations."""
        with tracer.start_as_current_span("get_license_activations") as span:
            span.set_attribute("operation", "get_license_activations")
            span.set_attribute("license.id", str(license_id))

            handler = GetLicenseActivationsHandler(_license_repo, _activation_repo)
            result = await handler.handle(GetLicenseActivationsQuery(license_id=license_id))

            span.set_attribute("activations.used", result.activations_used)
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseActivationsSerializer(result).data, status=status.HTTP_200_OK)


class EntitlementsView(APIView):
    """View for an owner's resolved entitlements."""

    @extend_schema(
        operation_id="get_entitlements",
        summary="Get Entitlements",
        description=(
            "Resolve an owner's entitlements. max_pipelines is the highest "
            "limit among their usable licenses, or 0 when they have none."
        ),
        tags=["Management API"],
        parameters=[OWNER_ID_PARAMETER],
        responses={
            200: EntitlementsSerializer,
            400: {"description": "Bad Request"},
            **UNAUTHORIZED,
        },
    )
    def get(self, request: Request) -> Response:
        """Get an owner's entitlements."""
        return async_to_sync(self._handle_get_entitlements)(request)

    async def _handle_get_entitlements(self, request: Request) -> Response:
        """Async handler for get entitlements."""
        with tracer.start_as_current_span("get_entitlements") as span:
            span.set_attribute("operation", "get_entitlements")

            query_serializer = OwnerQuerySerializer(data=request.query_params)
            if not query_serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(query_serializer.errors)

            owner_id = query_serializer.validated_data["owner_id"]
            span.set_attribute("owner.id", str(owner_id))

            handler = GetEntitlementsHandler(_license_repo)
            result = await handler.handle(GetEntitlementsQuery(owner_id=owner_id))

            span.set_attribute("entitlements.max_pipelines", result.max_pipelines)
            span.set_status(Status(StatusCode.OK))
            return Response(EntitlementsSerializer(result).data, status=status.HTTP_200_OK)

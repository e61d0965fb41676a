"""
License API views.

These endpoints are used by engines on customer machines to:
- Validate a license online
- Activate a license on a machine
- Deactivate a machine
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.commands.activate_license import ActivateLicenseCommand
from activations.application.commands.deactivate_license import DeactivateLicenseCommand
from activations.application.handlers.activate_license_handler import ActivateLicenseHandler
from activations.application.handlers.deactivate_license_handler import (
    DeactivateLicenseHandler,
)
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from api.exceptions import validation_error_response
from api.v1.license.serializers import (
    ActivateLicenseRequestSerializer,
    ActivateLicenseResponseSerializer,
    DeactivateLicenseRequestSerializer,
    DeactivateLicenseResponseSerializer,
    ValidateLicenseRequestSerializer,
    ValidationResultSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.handlers.validate_license_handler import ValidateLicenseHandler
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.infrastructure.key_store import get_codec
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

# Initialize repositories (in production, use DI container)
_license_repo = DjangoLicenseRepository()
_activation_repo = DjangoActivationRepository()

tracer = get_tracer(__name__)

ERROR_RESPONSES = {
    400: {"description": "Bad Request or malformed token"},
    401: {"description": "License signature does not verify"},
    403: {"description": "License expired, revoked, bound elsewhere or out of activations"},
    404: {"description": "License not found"},
    503: {"description": "License storage unavailable"},
}


def client_ip(request: Request) -> str:
    """Client address, honoring the first X-Forwarded-For hop."""
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "") or ""


class ValidateLicenseView(APIView):
    """View for online license validation."""

    @extend_schema(
        operation_id="validate_license",
        summary="Validate License",
        description=(
            "Authoritative online check of a license by id or token. Reports "
            "revocation immediately. With a hardware_id the machine must hold "
            "a live activation; without one only the license itself is checked."
        ),
        tags=["License API"],
        request=ValidateLicenseRequestSerializer,
        responses={200: ValidationResultSerializer, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Validate a license."""
        return async_to_sync(self._handle_validate)(request)

    async def _handle_validate(self, request: Request) -> Response:
        """Async handler for validate license."""
        with tracer.start_as_current_span("validate_license") as span:
            span.set_attribute("operation", "validate_license")

            serializer = ValidateLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            handler = ValidateLicenseHandler(_license_repo, _activation_repo, get_codec())
            result = await handler.handle(
                ValidateLicenseQuery(
                    license_id_or_token=serializer.validated_data["license"],
                    hardware_id=serializer.validated_data["hardware_id"],
                )
            )

            span.set_attribute("license.id", str(result.license_id))
            span.set_attribute("license.tier", result.tier)
            span.set_status(Status(StatusCode.OK))
            return Response(ValidationResultSerializer(result).data, status=status.HTTP_200_OK)


class ActivateLicenseView(APIView):
    """View for activating a license on a machine."""

    @extend_schema(
        operation_id="activate_license",
        summary="Activate License",
        description=(
            "Bind a license to a hardware identity. Re-activating the same "
            "machine refreshes its activation without using another slot."
        ),
        tags=["License API"],
        request=ActivateLicenseRequestSerializer,
        responses={
            201: ActivateLicenseResponseSerializer,
            200: ActivateLicenseResponseSerializer,
            **ERROR_RESPONSES,
        },
    )
    def post(self, request: Request) -> Response:
        """Activate a license."""
        return async_to_sync(self._handle_activate)(request)

    async def _handle_activate(self, request: Request) -> Response:
        """Async handler for activate license."""
        with tracer.start_as_current_span("activate_license") as span:
            span.set_attribute("operation", "activate_license")

            serializer = ActivateLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            data = serializer.validated_data
            handler = ActivateLicenseHandler(_license_repo, _activation_repo, get_codec())
            result = await handler.handle(
                ActivateLicenseCommand(
                    license_id_or_token=data["license"],
                    hardware_id=data["hardware_id"],
                    hostname=data["hostname"],
                    platform=data["platform"],
                    version=data["version"],
                    ip_address=client_ip(request),
                )
            )

            span.set_attribute("activation.id", str(result.activation_id))
            span.set_attribute("license.id", str(result.license_id))
            span.set_attribute("activation.created", result.created)
            span.set_status(Status(StatusCode.OK))
            return Response(
                ActivateLicenseResponseSerializer(result).data,
                status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK,
            )


class DeactivateLicenseView(APIView):
    """View for freeing a machine's activation slot."""

    @extend_schema(
        operation_id="deactivate_license",
        summary="Deactivate License",
        description=(
            "Release the activation held by a machine. Succeeds with "
            "deactivated=false when the machine holds none."
        ),
        tags=["License API"],
        request=DeactivateLicenseRequestSerializer,
        responses={200: DeactivateLicenseResponseSerializer, **ERROR_RESPONSES},
    )
    def post(self, request: Request) -> Response:
        """Deactivate a machine."""
        return async_to_sync(self._handle_deactivate)(request)

    async def _handle_deactivate(self, request: Request) -> Response:
        """Async handler for deactivate license."""
        with tracer.start_as_current_span("deactivate_license") as span:
            span.set_attribute("operation", "deactivate_license")

            serializer = DeactivateLicenseRequestSerializer(data=request.data)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return validation_error_response(serializer.errors)

            handler = DeactivateLicenseHandler(_license_repo, _activation_repo, get_codec())
            result = await handler.handle(
                DeactivateLicenseCommand(
                    license_id_or_token=serializer.validated_data["license"],
                    hardware_id=serializer.validated_data["hardware_id"],
                )
            )

            span.set_attribute("license.id", str(result.license_id))
            span.set_attribute("activation.deactivated", result.deactivated)
            span.set_status(Status(StatusCode.OK))
            return Response(
                DeactivateLicenseResponseSerializer(result).data, status=status.HTTP_200_OK
            )

"""
Serializers for engine-facing license endpoints.
"""

from rest_framework import serializers

from core.domain.value_objects import HARDWARE_ID_MAX_LENGTH


class ValidateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for validate license request."""

    license = serializers.CharField(
        required=True, max_length=8192, help_text="License id or license token"
    )
    hardware_id = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=HARDWARE_ID_MAX_LENGTH,
        help_text="Hardware identity; empty for an identity-only check",
    )


class ActivateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for activate license request."""

    license = serializers.CharField(required=True, max_length=8192)
    hardware_id = serializers.CharField(required=True, max_length=HARDWARE_ID_MAX_LENGTH)
    hostname = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)
    platform = serializers.CharField(required=False, allow_blank=True, default="", max_length=100)
    version = serializers.CharField(required=False, allow_blank=True, default="", max_length=50)


class DeactivateLicenseRequestSerializer(serializers.Serializer):
    """Serializer for deactivate license request."""

    license = serializers.CharField(required=True, max_length=8192)
    hardware_id = serializers.CharField(required=True, max_length=HARDWARE_ID_MAX_LENGTH)


class ValidationResultSerializer(serializers.Serializer):
    """Serializer for ValidationResultDTO."""

    valid = serializers.BooleanField()
    license_id = serializers.UUIDField()
    owner_id = serializers.UUIDField()
    tier = serializers.CharField()
    expires_at = serializers.DateTimeField()
    max_activations = serializers.IntegerField()
    max_pipelines = serializers.IntegerField()
    limits = serializers.DictField(child=serializers.IntegerField())
    features = serializers.ListField(child=serializers.CharField())
    check_interval = serializers.IntegerField(help_text="Seconds until the next online check")


class ActivateLicenseResponseSerializer(serializers.Serializer):
    """Serializer for ActivateLicenseResponseDTO."""

    activation_id = serializers.UUIDField()
    license_id = serializers.UUIDField()
    tier = serializers.CharField()
    expires_at = serializers.DateTimeField()
    created = serializers.BooleanField()
    activations_used = serializers.IntegerField()
    max_activations = serializers.IntegerField()
    message = serializers.CharField()


class DeactivateLicenseResponseSerializer(serializers.Serializer):
    """Serializer for DeactivateLicenseResponseDTO."""

    license_id = serializers.UUIDField()
    deactivated = serializers.BooleanField()
    message = serializers.CharField()

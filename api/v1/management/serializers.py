"""
Serializers for management API endpoints.
"""

from rest_framework import serializers

from core.domain.value_objects import HARDWARE_ID_MAX_LENGTH, Tier


class IssueLicenseRequestSerializer(serializers.Serializer):
    """Serializer for issue license request."""

    owner_id = serializers.UUIDField(required=True)
    tier = serializers.ChoiceField(choices=[tier.value for tier in Tier], required=True)
    valid_days = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    hardware_id = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=HARDWARE_ID_MAX_LENGTH,
        help_text="Bind the license to this machine and activate it",
    )


class RevokeLicenseRequestSerializer(serializers.Serializer):
    """Serializer for revoke license request."""

    reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=500)


class OwnerQuerySerializer(serializers.Serializer):
    """Serializer for the owner_id query parameter."""

    owner_id = serializers.UUIDField(required=True)


class LicenseDTOSerializer(serializers.Serializer):
    """Serializer for LicenseDTO."""

    id = serializers.UUIDField()
    owner_id = serializers.UUIDField()
    tier = serializers.CharField()
    status = serializers.CharField()
    issued_at = serializers.DateTimeField()
    expires_at = serializers.DateTimeField()
    max_activations = serializers.IntegerField()
    hardware_id = serializers.CharField(allow_blank=True)
    revoked_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()


class IssueLicenseResponseSerializer(serializers.Serializer):
    """Serializer for IssueLicenseResponseDTO."""

    license = LicenseDTOSerializer()
    token = serializers.CharField()
    revoked_license_ids = serializers.ListField(child=serializers.UUIDField())


class ActivationDTOSerializer(serializers.Serializer):
    """Serializer for ActivationDTO."""

    id = serializers.UUIDField()
    license_id = serializers.UUIDField()
    hardware_id = serializers.CharField()
    hostname = serializers.CharField(allow_blank=True)
    platform = serializers.CharField(allow_blank=True)
    version = serializers.CharField(allow_blank=True)
    ip_address = serializers.CharField(allow_blank=True)
    activated_at = serializers.DateTimeField()
    last_seen_at = serializers.DateTimeField()
    deactivated_at = serializers.DateTimeField(allow_null=True)
    is_active = serializers.BooleanField()


class LicenseActivationsSerializer(serializers.Serializer):
    """Serializer for LicenseActivationsDTO."""

    license_id = serializers.UUIDField()
    max_activations = serializers.IntegerField()
    activations_used = serializers.IntegerField()
    activations = ActivationDTOSerializer(many=True)


class EntitlementsSerializer(serializers.Serializer):
    """Serializer for EntitlementsDTO."""

    owner_id = serializers.UUIDField()
    tier = serializers.CharField(allow_null=True)
    max_pipelines = serializers.IntegerField()
    active_licenses = serializers.IntegerField()

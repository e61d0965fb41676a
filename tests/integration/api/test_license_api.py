"""
Integration tests for the engine-facing License API endpoints.
"""

import uuid

import pytest
from asgiref.sync import async_to_sync
from django.urls import reverse

from licenses.domain.keys import KeyRing, generate_key_pair
from licenses.domain.token import LicenseCodec


@pytest.fixture
def issued(issuer, owner_id):
    """A pro license and its token."""
    license, token, _ = async_to_sync(issuer.issue)(owner_id, "pro", 30)
    return license, token


def activate(api_client, token, hardware_id, **extra):
    return api_client.post(
        reverse("license:activate-license"),
        {"license": token, "hardware_id": hardware_id, **extra},
        format="json",
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestValidateLicenseAPI:
    """Integration tests for POST /api/v1/license/validate."""

    def test_validate_by_token(self, api_client, issued):
        """Test validating a token without hardware."""
        license, token = issued

        response = api_client.post(
            reverse("license:validate-license"), {"license": token}, format="json"
        )

        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is True
        assert data["license_id"] == str(license.id)
        assert data["tier"] == "pro"
        assert data["max_pipelines"] == 10
        assert "mongodb" in data["features"]
        assert data["check_interval"] > 0

    def test_validate_activated_hardware(self, api_client, issued):
        """Test validating a machine that holds an activation."""
        license, token = issued
        activate(api_client, token, "hw-A")

        response = api_client.post(
            reverse("license:validate-license"),
            {"license": str(license.id), "hardware_id": "hw-A"},
            format="json",
        )

        assert response.status_code == 200

    def test_validate_unactivated_hardware(self, api_client, issued):
        """Test validating a machine that was never activated."""
        _, token = issued

        response = api_client.post(
            reverse("license:validate-license"),
            {"license": token, "hardware_id": "hw-Z"},
            format="json",
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "HARDWARE_MISMATCH"

    def test_validate_tampered_token(self, api_client, issued):
        """Test a token whose payload was edited."""
        _, token = issued
        payload, signature = token.split(".")
        tampered = ("A" if payload[0] != "A" else "B") + payload[1:] + "." + signature

        response = api_client.post(
            reverse("license:validate-license"), {"license": tampered}, format="json"
        )

        assert response.status_code in (400, 401)

    def test_validate_foreign_token(self, api_client, issued, codec):
        """Test a token signed with an untrusted key."""
        _, token = issued
        impostor = generate_key_pair(codec.signing_key.key_id)
        forged = LicenseCodec(KeyRing.from_key_pairs([impostor]), impostor).encode(
            codec.decode(token)
        )

        response = api_client.post(
            reverse("license:validate-license"), {"license": forged}, format="json"
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_SIGNATURE"

    def test_validate_unknown_license(self, api_client):
        """Test validating an unknown license id."""
        response = api_client.post(
            reverse("license:validate-license"), {"license": str(uuid.uuid4())}, format="json"
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "LICENSE_NOT_FOUND"

    def test_validate_missing_license(self, api_client):
        """Test the request body is validated."""
        response = api_client.post(reverse("license:validate-license"), {}, format="json")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert "license" in error["details"]

    def test_validate_revoked_license(self, api_client, issued, license_repository):
        """Test revocation is visible to online validation."""
        from datetime import datetime, timezone

        license, token = issued
        async_to_sync(license_repository.revoke)(license.id, datetime.now(timezone.utc))

        response = api_client.post(
            reverse("license:validate-license"), {"license": token}, format="json"
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "LICENSE_REVOKED"


@pytest.mark.django_db
@pytest.mark.integration
class TestActivationAPI:
    """Integration tests for activation and deactivation endpoints."""

    def test_activate_then_reactivate(self, api_client, issued):
        """Test first activation is 201 and a repeat is 200."""
        _, token = issued

        first = activate(api_client, token, "hw-A", hostname="build-01", version="2.4.0")
        again = activate(api_client, token, "hw-A", hostname="build-01")

        assert first.status_code == 201
        assert first.json()["created"] is True
        assert first.json()["activations_used"] == 1
        assert again.status_code == 200
        assert again.json()["created"] is False
        assert again.json()["activation_id"] == first.json()["activation_id"]

    def test_activation_limit(self, api_client, issuer, owner_id):
        """Test the activation cap is reported as 403."""
        _, token, _ = async_to_sync(issuer.issue)(owner_id, "community", 30)
        activate(api_client, token, "hw-A")

        response = activate(api_client, token, "hw-B")

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "ACTIVATION_LIMIT_REACHED"

    def test_activate_records_client_ip(self, api_client, issued, activation_repository):
        """Test the first forwarded address is recorded."""
        license, token = issued

        response = api_client.post(
            reverse("license:activate-license"),
            {"license": token, "hardware_id": "hw-A"},
            format="json",
            HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1",
        )

        assert response.status_code == 201
        activation = async_to_sync(activation_repository.find_live)(license.id, "hw-A")
        assert activation.ip_address == "203.0.113.7"

    def test_activate_requires_hardware(self, api_client, issued):
        """Test hardware_id is required."""
        _, token = issued

        response = api_client.post(
            reverse("license:activate-license"), {"license": token}, format="json"
        )

        assert response.status_code == 400
        assert "hardware_id" in response.json()["error"]["details"]

    def test_deactivate_frees_slot(self, api_client, issuer, owner_id):
        """Test moving a community license to another machine."""
        _, token, _ = async_to_sync(issuer.issue)(owner_id, "community", 30)
        activate(api_client, token, "hw-A")

        response = api_client.post(
            reverse("license:deactivate-license"),
            {"license": token, "hardware_id": "hw-A"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["deactivated"] is True
        assert activate(api_client, token, "hw-B").status_code == 201

    def test_deactivate_unknown_machine(self, api_client, issued):
        """Test deactivating a machine without an activation."""
        _, token = issued

        response = api_client.post(
            reverse("license:deactivate-license"),
            {"license": token, "hardware_id": "hw-Z"},
            format="json",
        )

        assert response.status_code == 200
        assert response.json()["deactivated"] is False

    def test_engine_endpoints_need_no_api_key(self, api_client, issued):
        """Test the engine API authenticates with the license alone."""
        _, token = issued

        response = api_client.post(
            reverse("license:validate-license"), {"license": token}, format="json"
        )

        assert response.status_code == 200

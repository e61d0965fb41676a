"""
Integration tests for the Management API endpoints.
"""

import uuid

import pytest
from asgiref.sync import async_to_sync
from django.urls import reverse

from licenses.infrastructure.models import License as LicenseModel


def issue(client, owner_id, tier="pro", **extra):
    return client.post(
        reverse("management:licenses"),
        {"owner_id": str(owner_id), "tier": tier, **extra},
        format="json",
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestManagementAuthentication:
    """The management API requires an API key."""

    def test_missing_api_key(self, api_client):
        """Test requests without a key are rejected."""
        response = api_client.get(reverse("management:licenses"), {"owner_id": str(uuid.uuid4())})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "MISSING_API_KEY"

    def test_invalid_api_key(self, api_client, owner_id):
        """Test an unknown key is rejected and nothing is issued."""
        response = api_client.post(
            reverse("management:licenses"),
            {"owner_id": str(owner_id), "tier": "pro"},
            format="json",
            HTTP_X_API_KEY="not-the-key",
        )

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "INVALID_API_KEY"
        assert not LicenseModel.objects.filter(owner_id=owner_id).exists()

    def test_bearer_token(self, api_client, owner_id):
        """Test the key may be sent as a bearer token."""
        response = api_client.get(
            reverse("management:licenses"),
            {"owner_id": str(owner_id)},
            HTTP_AUTHORIZATION="Bearer test-management-key",
        )

        assert response.status_code == 200


@pytest.mark.django_db
@pytest.mark.integration
class TestIssueLicenseAPI:
    """Integration tests for POST /api/v1/management/licenses."""

    def test_issue_license(self, management_client, owner_id, codec):
        """Test issuing returns the license and a verifiable token."""
        response = issue(management_client, owner_id, valid_days=30)

        assert response.status_code == 201
        data = response.json()
        assert data["license"]["tier"] == "pro"
        assert data["license"]["status"] == "active"
        assert data["license"]["max_activations"] == 10
        assert data["revoked_license_ids"] == []
        payload = codec.decode(data["token"])
        assert str(payload.license_id) == data["license"]["id"]
        assert str(payload.owner_id) == str(owner_id)

    def test_reissue_revokes_previous(self, management_client, owner_id):
        """Test upgrading revokes the owner's previous commercial license."""
        trial = issue(management_client, owner_id, tier="trial", valid_days=14).json()

        response = issue(management_client, owner_id, tier="enterprise", valid_days=365)

        assert response.status_code == 201
        assert response.json()["revoked_license_ids"] == [trial["license"]["id"]]

    def test_issue_unknown_tier(self, management_client, owner_id):
        """Test an unknown tier is rejected."""
        response = issue(management_client, owner_id, tier="platinum")

        assert response.status_code == 400
        assert "tier" in response.json()["error"]["details"]

    def test_issue_invalid_owner(self, management_client):
        """Test owner_id must be a UUID."""
        response = management_client.post(
            reverse("management:licenses"),
            {"owner_id": "not-a-uuid", "tier": "pro"},
            format="json",
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_issue_non_positive_validity(self, management_client, owner_id):
        """Test valid_days must be positive."""
        response = issue(management_client, owner_id, valid_days=0)

        assert response.status_code == 400


@pytest.mark.django_db
@pytest.mark.integration
class TestLicenseQueriesAPI:
    """Integration tests for listing, checking and revoking licenses."""

    def test_list_owner_licenses(self, management_client, owner_id):
        """Test listing an owner's licenses newest first."""
        first = issue(management_client, owner_id, tier="community", valid_days=30).json()
        second = issue(management_client, owner_id, tier="pro", valid_days=30).json()
        issue(management_client, uuid.uuid4(), tier="pro", valid_days=30)

        response = management_client.get(
            reverse("management:licenses"), {"owner_id": str(owner_id)}
        )

        assert response.status_code == 200
        ids = [license["id"] for license in response.json()]
        assert ids == [second["license"]["id"], first["license"]["id"]]

    def test_list_requires_owner(self, management_client):
        """Test owner_id is required for listing."""
        response = management_client.get(reverse("management:licenses"))

        assert response.status_code == 400
        assert "owner_id" in response.json()["error"]["details"]

    def test_check_license(self, management_client, db_license):
        """Test checking a license by id."""
        response = management_client.get(
            reverse("management:license-detail", kwargs={"license_id": db_license.id})
        )

        assert response.status_code == 200
        assert response.json()["valid"] is True

    def test_check_unknown_license(self, management_client):
        """Test checking an unknown license."""
        response = management_client.get(
            reverse("management:license-detail", kwargs={"license_id": uuid.uuid4()})
        )

        assert response.status_code == 404

    def test_revoke_license(self, management_client, db_license):
        """Test revoking a license and checking it afterwards."""
        url = reverse("management:license-detail", kwargs={"license_id": db_license.id})

        response = management_client.delete(url, {"reason": "refund"}, format="json")
        again = management_client.delete(url)
        check = management_client.get(url)

        assert response.status_code == 200
        assert response.json()["status"] == "revoked"
        assert response.json()["revoked_at"] is not None
        assert again.status_code == 200
        assert check.status_code == 403
        assert check.json()["error"]["code"] == "LICENSE_REVOKED"

    def test_license_activations(self, management_client, ledger, db_license):
        """Test the activation ledger lists live and released machines."""
        async_to_sync(ledger.activate)(db_license.id, "hw-A", hostname="build-01")
        async_to_sync(ledger.activate)(db_license.id, "hw-B")
        async_to_sync(ledger.deactivate)(db_license.id, "hw-A")

        response = management_client.get(
            reverse("management:license-activations", kwargs={"license_id": db_license.id})
        )

        assert response.status_code == 200
        data = response.json()
        assert data["max_activations"] == 10
        assert data["activations_used"] == 1
        by_hardware = {a["hardware_id"]: a for a in data["activations"]}
        assert by_hardware["hw-A"]["is_active"] is False
        assert by_hardware["hw-A"]["hostname"] == "build-01"
        assert by_hardware["hw-B"]["is_active"] is True


@pytest.mark.django_db
@pytest.mark.integration
class TestEntitlementsAPI:
    """Integration tests for GET /api/v1/management/entitlements."""

    def test_entitlements_take_best_license(self, management_client, owner_id):
        """Test the owner's pipelines come from the best active license."""
        issue(management_client, owner_id, tier="community", valid_days=30)
        issue(management_client, owner_id, tier="enterprise", valid_days=30)

        response = management_client.get(
            reverse("management:entitlements"), {"owner_id": str(owner_id)}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["tier"] == "enterprise"
        assert data["max_pipelines"] == 999_999
        assert data["active_licenses"] == 2

    def test_entitlements_without_licenses(self, management_client, owner_id):
        """Test an owner without licenses."""
        response = management_client.get(
            reverse("management:entitlements"), {"owner_id": str(owner_id)}
        )

        assert response.status_code == 200
        assert response.json()["tier"] is None
        assert response.json()["max_pipelines"] == 0

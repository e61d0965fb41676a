"""
Unit tests for request middleware helpers.
"""

import pytest

from core.middleware.auth import hash_api_key
from core.middleware.metrics import normalize_endpoint
from core.middleware.observability import api_surface, request_status


class TestMiddlewareHelpers:
    """Tests for middleware helper functions."""

    def test_normalize_endpoint(self):
        """Test license ids collapse into one metrics route."""
        path = "/api/v1/management/licenses/0b7e1c7a-5d0e-4f7e-9d63-3f1b2a8c9e10/activations"

        assert normalize_endpoint(path) == "/api/v1/management/licenses/{id}/activations"
        assert normalize_endpoint("/health/?verbose=1") == "/health/"

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/api/v1/license/validate", "license"),
            ("/api/v1/management/licenses", "management"),
            ("/metrics", "ops"),
        ],
    )
    def test_api_surface(self, path, expected):
        """Test requests are tagged with their API."""
        assert api_surface(path) == expected

    def test_request_status(self):
        """Test status codes map to log outcomes."""
        assert request_status(201) == "success"
        assert request_status(403) == "client_error"
        assert request_status(503) == "server_error"

    def test_hash_api_key(self):
        """Test the configured hash for the test key."""
        assert hash_api_key("test-management-key") == (
            "bd3606ad437c79bf692b8949ef0a18047c3d40335e529eb4eba98a402adf246e"
        )

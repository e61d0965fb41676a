"""
Unit tests for the engine-side license client.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import requests

from core.domain.exceptions import (
    ActivationLimitReachedError,
    InvalidSignatureError,
    LicenseExpiredError,
    LicenseRevokedError,
    LicenseServerUnavailableError,
)
from core.domain.value_objects import Tier
from licenses.client import LicenseClient
from licenses.domain.entitlements import EntitlementResolver
from licenses.domain.keys import KeyRing, generate_key_pair
from licenses.domain.license import License
from licenses.domain.token import LicenseCodec

NOW = datetime(2026, 4, 1, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


class FakeSession:
    """Stands in for requests.Session, replaying queued outcomes."""

    def __init__(self, *outcomes):
        self.headers = {}
        self.outcomes = list(outcomes)
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def key_pair():
    return generate_key_pair("k1")


@pytest.fixture
def token(key_pair):
    codec = LicenseCodec(KeyRing.from_key_pairs([key_pair]), key_pair)
    license = License.create(
        owner_id=uuid.uuid4(),
        tier=Tier.PRO,
        valid_days=30,
        max_activations=10,
        now=NOW - timedelta(days=1),
    )
    return codec.encode(license.to_payload())


def make_client(key_pair, session, **kwargs):
    return LicenseClient.from_public_keys(
        "https://license.example.com/",
        f"k1:{key_pair.public_key_base64}",
        session=session,
        **kwargs,
    )


def online_body():
    return {
        "valid": True,
        "license_id": str(uuid.uuid4()),
        "owner_id": str(uuid.uuid4()),
        "tier": "pro",
        "expires_at": "2026-05-01T00:00:00Z",
        "max_activations": 10,
        "max_pipelines": 10,
        "limits": {},
        "features": ["mysql"],
        "check_interval": 86400,
    }


class TestLicenseClient:
    """Tests for LicenseClient."""

    def test_online_validation(self, key_pair, token):
        """Test a successful online check records the time."""
        session = FakeSession(FakeResponse(200, online_body()))
        client = make_client(key_pair, session, timeout=3)

        outcome = client.validate(token, "hw-A", now=NOW)

        assert outcome.online is True
        assert outcome.max_pipelines == 10
        assert outcome.expires_at == datetime(2026, 5, 1, tzinfo=timezone.utc)
        assert client.last_online_success == NOW
        url, body, timeout = session.calls[0]
        assert url == "https://license.example.com/api/v1/license/validate"
        assert body == {"license": token, "hardware_id": "hw-A"}
        assert timeout == 3

    @pytest.mark.parametrize(
        "failure",
        [
            requests.Timeout("read timed out"),
            requests.ConnectionError("connection refused"),
            FakeResponse(503, {"error": {"code": "PERSISTENCE_ERROR"}}),
        ],
    )
    def test_falls_back_offline(self, key_pair, token, failure):
        """Test an unreachable server falls back to the token signature."""
        client = make_client(key_pair, FakeSession(failure))

        outcome = client.validate(token, "hw-A", now=NOW)

        assert outcome.online is False
        assert outcome.tier == "pro"
        assert outcome.max_pipelines == EntitlementResolver.max_pipelines("pro")
        assert "checked with the server again" in outcome.message

    def test_offline_grace_period_runs_out(self, key_pair, token):
        """Test offline results stop being honored after the grace period."""
        client = make_client(
            key_pair,
            FakeSession(requests.Timeout("read timed out")),
            last_online_success=NOW - timedelta(days=8),
        )

        with pytest.raises(LicenseServerUnavailableError) as exc_info:
            client.validate(token, "hw-A", now=NOW)

        assert "Reconnect this machine" in exc_info.value.message

    def test_offline_within_grace_period(self, key_pair, token):
        """Test a recent online success keeps offline validation working."""
        client = make_client(
            key_pair,
            FakeSession(requests.Timeout("read timed out")),
            last_online_success=NOW - timedelta(days=6),
        )

        assert client.validate(token, now=NOW).online is False

    def test_offline_checks_need_only_public_keys(self, key_pair, token):
        """Test offline verification with a client holding nothing but public keys."""
        client = make_client(key_pair, FakeSession())
        impostor = generate_key_pair("k1")
        foreign = LicenseCodec(KeyRing.from_key_pairs([impostor]), impostor).encode(
            client.codec.decode(token)
        )

        assert client.validate_offline(token, "hw-A", now=NOW).online is False
        with pytest.raises(InvalidSignatureError, match="contact support"):
            client.validate_offline(foreign, now=NOW)
        with pytest.raises(LicenseExpiredError, match="Connect to the license server"):
            client.validate_offline(token, now=NOW + timedelta(days=60))
        assert client.session.calls == []

    def test_server_revocation_is_final(self, key_pair, token):
        """Test a revoked answer is not overridden by a later offline check."""
        session = FakeSession(
            FakeResponse(403, {"error": {"code": "LICENSE_REVOKED", "message": "revoked"}}),
            requests.ConnectionError("connection refused"),
        )
        client = make_client(key_pair, session)

        with pytest.raises(LicenseRevokedError, match="portal"):
            client.validate(token, "hw-A", now=NOW)
        with pytest.raises(LicenseRevokedError):
            client.validate(token, "hw-A", now=NOW)

    def test_activate_limit_reached(self, key_pair, token):
        """Test activation errors carry an actionable message."""
        session = FakeSession(
            FakeResponse(403, {"error": {"code": "ACTIVATION_LIMIT_REACHED", "message": "full"}})
        )
        client = make_client(key_pair, session)

        with pytest.raises(ActivationLimitReachedError, match="Deactivate a machine"):
            client.activate(token, "hw-C", hostname="build-03")

    def test_activate(self, key_pair, token):
        """Test activation posts machine details."""
        session = FakeSession(FakeResponse(201, {"created": True}))
        client = make_client(key_pair, session)

        assert client.activate(token, "hw-A", hostname="build-01") == {"created": True}
        _, body, _ = session.calls[0]
        assert body["hostname"] == "build-01"
        assert session.headers["User-Agent"].startswith("license-trust-engine")

    def test_unreadable_response(self, key_pair, token):
        """Test a non-JSON answer reads as an unavailable server."""
        session = FakeSession(FakeResponse(200, ValueError("no json")))
        client = make_client(key_pair, session)

        with pytest.raises(LicenseServerUnavailableError):
            client.deactivate(token, "hw-A")

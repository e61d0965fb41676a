"""
Pytest configuration and shared fixtures.
"""

import uuid

import pytest
from asgiref.sync import async_to_sync
from django.core.cache import cache

from activations.domain.events import LicenseActivated, LicenseDeactivated
from activations.domain.services import ActivationLedger
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from core.domain.events import EventHandler
from core.infrastructure.event_handlers import register_event_handlers
from core.infrastructure.events import event_bus
from licenses.domain.events import LicenseExpired, LicenseIssued, LicenseRevoked
from licenses.domain.keys import generate_key_pair
from licenses.domain.services import LicenseIssuer, LicenseValidator
from licenses.infrastructure.key_store import get_codec, reset_codec
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

TEST_MANAGEMENT_API_KEY = "test-management-key"

EVENT_TYPES = (LicenseIssued, LicenseRevoked, LicenseExpired, LicenseActivated, LicenseDeactivated)


class RecordingEventHandler(EventHandler):
    """Collects published events in order."""

    def __init__(self):
        self.events = []

    async def handle(self, event):
        self.events.append(event)


@pytest.fixture(autouse=True)
def signing_key(settings):
    """Fresh signing key for every test; nothing is read from the environment."""
    key_pair = generate_key_pair("test-key")
    private_b64, public_b64 = key_pair.serialize()
    settings.LICENSE_PRIVATE_KEY = private_b64
    settings.LICENSE_PUBLIC_KEY = public_b64
    settings.LICENSE_KEY_ID = key_pair.key_id
    settings.LICENSE_PUBLIC_KEYS = ""
    reset_codec()
    yield key_pair
    reset_codec()


@pytest.fixture(autouse=True)
def clear_cache():
    """Keep cached entitlements from leaking between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def codec(signing_key):
    """Fixture for the configured LicenseCodec."""
    return get_codec()


@pytest.fixture
def published_events():
    """Replace event subscribers with a recorder for the test."""
    recorder = RecordingEventHandler()
    event_bus.clear()
    for event_type in EVENT_TYPES:
        event_bus.subscribe(event_type, recorder)
    yield recorder.events
    event_bus.clear()
    register_event_handlers()


@pytest.fixture
def license_repository():
    """Fixture for LicenseRepository."""
    return DjangoLicenseRepository()


@pytest.fixture
def activation_repository():
    """Fixture for ActivationRepository."""
    return DjangoActivationRepository()


@pytest.fixture
def issuer(license_repository, codec):
    """Fixture for LicenseIssuer."""
    return LicenseIssuer(license_repository, codec, issuer_name="license.test")


@pytest.fixture
def validator(license_repository, activation_repository, codec):
    """Fixture for LicenseValidator."""
    return LicenseValidator(license_repository, activation_repository, codec)


@pytest.fixture
def ledger(license_repository, activation_repository):
    """Fixture for ActivationLedger."""
    return ActivationLedger(license_repository, activation_repository)


@pytest.fixture
def owner_id():
    """Fixture for an owner id."""
    return uuid.uuid4()


@pytest.fixture
def db_license(issuer, owner_id):
    """Fixture for a pro License saved in database, with its token."""
    license, token, _ = async_to_sync(issuer.issue)(owner_id, "pro", 30)
    return license


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def management_client(api_client):
    """Fixture for an API client carrying the management API key."""
    api_client.credentials(HTTP_X_API_KEY=TEST_MANAGEMENT_API_KEY)
    return api_client

"""
Unit tests for Activation domain entity.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from activations.domain.activation import Activation
from core.domain.exceptions import InvalidHardwareIdentifierError
from core.domain.value_objects import HardwareIdentifier

NOW = datetime(2026, 2, 1, tzinfo=timezone.utc)


class TestActivationEntity:
    """Tests for Activation domain entity."""

    def test_create_activation(self):
        """Test creating an activation."""
        license_id = uuid.uuid4()
        activation = Activation.create(
            license_id=license_id,
            hardware_id="hw-A",
            hostname="build-01",
            platform="linux/amd64",
            now=NOW,
        )

        assert activation.license_id == license_id
        assert activation.hardware_id == HardwareIdentifier("hw-A")
        assert activation.hostname == "build-01"
        assert activation.activated_at == NOW
        assert activation.is_active is True

    def test_create_rejects_empty_hardware(self):
        """Test an activation needs a hardware identity."""
        with pytest.raises(InvalidHardwareIdentifierError):
            Activation.create(license_id=uuid.uuid4(), hardware_id="")

    def test_deactivate(self):
        """Test deactivating frees the slot without deleting the record."""
        activation = Activation.create(license_id=uuid.uuid4(), hardware_id="hw-A", now=NOW)
        later = NOW + timedelta(hours=1)

        deactivated = activation.deactivate(later)

        assert deactivated.is_active is False
        assert deactivated.deactivated_at == later
        assert deactivated.deactivate(later + timedelta(hours=1)) is deactivated

    def test_refresh(self):
        """Test the same machine reconnecting updates its details."""
        activation = Activation.create(
            license_id=uuid.uuid4(), hardware_id="hw-A", version="1.0", now=NOW
        )
        later = NOW + timedelta(days=2)

        refreshed = activation.refresh("build-02", "linux/arm64", "1.1", "10.0.0.2", later)

        assert refreshed.id == activation.id
        assert refreshed.version == "1.1"
        assert refreshed.last_seen_at == later
        assert refreshed.is_active is True

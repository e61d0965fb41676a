"""
Integration tests for the management commands.
"""

import uuid
from datetime import datetime, timedelta, timezone
from io import StringIO

import pytest
from asgiref.sync import async_to_sync
from django.core.management import call_command
from django.core.management.base import CommandError

from core.domain.value_objects import LicenseStatus


def run(*args, **kwargs):
    out = StringIO()
    call_command(*args, stdout=out, stderr=StringIO(), **kwargs)
    return out.getvalue()


class TestGenerateLicenseKeys:
    """Tests for generate_license_keys."""

    def test_prints_settings(self):
        """Test the command prints a usable key configuration."""
        from licenses.domain.keys import KeyPair

        output = run("generate_license_keys", "--key-id", "2026-10")

        values = dict(line.split("=", 1) for line in output.splitlines() if "=" in line)
        assert values["LICENSE_KEY_ID"] == "2026-10"
        assert values["LICENSE_PUBLIC_KEYS"] == f"2026-10:{values['LICENSE_PUBLIC_KEY']}"
        key_pair = KeyPair.deserialize(
            values["LICENSE_PRIVATE_KEY"], values["LICENSE_PUBLIC_KEY"], key_id="2026-10"
        )
        assert key_pair.public_key_base64 == values["LICENSE_PUBLIC_KEY"]


@pytest.mark.django_db
@pytest.mark.integration
class TestIssueAndVerifyCommands:
    """Tests for issue_license and verify_license_token."""

    def test_issue_then_verify(self, owner_id):
        """Test a license issued from the command line verifies offline."""
        output = run("issue_license", str(owner_id), "pro", "--days", "30")
        token = output.strip().splitlines()[-1]

        verified = run("verify_license_token", token)

        assert "Tier:       pro" in output
        assert "License token is valid" in verified
        assert str(owner_id) in verified

    def test_verify_rejects_tampered_token(self, owner_id):
        """Test tampering is reported as a command error."""
        token = run("issue_license", str(owner_id), "pro").strip().splitlines()[-1]
        payload, signature = token.split(".")
        tampered = payload + "." + ("A" if signature[0] != "A" else "B") + signature[1:]

        with pytest.raises(CommandError, match="INVALID_SIGNATURE"):
            run("verify_license_token", tampered)

    def test_verify_hardware_binding(self, owner_id):
        """Test a bound token does not verify on another machine."""
        token = run(
            "issue_license", str(owner_id), "enterprise", "--hardware-id", "hw-A"
        ).strip().splitlines()[-1]

        assert "License token is valid" in run("verify_license_token", token, "--hardware-id", "hw-A")
        with pytest.raises(CommandError, match="HARDWARE_MISMATCH"):
            run("verify_license_token", token, "--hardware-id", "hw-B")

    def test_issue_invalid_days(self, owner_id):
        """Test a non-positive validity is rejected."""
        with pytest.raises(CommandError):
            run("issue_license", str(owner_id), "pro", "--days", "0")


@pytest.mark.django_db
@pytest.mark.integration
class TestCheckLicenseExpirations:
    """Tests for check_license_expirations."""

    def test_dry_run_and_sweep(self, issuer, license_repository):
        """Test the dry run changes nothing and the sweep flips stale rows."""
        past = datetime.now(timezone.utc) - timedelta(days=10)
        stale, _, _ = async_to_sync(issuer.issue)(uuid.uuid4(), "pro", 1, now=past)
        fresh, _, _ = async_to_sync(issuer.issue)(uuid.uuid4(), "pro", 30)

        dry = run("check_license_expirations", "--dry-run")
        assert "Found 1 expired license(s)" in dry
        assert async_to_sync(license_repository.find_by_id)(stale.id).status == LicenseStatus.ACTIVE

        swept = run("check_license_expirations")

        assert "marked 1 license(s)" in swept
        assert async_to_sync(license_repository.find_by_id)(stale.id).status == LicenseStatus.EXPIRED
        assert async_to_sync(license_repository.find_by_id)(fresh.id).status == LicenseStatus.ACTIVE

"""
Integration tests for the license lifecycle through the application handlers.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from activations.application.commands.activate_license import ActivateLicenseCommand
from activations.application.commands.deactivate_license import DeactivateLicenseCommand
from activations.application.handlers.activate_license_handler import ActivateLicenseHandler
from activations.application.handlers.deactivate_license_handler import (
    DeactivateLicenseHandler,
)
from activations.application.handlers.get_license_activations_handler import (
    GetLicenseActivationsHandler,
)
from activations.application.queries.get_license_activations import GetLicenseActivationsQuery
from core.domain.exceptions import (
    HardwareMismatchError,
    InvalidSignatureError,
    LicenseExpiredError,
    LicenseNotFoundError,
    LicenseRevokedError,
)
from core.domain.value_objects import LicenseStatus
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.commands.revoke_license import RevokeLicenseCommand
from licenses.application.handlers.get_entitlements_handler import GetEntitlementsHandler
from licenses.application.handlers.get_user_licenses_handler import GetUserLicensesHandler
from licenses.application.handlers.issue_license_handler import IssueLicenseHandler
from licenses.application.handlers.revoke_license_handler import RevokeLicenseHandler
from licenses.application.handlers.validate_license_handler import ValidateLicenseHandler
from licenses.application.queries.get_entitlements import GetEntitlementsQuery
from licenses.application.queries.get_user_licenses import GetUserLicensesQuery
from licenses.application.queries.validate_license import ValidateLicenseQuery
from licenses.domain.entitlements import UNLIMITED
from licenses.domain.keys import KeyRing, generate_key_pair
from licenses.domain.token import LicenseCodec


@pytest.fixture
def handlers(license_repository, activation_repository, codec):
    class Handlers:
        issue = IssueLicenseHandler(license_repository, codec)
        revoke = RevokeLicenseHandler(license_repository)
        validate = ValidateLicenseHandler(license_repository, activation_repository, codec)
        activate = ActivateLicenseHandler(license_repository, activation_repository, codec)
        deactivate = DeactivateLicenseHandler(license_repository, activation_repository, codec)
        activations = GetLicenseActivationsHandler(license_repository, activation_repository)
        user_licenses = GetUserLicensesHandler(license_repository)
        entitlements = GetEntitlementsHandler(license_repository)

    return Handlers


def event_names(events):
    return [event.event_type for event in events]


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestEndToEnd:
    """The full engine journey: issue, activate, move machines, revoke."""

    @pytest.mark.asyncio
    async def test_pro_license_journey(self, handlers, validator, owner_id, published_events):
        """Test issue, activate, validate, move hardware, revoke, validate."""
        issued = await handlers.issue.handle(
            IssueLicenseCommand(owner_id=owner_id, tier="pro", valid_days=30)
        )
        license_id = issued.license.id
        token = issued.token
        assert issued.license.expires_at - issued.license.issued_at == timedelta(days=30)

        activated = await handlers.activate.handle(
            ActivateLicenseCommand(license_id_or_token=token, hardware_id="hw-A")
        )
        assert activated.created is True
        assert activated.activations_used == 1

        result = await handlers.validate.handle(
            ValidateLicenseQuery(license_id_or_token=str(license_id), hardware_id="hw-A")
        )
        assert result.valid is True
        assert result.tier == "pro"
        assert result.max_pipelines == 10

        deactivated = await handlers.deactivate.handle(
            DeactivateLicenseCommand(license_id_or_token=token, hardware_id="hw-A")
        )
        assert deactivated.deactivated is True

        moved = await handlers.activate.handle(
            ActivateLicenseCommand(license_id_or_token=str(license_id), hardware_id="hw-B")
        )
        assert moved.created is True
        with pytest.raises(HardwareMismatchError):
            await handlers.validate.handle(
                ValidateLicenseQuery(license_id_or_token=token, hardware_id="hw-A")
            )

        await handlers.revoke.handle(RevokeLicenseCommand(license_id=license_id))

        with pytest.raises(LicenseRevokedError):
            await handlers.validate.handle(
                ValidateLicenseQuery(license_id_or_token=token, hardware_id="hw-B")
            )
        # Offline verification cannot see the revocation.
        assert validator.validate_offline(token, "hw-B").license_id == license_id

        assert event_names(published_events) == [
            "LicenseIssued",
            "LicenseActivated",
            "LicenseDeactivated",
            "LicenseActivated",
            "LicenseRevoked",
        ]

        ledger = await handlers.activations.handle(GetLicenseActivationsQuery(license_id))
        assert ledger.activations_used == 1
        assert len(ledger.activations) == 2


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestIssuance:
    """Tests for issuing licenses."""

    @pytest.mark.asyncio
    async def test_reissue_revokes_same_family(self, handlers, owner_id, published_events):
        """Test a new commercial license supersedes the previous one."""
        community = await handlers.issue.handle(IssueLicenseCommand(owner_id, "community", 365))
        trial = await handlers.issue.handle(IssueLicenseCommand(owner_id, "trial", 14))
        pro = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro", 30))

        assert trial.revoked_license_ids == []
        assert pro.revoked_license_ids == [trial.license.id]

        statuses = {
            license.id: license.status
            for license in await handlers.user_licenses.handle(GetUserLicensesQuery(owner_id))
        }
        assert statuses == {
            community.license.id: "active",
            trial.license.id: "revoked",
            pro.license.id: "active",
        }
        assert event_names(published_events).count("LicenseRevoked") == 1

    @pytest.mark.asyncio
    async def test_issue_with_hardware_binding(self, handlers, owner_id, validator):
        """Test a hardware-bound license is activated at issue time."""
        issued = await handlers.issue.handle(
            IssueLicenseCommand(owner_id, "enterprise", 30, hardware_id="hw-A")
        )

        payload = validator.validate_offline(issued.token, "hw-A")
        activations = await handlers.activations.handle(
            GetLicenseActivationsQuery(issued.license.id)
        )

        assert payload.hardware_id == "hw-A"
        assert activations.activations_used == 1
        assert issued.license.max_activations == UNLIMITED

    @pytest.mark.asyncio
    async def test_default_validity(self, handlers, owner_id, settings):
        """Test the configured default validity window."""
        settings.LICENSE_DEFAULT_VALID_DAYS = 90
        issued = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro"))

        assert issued.license.expires_at - issued.license.issued_at == timedelta(days=90)


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestValidation:
    """Tests for online validation outcomes."""

    @pytest.mark.asyncio
    async def test_identity_only_check(self, handlers, owner_id):
        """Test validating without hardware checks only the license."""
        issued = await handlers.issue.handle(IssueLicenseCommand(owner_id, "trial", 14))

        result = await handlers.validate.handle(ValidateLicenseQuery(str(issued.license.id)))

        assert result.valid is True
        assert result.max_activations == 2

    @pytest.mark.asyncio
    async def test_unknown_license(self, handlers):
        """Test validating an unknown id."""
        with pytest.raises(LicenseNotFoundError):
            await handlers.validate.handle(
                ValidateLicenseQuery("00000000-0000-0000-0000-000000000000")
            )

    @pytest.mark.asyncio
    async def test_token_from_untrusted_key(self, handlers, owner_id, codec):
        """Test a token signed elsewhere is not trusted for its license id."""
        issued = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro", 30))
        impostor = generate_key_pair(codec.signing_key.key_id)
        forger = LicenseCodec(KeyRing.from_key_pairs([impostor]), impostor)
        forged = forger.encode(codec.decode(issued.token))

        with pytest.raises(InvalidSignatureError):
            await handlers.validate.handle(ValidateLicenseQuery(forged))

    @pytest.mark.asyncio
    async def test_revocation_asymmetry(self, handlers, owner_id, validator):
        """Test revocation is seen online at once and not seen offline."""
        issued = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro", 30))
        await handlers.activate.handle(ActivateLicenseCommand(issued.token, "hw-A"))

        revoked = await handlers.revoke.handle(RevokeLicenseCommand(issued.license.id, "refund"))

        assert revoked.status == "revoked"
        with pytest.raises(LicenseRevokedError):
            await handlers.validate.handle(ValidateLicenseQuery(issued.token, "hw-A"))
        payload = validator.validate_offline(issued.token, "hw-A")
        assert payload.license_id == issued.license.id
        with pytest.raises(LicenseExpiredError):
            validator.validate_offline(
                issued.token, "hw-A", now=issued.license.expires_at + timedelta(seconds=1)
            )

    @pytest.mark.asyncio
    async def test_revoke_twice(self, handlers, owner_id, published_events):
        """Test revoking an already revoked license is harmless."""
        issued = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro", 30))

        first = await handlers.revoke.handle(RevokeLicenseCommand(issued.license.id))
        second = await handlers.revoke.handle(RevokeLicenseCommand(issued.license.id))

        assert first.revoked_at == second.revoked_at
        assert event_names(published_events).count("LicenseRevoked") == 1

    @pytest.mark.asyncio
    async def test_revoke_unknown_license(self, handlers):
        """Test revoking an unknown license."""
        with pytest.raises(LicenseNotFoundError):
            await handlers.revoke.handle(RevokeLicenseCommand(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_expiry_is_monotonic(
        self, handlers, issuer, license_repository, owner_id, published_events
    ):
        """Test an expired license stays expired and is flipped once."""
        issued_at = datetime.now(timezone.utc) - timedelta(days=2)
        license, token, _ = await issuer.issue(owner_id, "pro", 1, now=issued_at)

        with pytest.raises(LicenseExpiredError):
            await handlers.validate.handle(ValidateLicenseQuery(str(license.id)))
        with pytest.raises(LicenseExpiredError):
            await handlers.validate.handle(ValidateLicenseQuery(token))
        with pytest.raises(LicenseExpiredError):
            await handlers.activate.handle(ActivateLicenseCommand(token, "hw-A"))

        stored = await license_repository.find_by_id(license.id)
        assert stored.status == LicenseStatus.EXPIRED
        assert event_names(published_events) == ["LicenseExpired"]

    @pytest.mark.asyncio
    async def test_deactivate_after_revocation(self, handlers, owner_id):
        """Test a machine can still be released from a revoked license."""
        issued = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro", 30))
        await handlers.activate.handle(ActivateLicenseCommand(issued.token, "hw-A"))
        await handlers.revoke.handle(RevokeLicenseCommand(issued.license.id))

        result = await handlers.deactivate.handle(DeactivateLicenseCommand(issued.token, "hw-A"))
        again = await handlers.deactivate.handle(DeactivateLicenseCommand(issued.token, "hw-A"))

        assert result.deactivated is True
        assert again.deactivated is False


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestEntitlements:
    """Tests for owner entitlements."""

    @pytest.mark.asyncio
    async def test_maximum_across_active_licenses(self, handlers, owner_id):
        """Test the pipeline limit is the best usable license, not the sum."""
        await handlers.issue.handle(IssueLicenseCommand(owner_id, "community", 365))
        pro = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro", 30))

        entitlements = await handlers.entitlements.handle(GetEntitlementsQuery(owner_id))

        assert entitlements.tier == "pro"
        assert entitlements.max_pipelines == 10
        assert entitlements.active_licenses == 2

        await handlers.revoke.handle(RevokeLicenseCommand(pro.license.id))
        entitlements = await handlers.entitlements.handle(GetEntitlementsQuery(owner_id))

        assert entitlements.tier == "community"
        assert entitlements.max_pipelines == 1

    @pytest.mark.asyncio
    async def test_owner_without_licenses(self, handlers, owner_id):
        """Test an owner without licenses has no pipelines."""
        entitlements = await handlers.entitlements.handle(GetEntitlementsQuery(owner_id))

        assert entitlements.tier is None
        assert entitlements.max_pipelines == 0


@pytest.mark.django_db(transaction=True)
@pytest.mark.integration
class TestAuditTrail:
    """Tests for the audit rows written by the default event handlers."""

    @pytest.mark.asyncio
    async def test_lifecycle_is_audited(self, handlers, owner_id):
        """Test every state change leaves one audit row."""
        from asgiref.sync import sync_to_async

        from licenses.infrastructure.models import AuditLog

        issued = await handlers.issue.handle(IssueLicenseCommand(owner_id, "pro", 30))
        await handlers.activate.handle(ActivateLicenseCommand(issued.token, "hw-A"))
        await handlers.activate.handle(ActivateLicenseCommand(issued.token, "hw-A"))
        await handlers.revoke.handle(RevokeLicenseCommand(issued.license.id, "chargeback"))

        actions = await sync_to_async(
            lambda: sorted(AuditLog.objects.values_list("action", flat=True))
        )()
        assert actions == ["license_activated", "license_issued", "license_revoked"]
        revoked = await sync_to_async(AuditLog.objects.get)(action="license_revoked")
        assert revoked.entity_id == issued.license.id
        assert revoked.changes["reason"] == "chargeback"

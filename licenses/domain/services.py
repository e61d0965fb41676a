"""
License domain services.

LicenseIssuer mints licenses and their signed tokens. LicenseValidator
implements the two validation paths: online against the license store
and activation ledger (sees revocation immediately), and offline
against the token signature and embedded expiry only. verify_offline
runs the offline path with nothing but the verification keys.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from activations.domain.activation import Activation
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import (
    HardwareMismatchError,
    InvalidSignatureError,
    LicenseExpiredError,
    LicenseNotFoundError,
    LicenseRevokedError,
    MalformedTokenError,
)
from core.domain.value_objects import LicenseStatus, Tier
from licenses.domain.entitlements import EntitlementResolver
from licenses.domain.license import License
from licenses.domain.token import LicenseCodec, LicensePayload
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

OFFLINE_INVALID_SIGNATURE_MESSAGE = (
    "This license could not be verified on this machine. It may have been "
    "altered or signed with a key this build does not trust. Re-download the "
    "license from the portal or contact support."
)
OFFLINE_MALFORMED_MESSAGE = (
    "This license text is incomplete or damaged. Copy the full license token "
    "from the portal again or contact support."
)
OFFLINE_EXPIRED_MESSAGE = (
    "This license expired on {expires_at:%Y-%m-%d}. Connect to the license "
    "server to refresh it, or renew the subscription."
)
OFFLINE_HARDWARE_MESSAGE = (
    "This license is bound to a different machine. Connect to the license "
    "server to activate this machine, or contact support."
)


def parse_license_id(value) -> uuid.UUID:
    """
    Parse a license id.

    Args:
        value: UUID or string

    Returns:
        UUID

    Raises:
        LicenseNotFoundError: If the value is not a UUID
    """
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (ValueError, AttributeError):
        raise LicenseNotFoundError() from None


def looks_like_license_id(value: str) -> bool:
    try:
        uuid.UUID(str(value).strip())
    except ValueError:
        return False
    return True


def resolve_license_id(codec: LicenseCodec, license_id_or_token) -> uuid.UUID:
    """
    Find the license a caller refers to.

    A token is only trusted for its license id once its signature
    verifies.

    Args:
        codec: Codec holding the trusted verification keys
        license_id_or_token: License UUID (or string) or license token

    Returns:
        License UUID

    Raises:
        InvalidSignatureError: If a token does not verify
        MalformedTokenError: If a token cannot be parsed
    """
    if isinstance(license_id_or_token, uuid.UUID) or looks_like_license_id(
        license_id_or_token
    ):
        return parse_license_id(license_id_or_token)
    return codec.decode(license_id_or_token).license_id


def verify_offline(
    codec: LicenseCodec,
    token: str,
    hardware_id: str = "",
    now: Optional[datetime] = None,
) -> LicensePayload:
    """
    Signature and local expiry check, without network access.

    Needs only the trusted verification keys. Cannot see revocation.
    Error messages tell the user how to recover and never suggest the
    license was revoked.

    Args:
        codec: Codec holding the trusted verification keys
        token: License token
        hardware_id: Hardware identity of this machine
        now: Evaluation time (defaults to now)

    Returns:
        Verified LicensePayload

    Raises:
        InvalidSignatureError: If the signature does not verify
        MalformedTokenError: If the token cannot be parsed
        LicenseExpiredError: If the embedded expiry has passed
        HardwareMismatchError: If the token is bound to other hardware
    """
    try:
        payload = codec.decode(token)
    except InvalidSignatureError:
        raise InvalidSignatureError(OFFLINE_INVALID_SIGNATURE_MESSAGE) from None
    except MalformedTokenError:
        raise MalformedTokenError(OFFLINE_MALFORMED_MESSAGE) from None

    if payload.is_expired(now):
        raise LicenseExpiredError(OFFLINE_EXPIRED_MESSAGE.format(expires_at=payload.expires_at))
    if hardware_id and payload.hardware_id and payload.hardware_id != hardware_id:
        raise HardwareMismatchError(OFFLINE_HARDWARE_MESSAGE)
    return payload


class LicenseIssuer:
    """Domain service for issuing licenses."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        codec: LicenseCodec,
        issuer_name: str = "",
    ):
        """
        Initialize issuer.

        Args:
            license_repository: License store
            codec: Codec holding the signing key
            issuer_name: Issuer embedded in tokens
        """
        self.license_repository = license_repository
        self.codec = codec
        self.issuer_name = issuer_name

    async def issue(
        self,
        owner_id: uuid.UUID,
        tier,
        valid_days: int,
        hardware_id: str = "",
        now: Optional[datetime] = None,
    ) -> Tuple[License, str, List[uuid.UUID]]:
        """
        Issue a license and mint its token.

        Any active license of the same owner and tier family is revoked
        in the same transaction. Its token is left untouched; it stops
        validating online because the record is revoked.

        Args:
            owner_id: Owner UUID
            tier: Tier or tier string
            valid_days: Validity window in days
            hardware_id: Optional hardware binding; creates the first activation
            now: Issue time (defaults to now)

        Returns:
            Tuple of (license, token, revoked license ids)

        Raises:
            InvalidTierError: If the tier is unknown
            ValueError: If valid_days is not positive
        """
        tier = Tier.parse(tier)
        now = now or datetime.now(timezone.utc)

        license = License.create(
            owner_id=owner_id,
            tier=tier,
            valid_days=valid_days,
            max_activations=EntitlementResolver.max_activations(tier),
            hardware_id=hardware_id,
            now=now,
        )
        token = self.codec.encode(license.to_payload(self.issuer_name))
        license = license.with_token(token, self.codec.signing_key.key_id)

        initial_activation = None
        if hardware_id:
            initial_activation = Activation.create(
                license_id=license.id, hardware_id=hardware_id, now=now
            )

        saved, superseded = await self.license_repository.issue(
            license, initial_activation=initial_activation
        )
        logger.info(
            "Issued %s license %s for owner %s (superseded %d)",
            tier,
            saved.id,
            owner_id,
            len(superseded),
        )
        return saved, token, superseded


class LicenseValidator:
    """Domain service for license validation."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
        codec: LicenseCodec,
    ):
        self.license_repository = license_repository
        self.activation_repository = activation_repository
        self.codec = codec

    @staticmethod
    def ensure_usable(license: License, now: Optional[datetime] = None) -> None:
        """
        Raise the business outcome for a license that cannot be used.

        Revocation is reported before expiry.

        Raises:
            LicenseRevokedError: If revoked
            LicenseExpiredError: If expired (by clock or stored status)
        """
        status = license.effective_status(now)
        if status == LicenseStatus.REVOKED:
            raise LicenseRevokedError()
        if status == LicenseStatus.EXPIRED:
            raise LicenseExpiredError(
                f"License expired on {license.expires_at:%Y-%m-%d}"
            )

    async def validate_online(
        self,
        license_id,
        hardware_id: str = "",
        now: Optional[datetime] = None,
    ) -> License:
        """
        Authoritative validation against the license store.

        An empty hardware_id performs an identity-only check.

        Args:
            license_id: License UUID (or its string form)
            hardware_id: Hardware identity of the caller
            now: Evaluation time (defaults to now)

        Returns:
            The valid License

        Raises:
            LicenseNotFoundError: If the license does not exist
            LicenseRevokedError: If the license is revoked
            LicenseExpiredError: If the license is expired
            HardwareMismatchError: If hardware_id has no live activation
        """
        now = now or datetime.now(timezone.utc)
        license = await self.license_repository.find_by_id(parse_license_id(license_id))
        if license is None:
            raise LicenseNotFoundError()

        if license.is_revoked():
            raise LicenseRevokedError()

        if license.is_expired(now) or license.status == LicenseStatus.EXPIRED:
            flipped = False
            if license.status == LicenseStatus.ACTIVE:
                flipped = await self.license_repository.mark_expired(license.id)
                logger.info("License %s flipped to expired on read", license.id)
            raise LicenseExpiredError(
                f"License expired on {license.expires_at:%Y-%m-%d}",
                license_id=license.id,
                owner_id=license.owner_id,
                status_changed=flipped,
            )

        if hardware_id:
            if license.hardware_id and license.hardware_id != hardware_id:
                raise HardwareMismatchError()
            activation = await self.activation_repository.find_live(license.id, hardware_id)
            if activation is None:
                raise HardwareMismatchError("License is not activated on this hardware")
            await self.activation_repository.touch(activation.id, now)

        return license

    def validate_offline(
        self,
        token: str,
        hardware_id: str = "",
        now: Optional[datetime] = None,
    ) -> LicensePayload:
        """Offline check with this validator's codec. See verify_offline."""
        return verify_offline(self.codec, token, hardware_id, now)

    async def validate(
        self,
        license_id_or_token: str,
        hardware_id: str = "",
        now: Optional[datetime] = None,
    ) -> License:
        """
        Online validation addressed by license id or by token.

        A token must carry a valid signature before its license id is
        trusted.

        Args:
            license_id_or_token: License UUID string or license token
            hardware_id: Hardware identity of the caller
            now: Evaluation time (defaults to now)

        Returns:
            The valid License
        """
        license_id = resolve_license_id(self.codec, license_id_or_token)
        return await self.validate_online(license_id, hardware_id, now)

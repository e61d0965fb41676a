"""
License token codec.

A license token is the portable credential shipped to customer machines:

    base64url(payload) + "." + base64url(signature)

The payload is compact JSON with a fixed field order and integer Unix
timestamps, so the same license always produces the same bytes. The
signature is Ed25519 over the ASCII of the encoded payload segment.
Verifiers need only a trusted public key and the token text.
"""
import base64
import binascii
import json
import re
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cryptography.exceptions import InvalidSignature

from core.domain.exceptions import (
    InvalidKeyMaterialError,
    InvalidSignatureError,
    InvalidTierError,
    MalformedTokenError,
)
from core.domain.value_objects import Tier
from licenses.domain.keys import KeyPair, KeyRing

TOKEN_VERSION = 1
SIGNATURE_SIZE = 64

# Required fields first, then optional fields. New fields are only ever
# appended so older verifiers keep parsing newer tokens.
REQUIRED_FIELDS = ("license_id", "owner_id", "tier", "issued_at", "expires_at")
OPTIONAL_FIELDS = ("key_id", "hardware_id", "issuer", "version")

_B64URL_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def b64url_encode(raw: bytes) -> str:
    """Unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """
    Strictly decode unpadded URL-safe base64.

    Args:
        segment: Encoded text

    Returns:
        Decoded bytes

    Raises:
        ValueError: If the text is not canonical unpadded base64url
    """
    if not _B64URL_RE.match(segment):
        raise ValueError("invalid base64url alphabet")
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError) as e:
        raise ValueError(str(e)) from e
    # Reject encodings whose unused trailing bits are set.
    if b64url_encode(raw) != segment:
        raise ValueError("non-canonical base64url")
    return raw


def _to_timestamp(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


def _from_timestamp(value: Any) -> datetime:
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedTokenError("License token timestamps must be integers")
    return datetime.fromtimestamp(value, tz=timezone.utc)


@dataclass(frozen=True)
class LicensePayload:
    """Signed content of a license token."""

    license_id: uuid.UUID
    owner_id: uuid.UUID
    tier: Tier
    issued_at: datetime
    expires_at: datetime
    key_id: str = ""
    hardware_id: str = ""
    issuer: str = ""
    version: int = TOKEN_VERSION

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check the embedded expiry against the local clock."""
        check_time = now or datetime.now(timezone.utc)
        return check_time > self.expires_at

    def canonical_fields(self) -> Dict[str, Any]:
        """
        Payload as an ordered, JSON-compatible dictionary.

        Returns:
            Dictionary in wire field order
        """
        return {
            "license_id": str(self.license_id),
            "owner_id": str(self.owner_id),
            "tier": self.tier.value,
            "issued_at": _to_timestamp(self.issued_at),
            "expires_at": _to_timestamp(self.expires_at),
            "key_id": self.key_id,
            "hardware_id": self.hardware_id,
            "issuer": self.issuer,
            "version": self.version,
        }

    def canonical_bytes(self) -> bytes:
        """Stable byte encoding of the payload."""
        return json.dumps(
            self.canonical_fields(), separators=(",", ":"), ensure_ascii=True
        ).encode("ascii")

    @classmethod
    def from_canonical_bytes(cls, raw: bytes) -> "LicensePayload":
        """
        Parse payload bytes.

        Unknown fields are ignored.

        Args:
            raw: JSON payload bytes

        Returns:
            LicensePayload

        Raises:
            MalformedTokenError: If required fields are missing or invalid
        """
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise MalformedTokenError("License token payload is not valid JSON") from None
        if not isinstance(data, dict):
            raise MalformedTokenError("License token payload must be an object")

        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise MalformedTokenError(
                f"License token payload is missing: {', '.join(missing)}"
            )

        try:
            license_id = uuid.UUID(str(data["license_id"]))
            owner_id = uuid.UUID(str(data["owner_id"]))
            tier = Tier.parse(data["tier"])
        except (ValueError, InvalidTierError):
            raise MalformedTokenError("License token payload has invalid identifiers") from None

        version = data.get("version", TOKEN_VERSION)
        if isinstance(version, bool) or not isinstance(version, int):
            raise MalformedTokenError("License token version must be an integer")

        return cls(
            license_id=license_id,
            owner_id=owner_id,
            tier=tier,
            issued_at=_from_timestamp(data["issued_at"]),
            expires_at=_from_timestamp(data["expires_at"]),
            key_id=str(data.get("key_id") or ""),
            hardware_id=str(data.get("hardware_id") or ""),
            issuer=str(data.get("issuer") or ""),
            version=version,
        )


class LicenseCodec:
    """
    Encodes and verifies license tokens.

    The signing key is optional so verifier-only deployments (engines,
    offline checks) can share the same codec.
    """

    def __init__(self, key_ring: KeyRing, signing_key: Optional[KeyPair] = None):
        """
        Initialize codec.

        Args:
            key_ring: Trusted verification keys
            signing_key: Key pair used to mint tokens
        """
        self.key_ring = key_ring
        self.signing_key = signing_key

    def encode(self, payload: LicensePayload) -> str:
        """
        Sign a payload and render the token.

        The payload's key_id is set to the signing key's id.

        Args:
            payload: License payload

        Returns:
            Token string

        Raises:
            InvalidKeyMaterialError: If no signing key is configured
        """
        if self.signing_key is None:
            raise InvalidKeyMaterialError("No license signing key is configured")

        payload = replace(payload, key_id=self.signing_key.key_id)
        payload_segment = b64url_encode(payload.canonical_bytes())
        signature = self.signing_key.private_key.sign(payload_segment.encode("ascii"))
        return f"{payload_segment}.{b64url_encode(signature)}"

    def decode(self, token: str) -> LicensePayload:
        """
        Parse a token and verify its signature.

        Args:
            token: Token string

        Returns:
            Verified LicensePayload

        Raises:
            MalformedTokenError: If the token structure cannot be parsed
            InvalidSignatureError: If the signature does not verify
        """
        if not isinstance(token, str):
            raise MalformedTokenError("License token must be a string")
        token = token.strip()
        payload_segment, sep, signature_segment = token.rpartition(".")
        if not sep or not payload_segment or not signature_segment:
            raise MalformedTokenError("License token must have a payload and a signature")
        if not token.isascii():
            raise MalformedTokenError("License token contains non-ASCII characters")

        try:
            signature = b64url_decode(signature_segment)
        except ValueError:
            raise InvalidSignatureError("License signature is not valid base64url") from None
        if len(signature) != SIGNATURE_SIZE:
            raise InvalidSignatureError("License signature has an invalid length")

        signed_bytes = payload_segment.encode("ascii")
        for public_key in self._candidate_keys(payload_segment):
            try:
                public_key.verify(signature, signed_bytes)
            except InvalidSignature:
                continue
            break
        else:
            raise InvalidSignatureError()

        try:
            raw = b64url_decode(payload_segment)
        except ValueError:
            raise MalformedTokenError("License token payload is not valid base64url") from None
        return LicensePayload.from_canonical_bytes(raw)

    def _candidate_keys(self, payload_segment: str) -> List:
        """
        Pick the verification keys for a payload.

        The key id is read from the unverified payload only to select a
        key. Payloads without a readable key id are tried against every
        trusted key.
        """
        key_id = None
        try:
            data = json.loads(b64url_decode(payload_segment).decode("utf-8"))
            if isinstance(data, dict):
                key_id = data.get("key_id") or None
        except (ValueError, UnicodeDecodeError):
            pass

        if key_id is None:
            return [self.key_ring.get(kid) for kid in self.key_ring.key_ids]

        public_key = self.key_ring.get(str(key_id))
        if public_key is None:
            raise InvalidSignatureError(f"License was signed with an unknown key ({key_id})")
        return [public_key]

"""
License signing keys.

Ed25519 key pairs used to sign license tokens. The private half stays on
the issuing server; the public half is embedded in engine builds. Every
key pair carries a key id so several public keys can be trusted at once
while keys are rotated.
"""
import base64
import binascii
import secrets
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from core.domain.exceptions import InvalidKeyMaterialError

KEY_SIZE = 32


def _raw_public_bytes(public_key: Ed25519PublicKey) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


def _raw_private_bytes(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _decode_key(value: str, label: str) -> bytes:
    try:
        raw = base64.b64decode(value.strip(), validate=True)
    except (binascii.Error, ValueError, AttributeError):
        raise InvalidKeyMaterialError(f"{label} is not valid base64") from None
    if len(raw) != KEY_SIZE:
        raise InvalidKeyMaterialError(
            f"{label} must be {KEY_SIZE} bytes, got {len(raw)}"
        )
    return raw


def new_key_id() -> str:
    """Return a short random key id."""
    return secrets.token_hex(4)


def load_public_key(public_b64: str) -> Ed25519PublicKey:
    """
    Load a verification key from its base64 form.

    Args:
        public_b64: Standard base64 of the raw 32-byte public key

    Returns:
        Ed25519 public key

    Raises:
        InvalidKeyMaterialError: If the value is not a valid public key
    """
    return Ed25519PublicKey.from_public_bytes(_decode_key(public_b64, "Public key"))


@dataclass(frozen=True)
class KeyPair:
    """An Ed25519 signing key pair tagged with its key id."""

    private_key: Ed25519PrivateKey
    public_key: Ed25519PublicKey
    key_id: str

    def serialize(self) -> Tuple[str, str]:
        """
        Encode the pair for storage and distribution.

        Returns:
            Tuple of (private_base64, public_base64)
        """
        return (
            base64.b64encode(_raw_private_bytes(self.private_key)).decode("ascii"),
            base64.b64encode(_raw_public_bytes(self.public_key)).decode("ascii"),
        )

    @property
    def public_key_base64(self) -> str:
        return self.serialize()[1]

    @classmethod
    def deserialize(
        cls,
        private_b64: str,
        public_b64: Optional[str] = None,
        key_id: Optional[str] = None,
    ) -> "KeyPair":
        """
        Rebuild a key pair from its serialized form.

        The public half is derived from the private key; when it is also
        supplied it must match.

        Args:
            private_b64: Base64 raw private key (32-byte seed)
            public_b64: Optional base64 raw public key
            key_id: Key id (generated when omitted)

        Returns:
            KeyPair instance

        Raises:
            InvalidKeyMaterialError: If the material is malformed or mismatched
        """
        private_key = Ed25519PrivateKey.from_private_bytes(
            _decode_key(private_b64, "Private key")
        )
        public_key = private_key.public_key()
        if public_b64:
            supplied = _decode_key(public_b64, "Public key")
            if not secrets.compare_digest(supplied, _raw_public_bytes(public_key)):
                raise InvalidKeyMaterialError("Public key does not match private key")
        return cls(private_key=private_key, public_key=public_key, key_id=key_id or new_key_id())

    def __eq__(self, other):
        if not isinstance(other, KeyPair):
            return False
        return self.key_id == other.key_id and self.serialize() == other.serialize()

    def __hash__(self):
        return hash((self.key_id, self.serialize()))


def generate_key_pair(key_id: Optional[str] = None) -> KeyPair:
    """
    Generate a fresh Ed25519 key pair.

    Args:
        key_id: Optional key id (random when omitted)

    Returns:
        New KeyPair
    """
    private_key = Ed25519PrivateKey.generate()
    return KeyPair(
        private_key=private_key,
        public_key=private_key.public_key(),
        key_id=key_id or new_key_id(),
    )


class KeyRing:
    """
    Immutable set of trusted verification keys indexed by key id.
    """

    def __init__(self, keys: Mapping[str, Ed25519PublicKey]):
        if not keys:
            raise InvalidKeyMaterialError("At least one verification key is required")
        self._keys: Dict[str, Ed25519PublicKey] = dict(keys)

    @classmethod
    def from_key_pairs(cls, key_pairs: Iterable[KeyPair]) -> "KeyRing":
        return cls({pair.key_id: pair.public_key for pair in key_pairs})

    @classmethod
    def from_config(cls, value: str) -> "KeyRing":
        """
        Parse a ``kid:base64,kid:base64`` configuration string.

        Args:
            value: Comma separated key id and public key pairs

        Returns:
            KeyRing instance
        """
        keys = {}
        for entry in (value or "").split(","):
            entry = entry.strip()
            if not entry:
                continue
            key_id, sep, public_b64 = entry.partition(":")
            if not sep or not key_id.strip():
                raise InvalidKeyMaterialError(
                    "Verification keys must be formatted as key_id:base64"
                )
            keys[key_id.strip()] = load_public_key(public_b64)
        return cls(keys)

    def get(self, key_id: str) -> Optional[Ed25519PublicKey]:
        return self._keys.get(key_id)

    @property
    def key_ids(self) -> Tuple[str, ...]:
        return tuple(sorted(self._keys))

    def __contains__(self, key_id: str) -> bool:
        return key_id in self._keys

    def __len__(self) -> int:
        return len(self._keys)

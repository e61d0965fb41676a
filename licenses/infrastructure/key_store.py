"""
Signing key configuration.

Builds the license codec from settings. The signing key pair comes from
LICENSE_PRIVATE_KEY / LICENSE_KEY_ID; additional trusted verification
keys (previous keys during rotation) come from LICENSE_PUBLIC_KEYS.
"""
import logging
from functools import lru_cache

from django.conf import settings

from core.domain.exceptions import InvalidKeyMaterialError
from licenses.domain.keys import KeyPair, KeyRing
from licenses.domain.token import LicenseCodec

logger = logging.getLogger(__name__)


def load_signing_key() -> KeyPair:
    """
    Load the configured signing key pair.

    Returns:
        KeyPair

    Raises:
        InvalidKeyMaterialError: If no private key is configured
    """
    private_b64 = getattr(settings, "LICENSE_PRIVATE_KEY", "")
    if not private_b64:
        raise InvalidKeyMaterialError(
            "LICENSE_PRIVATE_KEY is not set. Run 'manage.py generate_license_keys'."
        )
    return KeyPair.deserialize(
        private_b64,
        public_b64=getattr(settings, "LICENSE_PUBLIC_KEY", "") or None,
        key_id=getattr(settings, "LICENSE_KEY_ID", "") or "default",
    )


def load_key_ring(signing_key: KeyPair = None) -> KeyRing:
    """
    Load trusted verification keys.

    The signing key's public half is always trusted.
    """
    keys = {}
    configured = getattr(settings, "LICENSE_PUBLIC_KEYS", "")
    if configured:
        ring = KeyRing.from_config(configured)
        keys.update({key_id: ring.get(key_id) for key_id in ring.key_ids})
    if signing_key is not None:
        keys[signing_key.key_id] = signing_key.public_key
    return KeyRing(keys)


@lru_cache(maxsize=1)
def get_codec() -> LicenseCodec:
    """
    Get the process-wide license codec.

    Returns:
        LicenseCodec with signing key and key ring
    """
    signing_key = load_signing_key()
    key_ring = load_key_ring(signing_key)
    logger.info(
        "License codec loaded (signing key %s, %d trusted keys)",
        signing_key.key_id,
        len(key_ring),
    )
    return LicenseCodec(key_ring, signing_key)


def reset_codec() -> None:
    """Drop the cached codec, e.g. after settings change in tests."""
    get_codec.cache_clear()

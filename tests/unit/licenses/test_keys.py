"""
Unit tests for license signing keys.
"""
import pytest

from core.domain.exceptions import InvalidKeyMaterialError
from licenses.domain.keys import KeyPair, KeyRing, generate_key_pair, load_public_key


class TestKeyPair:
    """Tests for KeyPair."""

    def test_generate_uses_given_key_id(self):
        """Test generating a key pair with an explicit key id."""
        key_pair = generate_key_pair("k1")
        assert key_pair.key_id == "k1"

    def test_generate_random_key_id(self):
        """Test generated key ids differ."""
        assert generate_key_pair().key_id != generate_key_pair().key_id

    def test_serialize_round_trip(self):
        """Test a serialized key pair loads back to the same keys."""
        key_pair = generate_key_pair("k1")
        private_b64, public_b64 = key_pair.serialize()

        loaded = KeyPair.deserialize(private_b64, public_b64, key_id="k1")

        assert loaded == key_pair
        assert loaded.public_key_base64 == public_b64

    def test_deserialize_rejects_mismatched_public_key(self):
        """Test a public key from another pair is rejected."""
        private_b64, _ = generate_key_pair().serialize()
        _, other_public_b64 = generate_key_pair().serialize()

        with pytest.raises(InvalidKeyMaterialError, match="does not match"):
            KeyPair.deserialize(private_b64, other_public_b64)

    def test_deserialize_rejects_bad_base64(self):
        """Test non-base64 key material is rejected."""
        with pytest.raises(InvalidKeyMaterialError, match="not valid base64"):
            KeyPair.deserialize("not base64!")

    def test_deserialize_rejects_wrong_length(self):
        """Test key material of the wrong size is rejected."""
        with pytest.raises(InvalidKeyMaterialError, match="32 bytes"):
            load_public_key("AAAA")


class TestKeyRing:
    """Tests for KeyRing."""

    def test_from_config(self):
        """Test parsing a kid:base64 list."""
        old, new = generate_key_pair("old"), generate_key_pair("new")
        config = f"old:{old.public_key_base64}, new:{new.public_key_base64}"

        ring = KeyRing.from_config(config)

        assert ring.key_ids == ("new", "old")
        assert "old" in ring
        assert len(ring) == 2

    def test_from_config_requires_key_ids(self):
        """Test entries without a key id are rejected."""
        key_pair = generate_key_pair()
        with pytest.raises(InvalidKeyMaterialError, match="key_id:base64"):
            KeyRing.from_config(key_pair.public_key_base64)

    def test_empty_ring_rejected(self):
        """Test a ring needs at least one key."""
        with pytest.raises(InvalidKeyMaterialError):
            KeyRing.from_config("")

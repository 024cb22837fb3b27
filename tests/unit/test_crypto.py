"""
Unit tests for hashing primitives.

Tests cover:
1. Raw hash functions against known vectors
2. Hasher hash/compress behavior
3. Hasher lookup by name
4. Hex helpers
"""

import hashlib

import pytest

from cmtree.core.errors import InvalidConfiguration
from cmtree.crypto import (
    DIGEST_SIZE,
    Hasher,
    Keccak256Hasher,
    Sha256Hasher,
    get_hasher,
    hex_to_bytes,
    keccak256,
    sha256,
)


class TestHashing:
    """Tests for raw hash functions."""

    def test_sha256_known_vectors(self):
        """SHA-256 should match published test vectors."""
        assert sha256(b"").hex() == (
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )
        assert sha256(b"abc").hex() == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_keccak256_known_vector(self):
        """Keccak-256 of empty input is the Ethereum empty hash."""
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_keccak_differs_from_sha3(self):
        """Keccak-256 uses the original padding, not NIST SHA3."""
        assert keccak256(b"abc") != hashlib.sha3_256(b"abc").digest()


class TestSha256Hasher:
    """Tests for the default tree hasher."""

    def test_hash_length(self):
        """Digests are 32 bytes regardless of input size."""
        hasher = Sha256Hasher()
        assert len(hasher.hash(b"")) == DIGEST_SIZE
        assert len(hasher.hash(bytes(64))) == DIGEST_SIZE
        assert len(hasher.hash(b"x" * 10_000)) == DIGEST_SIZE

    def test_hash_deterministic(self):
        """Same input gives same digest."""
        hasher = Sha256Hasher()
        assert hasher.hash(bytes(64)) == hasher.hash(bytes(64))

    def test_compress_is_hash_of_concatenation(self):
        """compress(l, r) == sha256(l || r)."""
        hasher = Sha256Hasher()
        left = sha256(b"left")
        right = sha256(b"right")
        assert hasher.compress(left, right) == hashlib.sha256(left + right).digest()

    def test_compress_not_commutative(self):
        """Argument order encodes position."""
        hasher = Sha256Hasher()
        a = sha256(b"a")
        b = sha256(b"b")
        assert hasher.compress(a, b) != hasher.compress(b, a)


class TestKeccak256Hasher:
    """Tests for the Keccak tree hasher."""

    def test_compress_uses_keccak(self):
        hasher = Keccak256Hasher()
        left = sha256(b"left")
        right = sha256(b"right")
        assert hasher.compress(left, right) == keccak256(left + right)

    def test_differs_from_sha256(self):
        assert Keccak256Hasher().hash(bytes(64)) != Sha256Hasher().hash(bytes(64))


class TestHasherHierarchy:
    """Both hashers share the base class, neither derives from the other."""

    def test_common_base(self):
        assert isinstance(Sha256Hasher(), Hasher)
        assert isinstance(Keccak256Hasher(), Hasher)

    def test_keccak_is_not_sha256(self):
        assert not isinstance(Keccak256Hasher(), Sha256Hasher)

    def test_base_hash_not_implemented(self):
        with pytest.raises(NotImplementedError):
            Hasher().hash(b"data")

    def test_get_hasher_returns_base_type(self):
        for name in ("sha256", "keccak256"):
            assert isinstance(get_hasher(name), Hasher)


class TestGetHasher:
    """Tests for hasher lookup."""

    def test_default_is_sha256(self):
        assert isinstance(get_hasher(), Sha256Hasher)
        assert get_hasher().name == "sha256"

    def test_lookup_case_insensitive(self):
        assert isinstance(get_hasher("KECCAK256"), Keccak256Hasher)

    def test_unknown_name_rejected(self):
        with pytest.raises(InvalidConfiguration):
            get_hasher("md5")

    def test_unknown_name_is_value_error(self):
        """InvalidConfiguration is catchable as ValueError."""
        with pytest.raises(ValueError):
            get_hasher("blake3")


class TestHexHelpers:
    """Tests for hex conversion."""

    def test_decodes_digest_hex(self):
        data = bytes(range(32))
        assert hex_to_bytes(data.hex()) == data

    def test_prefix_accepted(self):
        assert hex_to_bytes("0xff01") == b"\xff\x01"
        assert hex_to_bytes("0XFF01") == b"\xff\x01"

    def test_invalid_hex(self):
        with pytest.raises(ValueError):
            hex_to_bytes("zz")

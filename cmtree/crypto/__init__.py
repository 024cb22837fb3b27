"""
Hashing primitives for cmtree.

This module provides:
- Raw hash functions (SHA-256, Keccak-256)
- Hasher objects used by the tree: hash(data) and compress(left, right)

Design Notes:
-------------
SHA-256 is the default and the only hasher the zero-tree root fixtures are
defined for. Keccak-256 is available for trees that need to be checked
against EVM-side verifiers.

The hasher is not recorded in the tree metadata: a tree must be restored
with the same hasher it was built with.
"""

import hashlib

from Crypto.Hash import keccak

from cmtree.core.errors import InvalidConfiguration


# =============================================================================
# Constants
# =============================================================================

DIGEST_SIZE = 32


# =============================================================================
# Hashing
# =============================================================================


def sha256(data: bytes) -> bytes:
    """Compute SHA-256 hash."""
    return hashlib.sha256(data).digest()


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 hash (Ethereum-style).

    Note this is the original Keccak padding, not NIST SHA3-256.
    """
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


# =============================================================================
# Hashers
# =============================================================================


class Hasher:
    """
    Base tree hasher.

    hash() digests arbitrary-length input (leaf values).
    compress() digests the concatenation of two child digests; it is not
    commutative, so argument order encodes left/right position.
    Subclasses only provide hash().
    """

    name = ""

    def hash(self, data: bytes) -> bytes:
        raise NotImplementedError

    def compress(self, left: bytes, right: bytes) -> bytes:
        return self.hash(left + right)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Sha256Hasher(Hasher):
    """Tree hasher backed by SHA-256."""

    name = "sha256"

    def hash(self, data: bytes) -> bytes:
        return sha256(data)


class Keccak256Hasher(Hasher):
    """Tree hasher backed by Keccak-256."""

    name = "keccak256"

    def hash(self, data: bytes) -> bytes:
        return keccak256(data)


HASHERS = {
    Sha256Hasher.name: Sha256Hasher,
    Keccak256Hasher.name: Keccak256Hasher,
}


def get_hasher(name: str = "sha256") -> Hasher:
    """
    Look up a hasher by name.

    Raises:
        InvalidConfiguration: if the name is unknown
    """
    try:
        return HASHERS[name.lower()]()
    except KeyError:
        raise InvalidConfiguration(
            f"Unknown hasher {name!r}, expected one of {sorted(HASHERS)}"
        ) from None


# =============================================================================
# Encoding helpers
# =============================================================================


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string to bytes (handles 0x prefix)."""
    if hex_str.startswith(("0x", "0X")):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)

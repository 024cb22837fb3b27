"""
HashPath - Merkle proof for one leaf of a fixed-depth tree.

A hash path holds the two children of every internal node on the route from
a leaf to the root, ordered leaf-adjacent first:

    [(left_0, right_0), (left_1, right_1), ..., (left_{d-1}, right_{d-1})]

Bit i of the leaf index says which member of pair i lies on the route
(0 = left, 1 = right). Given the leaf value, a verifier hashes it, checks it
against the selected member, compresses the pair and repeats up to the root.

Wire format (to_buffer / from_buffer):
    count (uint32 little-endian) || count * (left(32) || right(32))
"""

import struct
from typing import Iterator, List, Optional, Sequence, Tuple

from cmtree.crypto import DIGEST_SIZE, Hasher, Sha256Hasher

PAIR_SIZE = 2 * DIGEST_SIZE


class HashPath:
    """Ordered sibling pairs proving one leaf against a root."""

    def __init__(self, data: Optional[Sequence[Tuple[bytes, bytes]]] = None):
        self.data: List[Tuple[bytes, bytes]] = [
            (bytes(left), bytes(right)) for left, right in (data or [])
        ]

    def __len__(self) -> int:
        return len(self.data)

    def __iter__(self) -> Iterator[Tuple[bytes, bytes]]:
        return iter(self.data)

    def __getitem__(self, level: int) -> Tuple[bytes, bytes]:
        return self.data[level]

    def __eq__(self, other) -> bool:
        if not isinstance(other, HashPath):
            return NotImplemented
        return self.data == other.data

    def __repr__(self) -> str:
        return f"HashPath(levels={len(self.data)})"

    # =========================================================================
    # Verification
    # =========================================================================

    def compute_root(
        self,
        leaf_value: bytes,
        index: int,
        hasher: Optional[Hasher] = None,
    ) -> bytes:
        """
        Recompute the root implied by placing `leaf_value` at `index`.

        At each level the running digest replaces the pair member selected
        by the index bit; the other member is taken from the path as is.
        """
        hasher = hasher or Sha256Hasher()
        current = hasher.hash(leaf_value)
        for level, (left, right) in enumerate(self.data):
            if (index >> level) & 1:
                current = hasher.compress(left, current)
            else:
                current = hasher.compress(current, right)
        return current

    def verify(
        self,
        leaf_value: bytes,
        index: int,
        root: bytes,
        hasher: Optional[Hasher] = None,
    ) -> bool:
        """
        Check that `leaf_value` sits at `index` under `root`.

        Stricter than comparing compute_root(): each pair must actually
        contain the running digest on the side the index selects.
        """
        if not self.data:
            return False

        hasher = hasher or Sha256Hasher()
        current = hasher.hash(leaf_value)
        for level, (left, right) in enumerate(self.data):
            on_route = right if (index >> level) & 1 else left
            if on_route != current:
                return False
            current = hasher.compress(left, right)
        return current == root

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_buffer(self) -> bytes:
        """Serialize as count(u32 LE) followed by the concatenated pairs."""
        parts = [struct.pack("<I", len(self.data))]
        for left, right in self.data:
            parts.append(left)
            parts.append(right)
        return b"".join(parts)

    @classmethod
    def from_buffer(cls, buf: bytes) -> "HashPath":
        """
        Deserialize a buffer produced by to_buffer().

        Raises:
            ValueError: if the buffer is truncated or has trailing bytes
        """
        if len(buf) < 4:
            raise ValueError(f"HashPath buffer too short: {len(buf)} bytes")

        (count,) = struct.unpack_from("<I", buf, 0)
        expected = 4 + count * PAIR_SIZE
        if len(buf) != expected:
            raise ValueError(
                f"HashPath buffer must be {expected} bytes for {count} levels, got {len(buf)}"
            )

        data = []
        offset = 4
        for _ in range(count):
            left = buf[offset:offset + DIGEST_SIZE]
            right = buf[offset + DIGEST_SIZE:offset + PAIR_SIZE]
            data.append((left, right))
            offset += PAIR_SIZE
        return cls(data)

    def to_hex(self) -> List[List[str]]:
        """Pairs as [left_hex, right_hex] lists, for JSON output."""
        return [[left.hex(), right.hex()] for left, right in self.data]

"""
Fixed-depth Merkle tree persisted in a content-addressed key-value store.

Conceptual Background:
---------------------
The tree always has exactly 2^depth leaves. Nothing is held in memory apart
from the root and the depth: every internal node lives in the store under
its own digest, with the 64-byte value left_child || right_child. Leaves are
never stored, a leaf's digest is simply hash(leaf_value).

Because a key is the hash of its value, entries are never overwritten. An
update writes a fresh node for every level on the updated route and leaves
the old ones in place, so any earlier root still resolves to a complete,
provable tree.

Initialization:
--------------
Every leaf starts as 64 zero bytes, so all nodes on one level share a single
digest. The initial tree is therefore fully described by depth + 1 digests,
and only `depth` store entries are written, even for 2^32 leaves.

Routing:
-------
Index bits are read most significant first: bit (depth - 1) picks the side
at the root, bit 0 picks the side at the leaf's parent. This convention is
what the published zero-tree roots are computed with and must not change.

Concurrency:
-----------
One writer per tree name. update_element() replaces the in-memory root and
rewrites the metadata record without any lock; callers that update from
several threads must serialize those calls. Readers are safe alongside a
writer since stored nodes never change.

Properties:
----------
- Create: O(depth) writes
- Update: depth reads, depth writes, one metadata write
- Hash path: depth reads
"""

import struct
from typing import List, Optional, Tuple, Union

from cmtree.core.errors import IntegrityError, InvalidConfiguration
from cmtree.core.storage.base import KeyValueStore
from cmtree.core.tree.hash_path import HashPath
from cmtree.crypto import DIGEST_SIZE, Hasher, Sha256Hasher
from cmtree.utils.logger import get_logger

logger = get_logger("tree")


# =============================================================================
# Constants
# =============================================================================

MAX_DEPTH = 32
LEAF_BYTES = 64  # All leaf values are 64 bytes.
NODE_BYTES = 2 * DIGEST_SIZE
METADATA_BYTES = 40  # root(32) || depth(u32 LE) || zero padding(4)

ZERO_LEAF = bytes(LEAF_BYTES)

NODE_BUCKET = "nodes"
META_BUCKET = "meta"


# =============================================================================
# Merkle Tree
# =============================================================================


class MerkleTree:
    """
    Fixed-depth binary Merkle tree backed by a key-value store.

    Use MerkleTree.new() to construct: it restores the tree if metadata for
    `name` already exists in the store, and builds a fresh all-zero tree
    otherwise.

    Attributes:
        store: Backing key-value store
        name: Tree name, used as the metadata key
        depth: Number of internal levels (2^depth leaves)
        hasher: Hash/compress provider
    """

    def __init__(
        self,
        store: KeyValueStore,
        name: Union[str, bytes],
        depth: int,
        root: Optional[bytes] = None,
        hasher: Optional[Hasher] = None,
    ):
        if not (isinstance(depth, int) and 1 <= depth <= MAX_DEPTH):
            raise InvalidConfiguration(f"Bad depth {depth!r}, must be in [1, {MAX_DEPTH}]")

        self.store = store
        self.name = name
        self.depth = depth
        self.hasher = hasher or Sha256Hasher()

        if root is not None:
            # Restore already saved tree state.
            if len(root) != DIGEST_SIZE:
                raise IntegrityError(f"Root must be {DIGEST_SIZE} bytes, got {len(root)}")
            self._root = bytes(root)
        else:
            self._root = self._initialize_zero_tree()

    @classmethod
    def new(
        cls,
        store: KeyValueStore,
        name: Union[str, bytes],
        depth: int = MAX_DEPTH,
        hasher: Optional[Hasher] = None,
    ) -> "MerkleTree":
        """
        Construct or restore the tree called `name`.

        When metadata exists, the persisted depth wins over `depth`.

        Raises:
            InvalidConfiguration: fresh tree with depth outside [1, 32]
            IntegrityError: persisted metadata is malformed
            StoreUnavailable: the store failed
        """
        meta = store.get(cls._meta_key(name))
        if meta is not None:
            root, stored_depth = cls._decode_metadata(meta)
            if stored_depth != depth:
                logger.warning(
                    f"Tree {name!r} was persisted with depth {stored_depth}, "
                    f"ignoring requested depth {depth}"
                )
            logger.info(f"Restored tree {name!r}: depth={stored_depth}, root={root.hex()[:16]}...")
            return cls(store, name, stored_depth, root=root, hasher=hasher)

        tree = cls(store, name, depth, hasher=hasher)
        tree._write_metadata()
        logger.info(f"Created tree {name!r}: depth={depth}, root={tree.get_root().hex()[:16]}...")
        return tree

    @classmethod
    def exists(cls, store: KeyValueStore, name: Union[str, bytes]) -> bool:
        """Whether metadata for a tree called `name` is persisted in `store`."""
        return store.get(cls._meta_key(name)) is not None

    # =========================================================================
    # Initialization & Metadata
    # =========================================================================

    def _initialize_zero_tree(self) -> bytes:
        """
        Write one node per internal level of the all-zero tree.

        Returns:
            Root digest
        """
        # Leaf level is derived, never stored.
        child = self.hasher.hash(ZERO_LEAF)
        for _ in range(self.depth):
            parent = self.hasher.compress(child, child)
            self.store.put(parent, child + child, bucket=NODE_BUCKET)
            child = parent
        return child

    @staticmethod
    def _meta_key(name: Union[str, bytes]) -> bytes:
        return name.encode("utf-8") if isinstance(name, str) else bytes(name)

    @staticmethod
    def _encode_metadata(root: bytes, depth: int) -> bytes:
        return (root + struct.pack("<I", depth)).ljust(METADATA_BYTES, b"\x00")

    @staticmethod
    def _decode_metadata(meta: bytes) -> Tuple[bytes, int]:
        if len(meta) != METADATA_BYTES:
            raise IntegrityError(
                f"Metadata must be {METADATA_BYTES} bytes, got {len(meta)}"
            )
        root = bytes(meta[:DIGEST_SIZE])
        (depth,) = struct.unpack_from("<I", meta, DIGEST_SIZE)
        if not 1 <= depth <= MAX_DEPTH:
            raise IntegrityError(f"Persisted depth {depth} outside [1, {MAX_DEPTH}]")
        return root, depth

    def _write_metadata(self):
        """Persist root and depth under the tree name for future restores."""
        self.store.put(
            self._meta_key(self.name),
            self._encode_metadata(self._root, self.depth),
            bucket=META_BUCKET,
        )

    # =========================================================================
    # Node access
    # =========================================================================

    def _read_node(self, digest: bytes) -> Tuple[bytes, bytes]:
        """Load the (left, right) children stored under `digest`."""
        value = self.store.get(digest)
        if value is None:
            raise IntegrityError(f"Missing node {digest.hex()} in tree {self.name!r}")
        if len(value) != NODE_BYTES:
            raise IntegrityError(
                f"Node {digest.hex()} must be {NODE_BYTES} bytes, got {len(value)}"
            )
        return bytes(value[:DIGEST_SIZE]), bytes(value[DIGEST_SIZE:])

    def _should_go_right(self, index: int, level: int) -> bool:
        """Direction at `level` (0 = root): bit (depth - level - 1) of index."""
        return bool((index >> (self.depth - level - 1)) & 1)

    def _check_index(self, index: int):
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(f"Index must be an int, got {type(index).__name__}")
        if index < 0 or index >= (1 << self.depth):
            raise IndexError(f"Index {index} out of range [0, {1 << self.depth})")

    # =========================================================================
    # Public API
    # =========================================================================

    def get_root(self) -> bytes:
        return self._root

    @property
    def capacity(self) -> int:
        """Number of leaves."""
        return 1 << self.depth

    def get_hash_path(self, index: int) -> HashPath:
        """
        Return the hash path for `index`.

        e.g. for index 2 in a depth-3 tree, the nodes marked * at each level:

            d0:                      [ root ]
            d1:          [*]                         [*]
            d2:    [*]         [*]           [ ]           [ ]
            d3: [ ]   [ ]   [*]   [*]     [ ]   [ ]     [ ]   [ ]

        Pairs are returned leaf-adjacent first.

        Raises:
            IndexError: index outside [0, 2^depth)
            IntegrityError: a node on the route is missing or malformed
        """
        self._check_index(index)

        path: List[Tuple[bytes, bytes]] = []
        current = self._root
        for level in range(self.depth):
            left, right = self._read_node(current)
            path.append((left, right))
            current = right if self._should_go_right(index, level) else left

        path.reverse()
        logger.debug(f"Hash path for index {index} in tree {self.name!r}")
        return HashPath(path)

    def update_element(self, index: int, value: bytes) -> bytes:
        """
        Set the leaf at `index` to `value` and return the new root.

        Raises:
            IndexError: index outside [0, 2^depth)
            ValueError: value is not bytes
            IntegrityError: a node on the route is missing or malformed
        """
        self._check_index(index)
        if not isinstance(value, (bytes, bytearray)):
            raise ValueError(f"Leaf value must be bytes, got {type(value).__name__}")

        # Walk down collecting the siblings on the route.
        route: List[Tuple[bytes, bytes, bool]] = []
        current = self._root
        for level in range(self.depth):
            left, right = self._read_node(current)
            go_right = self._should_go_right(index, level)
            route.append((left, right, go_right))
            current = right if go_right else left

        # Rebuild the route bottom-up as new content-addressed nodes.
        new_digest = self.hasher.hash(bytes(value))
        for left, right, go_right in reversed(route):
            if go_right:
                right = new_digest
            else:
                left = new_digest
            new_digest = self.hasher.compress(left, right)
            self.store.put(new_digest, left + right, bucket=NODE_BUCKET)

        self._root = new_digest
        self._write_metadata()

        logger.debug(
            f"Updated index {index} in tree {self.name!r}: root={self._root.hex()[:16]}..."
        )
        return self._root

    def __repr__(self) -> str:
        return f"MerkleTree(name={self.name!r}, depth={self.depth}, root={self._root.hex()[:16]}...)"

"""Fixed-depth Merkle tree and its hash path proofs"""
from cmtree.core.tree.hash_path import HashPath
from cmtree.core.tree.merkle import (
    MerkleTree,
    MAX_DEPTH,
    LEAF_BYTES,
    ZERO_LEAF,
)

__all__ = [
    "HashPath",
    "MerkleTree",
    "MAX_DEPTH",
    "LEAF_BYTES",
    "ZERO_LEAF",
]

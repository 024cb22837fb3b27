"""
cmtree - Content-addressed Merkle Tree

A fixed-depth binary Merkle tree persisted in a key-value store:
- Deterministic O(depth) initialization of an all-zero tree
- O(depth) leaf updates that never overwrite old nodes
- Hash path proofs against current or historical roots
"""

__version__ = "0.1.0"

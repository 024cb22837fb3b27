"""
Error types raised by the tree and its storage adapters.

Each error also derives from the builtin exception a caller would expect
(ValueError for bad parameters, IOError for backend failures, RuntimeError
for corrupted state), so generic handlers keep working.
"""


class MerkleTreeError(Exception):
    """Base class for cmtree errors."""


class InvalidConfiguration(MerkleTreeError, ValueError):
    """Tree or config parameters are out of range (e.g. depth not in [1, 32])."""


class StoreUnavailable(MerkleTreeError, IOError):
    """The key-value store failed for reasons external to the tree logic."""


class IntegrityError(MerkleTreeError, RuntimeError):
    """A node or metadata record the tree depends on is missing or malformed."""

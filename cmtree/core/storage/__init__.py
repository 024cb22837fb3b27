"""
Persistent Storage Module.

Key-value backends for tree nodes and tree metadata:
- MemoryAdapter: in-process dict, for tests and throwaway trees
- SQLiteAdapter: single-file persistent store
"""

from cmtree.core.storage.base import KeyValueStore
from cmtree.core.storage.memory_adapter import MemoryAdapter
from cmtree.core.storage.sqlite_adapter import SQLiteAdapter

__all__ = ["KeyValueStore", "MemoryAdapter", "SQLiteAdapter"]

from typing import Dict, Optional, Tuple

from cmtree.utils.logger import get_logger

logger = get_logger("storage.memory")


class MemoryAdapter:
    """
    Dict-backed key-value store.

    Keeps the bucket alongside each value so it can be counted the same way
    as the SQLite backend. Reads and writes are counted so callers can check
    how many store round trips an operation took.
    """

    def __init__(self):
        self._data: Dict[bytes, Tuple[bytes, str]] = {}
        self.reads = 0
        self.writes = 0

    def put(self, key: bytes, value: bytes, bucket: str = "default"):
        """Save a key-value pair."""
        self.writes += 1
        self._data[bytes(key)] = (bytes(value), bucket)

    def get(self, key: bytes) -> Optional[bytes]:
        """Get value by key."""
        self.reads += 1
        entry = self._data.get(bytes(key))
        return entry[0] if entry else None

    def has(self, key: bytes) -> bool:
        return bytes(key) in self._data

    def count(self, bucket: Optional[str] = None) -> int:
        """Number of stored entries, optionally restricted to one bucket."""
        if bucket is None:
            return len(self._data)
        return sum(1 for _, b in self._data.values() if b == bucket)

    def reset_counters(self):
        self.reads = 0
        self.writes = 0

    def close(self):
        pass

    def __len__(self) -> int:
        return len(self._data)

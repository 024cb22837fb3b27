from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Minimal store contract the tree relies on.

    get() returns None when the key is absent. put() must be idempotent for
    an identical key/value pair; content addressing makes every node write
    of that kind in practice. Backend failures are raised as
    StoreUnavailable.
    """

    def get(self, key: bytes) -> Optional[bytes]:
        ...

    def put(self, key: bytes, value: bytes, bucket: str = "default") -> None:
        ...

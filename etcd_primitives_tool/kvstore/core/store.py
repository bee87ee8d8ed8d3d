"""
Store client protocol consumed by the lease, lock, watch and queue operations.

Both EtcdClient (network) and MemoryClient (in-process) satisfy it, so every
component takes an explicitly constructed client instead of a global handle.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import threading
from collections.abc import Callable, Iterator
from typing import Any, Protocol

from ..models import Compare, KeyValue, LeaseAck, TxnOp, TxnResult, WatchEvent


class StoreClient(Protocol):
    """Minimum contract of a linearizable key-value store."""

    def put(self, key: str, value: str, lease: int | None = None) -> None: ...

    def get(self, key: str) -> KeyValue | None: ...

    def get_prefix(
        self, prefix: str, limit: int | None = None, descending: bool = False
    ) -> list[KeyValue]: ...

    def delete(self, key: str) -> bool: ...

    def delete_prefix(self, prefix: str) -> int: ...

    def count_prefix(self, prefix: str) -> int: ...

    def transaction(
        self,
        compare: list[Compare],
        success: list[TxnOp],
        failure: list[TxnOp],
    ) -> TxnResult: ...

    def grant_lease(self, ttl: int) -> int: ...

    def keep_alive(self, lease_id: int, stop: threading.Event) -> Iterator[LeaseAck]: ...

    def revoke_lease(self, lease_id: int) -> None: ...

    def lease_ttl(self, lease_id: int) -> int: ...

    def watch_prefix(
        self, prefix: str
    ) -> tuple[Iterator[WatchEvent], Callable[[], None]]: ...

    def status(self) -> dict[str, Any]: ...

    def close(self) -> None: ...


def keepalive_interval(ttl: int, divisor: int, floor: float) -> float:
    """Seconds between renewals for a lease with the given TTL."""
    return max(ttl / divisor, floor)

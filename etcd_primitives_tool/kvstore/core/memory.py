"""
In-memory store client with etcd semantics.

Keeps a global revision counter, create/mod revisions per key, leases that
expire against an injectable clock (deleting their keys), and prefix watches
fed in revision order. Used by the test-suite and for local runs without a
cluster.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import itertools
import queue
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from typing import Any

from ..constants import (
    KEEPALIVE_INTERVAL_DIVISOR,
    KEEPALIVE_MIN_INTERVAL,
    WATCH_POLL_INTERVAL,
)
from ..exceptions import LeaseError, LeaseNotFoundError, StoreConnectionError
from ..logging_config import get_logger
from ..models import (
    Compare,
    EventType,
    KeyValue,
    LeaseAck,
    TxnOp,
    TxnResult,
    WatchEvent,
)
from .store import keepalive_interval

logger = get_logger(__name__)

_STREAM_END = object()


@dataclass
class _LeaseRecord:
    ttl: int
    expires_at: float
    keys: set[str] = field(default_factory=set)


@dataclass
class _Watcher:
    prefix: str
    events: "queue.Queue[Any]" = field(default_factory=queue.Queue)


class MemoryClient:
    """Thread-safe in-process implementation of the StoreClient protocol."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize an empty store.

        Args:
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._data: dict[str, KeyValue] = {}
        self._leases: dict[int, _LeaseRecord] = {}
        self._watchers: list[_Watcher] = []
        self._lease_ids = itertools.count(1000)
        self._revision = 1
        self._closed = False

    @property
    def revision(self) -> int:
        """Current store revision."""
        return self._revision

    # Key-value operations

    def put(self, key: str, value: str, lease: int | None = None) -> None:
        with self._lock:
            self._expire_leases()
            rev = self._revision + 1
            self._put_locked(key, value, lease, rev)
            self._revision = rev

    def get(self, key: str) -> KeyValue | None:
        with self._lock:
            self._expire_leases()
            return self._data.get(key)

    def get_prefix(
        self, prefix: str, limit: int | None = None, descending: bool = False
    ) -> list[KeyValue]:
        with self._lock:
            self._expire_leases()
            keys = sorted(self._data, reverse=descending)
            matches = [self._data[k] for k in keys if k.startswith(prefix)]
        if limit:
            return matches[:limit]
        return matches

    def delete(self, key: str) -> bool:
        with self._lock:
            self._expire_leases()
            if key not in self._data:
                return False
            rev = self._revision + 1
            self._delete_locked(key, rev)
            self._revision = rev
            return True

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            self._expire_leases()
            keys = [k for k in self._data if k.startswith(prefix)]
            if not keys:
                return 0
            rev = self._revision + 1
            for key in sorted(keys):
                self._delete_locked(key, rev)
            self._revision = rev
            return len(keys)

    def count_prefix(self, prefix: str) -> int:
        with self._lock:
            self._expire_leases()
            return sum(1 for k in self._data if k.startswith(prefix))

    def transaction(
        self,
        compare: list[Compare],
        success: list[TxnOp],
        failure: list[TxnOp],
    ) -> TxnResult:
        with self._lock:
            self._check_open()
            self._expire_leases()
            succeeded = all(c.evaluate(self._data.get(c.key)) for c in compare)
            branch = success if succeeded else failure
            for op in branch:
                if op.action == "put" and op.lease and op.lease not in self._leases:
                    raise LeaseError(f"Lease {op.lease} not found")
            rev = self._revision + 1
            mutated = False
            responses: list[KeyValue | None] = []

            for op in branch:
                if op.action == "put":
                    self._put_locked(op.key, op.value or "", op.lease, rev)
                    mutated = True
                    responses.append(None)
                elif op.action == "delete":
                    if op.key in self._data:
                        self._delete_locked(op.key, rev)
                        mutated = True
                    responses.append(None)
                elif op.action == "get":
                    responses.append(self._data.get(op.key))
                else:
                    raise ValueError(f"Unknown transaction action '{op.action}'")

            if mutated:
                self._revision = rev
            return TxnResult(succeeded=succeeded, responses=responses)

    # Lease operations

    def grant_lease(self, ttl: int) -> int:
        if ttl < 1:
            raise LeaseError(f"Lease TTL must be at least 1 second, got {ttl}")
        with self._lock:
            self._check_open()
            lease_id = next(self._lease_ids)
            self._leases[lease_id] = _LeaseRecord(ttl=ttl, expires_at=self._clock() + ttl)
            return lease_id

    def keep_alive(self, lease_id: int, stop: threading.Event) -> Iterator[LeaseAck]:
        """Renew the lease until stop is set; ends early if the lease is gone."""
        while not stop.is_set():
            with self._lock:
                if self._closed:
                    return
                self._expire_leases()
                record = self._leases.get(lease_id)
                if record is None:
                    return
                record.expires_at = self._clock() + record.ttl
                ttl = record.ttl
            yield LeaseAck(lease_id=lease_id, ttl=ttl)
            stop.wait(keepalive_interval(ttl, KEEPALIVE_INTERVAL_DIVISOR, KEEPALIVE_MIN_INTERVAL))

    def revoke_lease(self, lease_id: int) -> None:
        with self._lock:
            self._check_open()
            self._expire_leases()
            if lease_id not in self._leases:
                raise LeaseNotFoundError(f"Lease {lease_id} not found")
            self._drop_lease(lease_id)

    def lease_ttl(self, lease_id: int) -> int:
        with self._lock:
            self._expire_leases()
            record = self._leases.get(lease_id)
            if record is None:
                return -1
            return max(int(record.expires_at - self._clock()), 0)

    # Watch

    def watch_prefix(self, prefix: str) -> tuple[Iterator[WatchEvent], Callable[[], None]]:
        watcher = _Watcher(prefix=prefix)
        with self._lock:
            self._check_open()
            self._watchers.append(watcher)

        def cancel() -> None:
            with self._lock:
                if watcher in self._watchers:
                    self._watchers.remove(watcher)
            watcher.events.put(_STREAM_END)

        def iterator() -> Iterator[WatchEvent]:
            while True:
                try:
                    item = watcher.events.get(timeout=WATCH_POLL_INTERVAL)
                except queue.Empty:
                    with self._lock:
                        self._expire_leases()
                    continue
                if item is _STREAM_END:
                    return
                yield item

        return iterator(), cancel

    # Cluster

    def status(self) -> dict[str, Any]:
        with self._lock:
            self._check_open()
            self._expire_leases()
            return {
                "backend": "memory",
                "revision": self._revision,
                "keys": len(self._data),
                "leases": len(self._leases),
                "watchers": len(self._watchers),
            }

    def close(self) -> None:
        """Close the store; open watch streams end as if the connection dropped."""
        with self._lock:
            self._closed = True
            watchers, self._watchers = self._watchers, []
        for watcher in watchers:
            watcher.events.put(_STREAM_END)

    # Internals (caller holds self._lock)

    def _check_open(self) -> None:
        if self._closed:
            raise StoreConnectionError("Store client is closed")

    def _put_locked(self, key: str, value: str, lease: int | None, rev: int) -> None:
        self._check_open()
        lease_id = lease or 0
        if lease_id and lease_id not in self._leases:
            raise LeaseError(f"Lease {lease_id} not found")

        existing = self._data.get(key)
        if existing and existing.lease and existing.lease in self._leases:
            self._leases[existing.lease].keys.discard(key)
        if lease_id:
            self._leases[lease_id].keys.add(key)

        if existing:
            kv = replace(
                existing,
                value=value,
                mod_revision=rev,
                version=existing.version + 1,
                lease=lease_id,
            )
        else:
            kv = KeyValue(
                key=key,
                value=value,
                create_revision=rev,
                mod_revision=rev,
                version=1,
                lease=lease_id,
            )
        self._data[key] = kv
        self._notify(WatchEvent(EventType.PUT, key, value, rev))

    def _delete_locked(self, key: str, rev: int) -> None:
        existing = self._data.pop(key)
        if existing.lease and existing.lease in self._leases:
            self._leases[existing.lease].keys.discard(key)
        self._notify(WatchEvent(EventType.DELETE, key, "", rev))

    def _drop_lease(self, lease_id: int) -> None:
        record = self._leases.pop(lease_id)
        if not record.keys:
            return
        rev = self._revision + 1
        for key in sorted(record.keys):
            if key in self._data:
                self._data.pop(key)
                self._notify(WatchEvent(EventType.DELETE, key, "", rev))
        self._revision = rev

    def _expire_leases(self) -> None:
        now = self._clock()
        expired = [lid for lid, rec in self._leases.items() if rec.expires_at <= now]
        for lease_id in expired:
            logger.debug(f"Lease {lease_id} expired")
            self._drop_lease(lease_id)

    def _notify(self, event: WatchEvent) -> None:
        for watcher in self._watchers:
            if event.key.startswith(watcher.prefix):
                watcher.events.put(event)

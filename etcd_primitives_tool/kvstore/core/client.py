"""
etcd client wrapper with error handling.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import threading
import time
from collections.abc import Callable, Iterator
from typing import Any

import etcd3
import grpc
from etcd3 import exceptions as etcd_exceptions

from ..constants import (
    DEFAULT_DIAL_TIMEOUT,
    DEFAULT_ENDPOINTS,
    KEEPALIVE_INTERVAL_DIVISOR,
    KEEPALIVE_MIN_INTERVAL,
    STATUS_CHECK_ATTEMPTS,
    STATUS_RETRY_DELAY,
)
from ..exceptions import (
    KVStoreError,
    LeaseError,
    LeaseNotFoundError,
    StoreConnectionError,
    StoreError,
)
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
from ..utils import parse_endpoints
from .store import keepalive_interval

logger = get_logger(__name__)

ETCD_ERRORS = (etcd_exceptions.Etcd3Exception, grpc.RpcError)


def _decode(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8")
    return raw


class EtcdClient:
    """etcd v3 client wrapper with error handling."""

    def __init__(
        self,
        endpoints: str | list[str] = DEFAULT_ENDPOINTS,
        timeout: int = DEFAULT_DIAL_TIMEOUT,
        user: str | None = None,
        password: str | None = None,
        ca_cert: str | None = None,
        cert_key: str | None = None,
        cert_cert: str | None = None,
        status_attempts: int = STATUS_CHECK_ATTEMPTS,
        retry_delay: float = STATUS_RETRY_DELAY,
    ):
        """
        Initialize etcd client.

        The gRPC channel connects lazily, so a dead cluster only shows up on the
        first call. A status check is therefore run against each endpoint, for
        at most status_attempts rounds, before the client is handed out.

        Args:
            endpoints: Comma-separated 'host:port' list or list of endpoints
            timeout: Per-request timeout in seconds
            user: Username for etcd authentication (optional)
            password: Password for etcd authentication (optional)
            ca_cert: CA certificate path for TLS (optional)
            cert_key: Client key path for TLS (optional)
            cert_cert: Client certificate path for TLS (optional)
            status_attempts: Rounds of status checks before giving up
            retry_delay: Seconds between rounds

        Raises:
            StoreConnectionError: If no endpoint answers the status check
        """
        self.endpoints = parse_endpoints(endpoints)
        self.timeout = timeout
        self._client_kwargs: dict[str, Any] = {
            "timeout": timeout,
            "user": user,
            "password": password,
            "ca_cert": ca_cert,
            "cert_key": cert_key,
            "cert_cert": cert_cert,
        }
        self.client = self._connect(status_attempts, retry_delay)

    def _connect(self, attempts: int, retry_delay: float) -> Any:
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            for host, port in self.endpoints:
                client = None
                try:
                    client = etcd3.client(host=host, port=port, **self._client_kwargs)
                    status = client.status()
                    logger.info(
                        f"Connected to etcd {host}:{port} "
                        f"(version {status.version}, raft term {status.raft_term})"
                    )
                    return client
                except ETCD_ERRORS as e:
                    last_error = e
                    logger.warning(
                        f"etcd status check failed for {host}:{port} "
                        f"(attempt {attempt}/{attempts}): {e}"
                    )
                    if client is not None:
                        client.close()
            if attempt < attempts:
                time.sleep(retry_delay)

        endpoints = ", ".join(f"{h}:{p}" for h, p in self.endpoints)
        raise StoreConnectionError(f"Unable to connect to etcd at {endpoints}: {last_error}")

    # Key-value operations

    def put(self, key: str, value: str, lease: int | None = None) -> None:
        """
        Put a key, optionally bound to a lease.

        Raises:
            StoreError: For etcd errors
        """
        try:
            self.client.put(key, value, lease=lease)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"put '{key}'") from e

    def get(self, key: str) -> KeyValue | None:
        """
        Get a single key.

        Returns:
            KeyValue if found, None otherwise
        """
        try:
            response = self.client.get_response(key)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"get '{key}'") from e
        for kv in response.kvs:
            return self._to_key_value(kv)
        return None

    def get_prefix(
        self, prefix: str, limit: int | None = None, descending: bool = False
    ) -> list[KeyValue]:
        """
        Get all keys under a prefix in key order.

        Args:
            prefix: Key prefix
            limit: Maximum number of entries to return
            descending: Return the highest keys first

        Returns:
            List of entries
        """
        try:
            response = self.client.get_prefix_response(
                prefix,
                sort_order="descend" if descending else "ascend",
                sort_target="key",
                limit=limit,
            )
        except ETCD_ERRORS as e:
            raise self._translate(e, f"get prefix '{prefix}'") from e
        return [self._to_key_value(kv) for kv in response.kvs]

    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it existed."""
        try:
            return bool(self.client.delete(key))
        except ETCD_ERRORS as e:
            raise self._translate(e, f"delete '{key}'") from e

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key under a prefix. Returns the number deleted."""
        try:
            response = self.client.delete_prefix(prefix)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"delete prefix '{prefix}'") from e
        return int(response.deleted)

    def count_prefix(self, prefix: str) -> int:
        """Count keys under a prefix without fetching values."""
        try:
            response = self.client.get_prefix_response(prefix, count_only=True)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"count prefix '{prefix}'") from e
        return int(response.count)

    def transaction(
        self,
        compare: list[Compare],
        success: list[TxnOp],
        failure: list[TxnOp],
    ) -> TxnResult:
        """
        Commit an atomic compare-and-branch transaction.

        Returns:
            TxnResult with succeeded=True when the success branch ran

        Raises:
            StoreError: If the commit fails
        """
        try:
            succeeded, responses = self.client.transaction(
                compare=[self._build_compare(c) for c in compare],
                success=[self._build_op(op) for op in success],
                failure=[self._build_op(op) for op in failure],
            )
        except ETCD_ERRORS as e:
            raise self._translate(e, "commit transaction") from e

        branch = success if succeeded else failure
        results: list[KeyValue | None] = []
        for op, response in zip(branch, responses):
            if op.action == "get" and response:
                value, metadata = response[0]
                results.append(self._from_metadata(value, metadata))
            else:
                results.append(None)
        return TxnResult(succeeded=bool(succeeded), responses=results)

    # Lease operations

    def grant_lease(self, ttl: int) -> int:
        """
        Grant a lease.

        Returns:
            Lease ID exactly as issued by etcd

        Raises:
            LeaseError: If etcd rejects the grant
        """
        try:
            lease = self.client.lease(ttl)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"grant lease (ttl={ttl})", lease=True) from e
        return int(lease.id)

    def keep_alive(self, lease_id: int, stop: threading.Event) -> Iterator[LeaseAck]:
        """
        Stream keepalive acknowledgements until stop is set.

        The stream ends by itself when etcd reports the lease as expired.
        """
        while not stop.is_set():
            try:
                responses = list(self.client.refresh_lease(lease_id))
            except ETCD_ERRORS as e:
                raise self._translate(e, f"refresh lease {lease_id}", lease=True) from e

            if not responses or responses[-1].TTL <= 0:
                return
            ttl = int(responses[-1].TTL)
            yield LeaseAck(lease_id=lease_id, ttl=ttl)
            stop.wait(keepalive_interval(ttl, KEEPALIVE_INTERVAL_DIVISOR, KEEPALIVE_MIN_INTERVAL))

    def revoke_lease(self, lease_id: int) -> None:
        """
        Revoke a lease. Keys attached to it are deleted by etcd.

        Raises:
            LeaseError: If the revoke fails
        """
        try:
            self.client.revoke_lease(lease_id)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"revoke lease {lease_id}", lease=True) from e

    def lease_ttl(self, lease_id: int) -> int:
        """Remaining TTL of a lease in seconds, -1 if it no longer exists."""
        try:
            info = self.client.get_lease_info(lease_id)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"lease info {lease_id}", lease=True) from e
        return int(info.TTL)

    # Watch

    def watch_prefix(self, prefix: str) -> tuple[Iterator[WatchEvent], Callable[[], None]]:
        """
        Watch every key under a prefix.

        Returns:
            (event iterator, cancel function); the iterator ends after cancel()
        """
        try:
            events, cancel = self.client.watch_prefix(prefix)
        except ETCD_ERRORS as e:
            raise self._translate(e, f"watch prefix '{prefix}'") from e

        def iterator() -> Iterator[WatchEvent]:
            try:
                for event in events:
                    yield self._to_watch_event(event)
            except ETCD_ERRORS as e:
                raise self._translate(e, f"watch prefix '{prefix}'") from e

        return iterator(), cancel

    # Cluster

    def status(self) -> dict[str, Any]:
        """Get cluster status from the connected member."""
        try:
            status = self.client.status()
        except ETCD_ERRORS as e:
            raise self._translate(e, "status") from e

        leader = getattr(status, "leader", None)
        return {
            "backend": "etcd",
            "version": status.version,
            "db_size": status.db_size,
            "leader": getattr(leader, "name", None),
            "raft_index": status.raft_index,
            "raft_term": status.raft_term,
        }

    def close(self) -> None:
        """Close the gRPC channel."""
        self.client.close()

    # Conversions

    def _build_compare(self, compare: Compare) -> Any:
        targets = {
            "create": self.client.transactions.create,
            "mod": self.client.transactions.mod,
            "version": self.client.transactions.version,
            "value": self.client.transactions.value,
        }
        if compare.target not in targets:
            raise ValueError(f"Unknown compare target '{compare.target}'")
        target = targets[compare.target](compare.key)

        if compare.op == "==":
            return target == compare.value
        if compare.op == "!=":
            return target != compare.value
        if compare.op == "<":
            return target < compare.value
        if compare.op == ">":
            return target > compare.value
        raise ValueError(f"Unknown compare operator '{compare.op}'")

    def _build_op(self, op: TxnOp) -> Any:
        if op.action == "put":
            return self.client.transactions.put(op.key, op.value or "", lease=op.lease)
        if op.action == "get":
            return self.client.transactions.get(op.key)
        if op.action == "delete":
            return self.client.transactions.delete(op.key)
        raise ValueError(f"Unknown transaction action '{op.action}'")

    @staticmethod
    def _to_key_value(kv: Any) -> KeyValue:
        return KeyValue(
            key=_decode(kv.key),
            value=_decode(kv.value),
            create_revision=int(kv.create_revision),
            mod_revision=int(kv.mod_revision),
            version=int(kv.version),
            lease=int(kv.lease),
        )

    @staticmethod
    def _from_metadata(value: bytes | None, metadata: Any) -> KeyValue:
        return KeyValue(
            key=_decode(metadata.key),
            value=_decode(value),
            create_revision=int(metadata.create_revision),
            mod_revision=int(metadata.mod_revision),
            version=int(metadata.version),
            lease=int(metadata.lease_id),
        )

    @staticmethod
    def _to_watch_event(event: Any) -> WatchEvent:
        if isinstance(event, etcd3.events.DeleteEvent):
            kind = EventType.DELETE
        else:
            kind = EventType.PUT
        return WatchEvent(
            kind=kind,
            key=_decode(event.key),
            value=_decode(event.value),
            revision=int(event.mod_revision),
        )

    @staticmethod
    def _translate(error: Exception, action: str, lease: bool = False) -> KVStoreError:
        """
        Convert etcd3/grpc errors to kvstore exceptions.

        Args:
            error: Exception raised by etcd3 or grpc
            action: Description of the failed operation
            lease: Map non-connection failures to LeaseError

        Returns:
            StoreConnectionError for unreachable clusters, LeaseNotFoundError for
            unknown leases, LeaseError for other lease failures, StoreError otherwise
        """
        if isinstance(
            error,
            (etcd_exceptions.ConnectionFailedError, etcd_exceptions.ConnectionTimeoutError),
        ):
            return StoreConnectionError(f"etcd unreachable during {action}: {error}")
        code = error.code() if hasattr(error, "code") else None
        if code in (grpc.StatusCode.UNAVAILABLE, grpc.StatusCode.DEADLINE_EXCEEDED):
            return StoreConnectionError(f"etcd unreachable during {action}: {error}")
        if lease and code == grpc.StatusCode.NOT_FOUND:
            return LeaseNotFoundError(f"Failed to {action}: {error}")
        if lease:
            return LeaseError(f"Failed to {action}: {error}")
        return StoreError(f"Failed to {action}: {error}")

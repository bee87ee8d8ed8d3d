"""
Lock operations for kvstore.

A lock is a key written by a single compare-and-put transaction ("create only
if the key's create revision is 0") and bound to a lease that a background
thread keeps alive. Mutual exclusion comes entirely from the store's
transaction; the client keeps no shared bookkeeping.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import os
import socket
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..constants import DEFAULT_LOCK_TTL
from ..exceptions import KVStoreError, LeaseError, LockUnavailableError
from ..logging_config import get_logger
from ..models import Compare, Lock, MutexState, TxnOp
from ..utils import validate_key
from .lease_operations import KeepAliveTask, LeaseKeeper
from .store import StoreClient

logger = get_logger(__name__)


class DistributedMutex:
    """Lease-backed mutual exclusion on a single key.

    lock() is a single non-blocking trial: under contention whichever
    transaction the store commits first wins and the loser gets
    LockUnavailableError. Retrying is up to the caller.
    """

    def __init__(self, client: StoreClient, key: str, ttl: int = DEFAULT_LOCK_TTL):
        """
        Initialize a mutex.

        Args:
            client: Store client shared with other components
            key: Key that represents the protected resource
            ttl: Lease TTL in seconds; an abandoned lock expires after this
        """
        validate_key(key)
        self.client = client
        self.key = key
        self.ttl = ttl
        self._leases = LeaseKeeper(client)
        self._state = MutexState.UNLOCKED
        self._lease_id: int | None = None
        self._keepalive: KeepAliveTask | None = None

    @property
    def state(self) -> MutexState:
        return self._state

    @property
    def locked(self) -> bool:
        return self._state is MutexState.LOCKED

    @property
    def lease_id(self) -> int | None:
        """Lease backing the held lock, None when not locked."""
        return self._lease_id

    @property
    def keepalive(self) -> KeepAliveTask | None:
        return self._keepalive

    def lock(self, owner: str) -> Lock:
        """
        Try once to acquire the lock.

        Args:
            owner: Value stored under the lock key (e.g. a timestamp or identity)

        Returns:
            Lock record

        Raises:
            LeaseError: If the lease cannot be granted or kept alive
            LockUnavailableError: If another owner holds the key
            KVStoreError: If the transaction commit fails
        """
        lease_id: int | None = None
        task: KeepAliveTask | None = None
        acquired = False

        try:
            try:
                lease_id = self._leases.grant(self.ttl)
                task = self._leases.keep_alive(lease_id)
            except KVStoreError as e:
                self._mark_failed()
                if isinstance(e, LeaseError):
                    raise
                raise LeaseError(f"Failed to set up lease for lock '{self.key}': {e}") from e

            try:
                result = self.client.transaction(
                    compare=[Compare(self.key, "create", "==", 0)],
                    success=[TxnOp.put(self.key, owner, lease=lease_id)],
                    failure=[TxnOp.get(self.key)],
                )
            except KVStoreError as e:
                self._mark_failed()
                logger.error(f"Lock transaction for '{self.key}' failed: {e}")
                raise

            if not result.succeeded:
                if self._state is not MutexState.LOCKED:
                    self._state = MutexState.UNLOCKED
                current = result.responses[0] if result.responses else None
                holder = current.value if current else None
                raise LockUnavailableError(
                    f"Lock '{self.key}' is held by another owner ({holder}). "
                    f"Retry later or wait for its lease to expire.",
                    holder=holder,
                )

            acquired = True
        finally:
            if not acquired:
                self._discard(lease_id, task)

        self._lease_id = lease_id
        self._keepalive = task
        self._state = MutexState.LOCKED
        logger.info(f"Acquired lock '{self.key}' as {owner} (lease {lease_id})")

        return Lock(
            name=self.key,
            owner=owner,
            lease_id=lease_id,
            ttl=self.ttl,
            acquired_at=int(time.time()),
        )

    def unlock(self) -> None:
        """
        Release the lock. This operation is idempotent.

        Stops the keepalive thread and revokes the lease, which deletes the key.
        A failed revoke is logged only: the lease is no longer renewed, so the
        key expires on its own within the TTL.
        """
        if self._state is not MutexState.LOCKED:
            logger.debug(f"Unlock of '{self.key}' ignored: state is {self._state.value}")
            return

        lease_id, task = self._lease_id, self._keepalive
        self._lease_id = None
        self._keepalive = None
        self._state = MutexState.UNLOCKED

        if task is not None:
            task.cancel()
            task.join()

        if lease_id is None:
            return
        try:
            self._leases.revoke(lease_id)
            logger.info(f"Released lock '{self.key}' (lease {lease_id})")
        except KVStoreError as e:
            logger.error(
                f"Failed to revoke lease {lease_id} for lock '{self.key}'; "
                f"it will expire within {self.ttl}s: {e}"
            )

    @contextmanager
    def held(self, owner: str) -> Iterator[Lock]:
        """Hold the lock for the duration of a with-block."""
        lock = self.lock(owner)
        try:
            yield lock
        finally:
            self.unlock()

    def _mark_failed(self) -> None:
        if self._state is not MutexState.LOCKED:
            self._state = MutexState.FAILED

    def _discard(self, lease_id: int | None, task: KeepAliveTask | None) -> None:
        """Stop renewing and revoke a lease from an unsuccessful attempt."""
        if task is not None:
            task.cancel()
            task.join()
        if lease_id is None:
            return
        try:
            self._leases.revoke(lease_id)
        except KVStoreError as e:
            logger.warning(f"Failed to revoke lease {lease_id} after lock attempt: {e}")


def check_lock(client: StoreClient, lock_name: str) -> dict[str, Any] | None:
    """
    Check if a lock is held.

    Args:
        client: Store client
        lock_name: Full lock key

    Returns:
        Lock information if locked, None if free
    """
    kv = client.get(lock_name)

    if kv is None:
        return None

    return {
        "lock": lock_name,
        "owner": kv.value,
        "lease_id": kv.lease,
        "ttl": client.lease_ttl(kv.lease) if kv.lease else None,
        "revision": kv.create_revision,
    }


def generate_default_owner() -> str:
    """
    Generate default owner ID.

    Returns:
        Owner ID in format hostname-pid
    """
    return f"{socket.gethostname()}-{os.getpid()}"

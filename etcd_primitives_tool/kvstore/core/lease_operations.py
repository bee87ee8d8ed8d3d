"""
Lease operations for kvstore.

A lease is a store-managed, time-bounded token. Keys bound to it disappear
when it is revoked or when its TTL runs out without renewal, which is what
lets a crashed lock holder release its lock without anyone's help.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import threading

from ..constants import KEEPALIVE_JOIN_TIMEOUT
from ..exceptions import KVStoreError, LeaseError
from ..logging_config import get_logger
from ..utils import validate_ttl
from .store import StoreClient

logger = get_logger(__name__)


class KeepAliveTask:
    """Background thread draining the keepalive stream of one lease.

    The store drops a lease whose acknowledgements stop being consumed, so the
    thread keeps reading until cancel() is called or the stream ends. A stream
    that ends without cancellation means the lease is lost; that is logged and
    never retried.
    """

    def __init__(self, client: StoreClient, lease_id: int):
        self.lease_id = lease_id
        self._client = client
        self._stop = threading.Event()
        self._lost = threading.Event()
        self._acks = 0
        self._thread = threading.Thread(
            target=self._run,
            name=f"lease-keepalive-{lease_id}",
            daemon=True,
        )

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def lost(self) -> bool:
        """True if the stream ended before the task was cancelled."""
        return self._lost.is_set()

    @property
    def acks(self) -> int:
        """Number of keepalive acknowledgements consumed so far."""
        return self._acks

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> "KeepAliveTask":
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Signal the thread to stop. Safe to call more than once."""
        self._stop.set()

    def join(self, timeout: float | None = KEEPALIVE_JOIN_TIMEOUT) -> None:
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _run(self) -> None:
        try:
            for ack in self._client.keep_alive(self.lease_id, self._stop):
                self._acks += 1
                logger.debug(f"Lease {ack.lease_id} renewed, ttl={ack.ttl}s")
        except KVStoreError as e:
            self._lost.set()
            logger.error(f"Keepalive for lease {self.lease_id} failed: {e}")
            return

        if not self._stop.is_set():
            self._lost.set()
            logger.warning(
                f"Keepalive stream for lease {self.lease_id} ended; "
                f"the lease may expire and release its keys"
            )


class LeaseKeeper:
    """Grants, renews and revokes leases on one store client."""

    def __init__(self, client: StoreClient):
        self.client = client

    def grant(self, ttl: int) -> int:
        """
        Grant a new lease.

        Args:
            ttl: Lease TTL in seconds

        Returns:
            Lease ID as issued by the store (opaque, never transformed)

        Raises:
            LeaseError: If the TTL is invalid or the store rejects the grant
            StoreConnectionError: If the store is unreachable
        """
        try:
            validate_ttl(ttl)
        except ValueError as e:
            raise LeaseError(str(e))

        lease_id = self.client.grant_lease(ttl)
        logger.debug(f"Granted lease {lease_id} (ttl={ttl}s)")
        return lease_id

    def keep_alive(self, lease_id: int) -> KeepAliveTask:
        """
        Start renewing a lease in the background.

        Args:
            lease_id: Lease to keep alive

        Returns:
            Running KeepAliveTask; cancel() it to stop renewing

        Raises:
            LeaseError: If the renewal thread cannot be started
        """
        task = KeepAliveTask(self.client, lease_id)
        try:
            return task.start()
        except RuntimeError as e:
            raise LeaseError(f"Failed to start keepalive for lease {lease_id}: {e}")

    def revoke(self, lease_id: int) -> None:
        """
        Revoke a lease. Keys bound to it are deleted by the store.

        Raises:
            LeaseNotFoundError: If the lease expired or was already revoked
            LeaseError: If the revoke fails
            StoreConnectionError: If the store is unreachable
        """
        self.client.revoke_lease(lease_id)
        logger.debug(f"Revoked lease {lease_id}")

    def time_to_live(self, lease_id: int) -> int:
        """Remaining TTL of a lease in seconds, -1 if it no longer exists."""
        return self.client.lease_ttl(lease_id)

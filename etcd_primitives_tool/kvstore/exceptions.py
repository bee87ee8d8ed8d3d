"""
Custom exceptions for kvstore operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""


class KVStoreError(Exception):
    """Base exception for kvstore operations."""

    pass


class StoreConnectionError(KVStoreError):
    """etcd cluster is unreachable."""

    pass


class StoreError(KVStoreError):
    """etcd rejected or failed an operation."""

    pass


class KeyNotFoundError(KVStoreError):
    """Key does not exist."""

    pass


class KeyExistsError(KVStoreError):
    """Key already exists (create-if-absent condition failed)."""

    pass


class LockUnavailableError(KVStoreError):
    """Lock is held by another owner."""

    def __init__(self, message: str, holder: str | None = None):
        super().__init__(message)
        self.holder = holder


class LeaseError(KVStoreError):
    """Lease grant, keepalive or revoke failed."""

    pass


class LeaseNotFoundError(LeaseError):
    """Lease does not exist: expired or already revoked."""

    pass


class WatchStreamClosedError(KVStoreError):
    """Watch subscription ended."""

    pass


class QueueEmptyError(KVStoreError):
    """Queue has no items."""

    pass

"""
Key-value operations for kvstore.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

from typing import Any

from ..exceptions import KeyExistsError, KeyNotFoundError, KVStoreError
from ..logging_config import get_logger
from ..models import Compare, KeyValue, TxnOp
from ..utils import validate_key
from .lease_operations import LeaseKeeper
from .store import StoreClient

logger = get_logger(__name__)


def _to_dict(kv: KeyValue) -> dict[str, Any]:
    return {
        "key": kv.key,
        "value": kv.value,
        "create_revision": kv.create_revision,
        "mod_revision": kv.mod_revision,
        "version": kv.version,
        "lease_id": kv.lease or None,
    }


def set_value(
    client: StoreClient,
    key: str,
    value: str,
    ttl: int | None = None,
    if_not_exists: bool = False,
) -> dict[str, Any]:
    """
    Set a key-value pair.

    Args:
        client: Store client
        key: Key name
        value: Value to store
        ttl: Bind the key to a fresh lease with this TTL (no renewal, expires)
        if_not_exists: Only set if key doesn't exist

    Returns:
        Item data

    Raises:
        KeyExistsError: If if_not_exists=True and key exists
        KVStoreError: For store errors; a lease granted for ttl is revoked first
    """
    validate_key(key)
    leases = LeaseKeeper(client)
    lease_id = leases.grant(ttl) if ttl else None

    try:
        if if_not_exists:
            result = client.transaction(
                compare=[Compare(key, "create", "==", 0)],
                success=[TxnOp.put(key, value, lease=lease_id)],
                failure=[],
            )
            if not result.succeeded:
                raise KeyExistsError(f"Key '{key}' already exists")
        else:
            client.put(key, value, lease=lease_id)
    except KVStoreError:
        # The lease belongs to this write alone
        if lease_id is not None:
            try:
                leases.revoke(lease_id)
            except KVStoreError as e:
                logger.warning(f"Failed to revoke lease {lease_id} after failed set: {e}")
        raise

    return {"key": key, "value": value, "lease_id": lease_id, "ttl": ttl}


def get_value(client: StoreClient, key: str, default: str | None = None) -> dict[str, Any]:
    """
    Get a value by key.

    Args:
        client: Store client
        key: Key name
        default: Default value if key not found

    Returns:
        Item data

    Raises:
        KeyNotFoundError: If key not found and no default
    """
    kv = client.get(key)

    if kv is None:
        if default is not None:
            return {"key": key, "value": default, "default": True}
        message = (
            f"Key '{key}' not found. "
            f"Use 'etcd-primitives-tool kvstore set {key} <value>' to create it."
        )
        raise KeyNotFoundError(message)

    return _to_dict(kv)


def exists_value(client: StoreClient, key: str) -> bool:
    """
    Check if a key exists.

    Args:
        client: Store client
        key: Key name

    Returns:
        True if key exists, False otherwise
    """
    return client.get(key) is not None


def delete_value(client: StoreClient, key: str, prefix: bool = False) -> dict[str, Any]:
    """
    Delete a key, or every key under a prefix.

    Deleting a missing key is not an error.

    Returns:
        Deletion summary with the number of keys removed
    """
    if prefix:
        deleted = client.delete_prefix(key)
    else:
        deleted = 1 if client.delete(key) else 0
    return {"key": key, "prefix": prefix, "deleted": deleted}


def list_values(client: StoreClient, prefix: str, limit: int | None = None) -> list[dict[str, Any]]:
    """
    List entries under a prefix in key order.

    Args:
        client: Store client
        prefix: Key prefix
        limit: Maximum entries to return

    Returns:
        List of item data
    """
    return [_to_dict(kv) for kv in client.get_prefix(prefix, limit=limit)]


def count_values(client: StoreClient, prefix: str) -> int:
    """Count keys under a prefix."""
    return client.count_prefix(prefix)

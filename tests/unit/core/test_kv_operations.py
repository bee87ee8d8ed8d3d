"""Tests for key-value operations."""

import logging
from unittest.mock import patch

import pytest

from etcd_primitives_tool.kvstore.core.kv_operations import (
    count_values,
    delete_value,
    exists_value,
    get_value,
    list_values,
    set_value,
)
from etcd_primitives_tool.kvstore.core.memory import MemoryClient
from etcd_primitives_tool.kvstore.exceptions import (
    KeyExistsError,
    KeyNotFoundError,
    LeaseError,
    StoreError,
)


class TestSetGet:
    """Test set_value and get_value."""

    def test_set_then_get(self, store: MemoryClient) -> None:
        """A stored value is returned with its revisions."""
        set_value(store, "/config/mode", "maintenance")

        result = get_value(store, "/config/mode")

        assert result["value"] == "maintenance"
        assert result["version"] == 1
        assert result["lease_id"] is None

    def test_get_missing_key(self, store: MemoryClient) -> None:
        """A missing key without default raises KeyNotFoundError."""
        with pytest.raises(KeyNotFoundError):
            get_value(store, "/missing")

    def test_get_missing_key_with_default(self, store: MemoryClient) -> None:
        """A default is returned and flagged as such."""
        assert get_value(store, "/missing", default="x") == {
            "key": "/missing",
            "value": "x",
            "default": True,
        }

    def test_set_with_ttl_expires(self, store: MemoryClient, clock) -> None:
        """A TTL binds the key to a lease that is not renewed."""
        result = set_value(store, "/jobs/1", "pending", ttl=30)

        assert get_value(store, "/jobs/1")["lease_id"] == result["lease_id"]
        clock.advance(31)
        assert not exists_value(store, "/jobs/1")

    def test_set_with_invalid_ttl(self, store: MemoryClient) -> None:
        """A negative TTL is rejected before anything is written."""
        with pytest.raises(LeaseError):
            set_value(store, "/jobs/1", "pending", ttl=-1)

        assert not exists_value(store, "/jobs/1")

    def test_set_if_not_exists(self, store: MemoryClient) -> None:
        """--if-not-exists refuses to overwrite and frees its lease."""
        set_value(store, "/jobs/1", "first", if_not_exists=True)

        with pytest.raises(KeyExistsError):
            set_value(store, "/jobs/1", "second", ttl=10, if_not_exists=True)

        assert get_value(store, "/jobs/1")["value"] == "first"
        assert store.status()["leases"] == 0

    def test_failed_put_revokes_lease(self, store: MemoryClient) -> None:
        """A put that fails after the grant leaves no lease behind."""
        with patch.object(store, "put", side_effect=StoreError("put failed")):
            with pytest.raises(StoreError):
                set_value(store, "/jobs/1", "x", ttl=10)

        assert store.status()["leases"] == 0
        assert store.get("/jobs/1") is None

    def test_failed_transaction_revokes_lease(self, store: MemoryClient) -> None:
        """A create-only commit that raises leaves no lease behind."""
        with patch.object(store, "transaction", side_effect=StoreError("commit failed")):
            with pytest.raises(StoreError, match="commit failed"):
                set_value(store, "/jobs/1", "x", ttl=10, if_not_exists=True)

        assert store.status()["leases"] == 0

    def test_cleanup_failure_is_logged(self, store: MemoryClient, caplog) -> None:
        """If the revoke also fails, the original error still propagates."""
        with patch.object(store, "put", side_effect=StoreError("put failed")):
            with patch.object(store, "revoke_lease", side_effect=StoreError("revoke failed")):
                with caplog.at_level(logging.WARNING):
                    with pytest.raises(StoreError, match="put failed"):
                        set_value(store, "/jobs/1", "x", ttl=10)

        assert "revoke failed" in caplog.text

    def test_set_rejects_empty_key(self, store: MemoryClient) -> None:
        """Empty keys are invalid."""
        with pytest.raises(ValueError):
            set_value(store, "", "x")


class TestDeleteList:
    """Test delete, list and count."""

    def test_delete_is_idempotent(self, store: MemoryClient) -> None:
        """Deleting twice reports 1 then 0 keys."""
        set_value(store, "/jobs/1", "x")

        assert delete_value(store, "/jobs/1")["deleted"] == 1
        assert delete_value(store, "/jobs/1")["deleted"] == 0

    def test_delete_prefix(self, store: MemoryClient) -> None:
        """prefix=True removes the whole namespace."""
        for i in range(3):
            set_value(store, f"/jobs/{i}", "x")

        assert delete_value(store, "/jobs/", prefix=True)["deleted"] == 3
        assert count_values(store, "/jobs/") == 0

    def test_list_and_count(self, store: MemoryClient) -> None:
        """Listing is key ordered and honours limit."""
        for key in ("/jobs/b", "/jobs/a", "/jobs/c"):
            set_value(store, key, key[-1])

        assert [item["key"] for item in list_values(store, "/jobs/")] == [
            "/jobs/a",
            "/jobs/b",
            "/jobs/c",
        ]
        assert len(list_values(store, "/jobs/", limit=2)) == 2
        assert count_values(store, "/jobs/") == 3

"""Tests for the lock and lease CLI commands."""

import json
from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import etcd3
import grpc
import pytest
from click.testing import CliRunner

from etcd_primitives_tool.cli import main
from etcd_primitives_tool.kvstore.core.client import EtcdClient
from etcd_primitives_tool.kvstore.core.memory import MemoryClient


def acquire(runner: CliRunner, *args: str):
    return runner.invoke(main, ["kvstore", "lock-acquire", "deploy", *args])


class RpcFailure(grpc.RpcError):
    def __init__(self, status: grpc.StatusCode):
        self.status = status

    def code(self):
        return self.status


@pytest.fixture
def etcd(monkeypatch) -> Iterator[MagicMock]:
    """lock-release wired to a real EtcdClient over a mocked etcd3 connection."""
    with patch.object(etcd3, "client") as factory:
        connection = MagicMock()
        connection.get_response.return_value = MagicMock(kvs=[])
        factory.return_value = connection
        client = EtcdClient("10.0.0.1:2379", timeout=2, retry_delay=0)
        monkeypatch.setattr(
            "etcd_primitives_tool.kvstore.commands.lock_commands.EtcdClient",
            lambda *args, **kwargs: client,
        )
        yield connection


def release(runner: CliRunner, *args: str):
    return runner.invoke(
        main, ["kvstore", "lock-release", "deploy", "--lease-id", "7587862193712345", *args]
    )


class TestLockCommands:
    """Test lock-acquire, lock-release and lock-check."""

    def test_acquire_writes_lock_key(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """The lock lands under /locks/ with the given owner."""
        result = acquire(runner, "--owner", "ci-1", "--ttl", "30")

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["lock"] == "/locks/deploy"
        assert cli_store.get("/locks/deploy").value == "ci-1"
        assert cli_store.get("/locks/deploy").lease == payload["lease_id"]

    def test_second_acquire_exits_4(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """A held lock makes the next acquire exit with 4."""
        acquire(runner, "--owner", "ci-1")

        result = acquire(runner, "--owner", "ci-2")

        assert result.exit_code == 4
        assert cli_store.get("/locks/deploy").value == "ci-1"

    def test_hold_releases_afterwards(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """--hold keeps the lock for a while, then releases it."""
        result = acquire(runner, "--owner", "ci-1", "--hold", "0.1")

        assert result.exit_code == 0
        assert json.loads(result.output)["released"] is True
        assert cli_store.get("/locks/deploy") is None

    def test_release_with_lease_id(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """Releasing with the acquiring lease frees the lock."""
        lease_id = json.loads(acquire(runner, "--owner", "ci-1").output)["lease_id"]

        result = runner.invoke(
            main, ["kvstore", "lock-release", "deploy", "--lease-id", str(lease_id)]
        )

        assert result.exit_code == 0
        assert json.loads(result.output)["status"] == "released"
        assert cli_store.get("/locks/deploy") is None

    def test_release_with_foreign_lease_exits_2(
        self, runner: CliRunner, cli_store: MemoryClient
    ) -> None:
        """A lease that does not own the lock cannot release it."""
        acquire(runner, "--owner", "ci-1")
        other_lease = cli_store.grant_lease(30)

        result = runner.invoke(
            main, ["kvstore", "lock-release", "deploy", "--lease-id", str(other_lease)]
        )

        assert result.exit_code == 2
        assert cli_store.get("/locks/deploy") is not None

    def test_release_twice_is_idempotent(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """A second release reports the lock as already released."""
        lease_id = json.loads(acquire(runner, "--owner", "ci-1").output)["lease_id"]
        args = ["kvstore", "lock-release", "deploy", "--lease-id", str(lease_id)]
        runner.invoke(main, args)

        result = runner.invoke(main, args)

        assert result.exit_code == 0
        assert json.loads(result.output)["status"] == "not_held_or_already_released"

    def test_check_exit_codes(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """lock-check exits 1 when free and 0 when held."""
        free = runner.invoke(main, ["kvstore", "lock-check", "deploy"])
        acquire(runner, "--owner", "ci-1")
        held = runner.invoke(main, ["kvstore", "lock-check", "deploy"])

        assert free.exit_code == 1
        assert json.loads(free.output)["status"] == "free"
        assert held.exit_code == 0
        assert json.loads(held.output)["owner"] == "ci-1"



class TestLockReleaseErrors:
    """Test how lock-release classifies revoke failures from etcd."""

    def test_unknown_lease_is_already_released(self, runner: CliRunner, etcd: MagicMock) -> None:
        """gRPC NOT_FOUND means the lease is gone: exit 0."""
        etcd.revoke_lease.side_effect = RpcFailure(grpc.StatusCode.NOT_FOUND)

        result = release(runner)

        assert result.exit_code == 0
        assert json.loads(result.output)["status"] == "not_held_or_already_released"

    def test_denied_revoke_exits_2(self, runner: CliRunner, etcd: MagicMock) -> None:
        """Any other lease failure is reported, not treated as released."""
        etcd.revoke_lease.side_effect = RpcFailure(grpc.StatusCode.PERMISSION_DENIED)

        result = release(runner)

        assert result.exit_code == 2
        assert "released" not in result.output

    def test_unreachable_store_exits_3(self, runner: CliRunner, etcd: MagicMock) -> None:
        """A dropped connection during the revoke exits with 3."""
        etcd.revoke_lease.side_effect = RpcFailure(grpc.StatusCode.UNAVAILABLE)

        result = release(runner)

        assert result.exit_code == 3
        assert "released" not in result.output


class TestLeaseCommands:
    """Test lease-grant, lease-ttl and lease-revoke."""

    def test_grant_ttl_revoke(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """A granted lease reports its TTL until revoked."""
        granted = json.loads(runner.invoke(main, ["kvstore", "lease-grant", "--ttl", "45"]).output)
        lease_id = str(granted["lease_id"])

        ttl = runner.invoke(main, ["kvstore", "lease-ttl", lease_id])
        revoked = runner.invoke(main, ["kvstore", "lease-revoke", lease_id])
        gone = runner.invoke(main, ["kvstore", "lease-ttl", lease_id])

        assert json.loads(ttl.output)["ttl"] == 45
        assert revoked.exit_code == 0
        assert gone.exit_code == 1

    def test_grant_invalid_ttl_exits_2(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """TTL 0 is rejected."""
        result = runner.invoke(main, ["kvstore", "lease-grant", "--ttl", "0"])

        assert result.exit_code == 2

    def test_revoke_unknown_exits_2(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """Revoking an unknown lease exits with 2."""
        result = runner.invoke(main, ["kvstore", "lease-revoke", "424242"])

        assert result.exit_code == 2

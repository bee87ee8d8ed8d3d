"""CLI fixtures: every command talks to one in-memory store."""

import logging
from collections.abc import Iterator

import pytest
from click.testing import CliRunner

from etcd_primitives_tool.kvstore.core.memory import MemoryClient

COMMAND_MODULES = (
    "info_commands",
    "kv_commands",
    "lease_commands",
    "lock_commands",
    "queue_commands",
    "watch_commands",
)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_store(store: MemoryClient, monkeypatch) -> MemoryClient:
    """Make EtcdClient(...) in every command module return the shared store."""
    for module in COMMAND_MODULES:
        monkeypatch.setattr(
            f"etcd_primitives_tool.kvstore.commands.{module}.EtcdClient",
            lambda *args, **kwargs: store,
        )
    return store


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """setup_logging() replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)

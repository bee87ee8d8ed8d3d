"""Tests for the queue CLI commands."""

import json

from click.testing import CliRunner

from etcd_primitives_tool.cli import main
from etcd_primitives_tool.kvstore.constants import QUEUE_TOP_PRIORITY, QUEUE_WAITING_PRIORITY
from etcd_primitives_tool.kvstore.core.memory import MemoryClient


class TestQueueCommands:
    """Test queue-push, queue-pop, queue-peek and queue-size."""

    def test_push_pop_in_priority_order(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """The lowest priority number is popped first."""
        runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", "later", "--priority", "7"])
        runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", "urgent", "--priority", "0"])

        first = runner.invoke(main, ["kvstore", "queue-pop", "/queues/jobs"])
        second = runner.invoke(main, ["kvstore", "queue-pop", "/queues/jobs", "--text"])

        assert json.loads(first.output)["message"] == "urgent"
        assert second.output.strip() == "later"

    def test_pop_empty_exits_1(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """Popping an empty queue exits with 1."""
        result = runner.invoke(main, ["kvstore", "queue-pop", "/queues/jobs"])

        assert result.exit_code == 1

    def test_invalid_priority_exits_2(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """Out-of-range priorities are rejected."""
        result = runner.invoke(
            main, ["kvstore", "queue-push", "/queues/jobs", "x", "--priority", "70000"]
        )

        assert result.exit_code == 2

    def test_peek_and_size(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """peek shows messages without consuming them."""
        for message in ("a", "b", "c"):
            runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", message])

        peeked = json.loads(
            runner.invoke(main, ["kvstore", "queue-peek", "/queues/jobs", "--count", "2"]).output
        )
        size = json.loads(runner.invoke(main, ["kvstore", "queue-size", "/queues/jobs"]).output)

        assert [item["message"] for item in peeked["items"]] == ["a", "b"]
        assert size["size"] == 3

    def test_peek_last(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """--last shows only the message that would be dequeued last."""
        runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", "a", "--priority", "1"])
        runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", "b", "--priority", "9"])

        result = runner.invoke(main, ["kvstore", "queue-peek", "/queues/jobs", "--last"])

        payload = json.loads(result.output)
        assert payload["count"] == 1
        assert payload["items"][0]["message"] == "b"

    def test_peek_last_empty(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """--last on an empty queue returns no items."""
        result = runner.invoke(main, ["kvstore", "queue-peek", "/queues/jobs", "--last"])

        assert result.exit_code == 0
        assert json.loads(result.output)["items"] == []


class TestPriorityPresets:
    """Test the --top and --waiting shortcuts of queue-push."""

    def test_top_jumps_ahead(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """A --top message is popped before earlier waiting messages."""
        runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", "routine", "--waiting"])
        pushed = runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", "hotfix", "--top"])

        popped = runner.invoke(main, ["kvstore", "queue-pop", "/queues/jobs"])

        assert json.loads(pushed.output)["priority"] == QUEUE_TOP_PRIORITY
        assert json.loads(popped.output)["message"] == "hotfix"

    def test_waiting_uses_waiting_priority(
        self, runner: CliRunner, cli_store: MemoryClient
    ) -> None:
        """--waiting pushes with the waiting priority."""
        result = runner.invoke(main, ["kvstore", "queue-push", "/queues/jobs", "x", "--waiting"])

        assert json.loads(result.output)["priority"] == QUEUE_WAITING_PRIORITY

    def test_conflicting_presets_exit_2(self, runner: CliRunner, cli_store: MemoryClient) -> None:
        """Only one of --priority, --top and --waiting may be given."""
        result = runner.invoke(
            main, ["kvstore", "queue-push", "/queues/jobs", "x", "--top", "--priority", "3"]
        )

        assert result.exit_code == 2
        assert cli_store.count_prefix("/queues/jobs/") == 0

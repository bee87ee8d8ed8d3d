"""Tests for the lock-serialized watch dispatcher."""

import logging
import threading
from unittest.mock import MagicMock, patch

import pytest

from etcd_primitives_tool.kvstore.core.lock_operations import DistributedMutex
from etcd_primitives_tool.kvstore.core.memory import MemoryClient
from etcd_primitives_tool.kvstore.core.watch_operations import WatchDispatcher, default_owner_token
from etcd_primitives_tool.kvstore.exceptions import (
    LeaseError,
    StoreConnectionError,
    WatchStreamClosedError,
)
from etcd_primitives_tool.kvstore.models import EventType, WatchEvent

LOCK_KEY = "/locks/dispatcher"


def run_in_thread(dispatcher: WatchDispatcher, prefix: str, on_put, on_delete) -> dict:
    """Run dispatch() in a thread; the returned dict collects its outcome."""
    outcome: dict = {}

    def target() -> None:
        try:
            outcome["handled"] = dispatcher.dispatch(prefix, on_put, on_delete)
        except Exception as e:
            outcome["error"] = e

    outcome["thread"] = threading.Thread(target=target, daemon=True)
    outcome["thread"].start()
    return outcome


def static_stream(events):
    """Watch stub that replays a fixed list of events."""
    client = MagicMock()
    cancel = MagicMock()
    client.watch_prefix.return_value = (iter(events), cancel)
    return client, cancel


class TestDispatch:
    """Test event handling."""

    def test_handles_put_and_delete(self, store: MemoryClient, wait) -> None:
        """Put and Delete events reach their handlers in order."""
        dispatcher = WatchDispatcher(store, DistributedMutex(store, LOCK_KEY))
        seen: list[tuple[EventType, str]] = []

        def record(event: WatchEvent) -> None:
            seen.append((event.kind, event.key))
            if len(seen) == 2:
                dispatcher.stop()

        outcome = run_in_thread(dispatcher, "/jobs/", record, record)
        assert wait(lambda: store.status()["watchers"] == 1)
        store.put("/jobs/1", "pending")
        store.delete("/jobs/1")
        outcome["thread"].join(timeout=5)

        assert seen == [(EventType.PUT, "/jobs/1"), (EventType.DELETE, "/jobs/1")]
        assert outcome["handled"] == 2
        assert store.get(LOCK_KEY) is None

    def test_skips_event_while_lock_held_elsewhere(self, store: MemoryClient, wait) -> None:
        """An event that arrives while another owner holds the lock is skipped."""
        other = DistributedMutex(store, LOCK_KEY)
        other.lock("someone-else")
        dispatcher = WatchDispatcher(store, DistributedMutex(store, LOCK_KEY))
        handled: list[str] = []

        outcome = run_in_thread(dispatcher, "/jobs/", lambda e: handled.append(e.key), print)
        assert wait(lambda: store.status()["watchers"] == 1)
        store.put("/jobs/1", "a")
        assert wait(lambda: dispatcher.skipped == 1)

        other.unlock()
        store.put("/jobs/2", "b")
        assert wait(lambda: dispatcher.handled == 1)
        dispatcher.stop()
        outcome["thread"].join(timeout=5)

        assert handled == ["/jobs/2"]
        assert outcome["handled"] == 1

    def test_two_dispatchers_never_overlap(self, store: MemoryClient, wait) -> None:
        """While one dispatcher handles an event the other one skips it."""
        release = threading.Event()
        running: list[str] = []
        first = WatchDispatcher(store, DistributedMutex(store, LOCK_KEY))
        second = WatchDispatcher(store, DistributedMutex(store, LOCK_KEY))

        def slow_handler(event: WatchEvent) -> None:
            running.append(event.key)
            release.wait(5)

        outcomes = [
            run_in_thread(first, "/jobs/", slow_handler, slow_handler),
            run_in_thread(second, "/jobs/", slow_handler, slow_handler),
        ]
        assert wait(lambda: store.status()["watchers"] == 2)
        store.put("/jobs/1", "pending")
        assert wait(lambda: first.skipped + second.skipped == 1)
        release.set()
        assert wait(lambda: first.handled + second.handled == 1)

        first.stop()
        second.stop()
        for outcome in outcomes:
            outcome["thread"].join(timeout=5)

        assert running == ["/jobs/1"]
        assert store.get(LOCK_KEY) is None

    def test_lock_failure_skips_event(self, store: MemoryClient, caplog) -> None:
        """A failed lock attempt is logged and the loop keeps going."""
        events = [
            WatchEvent(EventType.PUT, "/jobs/1", "a", 10),
            WatchEvent(EventType.PUT, "/jobs/2", "b", 11),
        ]
        client, _cancel = static_stream(events)
        mutex = DistributedMutex(store, LOCK_KEY)
        dispatcher = WatchDispatcher(client, mutex)
        handled: list[str] = []

        with patch.object(mutex, "lock", side_effect=[LeaseError("no lease"), None]):
            with patch.object(mutex, "unlock"):
                with caplog.at_level(logging.ERROR):
                    with pytest.raises(WatchStreamClosedError):
                        dispatcher.dispatch("/jobs/", lambda e: handled.append(e.key), print)

        assert handled == ["/jobs/2"]
        assert dispatcher.skipped == 1
        assert "no lease" in caplog.text

    def test_replayed_events_are_ignored(self, store: MemoryClient) -> None:
        """Events at or below an already handled revision are dropped."""
        events = [
            WatchEvent(EventType.PUT, "/jobs/1", "a", 10),
            WatchEvent(EventType.PUT, "/jobs/1", "a", 10),
            WatchEvent(EventType.PUT, "/jobs/2", "b", 10),
            WatchEvent(EventType.PUT, "/jobs/0", "z", 9),
            WatchEvent(EventType.DELETE, "/jobs/1", "", 12),
        ]
        client, _cancel = static_stream(events)
        dispatcher = WatchDispatcher(client, DistributedMutex(store, LOCK_KEY))
        seen: list[tuple[str, int]] = []

        def record(event: WatchEvent) -> None:
            seen.append((event.key, event.revision))

        with pytest.raises(WatchStreamClosedError):
            dispatcher.dispatch("/jobs/", record, record)

        assert seen == [("/jobs/1", 10), ("/jobs/2", 10), ("/jobs/1", 12)]

    def test_handler_error_propagates_after_unlock(self, store: MemoryClient) -> None:
        """Handler exceptions escape dispatch() with the lock released."""
        client, cancel = static_stream([WatchEvent(EventType.PUT, "/jobs/1", "a", 10)])
        dispatcher = WatchDispatcher(client, DistributedMutex(store, LOCK_KEY))

        def explode(event: WatchEvent) -> None:
            raise RuntimeError("handler failed")

        with pytest.raises(RuntimeError, match="handler failed"):
            dispatcher.dispatch("/jobs/", explode, explode)

        assert store.get(LOCK_KEY) is None
        cancel.assert_called_once()

    def test_owner_token_factory_is_used(self, store: MemoryClient) -> None:
        """Each lock attempt stores a fresh token from the factory."""
        client, _cancel = static_stream([WatchEvent(EventType.PUT, "/jobs/1", "a", 10)])
        dispatcher = WatchDispatcher(
            client, DistributedMutex(store, LOCK_KEY), token_factory=lambda: "token-1"
        )
        owners: list[str] = []

        def record(event: WatchEvent) -> None:
            owners.append(store.get(LOCK_KEY).value)

        with pytest.raises(WatchStreamClosedError):
            dispatcher.dispatch("/jobs/", record, record)

        assert owners == ["token-1"]

    def test_default_owner_token_is_timestamp(self) -> None:
        """The default token is an ISO timestamp."""
        assert "T" in default_owner_token()


class TestStreamLifecycle:
    """Test stop() and stream termination."""

    def test_closed_stream_raises(self, store: MemoryClient, wait) -> None:
        """A stream that ends without stop() is an error."""
        dispatcher = WatchDispatcher(store, DistributedMutex(store, LOCK_KEY))

        outcome = run_in_thread(dispatcher, "/jobs/", print, print)
        assert wait(lambda: store.status()["watchers"] == 1)
        store.close()
        outcome["thread"].join(timeout=5)

        assert isinstance(outcome["error"], WatchStreamClosedError)

    def test_stream_error_raises(self, store: MemoryClient) -> None:
        """Store errors from the stream surface as WatchStreamClosedError."""

        def broken():
            raise StoreConnectionError("connection reset")
            yield

        client = MagicMock()
        client.watch_prefix.return_value = (broken(), MagicMock())
        dispatcher = WatchDispatcher(client, DistributedMutex(store, LOCK_KEY))

        with pytest.raises(WatchStreamClosedError, match="connection reset"):
            dispatcher.dispatch("/jobs/", print, print)

    def test_stop_returns_handled_count(self, store: MemoryClient, wait) -> None:
        """stop() ends dispatch() normally."""
        dispatcher = WatchDispatcher(store, DistributedMutex(store, LOCK_KEY))

        outcome = run_in_thread(dispatcher, "/jobs/", print, print)
        assert wait(lambda: store.status()["watchers"] == 1)
        dispatcher.stop()
        outcome["thread"].join(timeout=5)

        assert outcome["handled"] == 0
        assert "error" not in outcome
        assert store.status()["watchers"] == 0

    def test_stop_before_dispatch(self, store: MemoryClient) -> None:
        """A dispatcher stopped in advance returns at once."""
        dispatcher = WatchDispatcher(store, DistributedMutex(store, LOCK_KEY))
        dispatcher.stop()

        assert dispatcher.dispatch("/jobs/", print, print) == 0

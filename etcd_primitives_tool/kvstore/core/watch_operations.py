"""
Watch operations for kvstore.

WatchDispatcher reacts to changes under a key prefix. Every dispatcher
instance, in every process, sees the same events in the same revision order;
before handling one it tries a single shared coordination lock, so for each
event window only the instance that wins the lock runs its handler. The lock
is dispatcher-wide rather than per event, which caps throughput at one handled
event at a time across the cluster.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

from collections.abc import Callable
from datetime import datetime, timezone

from ..exceptions import KVStoreError, LockUnavailableError, WatchStreamClosedError
from ..logging_config import get_logger
from ..models import EventType, WatchEvent
from .lock_operations import DistributedMutex
from .store import StoreClient

logger = get_logger(__name__)

EventHandler = Callable[[WatchEvent], None]


def default_owner_token() -> str:
    """Owner token for one lock attempt: the current time as a string."""
    return datetime.now(timezone.utc).isoformat()


class WatchDispatcher:
    """Serializes reactions to prefix change events across processes."""

    def __init__(
        self,
        client: StoreClient,
        mutex: DistributedMutex,
        token_factory: Callable[[], str] = default_owner_token,
    ):
        """
        Initialize a dispatcher.

        Args:
            client: Store client used for the watch subscription
            mutex: Coordination lock shared by every dispatcher instance
            token_factory: Builds a fresh owner token per lock attempt
        """
        self.client = client
        self.mutex = mutex
        self.token_factory = token_factory
        self.handled = 0
        self.skipped = 0
        self._cancel: Callable[[], None] | None = None
        self._stopped = False

    def stop(self) -> None:
        """Cancel the subscription; dispatch() returns instead of raising.

        A stopped dispatcher stays stopped: a later dispatch() returns at once.
        """
        self._stopped = True
        if self._cancel is not None:
            self._cancel()

    def dispatch(
        self,
        prefix: str,
        on_put: EventHandler,
        on_delete: EventHandler,
    ) -> int:
        """
        Watch a prefix and handle each event under the coordination lock.

        Events are resolved one at a time: lock, run the matching handler,
        unlock. An event is skipped when the lock is held elsewhere or the
        lock attempt fails; neither ends the loop. Exceptions raised by a
        handler propagate after the lock is released.

        Args:
            prefix: Key prefix to watch
            on_put: Called with Put events
            on_delete: Called with Delete events

        Returns:
            Number of events handled by this instance, once stop() was called

        Raises:
            WatchStreamClosedError: If the stream ends without stop()
        """
        events, cancel = self.client.watch_prefix(prefix)
        self._cancel = cancel
        if self._stopped:
            cancel()
        logger.info(f"Watching prefix '{prefix}' (lock '{self.mutex.key}')")

        last_revision = 0
        seen_at_revision: set[tuple[EventType, str]] = set()

        try:
            while True:
                try:
                    event = next(events)
                except StopIteration:
                    break
                except KVStoreError as e:
                    if self._stopped:
                        break
                    raise WatchStreamClosedError(f"Watch on '{prefix}' failed: {e}") from e
                if self._stopped:
                    break

                if event.revision < last_revision or (
                    event.revision == last_revision
                    and (event.kind, event.key) in seen_at_revision
                ):
                    logger.debug(
                        f"Ignoring replayed event {event.kind.value} {event.key} "
                        f"at revision {event.revision}"
                    )
                    continue
                if event.revision > last_revision:
                    last_revision = event.revision
                    seen_at_revision = set()
                seen_at_revision.add((event.kind, event.key))

                handler = on_put if event.kind is EventType.PUT else on_delete
                self._handle(event, handler)
        finally:
            cancel()
            self._cancel = None

        if self._stopped:
            logger.info(f"Stopped watching prefix '{prefix}'")
            return self.handled
        raise WatchStreamClosedError(f"Watch stream for prefix '{prefix}' closed")

    def _handle(self, event: WatchEvent, handler: EventHandler) -> None:
        logger.info(f"Watch {event.kind.value} key: {event.key} (revision {event.revision})")

        try:
            self.mutex.lock(self.token_factory())
        except LockUnavailableError:
            self.skipped += 1
            logger.info(f"Lock '{self.mutex.key}' held elsewhere, skipping {event.key}")
            return
        except KVStoreError as e:
            self.skipped += 1
            logger.error(f"Lock attempt for {event.key} failed, skipping: {e}")
            return

        try:
            handler(event)
            self.handled += 1
        finally:
            self.mutex.unlock()

"""
Queue operations for kvstore.

Messages live under '{queue}/' with keys of the form
'{priority:05d}/{timestamp_micros:020d}-{uuid}', so a key-ordered range read
returns the next message: lowest priority number first, FIFO within a
priority. Consumers claim a message with a compare-and-delete on its
mod revision; a consumer that loses the race moves on to the next key.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import time
import uuid
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from ..constants import (
    DEFAULT_QUEUE_PRIORITY,
    MAX_QUEUE_PRIORITY,
    QUEUE_MAX_MESSAGES,
    QUEUE_POP_ATTEMPTS,
)
from ..exceptions import KVStoreError, QueueEmptyError
from ..logging_config import get_logger
from ..models import Compare, KeyValue, TxnOp
from .store import StoreClient

logger = get_logger(__name__)

T = TypeVar("T")


class JsonCodec(Generic[T]):
    """JSON boundary for typed queue payloads.

    Backed by a pydantic TypeAdapter, so nested dataclasses, tuples and other
    annotated types are rebuilt on decode: decode(encode(x)) == x.
    """

    def __init__(self, target: type[T]):
        self.target = target
        self._adapter: TypeAdapter[T] = TypeAdapter(target)

    def encode(self, value: T) -> str:
        return self._adapter.dump_json(value).decode("utf-8")

    def decode(self, raw: str | bytes) -> T:
        """
        Rebuild a value of the target type.

        Raises:
            ValueError: If the payload does not validate against the target
                (pydantic.ValidationError is a ValueError)
        """
        return self._adapter.validate_json(raw)


def _queue_prefix(queue_name: str) -> str:
    return f"{queue_name.rstrip('/')}/"


def _parse_message(queue_name: str, kv: KeyValue) -> dict[str, Any]:
    """Split a queue key back into its priority and timestamp."""
    suffix = kv.key[len(_queue_prefix(queue_name)) :]
    priority, _, tail = suffix.partition("/")
    timestamp = tail.split("-", 1)[0]
    return {
        "queue": queue_name,
        "message": kv.value,
        "receipt": kv.key,
        "priority": int(priority),
        "timestamp": int(timestamp),
    }


def push_to_queue(
    client: StoreClient,
    queue_name: str,
    data: str,
    priority: int | None = None,
) -> dict[str, Any]:
    """
    Push a message to a queue.

    Args:
        client: Store client
        queue_name: Name (key prefix) of the queue
        data: Message data to store
        priority: Priority (0-65535, lower = dequeued first, default: 5)

    Returns:
        Dictionary with queue name, receipt (full key), priority and timestamp

    Raises:
        ValueError: If priority is out of range
        KVStoreError: For store errors
    """
    if priority is None:
        priority = DEFAULT_QUEUE_PRIORITY
    if not 0 <= priority <= MAX_QUEUE_PRIORITY:
        raise ValueError(f"Priority must be between 0 and {MAX_QUEUE_PRIORITY}")

    timestamp_micros = int(time.time() * 1_000_000)
    message_uuid = uuid.uuid4().hex[:8]
    key = f"{_queue_prefix(queue_name)}{priority:05d}/{timestamp_micros:020d}-{message_uuid}"

    # Create-only so a message never overwrites another one
    result = client.transaction(
        compare=[Compare(key, "create", "==", 0)],
        success=[TxnOp.put(key, data)],
        failure=[],
    )
    if not result.succeeded:
        raise KVStoreError(f"Queue key collision on '{key}', retry the push")

    return {
        "queue": queue_name,
        "receipt": key,
        "priority": priority,
        "timestamp": timestamp_micros,
    }


def pop_from_queue(client: StoreClient, queue_name: str) -> dict[str, Any] | None:
    """
    Pop the next message from a queue.

    Args:
        client: Store client
        queue_name: Name of the queue

    Returns:
        Message data, or None if the queue is empty

    Raises:
        KVStoreError: If every claim attempt was lost to other consumers
    """
    prefix = _queue_prefix(queue_name)

    for attempt in range(QUEUE_POP_ATTEMPTS):
        items = client.get_prefix(prefix, limit=1)
        if not items:
            return None

        head = items[0]
        result = client.transaction(
            compare=[Compare(head.key, "mod", "==", head.mod_revision)],
            success=[TxnOp.delete(head.key)],
            failure=[],
        )
        if result.succeeded:
            return _parse_message(queue_name, head)

        logger.debug(f"Lost claim on {head.key} (attempt {attempt + 1}), retrying")

    raise KVStoreError(
        f"Failed to pop from queue '{queue_name}': "
        f"lost {QUEUE_POP_ATTEMPTS} claims to other consumers"
    )


def peek_queue(
    client: StoreClient,
    queue_name: str,
    count: int = QUEUE_MAX_MESSAGES,
) -> dict[str, Any]:
    """
    Peek at the next messages without removing them.

    Returns:
        Dictionary with queue name, list of items, and count
    """
    items = [
        _parse_message(queue_name, kv)
        for kv in client.get_prefix(_queue_prefix(queue_name), limit=count)
    ]
    return {"queue": queue_name, "items": items, "count": len(items)}


def peek_last(client: StoreClient, queue_name: str) -> dict[str, Any] | None:
    """
    Peek at the message that would be dequeued last.

    Args:
        client: Store client
        queue_name: Name of the queue

    Returns:
        Message data, or None if the queue is empty
    """
    items = client.get_prefix(_queue_prefix(queue_name), limit=1, descending=True)
    if not items:
        return None
    return _parse_message(queue_name, items[0])


def get_queue_size(client: StoreClient, queue_name: str) -> dict[str, Any]:
    """
    Get the size of a queue (count-only range read).

    Returns:
        Dictionary with queue name and size count
    """
    return {"queue": queue_name, "size": client.count_prefix(_queue_prefix(queue_name))}


def push_struct(
    client: StoreClient,
    queue_name: str,
    value: Any,
    priority: int | None = None,
) -> dict[str, Any]:
    """Push a dataclass or JSON value, serialized with JsonCodec."""
    codec: JsonCodec[Any] = JsonCodec(type(value))
    return push_to_queue(client, queue_name, codec.encode(value), priority)


def pop_struct(client: StoreClient, queue_name: str, target: type[T]) -> T:
    """
    Pop the next message and deserialize it into target.

    Raises:
        QueueEmptyError: If the queue has no messages
        ValueError: If the payload does not match target
    """
    message = pop_from_queue(client, queue_name)
    if message is None:
        raise QueueEmptyError(f"Queue '{queue_name}' is empty")
    return JsonCodec(target).decode(message["message"])

"""
Type models for kvstore operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MutexState(Enum):
    """Lifecycle states of a distributed mutex."""

    UNLOCKED = "unlocked"
    LOCKED = "locked"
    FAILED = "failed"


class EventType(Enum):
    """Kinds of change delivered by a prefix watch."""

    PUT = "put"
    DELETE = "delete"


@dataclass(frozen=True)
class KeyValue:
    """A key-value entry as stored in etcd."""

    key: str
    value: str
    create_revision: int
    mod_revision: int
    version: int = 1
    lease: int = 0


@dataclass(frozen=True)
class WatchEvent:
    """Change event delivered by a prefix watch, ordered by revision."""

    kind: EventType
    key: str
    value: str
    revision: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "key": self.key,
            "value": self.value,
            "revision": self.revision,
        }


@dataclass(frozen=True)
class LeaseAck:
    """Keepalive acknowledgement for a lease."""

    lease_id: int
    ttl: int


@dataclass(frozen=True)
class Compare:
    """Transaction guard: ``target(key) <op> value``.

    target is one of "create", "mod", "version" (revisions/counters) or "value".
    """

    key: str
    target: str
    op: str
    value: Any

    def evaluate(self, kv: "KeyValue | None") -> bool:
        if self.target == "create":
            actual: Any = kv.create_revision if kv else 0
        elif self.target == "mod":
            actual = kv.mod_revision if kv else 0
        elif self.target == "version":
            actual = kv.version if kv else 0
        elif self.target == "value":
            actual = kv.value if kv else None
        else:
            raise ValueError(f"Unknown compare target '{self.target}'")

        if self.op == "==":
            return bool(actual == self.value)
        if self.op == "!=":
            return bool(actual != self.value)
        if actual is None:
            return False
        if self.op == "<":
            return bool(actual < self.value)
        if self.op == ">":
            return bool(actual > self.value)
        raise ValueError(f"Unknown compare operator '{self.op}'")


@dataclass(frozen=True)
class TxnOp:
    """Single operation inside a transaction branch."""

    action: str  # "put", "get" or "delete"
    key: str
    value: str | None = None
    lease: int | None = None

    @classmethod
    def put(cls, key: str, value: str, lease: int | None = None) -> "TxnOp":
        return cls("put", key, value, lease)

    @classmethod
    def get(cls, key: str) -> "TxnOp":
        return cls("get", key)

    @classmethod
    def delete(cls, key: str) -> "TxnOp":
        return cls("delete", key)


@dataclass
class TxnResult:
    """Outcome of a transaction commit.

    succeeded is True when the success ("then") branch ran. responses holds one
    entry per executed op: the KeyValue (or None) for gets, None for puts and
    deletes.
    """

    succeeded: bool
    responses: list[KeyValue | None] = field(default_factory=list)


@dataclass
class Lock:
    """Distributed lock held through a lease."""

    name: str
    owner: str
    lease_id: int
    ttl: int
    acquired_at: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "lock": self.name,
            "owner": self.owner,
            "lease_id": self.lease_id,
            "ttl": self.ttl,
            "acquired_at": self.acquired_at,
        }

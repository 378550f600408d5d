"""State snapshots: immutable records of status, data and run context.

Every committed transition produces a brand new State. Nothing in the
engine mutates a State after construction; forks and replays copy.
"""

from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from async_states.errors import UnknownStatusError

T = TypeVar("T")


class Status(str, Enum):
    initial = "initial"
    pending = "pending"
    success = "success"
    error = "error"
    aborted = "aborted"

    @classmethod
    def parse(cls, status: Status | str) -> Status:
        """Coerce a name to a Status, raising UnknownStatusError otherwise."""
        try:
            return cls(status)
        except ValueError:
            raise UnknownStatusError(status) from None


@dataclass(frozen=True)
class SavedProps(Generic[T]):
    """The invocation context captured once per run.

    Shared by every snapshot the run produces so its history stays
    attributable to the arguments that caused it.
    """

    args: tuple = ()
    payload: dict = field(default_factory=dict)
    last_success: State[T] | None = None


@dataclass(frozen=True)
class State(Generic[T]):
    status: Status
    data: Any = None
    props: SavedProps[T] | None = None
    timestamp: float = field(default_factory=time.time)

    @property
    def is_terminal(self) -> bool:
        return self.status in (Status.success, Status.error, Status.aborted)

    def copy(self) -> State[T]:
        return dataclasses.replace(self)


def initial(value: T) -> State[T]:
    return State(Status.initial, value, None)


def pending(props: SavedProps[T]) -> State[T]:
    return State(Status.pending, None, props)


def success(data: T, props: SavedProps[T] | None) -> State[T]:
    return State(Status.success, data, props)


def error(exc: Any, props: SavedProps[T] | None) -> State[T]:
    return State(Status.error, exc, props)


def aborted(reason: Any, props: SavedProps[T] | None) -> State[T]:
    return State(Status.aborted, reason, props)


_BUILDERS = {
    Status.initial: lambda data, props: initial(data),
    Status.pending: lambda data, props: pending(props),
    Status.success: success,
    Status.error: error,
    Status.aborted: aborted,
}


def build(status: Status | str, data: Any, props: SavedProps | None) -> State:
    """Build a snapshot for any status. Unknown statuses raise."""
    return _BUILDERS[Status.parse(status)](data, props)


def save_props(args, payload, last_success) -> SavedProps:
    """Capture a run's context. The payload is shallow-copied."""
    return SavedProps(
        args=tuple(args),
        payload=dict(payload) if payload else {},
        last_success=last_success,
    )

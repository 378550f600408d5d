"""Exceptions raised by the engine itself.

Errors coming from user producers never surface here: they are captured
into ``error`` snapshots. Only misuse of the engine's own API raises.
"""


class AsyncStatesError(Exception):
    """Base class for every error raised by async_states."""


class IncompatibleSourceError(AsyncStatesError, TypeError):
    """A source handle was not produced by this engine."""

    def __init__(self, source: object) -> None:
        super().__init__(
            "You've passed an incompatible source object. Please make sure "
            f"to pass the received source object (got {source!r})."
        )
        self.source = source


class UnknownStatusError(AsyncStatesError, ValueError):
    """replace_state() was given a status outside the recognized set."""

    def __init__(self, status: object) -> None:
        super().__init__(
            f"Couldn't replace state to status {status!r}, because it is unknown."
        )
        self.status = status

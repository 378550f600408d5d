"""Run effects: rate-limiting policies applied to repeated run() calls.

Deferred scheduling uses the running asyncio loop. Without one, or with a
zero duration, every run dispatches immediately.

- delay:                            always defer by the full duration.
- debounce / takeLast / takeLatest: a new run cancels a still-open timer
                                    and restarts the window.
- throttle / takeFirst / takeLeading: while a window is open, new runs are
                                    dropped (their cancel is a no-op).
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable

Cancel = Callable[..., None]


class RunEffect(str, Enum):
    delay = "delay"
    debounce = "debounce"
    take_last = "takeLast"
    take_latest = "takeLatest"
    throttle = "throttle"
    take_first = "takeFirst"
    take_leading = "takeLeading"

    @classmethod
    def parse(cls, value: RunEffect | str) -> RunEffect:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            pass
        try:
            return cls[value]
        except KeyError:
            raise ValueError(f"Unknown run effect {value!r}") from None


_DEBOUNCING = (RunEffect.debounce, RunEffect.take_last, RunEffect.take_latest)
_THROTTLING = (RunEffect.throttle, RunEffect.take_first, RunEffect.take_leading)


def effects_supported() -> bool:
    """Is deferred scheduling available here (i.e. is a loop running)?"""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _noop(reason: Any = None) -> None:
    """Cancel function of a dropped run."""


class PendingTimeout:
    """A scheduled, not yet dispatched run."""

    __slots__ = ("handle", "start")

    def __init__(self, handle: asyncio.TimerHandle, start: float) -> None:
        self.handle = handle
        self.start = start


class EffectScheduler:
    """Decides whether a run dispatches now, later, or never.

    dispatch(*request) performs the immediate run and returns its cancel
    function; the request is whatever run() was asked to do.
    """

    def __init__(self, effect: RunEffect | None, duration: float, dispatch) -> None:
        self.effect = effect
        self.duration = duration
        self.pending: PendingTimeout | None = None
        self._timers: set[PendingTimeout] = set()
        self._dispatch = dispatch

    @property
    def active(self) -> bool:
        return self.effect is not None and self.duration > 0 and effects_supported()

    def schedule(self, *request) -> Cancel:
        loop = asyncio.get_running_loop()
        now = loop.time()
        pending = self.pending

        if self.effect in _DEBOUNCING:
            if pending is not None and now < pending.start + self.duration:
                self._drop(pending)
            return self._register(loop, now, request)

        if self.effect in _THROTTLING:
            if pending is None:
                return self._register(loop, now, request)
            if now <= pending.start + self.duration:
                return _noop
            return self._dispatch(*request)

        return self._register(loop, now, request)

    def cancel_all(self) -> None:
        for timeout in list(self._timers):
            self._drop(timeout)

    def _drop(self, timeout: PendingTimeout) -> None:
        timeout.handle.cancel()
        self._timers.discard(timeout)
        if self.pending is timeout:
            self.pending = None

    def _register(self, loop, now: float, request: tuple) -> Cancel:
        dispatched: list[Cancel] = []

        def _fire() -> None:
            self._timers.discard(timeout)
            if self.pending is timeout:
                self.pending = None
            dispatched.append(self._dispatch(*request))

        timeout = PendingTimeout(loop.call_later(self.duration, _fire), now)
        self.pending = timeout
        self._timers.add(timeout)

        def _cancel(reason: Any = None) -> None:
            self._drop(timeout)
            for abort in dispatched:
                abort(reason)

        return _cancel

"""Abort controller: the per-run cancel function.

A RunAborter fires at most once. The first call commits an ``aborted``
snapshot if the run has not been fulfilled yet, then runs the run's
on_abort callbacks in registration order. Every later call is a no-op.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from async_states import state as states
from async_states.indicators import RunIndicators
from async_states.state import SavedProps

if TYPE_CHECKING:
    from async_states.async_state import AsyncState
    from async_states.props import ProducerProps

logger = logging.getLogger("async_states.abort")


class RunAborter:
    """Idempotent, race-free cancellation of one run."""

    __slots__ = ("_instance", "_props", "_indicators", "saved_props")

    def __init__(
        self,
        instance: AsyncState,
        props: ProducerProps,
        indicators: RunIndicators,
        saved_props: SavedProps,
    ) -> None:
        self._instance = instance
        self._props = props
        self._indicators = indicators
        self.saved_props = saved_props

    @property
    def fired(self) -> bool:
        return self._indicators.cleared

    def __call__(self, reason: Any = None) -> None:
        indicators = self._indicators
        if indicators.aborted or indicators.cleared:
            return

        try:
            if not indicators.fulfilled:
                indicators.aborted = True
                self._instance.set_state(states.aborted(reason, self.saved_props))
        finally:
            # A raising subscriber must not leave the run's cleanup pending.
            self._release(reason)

    def _release(self, reason: Any) -> None:
        self._indicators.cleared = True
        for callback in self._props._on_abort:
            try:
                callback(reason)
            except Exception:
                logger.exception("[%s] on_abort callback failed", self._instance.key)

        if self._instance.current_aborter is self:
            self._instance.current_aborter = None

    def __repr__(self) -> str:
        return f"RunAborter({self._instance.key!r}, {self._indicators!r})"

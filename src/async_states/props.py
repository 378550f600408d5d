"""Producer props: the object handed to a producer for one run.

Exposes the run's arguments and context, an abort hook, on_abort cleanup
registration and emit() for pushing values after the run has resolved.
Extra props returned by the run's creator become plain attributes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Mapping

from async_states.indicators import RunIndicators
from async_states.state import State, Status

if TYPE_CHECKING:
    from async_states.async_state import AsyncState

logger = logging.getLogger("async_states.props")

AbortFn = Callable[..., None]


class ProducerProps:
    """What a producer sees when it is invoked."""

    def __init__(
        self,
        instance: AsyncState,
        indicators: RunIndicators,
        args: tuple,
        payload: dict,
        last_success: State,
    ) -> None:
        self.args = args
        self.payload = payload
        self.last_success = last_success
        self._instance = instance
        self._indicators = indicators
        self._on_abort: list[AbortFn] = []
        self._aborter: AbortFn | None = None

    @property
    def aborted(self) -> bool:
        return self._indicators.aborted

    @property
    def fulfilled(self) -> bool:
        return self._indicators.fulfilled

    @property
    def cleared(self) -> bool:
        return self._indicators.cleared

    def on_abort(self, callback: AbortFn) -> None:
        """Register a cleanup that runs once, when this run is aborted."""
        if callable(callback):
            self._on_abort.append(callback)

    def abort(self, reason: Any = None) -> None:
        """Abort this run from inside the producer."""
        if self._aborter is not None:
            self._aborter(reason)

    def emit(self, value: Any, status: Status | str = Status.success) -> None:
        """Push a new value after the run has resolved (websockets, intervals...)."""
        if self._indicators.cleared:
            logger.warning(
                "[%s] emit() called after the run was aborted or superseded; "
                "this has no effect",
                self._instance.key,
            )
            return
        if not self._indicators.fulfilled:
            logger.warning(
                "[%s] emit() called before the producer resolved; "
                "this is not supported and has no effect",
                self._instance.key,
            )
            return
        self._instance.replace_state(value, status)

    def _extend(self, extra: Mapping[str, Any] | None) -> None:
        if not extra:
            return
        for name, value in extra.items():
            setattr(self, name, value)

    def __repr__(self) -> str:
        return f"ProducerProps(key={self._instance.key!r}, args={self.args!r})"

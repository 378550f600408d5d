"""Producer executor: drives a producer to exactly one outcome.

A producer may return a plain value, an awaitable, or a generator. The
shape is classified once per run and handled by a single match:

- plain value: commit ``success`` immediately, no ``pending``.
- awaitable:   commit ``pending``, then ``success``/``error`` on completion.
- generator:   step it synchronously while it yields plain values; on the
               first awaitable yield, commit ``pending`` and continue
               asynchronously through a GeneratorDriver.

Late completions are neutralized through the run's RunIndicators: once a
run is aborted its continuations never commit.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any

from async_states import state as states
from async_states.indicators import RunIndicators
from async_states.state import SavedProps, Status

if TYPE_CHECKING:
    from async_states.async_state import AsyncState
    from async_states.props import ProducerProps

logger = logging.getLogger("async_states.producer")


class ProducerType(str, Enum):
    indeterminate = "indeterminate"
    sync = "sync"
    promise = "promise"
    generator = "generator"


def classify(value: Any) -> ProducerType:
    """Decide once what kind of outcome a producer returned."""
    if inspect.isgenerator(value):
        return ProducerType.generator
    if inspect.isawaitable(value):
        return ProducerType.promise
    return ProducerType.sync


def _as_future(awaitable) -> tuple[asyncio.Future, bool]:
    """Bind an awaitable to the running loop.

    Returns the future and whether the engine owns it (and may cancel it).
    Raises RuntimeError when a coroutine is given without a running loop.
    """
    if asyncio.isfuture(awaitable):
        return awaitable, False
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        if inspect.iscoroutine(awaitable):
            awaitable.close()
        raise
    return asyncio.ensure_future(awaitable, loop=loop), True


class DriverState(str, Enum):
    running = "running"
    suspended = "suspended"
    aborted = "aborted"
    done = "done"


class GeneratorDriver:
    """Step-wise driver for a generator producer.

    Transitions are only resume(value), throw_into(exc) and abort().
    Once aborted, the generator is closed and never resumed again.
    """

    __slots__ = ("_gen", "state", "result", "future", "_waiting", "_owned")

    def __init__(self, gen) -> None:
        self._gen = gen
        self.state = DriverState.running
        self.result: Any = None
        # Completion future, created on the first awaitable yield.
        self.future: asyncio.Future | None = None
        self._waiting: asyncio.Future | None = None
        self._owned = False

    def start(self) -> None:
        """Run synchronously up to completion or the first awaitable yield.

        Exceptions raised by the generator propagate to the caller.
        """
        self._advance(self._gen.send, None)

    def resume(self, value: Any) -> None:
        self._step(self._gen.send, value)

    def throw_into(self, exc: BaseException) -> None:
        self._step(self._gen.throw, exc)

    def abort(self, reason: Any = None) -> None:
        if self.state in (DriverState.done, DriverState.aborted):
            return
        # Aborted from inside the generator body: _advance closes it.
        executing = self.state is DriverState.running
        self.state = DriverState.aborted
        waiting, self._waiting = self._waiting, None
        if waiting is not None and self._owned:
            waiting.cancel()
        if not executing:
            self._close()

    def _close(self) -> None:
        try:
            self._gen.close()
        except RuntimeError:
            logger.exception("Generator ignored GeneratorExit while being aborted")

    def _step(self, step, value: Any) -> None:
        if self.state is not DriverState.running:
            return
        try:
            self._advance(step, value)
        except asyncio.CancelledError:
            if self.state is not DriverState.aborted:
                self.state = DriverState.done
                self.future.cancel()
        except Exception as exc:
            if self.state is not DriverState.aborted:
                self.state = DriverState.done
                self.future.set_exception(exc)

    def _advance(self, step, value: Any) -> None:
        while True:
            try:
                yielded = step(value)
            except StopIteration as stop:
                if self.state is DriverState.aborted:
                    return
                self.state = DriverState.done
                self.result = stop.value
                if self.future is not None:
                    self.future.set_result(stop.value)
                return

            if self.state is DriverState.aborted:
                if inspect.iscoroutine(yielded):
                    yielded.close()
                self._close()
                return

            if not inspect.isawaitable(yielded):
                step, value = self._gen.send, yielded
                continue

            try:
                waiting, owned = _as_future(yielded)
            except RuntimeError as exc:
                step, value = self._gen.throw, exc
                continue

            self._suspend(waiting, owned)
            return

    def _suspend(self, waiting: asyncio.Future, owned: bool) -> None:
        self.state = DriverState.suspended
        self._waiting = waiting
        self._owned = owned
        if self.future is None:
            self.future = waiting.get_loop().create_future()
        waiting.add_done_callback(self._on_step_done)

    def _on_step_done(self, waiting: asyncio.Future) -> None:
        if waiting is not self._waiting or self.state is not DriverState.suspended:
            if not waiting.cancelled():
                waiting.exception()
            return
        self._waiting = None
        self.state = DriverState.running
        if waiting.cancelled():
            self.throw_into(asyncio.CancelledError())
            return
        exc = waiting.exception()
        if exc is not None:
            self.throw_into(exc)
        else:
            self.resume(waiting.result())

    def __repr__(self) -> str:
        return f"GeneratorDriver({self.state.value})"


def execute(
    instance: AsyncState,
    props: ProducerProps,
    indicators: RunIndicators,
    saved_props: SavedProps,
) -> None:
    """Invoke the instance's producer for one run and commit its snapshots."""
    producer = instance.original_producer

    # No producer: a run is a manual replacement of the state.
    if producer is None:
        indicators.fulfilled = True
        args = props.args
        instance.replace_state(
            args[0] if args else None,
            args[1] if len(args) > 1 else Status.success,
        )
        return

    try:
        value = producer(props)
    except Exception as exc:
        instance.producer_type = ProducerType.sync
        _commit(instance, indicators, states.error(exc, saved_props))
        return

    kind = classify(value)
    instance.producer_type = kind

    match kind:
        case ProducerType.sync:
            _commit(instance, indicators, states.success(value, saved_props))

        case ProducerType.promise:
            if indicators.aborted:
                if inspect.iscoroutine(value):
                    value.close()
                return
            try:
                future, owned = _as_future(value)
            except RuntimeError as exc:
                _commit(instance, indicators, states.error(exc, saved_props))
                return
            if owned:
                props.on_abort(lambda reason: future.cancel())
            _suspend(instance, indicators, saved_props, future)

        case ProducerType.generator:
            driver = GeneratorDriver(value)
            props.on_abort(driver.abort)
            try:
                driver.start()
            except Exception as exc:
                _commit(instance, indicators, states.error(exc, saved_props))
                return
            if driver.state is DriverState.aborted:
                return
            if driver.state is DriverState.done:
                _commit(instance, indicators, states.success(driver.result, saved_props))
                return
            _suspend(instance, indicators, saved_props, driver.future)


def _commit(instance: AsyncState, indicators: RunIndicators, outcome: states.State) -> None:
    if indicators.aborted:
        return
    indicators.fulfilled = True
    instance.set_state(outcome)


def _suspend(
    instance: AsyncState,
    indicators: RunIndicators,
    saved_props: SavedProps,
    future: asyncio.Future,
) -> None:
    instance.suspender = future
    instance.set_state(states.pending(saved_props))
    future.add_done_callback(partial(_settle, instance, indicators, saved_props))


def _settle(
    instance: AsyncState,
    indicators: RunIndicators,
    saved_props: SavedProps,
    future: asyncio.Future,
) -> None:
    if future.cancelled():
        outcome = states.error(asyncio.CancelledError(), saved_props)
    elif future.exception() is not None:
        outcome = states.error(future.exception(), saved_props)
    else:
        outcome = states.success(future.result(), saved_props)

    if indicators.settled:
        return
    _commit(instance, indicators, outcome)

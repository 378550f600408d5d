"""AsyncState: one producer bound to a stable key, and its lifecycle.

An instance owns its current and last successful snapshots, its
subscriptions and the cancel function of the single run in flight.
run() goes through the effect scheduler, aborts the previous run, then
hands over to the producer executor, which commits snapshots back here
through set_state().

Usage:
    async def fetch_user(props):
        return await api.get_user(props.args[0])

    user = AsyncState("user", fetch_user)
    user.subscribe(lambda state: print(state.status, state.data))
    user.run(None, 42)     # pending, then success once the await completes
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Mapping, NamedTuple, TypeVar

from async_states import devtools as _devtools
from async_states import state as states
from async_states.source import Source, issue, resolve
from async_states.abort import RunAborter
from async_states.config import ForkConfig, ProducerConfig
from async_states.devtools import DevtoolsSink
from async_states.effects import EffectScheduler, PendingTimeout
from async_states.indicators import RunIndicators
from async_states.producer import ProducerType, execute
from async_states.props import ProducerProps
from async_states.state import State, Status
from async_states.subscriptions import SubscriptionRegistry

T = TypeVar("T")

logger = logging.getLogger("async_states.async_state")

Producer = Callable[[ProducerProps], Any]
ExtraPropsCreator = Callable[[ProducerProps], Mapping[str, Any]]


class LatestRun(NamedTuple):
    extra_props: ExtraPropsCreator | None
    args: tuple
    payload: dict | None


class AsyncState(Generic[T]):
    """The engine for a single key."""

    def __init__(
        self,
        key: str,
        producer: Producer | None = None,
        config: ProducerConfig | Mapping[str, Any] | None = None,
        *,
        devtools: DevtoolsSink | None = None,
    ) -> None:
        if not isinstance(key, str):
            logger.warning("AsyncState key should be a string, got %r", key)

        self.key = key
        self.original_producer = producer
        if not isinstance(config, ProducerConfig):
            config = ProducerConfig.from_mapping(config)
        self.config = config
        self.devtools = devtools
        self.unique_id = devtools.next_unique_id() if devtools is not None else None

        self.current_state: State[T] = states.initial(config.make_initial_value())
        self.last_success: State[T] = self.current_state
        self.payload: dict | None = None
        self.suspender = None
        self.producer_type = ProducerType.indeterminate
        self.current_aborter: RunAborter | None = None
        self.latest_run: LatestRun | None = None
        self.fork_count = 0

        self.subscriptions = SubscriptionRegistry(key)
        self._effects = EffectScheduler(
            config.run_effect, config.run_effect_duration, self._run_immediately
        )

        self._source = issue(self)

        _devtools.emit(devtools, "on_create", self)

    @property
    def source(self) -> Source:
        return self._source

    @property
    def locks(self) -> int:
        return self.subscriptions.locks

    @property
    def pending_timeout(self) -> PendingTimeout | None:
        return self._effects.pending

    # --- State ---

    def set_state(self, new_state: State[T], notify: bool = True) -> None:
        """Commit a snapshot and, unless told otherwise, notify subscribers."""
        self.current_state = new_state
        if new_state.status == Status.success:
            self.last_success = new_state
        if new_state.status != Status.pending:
            self.suspender = None

        _devtools.emit(self.devtools, "on_state_commit", self, new_state)

        if notify:
            self.subscriptions.notify(new_state)

    def replace_state(self, value: Any, status: Status | str = Status.success) -> None:
        """Jump to a state directly, bypassing the producer.

        value may be an updater: called with the current State, its return
        value becomes the data.
        """
        status = Status.parse(status)
        if self.current_state.status == Status.pending:
            self.abort()

        if callable(value):
            value = value(self.current_state)

        saved_props = states.save_props((value,), self.payload, self.last_success)
        self.set_state(states.build(status, value, saved_props))

    def merge_payload(self, partial: Mapping[str, Any]) -> None:
        """Merge values into the payload handed to future runs."""
        self.payload = {**(self.payload or {}), **partial}

    # --- Runs ---

    def run(self, extra_props: ExtraPropsCreator | None = None, *args: Any) -> Callable[..., None]:
        """Run the producer with args. Returns a cancel function.

        extra_props, if given, is called with the producer props and its
        mapping is merged into them as attributes.
        """
        return self._run(extra_props, args, self.payload)

    def replay(self) -> Callable[..., None] | None:
        """Re-run the latest run's arguments and payload. No-op if never run."""
        latest = self.latest_run
        if latest is None:
            return None
        return self._run(latest.extra_props, latest.args, latest.payload)

    def abort(self, reason: Any = None) -> None:
        if self.current_aborter is not None:
            self.current_aborter(reason)

    def _run(self, extra_props, args: tuple, payload: dict | None):
        if self._effects.active:
            return self._effects.schedule(extra_props, args, payload)
        return self._run_immediately(extra_props, args, payload)

    def _run_immediately(self, extra_props, args: tuple, payload: dict | None) -> RunAborter:
        # Always supersede the previous run; a settled one makes this a no-op.
        self.abort()

        self.latest_run = LatestRun(extra_props, args, payload)

        indicators = RunIndicators()
        props = ProducerProps(self, indicators, args, dict(payload or {}), self.last_success)
        failure = None
        if extra_props is not None:
            try:
                props._extend(extra_props(props))
            except Exception as exc:
                failure = exc
        saved_props = states.save_props(args, props.payload, self.last_success)

        aborter = RunAborter(self, props, indicators, saved_props)
        props._aborter = aborter
        self.current_aborter = aborter

        _devtools.emit(self.devtools, "on_run_start", self, props)
        if failure is not None:
            # The producer never starts; the run settles as an error.
            indicators.fulfilled = True
            self.set_state(states.error(failure, saved_props))
        else:
            execute(self, props, indicators, saved_props)
        return aborter

    # --- Subscriptions ---

    def subscribe(self, callback: Callable[[State[T]], None], key: str | None = None) -> Callable[[], None]:
        """Call callback with every committed State. Returns the cleanup."""
        subscription = self.subscriptions.add(callback, key, on_remove=self._on_unsubscribe)
        _devtools.emit(self.devtools, "on_subscribe", self, subscription.key)
        return subscription.cleanup

    def _on_unsubscribe(self, subscription_key: str) -> None:
        _devtools.emit(self.devtools, "on_unsubscribe", self, subscription_key)

    # --- Lifecycle ---

    def fork(self, config: ForkConfig | Mapping[str, Any] | None = None) -> AsyncState[T]:
        """An independent instance sharing only the producer and config."""
        if not isinstance(config, ForkConfig):
            config = ForkConfig.from_mapping(config)

        key = config.key
        if key is None:
            key = f"{self.key}-fork-{self.fork_count + 1}"

        clone = type(self)(key, self.original_producer, self.config, devtools=self.devtools)
        self.fork_count += 1

        if config.keep_state:
            clone.current_state = self.current_state.copy()
            clone.last_success = self.last_success.copy()
        return clone

    def dispose(self) -> bool:
        """Reset to a fresh initial state. Refused while subscribed."""
        if self.locks > 0:
            return False

        self.abort()
        self._effects.cancel_all()
        self.subscriptions.clear()

        self.set_state(states.initial(self.config.make_initial_value()))
        self.last_success = self.current_state
        _devtools.emit(self.devtools, "on_dispose", self)
        return True

    def __repr__(self) -> str:
        return f"AsyncState({self.key!r}, {self.current_state.status.value})"


def create_source(
    key: str,
    producer: Producer | None = None,
    config: ProducerConfig | Mapping[str, Any] | None = None,
    *,
    devtools: DevtoolsSink | None = None,
) -> Source:
    """Create an instance and hand out only its source handle."""
    return AsyncState(key, producer, config, devtools=devtools).source


def read_source(source: Source) -> AsyncState:
    """Resolve a source handle. Raises IncompatibleSourceError for foreign ones."""
    return resolve(source)

"""Observability sinks: mirror every instance transition somewhere else.

A sink is injected per instance and inherited by its forks. All hooks are
fire-and-forget: a failing hook is logged and the engine carries on
exactly as if no sink were attached.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from async_states.async_state import AsyncState
    from async_states.props import ProducerProps
    from async_states.state import State

logger = logging.getLogger("async_states.devtools")


class DevtoolsSink:
    """Base sink: every hook is a no-op. Owns the unique id counter."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)

    def next_unique_id(self) -> int:
        return next(self._ids)

    def on_create(self, instance: AsyncState) -> None:
        pass

    def on_run_start(self, instance: AsyncState, props: ProducerProps) -> None:
        pass

    def on_state_commit(self, instance: AsyncState, state: State) -> None:
        pass

    def on_subscribe(self, instance: AsyncState, subscription_key: str) -> None:
        pass

    def on_unsubscribe(self, instance: AsyncState, subscription_key: str) -> None:
        pass

    def on_dispose(self, instance: AsyncState) -> None:
        pass


def emit(sink: DevtoolsSink | None, hook: str, instance: AsyncState, *args: Any) -> None:
    """Call sink.<hook>(instance, *args), never letting it fail the engine."""
    if sink is None:
        return
    try:
        getattr(sink, hook)(instance, *args)
    except Exception:
        logger.exception("Devtools hook %s failed for %r", hook, instance.key)


class LoggingSink(DevtoolsSink):
    """Debug-logs every transition."""

    def __init__(self, logger_name: str = "async_states.journal") -> None:
        super().__init__()
        self.logger = logging.getLogger(logger_name)

    def on_create(self, instance):
        self.logger.debug("[%s#%s] created", instance.key, instance.unique_id)

    def on_run_start(self, instance, props):
        self.logger.debug("[%s#%s] run args=%r", instance.key, instance.unique_id, props.args)

    def on_state_commit(self, instance, state):
        self.logger.debug(
            "[%s#%s] %s data=%r", instance.key, instance.unique_id, state.status.value, state.data
        )

    def on_subscribe(self, instance, subscription_key):
        self.logger.debug("[%s#%s] subscribed %s", instance.key, instance.unique_id, subscription_key)

    def on_unsubscribe(self, instance, subscription_key):
        self.logger.debug("[%s#%s] unsubscribed %s", instance.key, instance.unique_id, subscription_key)

    def on_dispose(self, instance):
        self.logger.debug("[%s#%s] disposed", instance.key, instance.unique_id)


class JournalSink(DevtoolsSink):
    """Records (event, key, payload) tuples in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.journal: list[tuple[str, str, Any]] = []

    def on_create(self, instance):
        self.journal.append(("creation", instance.key, instance.current_state))

    def on_run_start(self, instance, props):
        self.journal.append(("run", instance.key, props.args))

    def on_state_commit(self, instance, state):
        self.journal.append(("update", instance.key, state))

    def on_subscribe(self, instance, subscription_key):
        self.journal.append(("subscription", instance.key, subscription_key))

    def on_unsubscribe(self, instance, subscription_key):
        self.journal.append(("unsubscription", instance.key, subscription_key))

    def on_dispose(self, instance):
        self.journal.append(("dispose", instance.key, None))

    def events(self, key: str | None = None) -> list[str]:
        return [event for event, k, _ in self.journal if key is None or k == key]

"""Subscription registry: keyed callbacks notified on every commit.

Each subscription holds a lock on its instance; an instance with live
subscriptions refuses to be disposed.
"""

from __future__ import annotations

from typing import Callable, Iterator

from async_states.state import State

Callback = Callable[[State], None]
Cleanup = Callable[[], None]


class Subscription:
    __slots__ = ("key", "callback", "cleanup")

    def __init__(self, key: str, callback: Callback) -> None:
        self.key = key
        self.callback = callback
        self.cleanup: Cleanup = lambda: None

    def __repr__(self) -> str:
        return f"Subscription({self.key!r})"


class SubscriptionRegistry:
    """Ordered mapping of subscription key -> callback, plus the lock count."""

    def __init__(self, owner_key: str) -> None:
        self._owner_key = owner_key
        self._subscriptions: dict[str, Subscription] = {}
        self._meter = 0
        self.locks = 0

    def add(
        self,
        callback: Callback,
        key: str | None = None,
        on_remove: Callable[[str], None] | None = None,
    ) -> Subscription:
        """Register callback. The returned subscription carries an idempotent cleanup.

        Re-using a live key replaces its callback and keeps the single lock.
        """
        self._meter += 1
        if key is None:
            key = f"{self._owner_key}-sub-{self._meter}"

        subscription = Subscription(key, callback)
        previous = self._subscriptions.get(key)
        if previous is None:
            self.locks += 1
        else:
            previous.cleanup = lambda: None
        self._subscriptions[key] = subscription

        def _cleanup() -> None:
            if self._subscriptions.get(key) is not subscription:
                return  # already removed or replaced
            del self._subscriptions[key]
            self.locks -= 1
            if on_remove is not None:
                on_remove(key)

        subscription.cleanup = _cleanup
        return subscription

    def notify(self, state: State) -> None:
        """Call every subscriber, in registration order."""
        for subscription in list(self._subscriptions.values()):
            subscription.callback(state)

    def clear(self) -> None:
        for subscription in list(self._subscriptions.values()):
            subscription.cleanup()

    def keys(self) -> list[str]:
        return list(self._subscriptions)

    def __contains__(self, key: str) -> bool:
        return key in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __iter__(self) -> Iterator[Subscription]:
        return iter(list(self._subscriptions.values()))

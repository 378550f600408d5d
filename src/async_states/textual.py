"""Textual integration for async_states. Opt-in: requires textual.

Guard + NoMatches + thread-marshal are enforced here, not at callsites.
Textual coupling stays in this module; the engine itself is UI-agnostic.
_paused_apps has a single owner (this module): an app id is present only
while inside its pause() context.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state: keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Hold back committed AsyncState snapshots while widgets are swapped.

    Bridged subscribers skip every state committed inside the block; the
    next commit after it reaches them as usual.
    """
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Can a committed state be forwarded to app's widgets right now?

    False before the app runs, after it exits and inside pause(app).
    """
    return app.is_running and id(app) not in _paused_apps


def subscribe(app, instance, effect_fn, *, key=None, fire_immediately=False):
    """instance.subscribe() that safely bridges committed states to widgets.

    Skips states committed while the app is paused or not running, catches
    NoMatches from widget queries, and marshals calls made off the app's
    thread via call_from_thread. Returns the subscription cleanup.
    """
    _main = threading.get_ident()

    def _guarded(state):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, state)
        else:
            _safe(state)

    def _safe(state):
        try:
            effect_fn(state)
        except NoMatches:
            pass

    cleanup = instance.subscribe(_guarded, key)
    if fire_immediately:
        _guarded(instance.current_state)
    return cleanup

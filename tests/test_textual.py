"""Tests for async_states.textual: Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from async_states import AsyncState
from async_states import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


def _instance():
    return AsyncState("k", lambda props: props.args[0])


class TestSubscribe:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        inst = _instance()
        effects = []
        stx.subscribe(app, inst, lambda s: effects.append(s.data))
        inst.run(None, 2)
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        inst = _instance()
        effects = []
        stx.subscribe(app, inst, lambda s: effects.append(s.data))
        with stx.pause(app):
            inst.run(None, 2)
        assert effects == []

    def test_fires_when_safe(self):
        app = _MockApp()
        inst = _instance()
        effects = []
        stx.subscribe(app, inst, lambda s: effects.append(s.data))
        inst.run(None, 2)
        assert effects == [2]

    def test_fire_immediately(self):
        app = _MockApp()
        inst = AsyncState("k", config={"initial_value": "start"})
        effects = []
        stx.subscribe(app, inst, lambda s: effects.append(s.data), fire_immediately=True)
        assert effects == ["start"]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        inst = _instance()

        def _raise_nomatch(state):
            raise NoMatches("StatusFooter")

        cleanup = stx.subscribe(app, inst, _raise_nomatch)
        inst.run(None, 2)
        cleanup()

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        inst = _instance()

        def _raise_value_error(state):
            raise ValueError("boom")

        stx.subscribe(app, inst, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            inst.run(None, 2)

    def test_cleanup_stops_forwarding(self):
        app = _MockApp()
        inst = _instance()
        effects = []
        cleanup = stx.subscribe(app, inst, lambda s: effects.append(s.data))
        inst.run(None, 2)
        cleanup()
        inst.run(None, 3)
        assert effects == [2]
        assert inst.dispose() is True

    def test_thread_marshal(self):
        """Commits from a background thread use call_from_thread."""
        app = _MockApp()
        inst = _instance()
        effects = []
        stx.subscribe(app, inst, lambda s: effects.append(s.data))

        t = threading.Thread(target=lambda: inst.run(None, 2))
        t.start()
        t.join()

        assert effects == [2]
        assert len(app._call_from_thread_log) == 1


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        assert stx.is_safe(app)

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)

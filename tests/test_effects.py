"""Tests for run effects: delay, debounce and throttle windows."""

import asyncio

import pytest

from async_states import AsyncState, ProducerConfig, RunEffect, Status, effects_supported


def recorder(calls):
    def producer(props):
        calls.append(props.args)
        return props.args[0] if props.args else None

    return producer


def make(calls, effect, duration=0.05):
    return AsyncState(
        "k",
        recorder(calls),
        ProducerConfig(run_effect=effect, run_effect_duration=duration),
    )


class TestSupport:
    def test_no_loop(self):
        assert effects_supported() is False

    @pytest.mark.asyncio
    async def test_with_loop(self):
        assert effects_supported() is True

    def test_bypassed_without_loop(self):
        calls = []
        inst = make(calls, RunEffect.debounce)
        inst.run(None, 1)
        inst.run(None, 2)
        assert calls == [(1,), (2,)]

    @pytest.mark.asyncio
    async def test_bypassed_with_zero_duration(self):
        calls = []
        inst = make(calls, RunEffect.debounce, duration=0)
        inst.run(None, 1)
        assert calls == [(1,)]
        assert inst.pending_timeout is None


class TestDebounce:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("effect", ["debounce", "takeLast", "takeLatest"])
    async def test_last_call_wins(self, effect):
        calls = []
        inst = make(calls, effect)
        inst.run(None, 1)
        inst.run(None, 2)
        assert calls == []
        assert inst.pending_timeout is not None

        await asyncio.sleep(0.1)
        assert calls == [(2,)]
        assert inst.current_state.data == 2
        assert inst.pending_timeout is None

    @pytest.mark.asyncio
    async def test_separate_bursts(self):
        calls = []
        inst = make(calls, RunEffect.debounce, duration=0.03)
        inst.run(None, "a")
        await asyncio.sleep(0.06)
        inst.run(None, "b")
        await asyncio.sleep(0.06)
        assert calls == [("a",), ("b",)]


class TestThrottle:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("effect", ["throttle", "takeFirst", "takeLeading"])
    async def test_first_call_wins(self, effect):
        calls = []
        inst = make(calls, effect)
        inst.run(None, 1)
        dropped = inst.run(None, 2)
        dropped("ignored")

        await asyncio.sleep(0.1)
        assert calls == [(1,)]
        assert inst.current_state.data == 1

    @pytest.mark.asyncio
    async def test_new_window_after_dispatch(self):
        calls = []
        inst = make(calls, RunEffect.throttle, duration=0.03)
        inst.run(None, 1)
        await asyncio.sleep(0.06)
        inst.run(None, 2)
        await asyncio.sleep(0.06)
        assert calls == [(1,), (2,)]


class TestDelay:
    @pytest.mark.asyncio
    async def test_every_run_deferred(self):
        calls = []
        inst = make(calls, RunEffect.delay)
        inst.run(None, 1)
        inst.run(None, 2)
        assert calls == []
        await asyncio.sleep(0.1)
        assert calls == [(1,), (2,)]
        assert inst.current_state.data == 2


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_before_dispatch(self):
        calls = []
        inst = make(calls, RunEffect.debounce)
        cancel = inst.run(None, 1)
        cancel()
        assert inst.pending_timeout is None
        await asyncio.sleep(0.1)
        assert calls == []
        assert inst.current_state.status is Status.initial

    @pytest.mark.asyncio
    async def test_cancel_after_dispatch_aborts_run(self):
        async def slow(props):
            await asyncio.sleep(0.1)
            return "done"

        inst = AsyncState(
            "k", slow, ProducerConfig(run_effect="delay", run_effect_duration=0.02)
        )
        cancel = inst.run(None)
        await asyncio.sleep(0.05)
        assert inst.current_state.status is Status.pending

        cancel("stop")
        assert inst.current_state.status is Status.aborted
        assert inst.current_state.data == "stop"

    @pytest.mark.asyncio
    async def test_dispose_clears_timers(self):
        calls = []
        inst = make(calls, RunEffect.delay)
        inst.run(None, 1)
        inst.run(None, 2)
        assert inst.dispose() is True
        await asyncio.sleep(0.1)
        assert calls == []

    @pytest.mark.asyncio
    async def test_replay_goes_through_effect(self):
        calls = []
        inst = make(calls, RunEffect.debounce)
        inst.run(None, 1)
        await asyncio.sleep(0.1)
        inst.replay()
        assert calls == [(1,)]
        await asyncio.sleep(0.1)
        assert calls == [(1,), (1,)]


class TestFailures:
    @pytest.mark.asyncio
    async def test_extra_props_failure_becomes_error(self):
        calls = []
        inst = make(calls, RunEffect.debounce)

        def boom(props):
            raise ValueError("boom")

        inst.run(boom, 1)
        await asyncio.sleep(0.1)
        assert calls == []
        assert inst.current_state.status is Status.error
        assert isinstance(inst.current_state.data, ValueError)

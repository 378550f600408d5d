"""Tests for ProducerConfig, ForkConfig and RunEffect parsing."""

import pytest

from async_states import ForkConfig, ProducerConfig, RunEffect


class TestRunEffect:
    def test_parse_by_value_and_name(self):
        assert RunEffect.parse("takeLast") is RunEffect.take_last
        assert RunEffect.parse("take_last") is RunEffect.take_last
        assert RunEffect.parse(RunEffect.throttle) is RunEffect.throttle

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown run effect"):
            RunEffect.parse("sometimes")


class TestProducerConfig:
    def test_defaults(self):
        c = ProducerConfig()
        assert c.initial_value is None
        assert c.run_effect is None
        assert c.run_effect_duration == 0.0

    def test_string_effect_coerced(self):
        c = ProducerConfig(run_effect="debounce", run_effect_duration=0.2)
        assert c.run_effect is RunEffect.debounce

    def test_negative_duration_is_zero(self):
        assert ProducerConfig(run_effect_duration=-3).run_effect_duration == 0.0

    def test_initial_value_factory(self):
        calls = []

        def factory():
            calls.append(1)
            return []

        c = ProducerConfig(initial_value=factory)
        assert c.make_initial_value() == []
        assert c.make_initial_value() == []
        assert len(calls) == 2

    def test_from_mapping_camel_case(self):
        c = ProducerConfig.from_mapping(
            {"initialValue": 0, "runEffect": "throttle", "runEffectDurationMs": 250}
        )
        assert c.initial_value == 0
        assert c.run_effect is RunEffect.throttle
        assert c.run_effect_duration == 0.25

    def test_from_mapping_snake_case(self):
        c = ProducerConfig.from_mapping({"initial_value": 1, "run_effect_duration": 1.5})
        assert c.initial_value == 1
        assert c.run_effect_duration == 1.5

    def test_from_mapping_unknown_option(self):
        with pytest.raises(TypeError, match="cacheConfig"):
            ProducerConfig.from_mapping({"cacheConfig": {}})

    def test_from_mapping_empty(self):
        assert ProducerConfig.from_mapping(None) == ProducerConfig()


class TestForkConfig:
    def test_from_mapping(self):
        c = ForkConfig.from_mapping({"keepState": True, "key": "copy"})
        assert c == ForkConfig(keep_state=True, key="copy")

    def test_default(self):
        assert ForkConfig.from_mapping(None) == ForkConfig()

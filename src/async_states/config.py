"""Instance and fork configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from async_states.effects import RunEffect

# camelCase names accepted by from_mapping(), for configs shared with JS clients.
_ALIASES = {
    "initialValue": "initial_value",
    "runEffect": "run_effect",
    "runEffectDuration": "run_effect_duration",
    "keepState": "keep_state",
}


@dataclass(frozen=True)
class ProducerConfig:
    """How an instance starts and how repeated runs are rate-limited.

    initial_value may be a zero-argument factory, called on creation and on
    every dispose.
    """

    initial_value: Any = None
    run_effect: RunEffect | None = None
    run_effect_duration: float = 0.0

    def __post_init__(self) -> None:
        if self.run_effect is not None and not isinstance(self.run_effect, RunEffect):
            object.__setattr__(self, "run_effect", RunEffect.parse(self.run_effect))
        duration = self.run_effect_duration or 0.0
        object.__setattr__(self, "run_effect_duration", max(float(duration), 0.0))

    def make_initial_value(self) -> Any:
        if callable(self.initial_value):
            return self.initial_value()
        return self.initial_value

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ProducerConfig:
        """Build a config from a dict. runEffectDurationMs is in milliseconds."""
        if not data:
            return cls()
        kwargs = {}
        for name, value in data.items():
            if name == "runEffectDurationMs":
                kwargs["run_effect_duration"] = (value or 0) / 1000
                continue
            name = _ALIASES.get(name, name)
            if name not in ("initial_value", "run_effect", "run_effect_duration"):
                raise TypeError(f"Unknown producer config option {name!r}")
            kwargs[name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class ForkConfig:
    keep_state: bool = False
    key: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ForkConfig:
        if not data:
            return cls()
        return cls(**{_ALIASES.get(name, name): value for name, value in data.items()})

"""Source handles: frozen references to instances for external registries.

A Source exposes only the key and the debug id. The instance travels as a
plain attribute set when the handle is issued, outside the dataclass
fields, and is held strongly: a handle from create_source() is often the
only reference its caller keeps. Resolving a handle succeeds only when the
attached AsyncState issued that exact handle; anything else raises
IncompatibleSourceError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from async_states.errors import IncompatibleSourceError

if TYPE_CHECKING:
    from async_states.async_state import AsyncState


@dataclass(frozen=True, eq=False)
class Source:
    """Opaque, immutable reference to an instance."""

    key: str
    unique_id: int | None = None


def issue(instance: AsyncState) -> Source:
    """Create the handle for instance."""
    handle = Source(instance.key, instance.unique_id)
    object.__setattr__(handle, "_instance", instance)
    return handle


def resolve(source: Any) -> AsyncState:
    """Return the instance behind source, or raise IncompatibleSourceError."""
    from async_states.async_state import AsyncState

    instance = getattr(source, "_instance", None) if isinstance(source, Source) else None
    # The instance must have issued this exact handle.
    if not isinstance(instance, AsyncState) or instance.source is not source:
        raise IncompatibleSourceError(source)
    return instance


def is_source(candidate: Any) -> bool:
    try:
        resolve(candidate)
    except IncompatibleSourceError:
        return False
    return True

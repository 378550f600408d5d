"""async_states: lifecycle engine for keyed asynchronous producers."""

from importlib.metadata import version as _version

__version__ = _version("async-states")

from async_states.errors import AsyncStatesError, IncompatibleSourceError, UnknownStatusError
from async_states.state import State, SavedProps, Status
from async_states.config import ProducerConfig, ForkConfig
from async_states.effects import RunEffect, effects_supported
from async_states.props import ProducerProps
from async_states.producer import ProducerType
from async_states.source import Source, is_source
from async_states.async_state import AsyncState, create_source, read_source
from async_states.devtools import DevtoolsSink, LoggingSink, JournalSink
# textual NOT auto-imported: opt-in only

__all__ = [
    "AsyncState",
    "create_source",
    "read_source",
    "is_source",
    "Source",
    "State",
    "SavedProps",
    "Status",
    "ProducerConfig",
    "ForkConfig",
    "RunEffect",
    "effects_supported",
    "ProducerProps",
    "ProducerType",
    "DevtoolsSink",
    "LoggingSink",
    "JournalSink",
    "AsyncStatesError",
    "IncompatibleSourceError",
    "UnknownStatusError",
]

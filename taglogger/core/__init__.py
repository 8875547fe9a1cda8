# taglogger/core/__init__.py
"""Core infrastructure components for the tag logger."""

# Import order: most fundamental to most specific

from .exceptions import (
    TagLoggerError,
    ConfigurationError,
    ProtocolError,
    LoginError,
    InvalidTransitionError,
)

from .patterns.state_machine import DeviceStateMachine, DeviceState, Effect, Step
from .patterns.observer import ValueObserver, notify_safely


__all__ = [
    "DeviceStateMachine",
    "DeviceState",
    "Effect",
    "Step",
    "ValueObserver",
    "notify_safely",
    "TagLoggerError",
    "ConfigurationError",
    "ProtocolError",
    "LoginError",
    "InvalidTransitionError",
]

"""cmdsession, a line-oriented command session around a native engine."""

from .__about__ import (
    __author__,
    __copyright__,
    __description__,
    __email__,
    __license__,
    __package_name__,
    __title__,
    __version__,
)
from .engines.base import INVALID_TOKEN, CommandResult, Engine
from .handle import EngineHandle, HandleState
from .session import ExitReason, Session, SessionState

__all__ = (
    "INVALID_TOKEN",
    "CommandResult",
    "Engine",
    "EngineHandle",
    "ExitReason",
    "HandleState",
    "Session",
    "SessionState",
    "__author__",
    "__copyright__",
    "__description__",
    "__email__",
    "__license__",
    "__package_name__",
    "__title__",
    "__version__",
)

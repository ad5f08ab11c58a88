"""Engine boundary for cmdsession."""

from __future__ import annotations

from .base import INVALID_TOKEN, CommandResult, Engine, Token
from .native import NativeEngine, load_engine

__all__ = [
    "INVALID_TOKEN",
    "CommandResult",
    "Engine",
    "NativeEngine",
    "Token",
    "load_engine",
]

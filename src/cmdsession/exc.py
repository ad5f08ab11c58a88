"""Provide exceptions used by cmdsession.

cmdsession.exc
~~~~~~~~~~~~~~

Session-level failures. Command-level failures are not exceptions: the
engine reports those through :attr:`CommandResult.is_error`.

Notes
-----
Exceptions in this module inherit from :exc:`CmdSessionException`.
"""

from __future__ import annotations

import typing as t


class CmdSessionException(Exception):
    """Base exception for all cmdsession errors."""


class AlreadyClosed(CmdSessionException):
    """Raised when an engine handle is used after it was released."""

    def __init__(self, *args: object) -> None:
        super().__init__("This handler was already closed")


class EngineUnavailable(CmdSessionException):
    """Raised if the engine could not be initialized."""

    def __init__(self, reason: str | None = None, *args: object) -> None:
        msg = "Engine unavailable"
        if reason is not None:
            msg += f": {reason}"
        super().__init__(msg)


class EngineNotFound(EngineUnavailable):
    """Raised if an engine spec cannot be resolved to an importable engine."""

    def __init__(self, spec: str, *args: object) -> None:
        self.spec = spec
        super().__init__(f"could not load engine {spec!r}")


class EngineFault(CmdSessionException):
    """Raised when a call across the engine boundary fails unexpectedly.

    The engine's state after a fault is unknown, so the call is never retried.
    """

    def __init__(
        self,
        operation: str,
        detail: t.Any | None = None,
        *args: object,
    ) -> None:
        self.operation = operation
        msg = f"Engine fault during {operation}"
        if detail is not None:
            msg += f": {detail!s}"
        super().__init__(msg)


class InvalidCommandResult(EngineFault):
    """Raised if the engine returns something that is not a command result."""

    def __init__(self, value: t.Any, *args: object) -> None:
        super().__init__(
            "execute",
            f"unexpected result type {type(value).__name__}",
        )

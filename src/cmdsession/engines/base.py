"""Core abstractions for the command engine boundary."""

from __future__ import annotations

import dataclasses
import typing as t
from typing import Protocol

#: Opaque capability returned by :meth:`Engine.initialize`. Never inspected,
#: only passed back to the engine verbatim.
Token = int

#: Sentinel returned by :meth:`Engine.initialize` on failure; mirrors a null
#: native pointer.
INVALID_TOKEN: Token = 0


@dataclasses.dataclass(frozen=True)
class CommandResult:
    """Result of one command handled by the engine.

    Attributes
    ----------
    output : str
        Text to show the operator, possibly empty
    is_error : bool
        Whether the command failed; routes ``output`` to standard error
    is_quitting : bool
        Whether the session must stop after this command

    Examples
    --------
    >>> result = CommandResult("usage: ...")
    >>> result.output
    'usage: ...'
    >>> result.is_error, result.is_quitting
    (False, False)
    >>> CommandResult("", is_quitting=True).is_quitting
    True
    """

    output: str = ""
    is_error: bool = False
    is_quitting: bool = False


class Engine(Protocol):
    """Protocol for stateful command engines.

    Implementations may rely on structural typing rather than inheritance.
    None of these methods is assumed to be safe for concurrent use;
    :class:`~cmdsession.handle.EngineHandle` serializes every call.
    """

    def initialize(self) -> Token:  # pragma: no cover
        """Allocate engine state and return its token, or :data:`INVALID_TOKEN`."""
        ...

    def execute(self, token: Token, command: str) -> CommandResult:  # pragma: no cover
        """Handle ``command`` against the state behind ``token``."""
        ...

    def cleanup(self, token: Token) -> None:  # pragma: no cover
        """Free the state behind ``token``. Called at most once per token."""
        ...


def is_valid_token(token: t.Any) -> bool:
    """Return True if ``token`` refers to live engine state.

    >>> is_valid_token(INVALID_TOKEN)
    False
    >>> is_valid_token(140234)
    True
    >>> is_valid_token(None)
    False
    """
    return token is not None and token != INVALID_TOKEN

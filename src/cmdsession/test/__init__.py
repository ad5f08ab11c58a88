"""Helpers for testing cmdsession and code built on it."""

from __future__ import annotations

import itertools
import threading
import typing as t

from cmdsession.engines.base import INVALID_TOKEN, CommandResult, Engine
from cmdsession.test.constants import (
    SCRIPTED_ENGINE_FIRST_TOKEN,
    UNKNOWN_COMMAND_OUTPUT,
)

if t.TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from cmdsession.engines.base import Token


#: Result factory used for commands missing from the script
Fallback = t.Callable[[str], CommandResult]


def unknown_command(command: str) -> CommandResult:
    """Report ``command`` as an engine-level error.

    >>> unknown_command("bogus")
    CommandResult(output='unknown command', is_error=True, is_quitting=False)
    """
    return CommandResult(UNKNOWN_COMMAND_OUTPUT, is_error=True)


class ScriptedEngine(Engine):
    """In-memory engine answering from a fixed script, recording every call.

    Parameters
    ----------
    script : Mapping[str, CommandResult], optional
        Result per exact command line
    fallback : callable, optional
        Builds the result for commands missing from ``script``.
        Defaults to :func:`unknown_command`.
    fail_initialize : bool
        Return :data:`~cmdsession.engines.base.INVALID_TOKEN` from
        :meth:`initialize`
    faults : Mapping[str, BaseException], optional
        Exceptions to raise from an operation, keyed by ``"initialize"``,
        ``"cleanup"`` or a command line
    on_execute : callable, optional
        Called with each command line before it is answered

    Examples
    --------
    >>> engine = ScriptedEngine({"help": CommandResult("usage: ...")})
    >>> token = engine.initialize()
    >>> engine.execute(token, "help").output
    'usage: ...'
    >>> engine.execute(token, "bogus").is_error
    True
    >>> engine.cleanup(token)
    >>> engine.commands, engine.cleanup_calls
    (['help', 'bogus'], 1)
    """

    def __init__(
        self,
        script: Mapping[str, CommandResult] | None = None,
        *,
        fallback: Fallback | None = None,
        fail_initialize: bool = False,
        faults: Mapping[str, BaseException] | None = None,
        on_execute: Callable[[str], None] | None = None,
    ) -> None:
        self.script = dict(script or {})
        self.fallback = fallback or unknown_command
        self.fail_initialize = fail_initialize
        self.faults = dict(faults or {})
        self.on_execute = on_execute

        self.commands: list[str] = []
        self.initialize_calls = 0
        self.cleaned_tokens: list[Token] = []
        self.live_tokens: set[Token] = set()
        self._tokens = itertools.count(SCRIPTED_ENGINE_FIRST_TOKEN)
        self._active = 0
        self.max_concurrency = 0
        self._stats_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(commands={len(self.script)})"

    @property
    def cleanup_calls(self) -> int:
        """Number of times :meth:`cleanup` was called."""
        return len(self.cleaned_tokens)

    def _maybe_fault(self, key: str) -> None:
        fault = self.faults.get(key)
        if fault is not None:
            raise fault

    def initialize(self) -> Token:
        """Hand out a fresh token, or the invalid sentinel."""
        self.initialize_calls += 1
        self._maybe_fault("initialize")
        if self.fail_initialize:
            return INVALID_TOKEN
        token = next(self._tokens)
        self.live_tokens.add(token)
        return token

    def execute(self, token: Token, command: str) -> CommandResult:
        """Answer ``command`` from the script."""
        if token not in self.live_tokens:
            msg = f"execute with dead token {token!r}"
            raise AssertionError(msg)

        with self._stats_lock:
            self._active += 1
            self.max_concurrency = max(self.max_concurrency, self._active)
        try:
            self.commands.append(command)
            if self.on_execute is not None:
                self.on_execute(command)
            self._maybe_fault(command)
            if command in self.script:
                return self.script[command]
            return self.fallback(command)
        finally:
            with self._stats_lock:
                self._active -= 1

    def cleanup(self, token: Token) -> None:
        """Forget ``token``."""
        self.cleaned_tokens.append(token)
        if token not in self.live_tokens:
            msg = f"cleanup with dead token {token!r}"
            raise AssertionError(msg)
        self.live_tokens.discard(token)
        self._maybe_fault("cleanup")


__all__ = ["ScriptedEngine", "unknown_command"]

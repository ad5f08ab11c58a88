"""Guarded ownership of a single engine capability.

cmdsession.handle
~~~~~~~~~~~~~~~~~

:class:`EngineHandle` owns the token returned by :meth:`Engine.initialize`.
The token and the lifecycle flag are only touched while holding the handle's
lock, so ``submit`` and ``release`` never run concurrently against the same
engine state.
"""

from __future__ import annotations

import enum
import logging
import threading
import typing as t

from cmdsession import exc
from cmdsession.engines.base import INVALID_TOKEN, is_valid_token
from cmdsession.engines.native import coerce_result
from cmdsession.otel import start_span

if t.TYPE_CHECKING:
    import sys
    import types

    from cmdsession.engines.base import CommandResult, Engine, Token

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self


logger = logging.getLogger(__name__)


class HandleState(enum.Enum):
    """Lifecycle of an :class:`EngineHandle`."""

    OPEN = enum.auto()
    #: Initialization failed; nothing to clean up.
    UNAVAILABLE = enum.auto()
    #: Released. Terminal.
    CLOSED = enum.auto()


class EngineHandle:
    """Exclusive, lock-guarded owner of one engine token.

    Constructing a handle calls :meth:`Engine.initialize` exactly once. Use
    :meth:`open` to get a handle that is known to be usable.

    Parameters
    ----------
    engine : :class:`~cmdsession.engines.base.Engine`
        Engine to allocate state in

    Examples
    --------
    >>> from cmdsession.engines.base import CommandResult
    >>> from cmdsession.test import ScriptedEngine
    >>> engine = ScriptedEngine({"help": CommandResult("usage: ...")})
    >>> with EngineHandle.open(engine) as handle:
    ...     handle.submit("help")
    CommandResult(output='usage: ...', is_error=False, is_quitting=False)

    >>> handle.state
    <HandleState.CLOSED: 3>
    >>> engine.cleanup_calls
    1

    >>> handle.submit("help")
    Traceback (most recent call last):
    ...
    cmdsession.exc.AlreadyClosed: This handler was already closed
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._lock = threading.Lock()
        self._token: Token = INVALID_TOKEN
        self._state = HandleState.UNAVAILABLE
        self._quitting = False
        self._init_error: BaseException | None = None

        with self._lock, start_span("cmdsession.open"):
            try:
                token = engine.initialize()
            except Exception as e:
                logger.exception("Engine initialization raised")
                self._init_error = e
                return

            if is_valid_token(token):
                self._token = token
                self._state = HandleState.OPEN
                logger.debug("Engine handle opened for %r", engine)
            else:
                logger.warning("Engine initialization returned an invalid token")

    @classmethod
    def open(cls, engine: Engine) -> EngineHandle:
        """Initialize ``engine`` and return an open handle.

        Raises
        ------
        :exc:`cmdsession.exc.EngineUnavailable`
            If initialization raised or returned the invalid token.
        """
        handle = cls(engine)
        if handle.state is HandleState.UNAVAILABLE:
            if handle._init_error is not None:
                raise exc.EngineUnavailable(
                    str(handle._init_error),
                ) from handle._init_error
            raise exc.EngineUnavailable("initialization returned an invalid token")
        return handle

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.engine!r}, state={self._state.name})"

    def __enter__(self) -> Self:
        """Enter the context, returning self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Exit the context, releasing the engine state."""
        self.release()

    @property
    def state(self) -> HandleState:
        """Current lifecycle state."""
        with self._lock:
            return self._state

    @property
    def closed(self) -> bool:
        """Whether :meth:`release` has taken effect."""
        return self.state is HandleState.CLOSED

    def _check_usable(self) -> None:
        if self._state is HandleState.UNAVAILABLE:
            raise exc.EngineUnavailable("initialization failed")
        if self._state is HandleState.CLOSED or self._quitting:
            raise exc.AlreadyClosed

    def submit(self, command: str) -> CommandResult:
        """Hand ``command`` to the engine and return its result.

        A :class:`~cmdsession.engines.base.CommandResult` comes back as the
        same object; 3-tuples and result-like objects are repacked by
        :func:`~cmdsession.engines.native.coerce_result`.

        Parameters
        ----------
        command : str
            Command line, passed through verbatim

        Returns
        -------
        :class:`~cmdsession.engines.base.CommandResult`

        Raises
        ------
        :exc:`cmdsession.exc.AlreadyClosed`
            If the handle was released, or the engine already asked to quit.
        :exc:`cmdsession.exc.EngineUnavailable`
            If the engine never initialized.
        :exc:`cmdsession.exc.EngineFault`
            If the engine call itself failed or returned something that
            is not a command result.
        """
        with self._lock:
            self._check_usable()
            logger.debug("Submitting command %r", command)
            with start_span("cmdsession.submit", command_length=len(command)):
                try:
                    result = coerce_result(self.engine.execute(self._token, command))
                except exc.CmdSessionException:
                    raise
                except Exception as e:
                    logger.exception("Engine fault while executing %r", command)
                    raise exc.EngineFault("execute", e) from e

            if result.is_quitting:
                logger.debug("Engine requested quit")
                self._quitting = True
        return result

    def release(self) -> None:
        """Free the engine state.

        Only the first call on an open handle reaches
        :meth:`Engine.cleanup`; every later call is a no-op. The token is
        invalidated before cleanup runs, so a failing cleanup is never
        repeated.

        Raises
        ------
        :exc:`cmdsession.exc.EngineFault`
            If the engine's cleanup call failed.
        """
        with self._lock:
            if self._state is not HandleState.OPEN:
                logger.debug("Release on %s handle ignored", self._state.name)
                return

            token = self._token
            self._token = INVALID_TOKEN
            self._state = HandleState.CLOSED

            with start_span("cmdsession.release"):
                try:
                    self.engine.cleanup(token)
                except Exception as e:
                    logger.exception("Engine fault during cleanup")
                    raise exc.EngineFault("cleanup", e) from e
            logger.debug("Engine handle released")


__all__ = ["EngineHandle", "HandleState"]

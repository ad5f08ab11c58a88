"""Read-submit-emit loop around one engine handle.

cmdsession.session
~~~~~~~~~~~~~~~~~~

A :class:`Session` ties one :class:`~cmdsession.handle.EngineHandle` to one
input stream and two output streams for its whole lifetime, and releases the
handle on every way out of :meth:`Session.run`.
"""

from __future__ import annotations

import enum
import logging
import sys
import typing as t

from cmdsession import exc
from cmdsession.handle import EngineHandle

if t.TYPE_CHECKING:
    import types

    from cmdsession.engines.base import CommandResult, Engine

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self


logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    """Session lifecycle: ``STARTING -> OPEN -> CLOSING -> CLOSED``."""

    STARTING = enum.auto()
    OPEN = enum.auto()
    CLOSING = enum.auto()
    CLOSED = enum.auto()


class ExitReason(enum.Enum):
    """Why :meth:`Session.run` returned normally."""

    END_OF_INPUT = enum.auto()
    QUIT = enum.auto()


def _strip_line_terminator(line: str) -> str:
    """Drop one trailing line terminator, nothing else.

    >>> _strip_line_terminator("help\\n")
    'help'
    >>> _strip_line_terminator("  add 1 2 \\r\\n")
    '  add 1 2 '
    >>> _strip_line_terminator("\\n")
    ''
    >>> _strip_line_terminator("last")
    'last'
    """
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


class Session:
    """Line-oriented command session.

    The engine is initialized in the constructor, so a session that exists
    always owns an open handle until it is closed.

    Parameters
    ----------
    engine : :class:`~cmdsession.engines.base.Engine`
        Engine that handles every command line
    stdin : TextIO, optional
        Command source. Defaults to :data:`sys.stdin`.
    stdout : TextIO, optional
        Destination for successful output. Defaults to :data:`sys.stdout`.
    stderr : TextIO, optional
        Destination for error output. Defaults to :data:`sys.stderr`.

    Raises
    ------
    :exc:`cmdsession.exc.EngineUnavailable`
        If the engine could not be initialized. No command is read.

    Examples
    --------
    >>> import io
    >>> from cmdsession.engines.base import CommandResult
    >>> from cmdsession.test import ScriptedEngine
    >>> engine = ScriptedEngine(
    ...     {
    ...         "help": CommandResult("usage: ..."),
    ...         "quit": CommandResult("", is_quitting=True),
    ...     }
    ... )
    >>> out = io.StringIO()
    >>> session = Session(engine, stdin=io.StringIO("help\\nquit\\nhelp\\n"), stdout=out)
    >>> session.run()
    <ExitReason.QUIT: 2>
    >>> out.getvalue()
    'usage: ...\\n'
    >>> engine.commands
    ['help', 'quit']
    >>> session.state
    <SessionState.CLOSED: 4>
    """

    def __init__(
        self,
        engine: Engine,
        stdin: t.TextIO | None = None,
        stdout: t.TextIO | None = None,
        stderr: t.TextIO | None = None,
    ) -> None:
        self.state = SessionState.STARTING
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.commands_submitted = 0

        try:
            self.handle = EngineHandle.open(engine)
        except exc.EngineUnavailable:
            self.state = SessionState.CLOSED
            raise
        self.state = SessionState.OPEN

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(state={self.state.name})"

    def __enter__(self) -> Self:
        """Enter the context, returning self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Exit the context, closing the session."""
        self.close()

    def read_line(self) -> str | None:
        """Return the next command line, or ``None`` at end of input."""
        line = self.stdin.readline()
        if line == "":
            return None
        return _strip_line_terminator(line)

    def emit(self, result: CommandResult) -> None:
        """Write ``result.output`` as one line to the stream it belongs on.

        Empty output writes nothing at all.
        """
        if not result.output:
            return
        stream = self.stderr if result.is_error else self.stdout
        stream.write(result.output + "\n")
        stream.flush()

    def run(self) -> ExitReason:
        """Process commands until end of input or until the engine quits.

        The handle is released exactly once on every exit path. Session
        errors propagate after that release.

        Returns
        -------
        :class:`ExitReason`

        Raises
        ------
        :exc:`cmdsession.exc.AlreadyClosed`
            If the session was already closed.
        :exc:`cmdsession.exc.EngineFault`
            If an engine call failed.
        """
        if self.state is not SessionState.OPEN:
            raise exc.AlreadyClosed

        try:
            reason = self._loop()
        except BaseException:
            self._close_after_error()
            raise

        self.close()
        return reason

    def _loop(self) -> ExitReason:
        while True:
            line = self.read_line()
            if line is None:
                logger.debug("End of input after %d commands", self.commands_submitted)
                return ExitReason.END_OF_INPUT

            result = self.handle.submit(line)
            self.commands_submitted += 1
            self.emit(result)

            if result.is_quitting:
                logger.debug("Quit after %d commands", self.commands_submitted)
                return ExitReason.QUIT

    def _close_after_error(self) -> None:
        try:
            self.close()
        except exc.CmdSessionException:
            # The error that ended the loop is the one reported.
            logger.exception("Release after a failed session also failed")

    def close(self) -> None:
        """Release the engine handle. Safe to call more than once."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSING
        try:
            self.handle.release()
        finally:
            self.state = SessionState.CLOSED
            logger.debug("Session closed")


__all__ = ["ExitReason", "Session", "SessionState"]

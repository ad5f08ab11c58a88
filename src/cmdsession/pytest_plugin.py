"""cmdsession pytest plugin."""

from __future__ import annotations

import io
import logging
import typing as t

import pytest

from cmdsession.engines.base import CommandResult
from cmdsession.session import Session
from cmdsession.test import ScriptedEngine

if t.TYPE_CHECKING:
    from cmdsession.engines.base import Engine

logger = logging.getLogger(__name__)


class SessionIO(t.NamedTuple):
    """A session together with its in-memory streams."""

    session: Session
    stdout: io.StringIO
    stderr: io.StringIO


@pytest.fixture
def scripted_engine() -> ScriptedEngine:
    """Return a :class:`~cmdsession.test.ScriptedEngine` with ``help``/``quit``.

    >>> from cmdsession.test import ScriptedEngine
    >>> def test_engine(scripted_engine: ScriptedEngine) -> None:
    ...     assert scripted_engine.script["quit"].is_quitting
    """
    return ScriptedEngine(
        {
            "help": CommandResult("usage: ..."),
            "quit": CommandResult("", is_quitting=True),
        },
    )


@pytest.fixture
def session_factory(
    request: pytest.FixtureRequest,
) -> t.Callable[..., SessionIO]:
    """Return a factory building sessions over in-memory streams.

    Sessions still open at teardown are closed.

    >>> def test_session(session_factory, scripted_engine) -> None:
    ...     session, stdout, _ = session_factory(scripted_engine, ["help"])
    ...     session.run()
    ...     assert stdout.getvalue() == "usage: ...\\n"
    """
    created: list[Session] = []

    def factory(
        engine: Engine,
        lines: t.Iterable[str] = (),
        stdin: t.TextIO | None = None,
    ) -> SessionIO:
        if stdin is None:
            stdin = io.StringIO("".join(f"{line}\n" for line in lines))
        stdout, stderr = io.StringIO(), io.StringIO()
        session = Session(engine, stdin=stdin, stdout=stdout, stderr=stderr)
        created.append(session)
        return SessionIO(session, stdout, stderr)

    def fin() -> None:
        for session in created:
            logger.debug("Closing %r", session)
            session.close()

    request.addfinalizer(fin)

    return factory

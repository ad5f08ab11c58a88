"""Command-line interface for cmdsession."""

from __future__ import annotations

import argparse
import io
import logging
import os
import sys
import typing as t

from cmdsession import exc
from cmdsession.__about__ import __version__
from cmdsession.engines.native import load_engine
from cmdsession.session import Session

logger = logging.getLogger(__name__)

PROG = "cmdsession"

#: Exit status after a session-level error
EXIT_ERROR = 1
#: Exit status after Ctrl-C
EXIT_INTERRUPTED = 130

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def create_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Feed standard input, line by line, to a command engine.",
    )
    parser.add_argument(
        "--engine",
        default=os.getenv("CMDSESSION_ENGINE"),
        help=(
            "engine to load: 'package.module' for a native extension or "
            "'package.module:factory' (default: $CMDSESSION_ENGINE)"
        ),
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("CMDSESSION_LOG_LEVEL", "WARNING").upper(),
        type=str.upper,
        choices=LOG_LEVELS,
        help="log level for diagnostics on stderr (default: $CMDSESSION_LOG_LEVEL)",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _utf8_stdin() -> t.TextIO:
    buffer = getattr(sys.stdin, "buffer", None)
    if buffer is None:
        return sys.stdin
    return io.TextIOWrapper(buffer, encoding="utf-8", errors="backslashreplace")


def main(
    argv: list[str] | None = None,
    stdin: t.TextIO | None = None,
    stdout: t.TextIO | None = None,
    stderr: t.TextIO | None = None,
) -> int:
    """Run a session until the input ends or the engine quits.

    Parameters
    ----------
    argv : list[str] | None
        CLI arguments (excluding the program name).
    stdin, stdout, stderr : TextIO, optional
        Streams to use instead of the process's own.

    Returns
    -------
    int
        Exit status code.

    Examples
    --------
    >>> import io
    >>> from cmdsession.cli import main
    >>> err = io.StringIO()
    >>> main(["--engine", "no_such_engine_module"], stdin=io.StringIO(), stderr=err)
    1
    >>> err.getvalue()
    "cmdsession: error: Engine unavailable: could not load engine 'no_such_engine_module'\\n"
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level, logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.engine:
        parser.error("no engine given; pass --engine or set CMDSESSION_ENGINE")

    stderr = stderr if stderr is not None else sys.stderr

    try:
        engine = load_engine(args.engine)
        session = Session(
            engine,
            stdin=stdin if stdin is not None else _utf8_stdin(),
            stdout=stdout,
            stderr=stderr,
        )
        reason = session.run()
    except exc.CmdSessionException as e:
        logger.debug("Session ended with an error", exc_info=True)
        stderr.write(f"{PROG}: error: {e}\n")
        stderr.flush()
        return EXIT_ERROR
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    logger.debug("Session finished: %s", reason.name)
    return 0

"""Native extension backed command engine.

This module is intentionally thin: it imports a compiled extension module and
forwards the three boundary calls to it. Building or locating the extension
is left to the packaging of the engine itself.
"""

from __future__ import annotations

import importlib
import logging
import typing as t

from cmdsession import exc
from cmdsession.engines.base import CommandResult, Engine, Token

if t.TYPE_CHECKING:
    import types

logger = logging.getLogger(__name__)

#: Functions a native engine module must export.
NATIVE_EXPORTS = ("engine_initialize", "engine_execute", "engine_cleanup")


def _import(module_name: str) -> types.ModuleType:
    try:
        return importlib.import_module(module_name)
    except Exception as e:  # import path is env-dependent
        logger.debug("Failed to import engine module %r", module_name, exc_info=True)
        raise exc.EngineNotFound(module_name) from e


def coerce_result(value: t.Any) -> CommandResult:
    """Convert a native return value into a :class:`CommandResult`.

    Values are taken as-is; only the container changes. ``output`` must be
    a :class:`str`.

    Examples
    --------
    >>> coerce_result(("done", False, True))
    CommandResult(output='done', is_error=False, is_quitting=True)

    >>> import types
    >>> native = types.SimpleNamespace(
    ...     command_output="Error: Please enter a command",
    ...     is_error=True,
    ...     is_quitting=False,
    ... )
    >>> coerce_result(native).is_error
    True
    """
    if isinstance(value, CommandResult):
        if not isinstance(value.output, str):
            raise exc.InvalidCommandResult(value.output)
        return value
    if isinstance(value, tuple) and len(value) == 3:
        output, is_error, is_quitting = value
        if not isinstance(output, str):
            raise exc.InvalidCommandResult(output)
        return CommandResult(output, bool(is_error), bool(is_quitting))

    output = getattr(value, "output", None)
    if output is None:
        output = getattr(value, "command_output", None)
    if output is None or not hasattr(value, "is_error"):
        raise exc.InvalidCommandResult(value)
    if not isinstance(output, str):
        raise exc.InvalidCommandResult(output)
    return CommandResult(
        output=output,
        is_error=bool(value.is_error),
        is_quitting=bool(getattr(value, "is_quitting", False)),
    )


class NativeEngine(Engine):
    """Engine that forwards calls to a compiled extension module.

    Parameters
    ----------
    module_name : str
        Importable name of the extension, e.g. ``"hotel_engine._native"``

    Examples
    --------
    >>> engine = NativeEngine("no_such_engine_module")
    >>> engine.module_name
    'no_such_engine_module'
    >>> engine.load()
    Traceback (most recent call last):
    ...
    cmdsession.exc.EngineNotFound: Engine unavailable: could not load engine 'no_such_engine_module'
    """

    def __init__(self, module_name: str) -> None:
        self.module_name = module_name
        self._native: t.Any | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.module_name!r})"

    def load(self) -> t.Any:
        """Import the extension module once and return it."""
        if self._native is None:
            native = _import(self.module_name)
            missing = [name for name in NATIVE_EXPORTS if not hasattr(native, name)]
            if missing:
                logger.debug(
                    "Engine module %s lacks exports: %s",
                    self.module_name,
                    ", ".join(missing),
                )
                raise exc.EngineNotFound(self.module_name)
            self._native = native
        return self._native

    def initialize(self) -> Token:
        """Allocate native state."""
        return t.cast("Token", self.load().engine_initialize())

    def execute(self, token: Token, command: str) -> CommandResult:
        """Run ``command`` inside the native engine."""
        return coerce_result(self.load().engine_execute(token, command))

    def cleanup(self, token: Token) -> None:
        """Free native state."""
        self.load().engine_cleanup(token)


def load_engine(spec: str) -> Engine:
    """Resolve an engine spec into an :class:`Engine`.

    Parameters
    ----------
    spec : str
        Either ``"package.module"`` naming a native extension, or
        ``"package.module:factory"`` naming a callable that builds an engine.

    Returns
    -------
    Engine

    Raises
    ------
    :exc:`cmdsession.exc.EngineNotFound`
        If the module or factory cannot be resolved.
    """
    module_name, sep, attr = spec.partition(":")
    if not module_name or (sep and not attr):
        raise exc.EngineNotFound(spec)

    if not sep:
        engine = NativeEngine(module_name)
        engine.load()
        return engine

    factory = getattr(_import(module_name), attr, None)
    if factory is None or not callable(factory):
        raise exc.EngineNotFound(spec)
    logger.debug("Building engine from factory %s", spec)
    try:
        return t.cast("Engine", factory())
    except Exception as e:
        logger.debug("Engine factory %s raised", spec, exc_info=True)
        raise exc.EngineNotFound(spec) from e


__all__ = ["NativeEngine", "coerce_result", "load_engine"]

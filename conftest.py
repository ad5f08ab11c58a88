"""Conftest.py (root-level).

We keep this in root pytest fixtures in pytest's doctest plugin to be available, as well
as avoiding conftest.py from being included in the wheel, in addition to pytest_plugin
for pytester only being available via the root directory.

See "pytest_plugins in non-top-level conftest files" in
https://docs.pytest.org/en/stable/deprecations.html
"""

from __future__ import annotations

import os
import typing as t

import pytest
from _pytest.doctest import DoctestItem

from cmdsession.engines.base import CommandResult
from cmdsession.test import ScriptedEngine

pytest_plugins = ["pytester"]


@pytest.fixture(autouse=True)
def add_doctest_fixtures(
    request: pytest.FixtureRequest,
    doctest_namespace: dict[str, t.Any],
) -> None:
    """Configure doctest fixtures for pytest-doctest."""
    if isinstance(request._pyfuncitem, DoctestItem):
        doctest_namespace["CommandResult"] = CommandResult
        doctest_namespace["ScriptedEngine"] = ScriptedEngine


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear out environment variables that change session behaviour."""
    for k in list(os.environ):
        if k.startswith(("CMDSESSION_", "OTEL_")):
            monkeypatch.delenv(k)

"""Entrypoint for running cmdsession as a module."""

from __future__ import annotations

import sys

from cmdsession.cli import main

if __name__ == "__main__":
    sys.exit(main())

"""Metadata package for cmdsession."""

from __future__ import annotations

__title__ = "cmdsession"
__package_name__ = "cmdsession"
__description__ = "Line-oriented command session around a native command engine"
__version__ = "0.1.0"
__author__ = "cmdsession contributors"
__github__ = "https://github.com/cmdsession/cmdsession"
__docs__ = "https://github.com/cmdsession/cmdsession#readme"
__tracker__ = "https://github.com/cmdsession/cmdsession/issues"
__pypi__ = "https://pypi.org/project/cmdsession/"
__email__ = ""
__license__ = "MIT"
__copyright__ = "Copyright 2026- cmdsession contributors"

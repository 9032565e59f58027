from __future__ import annotations

"""
seigniorage.version — version string for the package.

`SEIGNIORAGE_VERSION` in the environment wins; otherwise the installed
distribution metadata is used, falling back to BASE_VERSION for plain
checkouts.
"""

import os
from importlib.metadata import PackageNotFoundError, version as _pkg_version

# Keep in step with pyproject.toml.
BASE_VERSION = "0.3.0"


def build_version() -> str:
    v = os.getenv("SEIGNIORAGE_VERSION")
    if v:
        return v
    try:
        return _pkg_version("seigniorage")
    except PackageNotFoundError:  # source checkout without an install
        return BASE_VERSION


__version__ = build_version()

__all__ = ["__version__", "build_version", "BASE_VERSION"]

# -*- coding: utf-8 -*-
"""Application version detection utilities.

Provides a single public function, ``get_app_version()``, which reads the
installed distribution metadata and falls back to ``dev`` for source
checkouts that were never installed.
"""

from __future__ import annotations

from importlib import metadata
from typing import Optional

_CACHED_VERSION: Optional[str] = None


def get_app_version() -> str:
    """Return the application version string (e.g., ``0.3.0``)."""
    global _CACHED_VERSION
    if _CACHED_VERSION:
        return _CACHED_VERSION
    try:
        _CACHED_VERSION = metadata.version("pom-fixer")
    except metadata.PackageNotFoundError:
        _CACHED_VERSION = "dev"
    return _CACHED_VERSION

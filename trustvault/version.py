"""trustvault.version — package version.

Precedence: TRUSTVAULT_VERSION env var, then the installed distribution's
metadata, then BASE_VERSION (source checkouts that were never installed).
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import metadata

BASE_VERSION = "0.1.0"
DIST_NAME = "trustvault"


def _installed() -> str:
    try:
        return metadata.version(DIST_NAME) or ""
    except metadata.PackageNotFoundError:
        return ""


@lru_cache(maxsize=1)
def compute_version() -> str:
    return os.getenv("TRUSTVAULT_VERSION") or _installed() or BASE_VERSION


__version__ = compute_version()

__all__ = ["__version__", "BASE_VERSION", "DIST_NAME", "compute_version"]

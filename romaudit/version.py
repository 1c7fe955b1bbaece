"""Version utilities for ROM Audit."""

from __future__ import annotations

from importlib import metadata

_FALLBACK_VERSION = "1.0.0"


def load_version() -> str:
    try:
        version = str(metadata.version("rom-audit") or "").strip()
        return version or _FALLBACK_VERSION
    except metadata.PackageNotFoundError:
        return _FALLBACK_VERSION

"""Observed (on-disk) archive models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


@dataclass
class ArchiveEntry:
    """One member of an archive, as listed by its container.

    ``crc32`` is the container's stored checksum. ``sha1`` stays ``None``
    until somebody asks the inventory to digest the entry.
    """

    name: str
    size: int
    crc32: Optional[int]
    sha1: Optional[bytes] = None


@dataclass
class Archive:
    """One container file; ``open_error`` is set when it could not be listed."""

    name: str
    path: Path
    entries: Dict[str, ArchiveEntry] = field(default_factory=dict)
    open_error: Optional[str] = None

    @property
    def is_readable(self) -> bool:
        return self.open_error is None

    def entry(self, name: str) -> Optional[ArchiveEntry]:
        return self.entries.get(name)

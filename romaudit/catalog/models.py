"""Reference catalog models.

Two layers live here:

- ``SetRecord`` / ``RomRecord``: raw, already-deserialized catalog records with
  checksums still as hex text, exactly as a catalog reader produced them.
- ``GameSet`` / ``Entry``: the validated, immutable in-memory graph the
  reconciliation engine works on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class DumpStatus(Enum):
    """Dump status of an expected ROM, as declared by the catalog."""

    GOOD = "good"
    BADDUMP = "baddump"
    NODUMP = "nodump"
    VERIFIED = "verified"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DumpStatus":
        """Missing or unknown status values are treated as ``good``."""
        text = (value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return cls.GOOD


@dataclass
class RomRecord:
    """Raw ``<rom>`` record."""

    name: str
    size: Union[int, str]
    crc: Optional[str] = None
    sha1: Optional[str] = None
    status: Optional[str] = None
    merge: Optional[str] = None


@dataclass
class SetRecord:
    """Raw ``<game>``/``<machine>`` record."""

    name: str
    cloneof: Optional[str] = None
    romof: Optional[str] = None
    description: str = ""
    is_bios: bool = False
    roms: List[RomRecord] = field(default_factory=list)


@dataclass(frozen=True)
class Entry:
    """An expected ROM inside a set."""

    name: str
    size: int
    crc32: int
    sha1: Optional[bytes] = None
    dump_status: DumpStatus = DumpStatus.GOOD
    merge_name: Optional[str] = None

    @property
    def inherited_name(self) -> str:
        """Name the entry is stored under in a parent or bios archive."""
        return self.merge_name or self.name


@dataclass(frozen=True)
class GameSet:
    """An expected archive ("game") with its entries and inheritance edges."""

    name: str
    entries: Tuple[Entry, ...] = ()
    parent_name: Optional[str] = None
    bios_name: Optional[str] = None
    effective_bios_name: Optional[str] = None
    description: str = ""
    is_bios: bool = False
    _entry_index: Dict[str, Entry] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_entry_index", {e.name: e for e in self.entries})

    def entry(self, name: str) -> Optional[Entry]:
        return self._entry_index.get(name)

    def has_entry(self, name: str) -> bool:
        return name in self._entry_index

"""Diagnostic records produced by catalog loading and set reconciliation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class DiagnosticKind(Enum):
    """What a diagnostic reports."""

    # Catalog integrity (recorded while building the catalog)
    DANGLING_PARENT = "dangling_parent"
    DANGLING_BIOS = "dangling_bios"
    INHERITANCE_CYCLE = "inheritance_cycle"
    DUPLICATE_SET = "duplicate_set"
    DUPLICATE_ENTRY = "duplicate_entry"

    # Archive level
    ARCHIVE_MISSING = "archive_missing"
    ARCHIVE_UNREADABLE = "archive_unreadable"
    PARENT_ARCHIVE_MISSING = "parent_archive_missing"
    BIOS_ARCHIVE_MISSING = "bios_archive_missing"

    # Entry level
    ENTRY_MISSING = "entry_missing"
    SIZE_MISMATCH = "size_mismatch"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    DIGEST_MISMATCH = "digest_mismatch"
    ENTRY_UNREADABLE = "entry_unreadable"

    # Relocation search results
    EXPECTED_IN_BIOS = "expected_in_bios"
    EXPECTED_IN_PARENT = "expected_in_parent"
    LOCATED_ELSEWHERE = "located_elsewhere"

    @property
    def is_catalog_integrity(self) -> bool:
        return self in _CATALOG_KINDS

    @property
    def is_archive_missing(self) -> bool:
        """The set's own archive cannot be used at all."""
        return self in (DiagnosticKind.ARCHIVE_MISSING, DiagnosticKind.ARCHIVE_UNREADABLE)

    @property
    def is_entry_failure(self) -> bool:
        return self in _ENTRY_FAILURE_KINDS

    @property
    def is_relocation(self) -> bool:
        return self in _RELOCATION_KINDS


_CATALOG_KINDS = frozenset({
    DiagnosticKind.DANGLING_PARENT,
    DiagnosticKind.DANGLING_BIOS,
    DiagnosticKind.INHERITANCE_CYCLE,
    DiagnosticKind.DUPLICATE_SET,
    DiagnosticKind.DUPLICATE_ENTRY,
})

_ENTRY_FAILURE_KINDS = frozenset({
    DiagnosticKind.ENTRY_MISSING,
    DiagnosticKind.SIZE_MISMATCH,
    DiagnosticKind.CHECKSUM_MISMATCH,
    DiagnosticKind.DIGEST_MISMATCH,
    DiagnosticKind.ENTRY_UNREADABLE,
})

_RELOCATION_KINDS = frozenset({
    DiagnosticKind.EXPECTED_IN_BIOS,
    DiagnosticKind.EXPECTED_IN_PARENT,
    DiagnosticKind.LOCATED_ELSEWHERE,
})


@dataclass(frozen=True)
class RelocationCandidate:
    """A content-identical entry found under another archive or name."""

    archive_name: str
    entry_name: str

    def __str__(self) -> str:
        return f"{self.archive_name}/{self.entry_name}"


@dataclass(frozen=True)
class Diagnostic:
    """One audit finding. A set that verifies cleanly produces none."""

    set_name: str
    kind: DiagnosticKind
    entry_name: Optional[str] = None
    detail: str = ""
    candidates: Tuple[RelocationCandidate, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "set_name": self.set_name,
            "entry_name": self.entry_name,
            "kind": self.kind.value,
            "detail": self.detail,
            "candidates": [
                {"archive_name": c.archive_name, "entry_name": c.entry_name}
                for c in self.candidates
            ],
        }


_KIND_LABELS = {
    DiagnosticKind.DANGLING_PARENT: "unknown parent",
    DiagnosticKind.DANGLING_BIOS: "unknown bios",
    DiagnosticKind.INHERITANCE_CYCLE: "inheritance cycle",
    DiagnosticKind.DUPLICATE_SET: "duplicate set",
    DiagnosticKind.DUPLICATE_ENTRY: "duplicate rom",
    DiagnosticKind.ARCHIVE_MISSING: "archive missing",
    DiagnosticKind.ARCHIVE_UNREADABLE: "archive unreadable",
    DiagnosticKind.PARENT_ARCHIVE_MISSING: "parent archive missing",
    DiagnosticKind.BIOS_ARCHIVE_MISSING: "bios archive missing",
    DiagnosticKind.ENTRY_MISSING: "rom missing",
    DiagnosticKind.SIZE_MISMATCH: "wrong size",
    DiagnosticKind.CHECKSUM_MISMATCH: "wrong crc",
    DiagnosticKind.DIGEST_MISMATCH: "wrong sha1",
    DiagnosticKind.ENTRY_UNREADABLE: "rom unreadable",
    DiagnosticKind.EXPECTED_IN_BIOS: "expected in bios",
    DiagnosticKind.EXPECTED_IN_PARENT: "expected in parent",
    DiagnosticKind.LOCATED_ELSEWHERE: "found elsewhere",
}


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Render a diagnostic as a single console line."""
    subject = f"game {diagnostic.set_name}"
    if diagnostic.entry_name:
        subject = f"{subject}: rom {diagnostic.entry_name}"
    line = f"{_KIND_LABELS[diagnostic.kind]}: {subject}"
    if diagnostic.detail:
        line = f"{line} ({diagnostic.detail})"
    return line

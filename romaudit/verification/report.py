"""Audit Report Generator.

Summarizes a diagnostic stream into counts per kind and per set, with JSON export.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from ..diagnostics import Diagnostic


@dataclass
class AuditReport:
    """Summary of one audit run."""

    # Metadata
    generated_at: str = ""
    catalog_path: str = ""
    roms_dir: str = ""
    duration_seconds: float = 0.0

    # Inputs
    sets_total: int = 0
    archives_total: int = 0
    archives_unreadable: int = 0

    # Findings
    sets_with_issues: int = 0
    integrity_issues: int = 0
    diagnostics_total: int = 0
    counts_by_kind: Dict[str, int] = field(default_factory=dict)
    problem_sets: List[str] = field(default_factory=list)

    # Full results (if requested)
    diagnostics: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def sets_clean(self) -> int:
        return max(0, self.sets_total - self.sets_with_issues)

    @property
    def is_clean(self) -> bool:
        return self.diagnostics_total == 0

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["sets_clean"] = self.sets_clean
        return payload

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: str) -> None:
        Path(path).write_text(self.to_json(), encoding="utf-8")


class AuditReportGenerator:
    """Builds an ``AuditReport`` while passing diagnostics through."""

    def __init__(self, *, include_diagnostics: bool = False):
        self.include_diagnostics = include_diagnostics

    def generate(
        self,
        diagnostics: Iterable[Diagnostic],
        *,
        sets_total: int = 0,
        archives_total: int = 0,
        archives_unreadable: int = 0,
        catalog_path: str = "",
        roms_dir: str = "",
        on_diagnostic: Optional[Callable[[Diagnostic], None]] = None,
    ) -> AuditReport:
        """Consume a diagnostic stream.

        Args:
            diagnostics: Stream from ``Reconciler.reconcile_all``
            sets_total: Number of catalog sets audited
            archives_total: Number of archives in the inventory
            archives_unreadable: Archives that could not be listed
            catalog_path: Catalog location (metadata only)
            roms_dir: ROM directory (metadata only)
            on_diagnostic: Called for every diagnostic as it arrives

        Returns:
            AuditReport with all counts filled in
        """
        start_time = datetime.now()
        report = AuditReport(
            generated_at=start_time.isoformat(),
            catalog_path=catalog_path,
            roms_dir=roms_dir,
            sets_total=sets_total,
            archives_total=archives_total,
            archives_unreadable=archives_unreadable,
        )

        kinds: Counter = Counter()
        problem_sets: Set[str] = set()
        ordered_problem_sets: List[str] = []

        for diagnostic in diagnostics:
            if on_diagnostic:
                on_diagnostic(diagnostic)

            report.diagnostics_total += 1
            kinds[diagnostic.kind.value] += 1

            if diagnostic.kind.is_catalog_integrity:
                report.integrity_issues += 1
            elif diagnostic.set_name not in problem_sets:
                problem_sets.add(diagnostic.set_name)
                ordered_problem_sets.append(diagnostic.set_name)

            if self.include_diagnostics:
                report.diagnostics.append(diagnostic.to_dict())

        report.counts_by_kind = dict(sorted(kinds.items()))
        report.problem_sets = ordered_problem_sets
        report.sets_with_issues = len(ordered_problem_sets)
        report.duration_seconds = (datetime.now() - start_time).total_seconds()
        return report

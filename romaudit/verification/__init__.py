"""ROM set verification.

Features:
- Inheritance-aware set reconciliation (own -> parent -> bios)
- Relocation search for missing or damaged ROMs
- Audit summary reports
"""

from .reconciler import Reconciler, reconcile_all, reconcile_one
from .report import AuditReport, AuditReportGenerator

__all__ = [
    "Reconciler",
    "reconcile_all",
    "reconcile_one",
    "AuditReport",
    "AuditReportGenerator",
]

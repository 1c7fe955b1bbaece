"""Set reconciliation: match every expected ROM against the archives on disk.

Implements the audit proper:
- Resolve each expected ROM own archive -> parent archive -> bios archive
- Cheap checks first (presence, size, stored CRC); SHA1 only when enabled
- On failure, a relocation search: inherited sets first, then every archive
  on disk for a ROM with the same size and CRC

A set that verifies cleanly yields no diagnostics at all.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Iterator, List, Optional, Tuple

from ..catalog.catalog import Catalog
from ..catalog.models import Entry, GameSet
from ..diagnostics import Diagnostic, DiagnosticKind, RelocationCandidate
from ..exceptions import ArchiveReadError
from ..hash_utils import format_crc32, format_sha1
from ..inventory.inventory import Inventory
from ..inventory.models import Archive, ArchiveEntry
from ..logging_config import LoggingTimer

logger = logging.getLogger(__name__)

Located = Tuple[Archive, ArchiveEntry]


class Reconciler:
    """Audits catalog sets against an inventory.

    Both inputs are only read, so one reconciler can serve several threads.
    """

    def __init__(self, catalog: Catalog, inventory: Inventory, *, verify_digests: bool = False):
        self.catalog = catalog
        self.inventory = inventory
        self.verify_digests = verify_digests

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reconcile_one(self, game: GameSet) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []

        archive = self.inventory.get(game.name)
        if archive is None:
            diagnostics.append(Diagnostic(
                set_name=game.name,
                kind=DiagnosticKind.ARCHIVE_MISSING,
                detail=f"no archive named {game.name}",
            ))
            return diagnostics
        if not archive.is_readable:
            diagnostics.append(Diagnostic(
                set_name=game.name,
                kind=DiagnosticKind.ARCHIVE_UNREADABLE,
                detail=f"error opening {archive.path.name}: {archive.open_error}",
            ))
            return diagnostics

        parent_archive = None
        if game.parent_name:
            parent_archive = self._inherited_archive(
                game, game.parent_name, DiagnosticKind.PARENT_ARCHIVE_MISSING, diagnostics
            )
        bios_archive = None
        if game.effective_bios_name:
            bios_archive = self._inherited_archive(
                game, game.effective_bios_name, DiagnosticKind.BIOS_ARCHIVE_MISSING, diagnostics
            )

        for entry in game.entries:
            found = self._resolve(entry, archive, parent_archive, bios_archive)
            failure = self._check(entry, found, game, parent_archive, bios_archive)
            if failure is None:
                continue
            kind, detail = failure
            diagnostics.extend(self._report_failure(game, entry, kind, detail, found))

        if diagnostics:
            logger.debug("Set %s: %d diagnostics", game.name, len(diagnostics))
        return diagnostics

    def reconcile_all(
        self,
        *,
        workers: int = 1,
        only: Optional[Iterable[str]] = None,
        include_integrity: bool = True,
    ) -> Iterator[Diagnostic]:
        """Lazily audit every set in catalog order.

        Catalog-integrity diagnostics come first. With ``workers > 1`` sets are
        reconciled on a thread pool; output order and per-set grouping are the
        same as the serial run.
        """
        wanted = set(only) if only is not None else None
        if wanted is not None:
            for name in sorted(wanted):
                if name not in self.catalog:
                    logger.warning("Set %s is not in the catalog", name)

        if include_integrity:
            for issue in self.catalog.integrity_issues:
                if wanted is None or issue.set_name in wanted:
                    yield issue

        games = [g for g in self.catalog if wanted is None or g.name in wanted]
        count = 0
        with LoggingTimer("reconcile"):
            if workers <= 1:
                for game in games:
                    diagnostics = self.reconcile_one(game)
                    count += len(diagnostics)
                    yield from diagnostics
            else:
                pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="reconcile")
                try:
                    for diagnostics in pool.map(self.reconcile_one, games):
                        count += len(diagnostics)
                        yield from diagnostics
                finally:
                    # queued sets are dropped when the consumer stops early
                    pool.shutdown(wait=True, cancel_futures=True)
        logger.info("Reconciled %d sets: %d diagnostics", len(games), count)

    # ------------------------------------------------------------------
    # Resolution and checks
    # ------------------------------------------------------------------

    def _inherited_archive(self, game: GameSet, name: str, kind: DiagnosticKind,
                           diagnostics: List[Diagnostic]) -> Optional[Archive]:
        role = "parent" if kind is DiagnosticKind.PARENT_ARCHIVE_MISSING else "bios"
        archive = self.inventory.get(name)
        if archive is None:
            diagnostics.append(Diagnostic(
                set_name=game.name, kind=kind, detail=f"no archive for {role} {name}",
            ))
            return None
        if not archive.is_readable:
            diagnostics.append(Diagnostic(
                set_name=game.name, kind=kind,
                detail=f"{role} archive {archive.path.name} unreadable: {archive.open_error}",
            ))
            return None
        return archive

    @staticmethod
    def _resolve(entry: Entry, archive: Archive, parent_archive: Optional[Archive],
                 bios_archive: Optional[Archive]) -> Optional[Located]:
        """Own archive shadows parent, parent shadows bios."""
        own = archive.entry(entry.name)
        if own is not None:
            return archive, own
        for inherited in (parent_archive, bios_archive):
            if inherited is None:
                continue
            found = inherited.entry(entry.inherited_name)
            if found is not None:
                return inherited, found
        return None

    def _check(self, entry: Entry, found: Optional[Located], game: GameSet,
               parent_archive: Optional[Archive],
               bios_archive: Optional[Archive]) -> Optional[Tuple[DiagnosticKind, str]]:
        if found is None:
            searched = [game.name]
            if parent_archive is not None:
                searched.append(f"parent {parent_archive.name}")
            if bios_archive is not None:
                searched.append(f"bios {bios_archive.name}")
            return DiagnosticKind.ENTRY_MISSING, "not found in " + ", ".join(searched)

        archive, observed = found
        where = f"{archive.name}/{observed.name}"
        if observed.size != entry.size:
            return (DiagnosticKind.SIZE_MISMATCH,
                    f"{where} is {observed.size} bytes, expected {entry.size}")
        if observed.crc32 != entry.crc32:
            return (DiagnosticKind.CHECKSUM_MISMATCH,
                    f"{where} has crc {format_crc32(observed.crc32)}, expected {format_crc32(entry.crc32)}")
        if self.verify_digests and entry.sha1 is not None:
            try:
                digest = self.inventory.compute_digest(archive.name, observed.name)
            except ArchiveReadError as exc:
                return DiagnosticKind.ENTRY_UNREADABLE, str(exc)
            if digest != entry.sha1:
                return (DiagnosticKind.DIGEST_MISMATCH,
                        f"{where} has sha1 {format_sha1(digest)}, expected {format_sha1(entry.sha1)}")
        return None

    # ------------------------------------------------------------------
    # Relocation search
    # ------------------------------------------------------------------

    def _report_failure(self, game: GameSet, entry: Entry, kind: DiagnosticKind,
                        detail: str, rejected: Optional[Located]) -> List[Diagnostic]:
        bios = self.catalog.lookup(game.effective_bios_name)
        if bios is not None and _lists_entry(bios, entry):
            return [
                Diagnostic(game.name, kind, entry.name, detail),
                Diagnostic(game.name, DiagnosticKind.EXPECTED_IN_BIOS, entry.name,
                           f"expected in bios {bios.name}"),
            ]
        parent = self.catalog.lookup(game.parent_name)
        if parent is not None and _lists_entry(parent, entry):
            return [
                Diagnostic(game.name, kind, entry.name, detail),
                Diagnostic(game.name, DiagnosticKind.EXPECTED_IN_PARENT, entry.name,
                           f"expected in parent {parent.name}"),
            ]

        candidates = tuple(
            RelocationCandidate(archive.name, found.name)
            for archive, found in self._search_content(entry, rejected)
        )
        if not candidates:
            return [Diagnostic(game.name, kind, entry.name, f"{detail}; no relocation candidate")]

        diagnostics = [Diagnostic(game.name, kind, entry.name, detail, candidates)]
        for candidate in candidates:
            diagnostics.append(Diagnostic(
                set_name=game.name,
                kind=DiagnosticKind.LOCATED_ELSEWHERE,
                entry_name=entry.name,
                detail=f"matching content in {candidate}",
                candidates=(candidate,),
            ))
        return diagnostics

    def _search_content(self, entry: Entry, rejected: Optional[Located]) -> List[Located]:
        matches = []
        for archive, found in self.inventory.find_by_content(entry.size, entry.crc32):
            if rejected is not None and archive is rejected[0] and found is rejected[1]:
                continue
            if self.verify_digests and entry.sha1 is not None:
                try:
                    digest = self.inventory.compute_digest(archive.name, found.name)
                except ArchiveReadError as exc:
                    logger.warning("Relocation candidate %s/%s skipped: %s", archive.name, found.name, exc)
                    continue
                if digest != entry.sha1:
                    continue
            matches.append((archive, found))
        return matches


def _lists_entry(game: GameSet, entry: Entry) -> bool:
    return game.has_entry(entry.name) or game.has_entry(entry.inherited_name)


def reconcile_one(game: GameSet, inventory: Inventory, catalog: Catalog, *,
                  verify_digests: bool = False) -> List[Diagnostic]:
    """Convenience wrapper around ``Reconciler.reconcile_one``."""
    return Reconciler(catalog, inventory, verify_digests=verify_digests).reconcile_one(game)


def reconcile_all(catalog: Catalog, inventory: Inventory, *, verify_digests: bool = False,
                  workers: int = 1, only: Optional[Iterable[str]] = None,
                  include_integrity: bool = True) -> Iterator[Diagnostic]:
    """Convenience wrapper around ``Reconciler.reconcile_all``."""
    reconciler = Reconciler(catalog, inventory, verify_digests=verify_digests)
    return reconciler.reconcile_all(workers=workers, only=only, include_integrity=include_integrity)

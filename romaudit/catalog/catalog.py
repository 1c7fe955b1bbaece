"""Reference catalog: validated set graph with flattened bios inheritance.

Building happens in two passes. The first converts raw records into
``GameSet``/``Entry`` objects, failing hard on any checksum that does not
parse. The second checks the inheritance graph (dangling references, cycles)
and resolves every set's effective bios once, so lookups never walk parent
chains again.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set

from ..diagnostics import Diagnostic, DiagnosticKind
from ..exceptions import MalformedDigestError
from ..hash_utils import parse_crc32, parse_sha1
from .models import DumpStatus, Entry, GameSet, RomRecord, SetRecord

logger = logging.getLogger(__name__)

_WHITE, _GRAY, _BLACK = 0, 1, 2


class Catalog:
    """Read-only mapping of set name to ``GameSet``, in source order."""

    def __init__(self, sets: Dict[str, GameSet], integrity_issues: Optional[List[Diagnostic]] = None):
        self._sets = dict(sets)
        self._integrity_issues = tuple(integrity_issues or ())

    @classmethod
    def build(cls, records: Iterable[SetRecord]) -> "Catalog":
        return build_catalog(records)

    @property
    def integrity_issues(self) -> tuple:
        """Catalog-integrity diagnostics found while building."""
        return self._integrity_issues

    def lookup(self, name: Optional[str]) -> Optional[GameSet]:
        if not name:
            return None
        return self._sets.get(name)

    def names(self) -> List[str]:
        return list(self._sets)

    def __getitem__(self, name: str) -> GameSet:
        return self._sets[name]

    def __contains__(self, name: object) -> bool:
        return name in self._sets

    def __iter__(self) -> Iterator[GameSet]:
        return iter(self._sets.values())

    def __len__(self) -> int:
        return len(self._sets)


def build_catalog(records: Iterable[SetRecord]) -> Catalog:
    """Build a ``Catalog`` from raw set records.

    Raises:
        MalformedDigestError: a size, crc or sha1 field does not parse.
    """
    issues: List[Diagnostic] = []
    sets: Dict[str, GameSet] = {}
    skipped_nodump = 0

    for record in records:
        if record.name in sets:
            issues.append(Diagnostic(
                set_name=record.name,
                kind=DiagnosticKind.DUPLICATE_SET,
                detail="set declared more than once, keeping the first",
            ))
            continue

        entries: List[Entry] = []
        seen: Set[str] = set()
        for rom in record.roms:
            status = DumpStatus.parse(rom.status)
            if status is DumpStatus.NODUMP:
                skipped_nodump += 1
                continue
            entry = _convert_rom(record.name, rom, status)
            if entry.name in seen:
                issues.append(Diagnostic(
                    set_name=record.name,
                    kind=DiagnosticKind.DUPLICATE_ENTRY,
                    entry_name=entry.name,
                    detail="rom declared more than once, keeping the first",
                ))
                continue
            seen.add(entry.name)
            entries.append(entry)

        parent_name = record.cloneof or None
        # romof equal to cloneof is the parent link itself, not a bios
        bios_name = record.romof if record.romof and record.romof != parent_name else None

        sets[record.name] = GameSet(
            name=record.name,
            entries=tuple(entries),
            parent_name=parent_name,
            bios_name=bios_name,
            description=record.description or "",
            is_bios=record.is_bios,
        )

    issues.extend(_check_references(sets))
    cycle_issues, cyclic = _find_cycles(sets)
    issues.extend(cycle_issues)

    resolved = _resolve_effective_bios(sets, cyclic)
    for name, bios in resolved.items():
        if bios is not None:
            sets[name] = dataclasses.replace(sets[name], effective_bios_name=bios)

    for issue in issues:
        logger.warning("Catalog integrity: %s %s %s", issue.kind.value, issue.set_name, issue.detail)

    logger.info(
        "Catalog built: %d sets, %d roms (%d nodump skipped), %d integrity issues",
        len(sets),
        sum(len(s.entries) for s in sets.values()),
        skipped_nodump,
        len(issues),
    )
    return Catalog(sets, issues)


def _convert_rom(set_name: str, rom: RomRecord, status: DumpStatus) -> Entry:
    try:
        size = int(str(rom.size).strip())
        if size < 0:
            raise ValueError(size)
    except (TypeError, ValueError) as exc:
        raise MalformedDigestError(
            f"Error converting rom size {set_name} {rom.name}: {rom.size!r}",
            set_name=set_name, entry_name=rom.name, field_name="size", value=str(rom.size),
        ) from exc

    try:
        crc32 = parse_crc32(rom.crc)
    except ValueError as exc:
        raise MalformedDigestError(
            f"Error converting rom crc {set_name} {rom.name}: {exc}",
            set_name=set_name, entry_name=rom.name, field_name="crc", value=rom.crc,
        ) from exc

    sha1 = None
    if rom.sha1 and rom.sha1.strip():
        try:
            sha1 = parse_sha1(rom.sha1)
        except ValueError as exc:
            raise MalformedDigestError(
                f"Error converting rom sha1 {set_name} {rom.name}: {exc}",
                set_name=set_name, entry_name=rom.name, field_name="sha1", value=rom.sha1,
            ) from exc

    return Entry(
        name=rom.name,
        size=size,
        crc32=crc32,
        sha1=sha1,
        dump_status=status,
        merge_name=rom.merge or None,
    )


def _check_references(sets: Dict[str, GameSet]) -> List[Diagnostic]:
    issues = []
    for game in sets.values():
        if game.parent_name and game.parent_name not in sets:
            issues.append(Diagnostic(
                set_name=game.name,
                kind=DiagnosticKind.DANGLING_PARENT,
                detail=f"cloneof {game.parent_name} is not in the catalog",
            ))
        if game.bios_name and game.bios_name not in sets:
            issues.append(Diagnostic(
                set_name=game.name,
                kind=DiagnosticKind.DANGLING_BIOS,
                detail=f"romof {game.bios_name} is not in the catalog",
            ))
    return issues


def _successors(game: GameSet, sets: Dict[str, GameSet]) -> List[str]:
    out = []
    for name in (game.parent_name, game.bios_name):
        if name and name in sets and name not in out:
            out.append(name)
    return out


def _find_cycles(sets: Dict[str, GameSet]):
    """Iterative DFS over parent and bios edges.

    Returns (diagnostics, names of every set on a cycle).
    """
    color: Dict[str, int] = {}
    cyclic: Set[str] = set()
    issues: List[Diagnostic] = []

    for root in sets:
        if color.get(root, _WHITE) != _WHITE:
            continue
        color[root] = _GRAY
        path = [root]
        stack = [iter(_successors(sets[root], sets))]
        while stack:
            nxt = next(stack[-1], None)
            if nxt is None:
                color[path.pop()] = _BLACK
                stack.pop()
                continue
            state = color.get(nxt, _WHITE)
            if state == _WHITE:
                color[nxt] = _GRAY
                path.append(nxt)
                stack.append(iter(_successors(sets[nxt], sets)))
            elif state == _GRAY:
                members = path[path.index(nxt):]
                cyclic.update(members)
                issues.append(Diagnostic(
                    set_name=members[0],
                    kind=DiagnosticKind.INHERITANCE_CYCLE,
                    detail=" -> ".join(members + [members[0]]),
                ))
    return issues, cyclic


def _resolve_effective_bios(sets: Dict[str, GameSet], cyclic: Set[str]) -> Dict[str, Optional[str]]:
    """Flatten bios inheritance down arbitrarily long clone chains.

    A set's own bios wins; otherwise it inherits its parent's effective bios.
    Chains that reach a cyclic or unknown set stay unresolved.
    """
    resolved: Dict[str, Optional[str]] = {}

    for name in sets:
        path: List[str] = []
        visited: Set[str] = set()
        current: Optional[str] = name
        value: Optional[str] = None
        while current is not None:
            if current in resolved:
                value = resolved[current]
                break
            game = sets.get(current)
            if game is None or current in visited:
                break
            visited.add(current)
            path.append(current)
            if game.bios_name:
                # a bios link that closes the cycle is left unresolved
                if current in cyclic and game.bios_name in cyclic:
                    value = None
                else:
                    value = game.bios_name if game.bios_name in sets else None
                break
            if current in cyclic:
                break
            current = game.parent_name
        for member in path:
            resolved[member] = value
    return resolved

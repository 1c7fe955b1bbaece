"""Archive inventory: cheap per-entry metadata for every archive on disk.

Building lists each container once and records entry name, uncompressed size
and the container's stored CRC32. Content digests are never computed up front;
``compute_digest`` streams a single entry when verification asks for it.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ..exceptions import ArchiveReadError, ConfigurationError
from ..hash_utils import stream_digests
from ..logging_config import LoggingTimer
from .models import Archive, ArchiveEntry
from .readers import ContainerReader, default_readers

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".zip", ".7z")

ContentKey = Tuple[int, int]


class Inventory:
    """Ordered archives plus a name index. Read-only once built."""

    def __init__(self, archives: Sequence[Archive],
                 readers: Optional[Dict[str, ContainerReader]] = None):
        self._archives: List[Archive] = []
        self._index: Dict[str, int] = {}
        self._readers = readers or default_readers()
        self._content_map: Optional[Dict[ContentKey, List[Tuple[Archive, ArchiveEntry]]]] = None
        self._lock = threading.Lock()

        for archive in archives:
            if archive.name in self._index:
                kept = self._archives[self._index[archive.name]]
                logger.warning("Duplicate archive name %s: keeping %s, ignoring %s",
                               archive.name, kept.path, archive.path)
                continue
            self._index[archive.name] = len(self._archives)
            self._archives.append(archive)

    @classmethod
    def build(cls, directory: Union[str, Path],
              extensions: Optional[Iterable[str]] = None,
              readers: Optional[Dict[str, ContainerReader]] = None) -> "Inventory":
        """List every container file directly inside ``directory``."""
        root = Path(directory)
        if not root.is_dir():
            raise ConfigurationError(f"ROM directory not found: {root}", file_path=str(root))

        wanted = {ext.lower() if ext.startswith(".") else f".{ext.lower()}"
                  for ext in (extensions or DEFAULT_EXTENSIONS)}
        paths = sorted(p for p in root.iterdir() if p.is_file() and p.suffix.lower() in wanted)
        return cls.from_paths(paths, readers=readers)

    @classmethod
    def from_paths(cls, paths: Iterable[Union[str, Path]],
                   readers: Optional[Dict[str, ContainerReader]] = None) -> "Inventory":
        readers = readers or default_readers()
        archives = []
        with LoggingTimer("inventory_build"):
            for raw in paths:
                archives.append(_read_archive(Path(raw), readers))
        inventory = cls(archives, readers)
        unreadable = sum(1 for a in inventory if not a.is_readable)
        logger.info("Inventory built: %d archives, %d entries, %d unreadable",
                    len(inventory), sum(len(a.entries) for a in inventory), unreadable)
        return inventory

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def archives(self) -> List[Archive]:
        return list(self._archives)

    def get(self, name: Optional[str]) -> Optional[Archive]:
        if not name:
            return None
        idx = self._index.get(name)
        return self._archives[idx] if idx is not None else None

    def entry_by_name(self, archive_name: str, entry_name: str) -> Optional[ArchiveEntry]:
        archive = self.get(archive_name)
        if archive is None:
            return None
        return archive.entry(entry_name)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[Archive]:
        return iter(self._archives)

    def __len__(self) -> int:
        return len(self._archives)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def compute_digest(self, archive_name: str, entry_name: str) -> bytes:
        """SHA1 of one entry, streamed and cached on the entry.

        Raises:
            ArchiveReadError: the archive/entry is unknown or cannot be read.
        """
        archive = self.get(archive_name)
        entry = archive.entry(entry_name) if archive is not None else None
        if archive is None or entry is None:
            raise ArchiveReadError(f"No entry {entry_name} in archive {archive_name}",
                                   archive_path=archive_name, entry_name=entry_name)
        if entry.sha1 is not None:
            return entry.sha1

        reader = self._readers.get(archive.path.suffix.lower())
        if reader is None:
            raise ArchiveReadError(f"No reader for {archive.path.suffix} archives",
                                   archive_path=str(archive.path), entry_name=entry_name)
        try:
            with reader.open_entry(archive.path, entry_name) as fh:
                digest, _, _ = stream_digests(fh)
        except Exception as exc:
            raise ArchiveReadError(f"Error reading {entry_name} in {archive.path}: {exc}",
                                   archive_path=str(archive.path), entry_name=entry_name) from exc
        entry.sha1 = digest
        return digest

    def find_by_content(self, size: int, crc32: int) -> List[Tuple[Archive, ArchiveEntry]]:
        """Every (archive, entry) whose size and stored CRC match."""
        return list(self._content_index().get((size, crc32), ()))

    def _content_index(self) -> Dict[ContentKey, List[Tuple[Archive, ArchiveEntry]]]:
        if self._content_map is None:
            with self._lock:
                if self._content_map is None:
                    content: Dict[ContentKey, List[Tuple[Archive, ArchiveEntry]]] = defaultdict(list)
                    for archive in self._archives:
                        for entry in archive.entries.values():
                            if entry.crc32 is not None:
                                content[(entry.size, entry.crc32)].append((archive, entry))
                    self._content_map = dict(content)
        return self._content_map


def _read_archive(path: Path, readers: Dict[str, ContainerReader]) -> Archive:
    archive = Archive(name=path.stem, path=path)
    reader = readers.get(path.suffix.lower())
    if reader is None:
        archive.open_error = f"unsupported container {path.suffix}"
        return archive
    try:
        listing = reader.list_entries(path)
    except Exception as exc:
        # one bad archive never aborts the run
        logger.warning("Error opening archive %s: %s", path, exc)
        archive.open_error = str(exc) or exc.__class__.__name__
        return archive
    for info in listing:
        if info.name in archive.entries:
            logger.warning("Duplicate member %s in %s ignored", info.name, path)
            continue
        archive.entries[info.name] = ArchiveEntry(name=info.name, size=info.size, crc32=info.crc32)
    return archive

"""
Container Readers
-----------------
List archive members with their stored metadata and open single members for
streaming. One reader per container format:

- ZIP via ``zipfile`` (stored CRC read from the central directory)
- 7z via ``py7zr``

Readers raise whatever the underlying library raises; the inventory isolates
those failures per archive.
"""

from __future__ import annotations

import logging
import re
import shutil
import stat
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path, PurePosixPath
from typing import BinaryIO, ContextManager, Dict, Iterator, List, NamedTuple, Optional, Union

import py7zr

from ..hash_utils import stream_digests

logger = logging.getLogger(__name__)


class EntryInfo(NamedTuple):
    name: str
    size: int
    crc32: Optional[int]


def is_safe_archive_member(member: Union[str, zipfile.ZipInfo]) -> bool:
    """Check for safe archive members (no traversal, no abs paths, no symlinks)."""
    if isinstance(member, zipfile.ZipInfo):
        member_name = member.filename
        mode = stat.S_IFMT(member.external_attr >> 16)
        if mode == stat.S_IFLNK:
            return False
    else:
        member_name = str(member)

    if not member_name:
        return False
    if "\x00" in member_name:
        return False
    if member_name.startswith(('/', '\\')):
        return False
    if re.match(r"^[a-zA-Z]:", member_name):
        return False
    parts = PurePosixPath(member_name.replace("\\", "/")).parts
    return ".." not in parts


class ContainerReader:
    """Interface for one container format."""

    suffix = ""

    def list_entries(self, path: Path) -> List[EntryInfo]:
        raise NotImplementedError

    def open_entry(self, path: Path, name: str) -> ContextManager[BinaryIO]:
        """Context manager yielding a binary stream over one member."""
        raise NotImplementedError


class ZipContainerReader(ContainerReader):
    suffix = ".zip"

    def list_entries(self, path: Path) -> List[EntryInfo]:
        entries = []
        with zipfile.ZipFile(str(path), "r") as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                if not is_safe_archive_member(info):
                    logger.warning("Unsafe archive member skipped: %s in %s", info.filename, path)
                    continue
                entries.append(EntryInfo(info.filename, int(info.file_size), info.CRC & 0xFFFFFFFF))
        return entries

    @contextmanager
    def open_entry(self, path: Path, name: str) -> Iterator[BinaryIO]:
        with zipfile.ZipFile(str(path), "r") as zf:
            with zf.open(name, "r") as fh:
                yield fh


class SevenZipContainerReader(ContainerReader):
    """7z archives. Members are extracted to a scratch directory to be streamed."""

    suffix = ".7z"

    def list_entries(self, path: Path) -> List[EntryInfo]:
        entries = []
        with py7zr.SevenZipFile(str(path), mode="r") as archive:
            infos = archive.list()
        for info in infos:
            if info.is_directory:
                continue
            if not is_safe_archive_member(info.filename):
                logger.warning("Unsafe archive member skipped: %s in %s", info.filename, path)
                continue
            size = int(info.uncompressed or 0)
            crc = info.crc32
            if crc is None and size == 0:
                crc = 0
            elif crc is None:
                crc = self._measure_crc(path, info.filename)
            entries.append(EntryInfo(info.filename, size, crc & 0xFFFFFFFF))
        return entries

    def _measure_crc(self, path: Path, name: str) -> int:
        with self.open_entry(path, name) as fh:
            _, crc, _ = stream_digests(fh)
        return crc

    @contextmanager
    def open_entry(self, path: Path, name: str) -> Iterator[BinaryIO]:
        scratch = tempfile.mkdtemp(prefix="romaudit-")
        try:
            with py7zr.SevenZipFile(str(path), mode="r") as archive:
                archive.extract(path=scratch, targets=[name])
            extracted = Path(scratch) / name
            if not extracted.is_file():
                raise KeyError(f"There is no item named {name!r} in the archive")
            with open(extracted, "rb") as fh:
                yield fh
        finally:
            shutil.rmtree(scratch, ignore_errors=True)


def default_readers() -> Dict[str, ContainerReader]:
    """Readers keyed by lower-case file suffix."""
    readers = [ZipContainerReader(), SevenZipContainerReader()]
    return {reader.suffix: reader for reader in readers}

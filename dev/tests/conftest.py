from __future__ import annotations

import hashlib
import zipfile
import zlib
from pathlib import Path
from typing import Dict, Optional

import pytest

from romaudit.catalog.models import RomRecord, SetRecord


def make_zip(directory: Path, name: str, members: Dict[str, bytes]) -> Path:
    """Write ``<directory>/<name>.zip`` holding ``members``."""
    path = directory / f"{name}.zip"
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for member, data in members.items():
            zf.writestr(member, data)
    return path


def rom(name: str, data: bytes, *, status: Optional[str] = None,
        merge: Optional[str] = None, with_sha1: bool = True) -> RomRecord:
    """Catalog record describing ``data`` exactly."""
    return RomRecord(
        name=name,
        size=str(len(data)),
        crc="%08x" % (zlib.crc32(data) & 0xFFFFFFFF),
        sha1=hashlib.sha1(data).hexdigest() if with_sha1 else None,
        status=status,
        merge=merge,
    )


def game(name: str, *roms: RomRecord, cloneof: Optional[str] = None,
         romof: Optional[str] = None, is_bios: bool = False) -> SetRecord:
    return SetRecord(name=name, cloneof=cloneof, romof=romof, is_bios=is_bios, roms=list(roms))


@pytest.fixture
def roms_dir(tmp_path: Path) -> Path:
    path = tmp_path / "roms"
    path.mkdir()
    return path

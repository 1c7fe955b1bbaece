#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""ROM Audit - catalog document reader

Reads MAME ``-listxml`` output and Logiqx XML DATs into raw ``SetRecord``s.

- Streaming parse; elements are cleared once consumed.
- Accepts ``<game>`` and ``<machine>`` set elements.
- Accepts a ``.zip`` container holding the ``.xml``/``.dat`` document.

Any failure to read or parse the document raises ``CatalogSourceError``; a
catalog that cannot be read cannot be trusted for any set.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import IO, List, Optional, Union

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as ET

from ..exceptions import CatalogSourceError
from ..logging_config import LoggingTimer
from .catalog import Catalog, build_catalog
from .models import RomRecord, SetRecord

logger = logging.getLogger(__name__)

SET_TAGS = ("game", "machine")
DOCUMENT_SUFFIXES = (".xml", ".dat")


def _local_tag(elem) -> str:
    tag = elem.tag if isinstance(elem.tag, str) else ""
    if "}" in tag:
        tag = tag.rsplit("}", 1)[1]
    return tag.lower()


def _attr(elem, name: str) -> Optional[str]:
    value = elem.attrib.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def read_catalog_stream(stream: IO[bytes], source_label: str = "<stream>") -> List[SetRecord]:
    """Parse a catalog document from a binary stream."""
    records: List[SetRecord] = []
    current: Optional[SetRecord] = None
    build: Optional[str] = None

    try:
        context = ET.iterparse(stream, events=("start", "end"))
        for event, elem in context:
            tag = _local_tag(elem)

            if event == "start":
                if tag in ("mame", "datafile") and build is None:
                    build = _attr(elem, "build")
                elif tag in SET_TAGS:
                    name = _attr(elem, "name")
                    if not name:
                        raise CatalogSourceError(
                            f"Set without a name in {source_label}", source=source_label
                        )
                    current = SetRecord(
                        name=name,
                        cloneof=_attr(elem, "cloneof"),
                        romof=_attr(elem, "romof"),
                        is_bios=(elem.attrib.get("isbios") or "").lower() == "yes",
                    )
                continue

            if tag == "rom" and current is not None:
                current.roms.append(RomRecord(
                    name=elem.attrib.get("name") or "",
                    size=elem.attrib.get("size") or "",
                    crc=_attr(elem, "crc"),
                    sha1=_attr(elem, "sha1"),
                    status=_attr(elem, "status"),
                    merge=_attr(elem, "merge"),
                ))
                elem.clear()
            elif tag == "description" and current is not None:
                current.description = (elem.text or "").strip()
            elif tag in SET_TAGS and current is not None:
                records.append(current)
                current = None
                elem.clear()
    except CatalogSourceError:
        raise
    except (ET.ParseError, DefusedXmlException) as exc:
        raise CatalogSourceError(f"Error parsing catalog {source_label}: {exc}", source=source_label) from exc

    logger.info("Read catalog %s: %d sets (build %s)", source_label, len(records), build or "unknown")
    return records


def read_catalog(path: Union[str, Path]) -> List[SetRecord]:
    """Read a catalog document (plain or zipped) from disk."""
    file_path = Path(path)
    try:
        if file_path.suffix.lower() == ".zip":
            return _read_zipped(file_path)
        with open(file_path, "rb") as f:
            return read_catalog_stream(f, source_label=str(file_path))
    except OSError as exc:
        raise CatalogSourceError(f"Error reading catalog {file_path}: {exc}", source=str(file_path)) from exc


def _read_zipped(file_path: Path) -> List[SetRecord]:
    try:
        with zipfile.ZipFile(str(file_path), "r") as zf:
            for info in zf.infolist():
                if info.is_dir() or not info.filename.lower().endswith(DOCUMENT_SUFFIXES):
                    continue
                with zf.open(info, "r") as fh:
                    return read_catalog_stream(fh, source_label=f"{file_path.name}:{info.filename}")
    except zipfile.BadZipFile as exc:
        raise CatalogSourceError(f"Error reading catalog {file_path}: {exc}", source=str(file_path)) from exc
    raise CatalogSourceError(f"No catalog document inside {file_path}", source=str(file_path))


def load_catalog(path: Union[str, Path]) -> Catalog:
    """Read and build a catalog in one step."""
    with LoggingTimer("catalog_load"):
        return build_catalog(read_catalog(path))

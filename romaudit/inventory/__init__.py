"""Archive inventory: what is actually on disk."""

from .models import Archive, ArchiveEntry
from .readers import (
    ContainerReader,
    EntryInfo,
    SevenZipContainerReader,
    ZipContainerReader,
    default_readers,
    is_safe_archive_member,
)
from .inventory import DEFAULT_EXTENSIONS, Inventory

__all__ = [
    "Archive",
    "ArchiveEntry",
    "ContainerReader",
    "DEFAULT_EXTENSIONS",
    "EntryInfo",
    "Inventory",
    "SevenZipContainerReader",
    "ZipContainerReader",
    "default_readers",
    "is_safe_archive_member",
]

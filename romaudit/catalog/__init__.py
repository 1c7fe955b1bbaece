"""Reference catalog: expected sets and ROMs with resolved inheritance."""

from .models import DumpStatus, Entry, GameSet, RomRecord, SetRecord
from .catalog import Catalog, build_catalog
from .dat_reader import load_catalog, read_catalog, read_catalog_stream

__all__ = [
    "Catalog",
    "DumpStatus",
    "Entry",
    "GameSet",
    "RomRecord",
    "SetRecord",
    "build_catalog",
    "load_catalog",
    "read_catalog",
    "read_catalog_stream",
]

"""ROM hash utilities - checksum parsing, formatting and streaming digests for archive entries."""

import hashlib
import os
import re
import zlib
from typing import BinaryIO, Optional, Tuple

_CRC_RE = re.compile(r"^[0-9a-fA-F]{1,8}$")
_SHA1_RE = re.compile(r"^[0-9a-fA-F]{40}$")


def _read_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DEFAULT_CHUNK_SIZE = max(4, _read_int_env("ROM_AUDIT_HASH_CHUNK_KB", 1024)) * 1024


def parse_crc32(text: Optional[str]) -> int:
    """Parse a hex CRC32 string (up to 8 digits, optional 0x prefix). Raises ValueError."""
    value = (text or "").strip()
    if value[:2].lower() == "0x":
        value = value[2:]
    if not _CRC_RE.match(value):
        raise ValueError(f"invalid crc32 {text!r}")
    return int(value, 16)


def parse_sha1(text: Optional[str]) -> bytes:
    """Parse a 40-digit hex SHA1 string into its 20 raw bytes. Raises ValueError."""
    value = (text or "").strip()
    if not _SHA1_RE.match(value):
        raise ValueError(f"invalid sha1 {text!r}")
    return bytes.fromhex(value)


def format_crc32(value: Optional[int]) -> str:
    if value is None:
        return "--------"
    return "%08x" % (value & 0xFFFFFFFF)


def format_sha1(value: Optional[bytes]) -> str:
    if not value:
        return "-"
    return value.hex()


def stream_digests(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Tuple[bytes, int, int]:
    """Stream a file object through SHA1 and CRC32.

    The stream is consumed in ``chunk_size`` blocks so large entries are never
    held in memory at once.

    Returns:
        Tuple of (sha1 digest bytes, crc32 value, byte count)
    """
    sha1 = hashlib.sha1(usedforsecurity=False)
    crc = 0
    total = 0
    while True:
        data = stream.read(chunk_size)
        if not data:
            break
        sha1.update(data)
        crc = zlib.crc32(data, crc)
        total += len(data)
    return sha1.digest(), crc & 0xFFFFFFFF, total


def calculate_sha1(stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """SHA1 of a stream as raw bytes."""
    digest, _, _ = stream_digests(stream, chunk_size)
    return digest

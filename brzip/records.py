from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Optional, Tuple

from .constants import MAGIC, NAME_LEN_STRUCT, SIZES_STRUCT
from .errors import BadSignatureError, TruncatedRecordError


SIZES_PLACEHOLDER = SIZES_STRUCT.pack(0, 0)


@dataclass
class RecordHeader:
    name: str
    length: int
    compressed_length: int

    def pack(self) -> bytes:
        raw = self.name.encode("utf-8")
        return NAME_LEN_STRUCT.pack(len(raw)) + raw + SIZES_STRUCT.pack(self.length, self.compressed_length)


def read_exact(f: BinaryIO, n: int) -> bytes:
    b = f.read(n)
    if len(b) != n:
        raise TruncatedRecordError(f"Unexpected end of archive: wanted {n} bytes, got {len(b)}")
    return b


def write_magic(f: BinaryIO) -> None:
    f.write(MAGIC)


def read_magic(f: BinaryIO) -> None:
    raw = f.read(len(MAGIC))
    if raw != MAGIC:
        raise BadSignatureError(f"Bad archive signature: {raw.hex() or '<empty>'}")


def write_name(f: BinaryIO, name: str) -> int:
    """Write the name part of a record header and return the offset of the size fields."""
    raw = name.encode("utf-8")
    f.write(NAME_LEN_STRUCT.pack(len(raw)))
    f.write(raw)
    return f.tell()


def write_placeholder(f: BinaryIO) -> int:
    """Reserve the size fields with zeros; returns the payload start offset."""
    f.write(SIZES_PLACEHOLDER)
    return f.tell()


def backpatch_sizes(f: BinaryIO, sizes_offset: int, length: int, compressed_length: int) -> None:
    f.seek(sizes_offset)
    f.write(SIZES_STRUCT.pack(length, compressed_length))


def read_header(f: BinaryIO, end: Optional[int] = None) -> RecordHeader:
    """Read one record header.

    With ``end`` given, a name length that cannot fit before ``end`` is
    rejected before any name bytes are read.
    """
    (name_len,) = NAME_LEN_STRUCT.unpack(read_exact(f, NAME_LEN_STRUCT.size))
    if name_len < 0:
        raise TruncatedRecordError(f"Negative entry name length: {name_len}")
    if end is not None and name_len + SIZES_STRUCT.size > end - f.tell():
        raise TruncatedRecordError(f"Entry name length {name_len} runs past the end of the archive")
    raw = read_exact(f, name_len)
    try:
        name = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TruncatedRecordError(f"Entry name is not valid UTF-8: {e}") from e
    length, compressed_length = SIZES_STRUCT.unpack(read_exact(f, SIZES_STRUCT.size))
    if length < 0 or compressed_length < 0:
        raise TruncatedRecordError(f"Negative size fields for entry '{name}'")
    return RecordHeader(name=name, length=length, compressed_length=compressed_length)


def stream_length(f: BinaryIO) -> Tuple[int, int]:
    """Return ``(current_position, total_length)`` leaving the position unchanged."""
    pos = f.tell()
    end = f.seek(0, 2)
    f.seek(pos)
    return pos, end

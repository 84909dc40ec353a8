"""
BrZip: a streaming archive container of individually compressed entries.

Features:

- Sequential record layout: magic, then (name, sizes, payload) records with no footer.
- Writer backpatches each record's sizes once the codec has finished, so any
  seekable stream or file works as a sink.
- Reader indexes the whole archive with a single header scan; payloads are
  skipped, never decoded, until an entry is extracted.
- Cooperative progress/cancellation once per chunk for writing and extraction.
- Brotli by default, raw deflate as an alternative codec.

On disk: the 4-byte magic "BRZ1", then per entry an int32 name length, the
UTF-8 name, int64 uncompressed and compressed sizes, and the payload.
"""

from .codec import BrotliCodec, DeflateCodec, get_codec
from .entry import ArchiveEntry
from .errors import (
    BrZipError,
    ArgumentNoneError,
    UnseekableStreamError,
    ArchiveNotOpenError,
    MalformedArchiveError,
    BadSignatureError,
    TruncatedRecordError,
    CodecError,
)
from .events import ArchiveListener, CallbackListener, EntryEvent, ProgressEvent
from .reader import ArchiveReader, EntryIndex
from .writer import ArchiveWriter

__version__ = "0.1"

__all__ = [
    "ArchiveWriter",
    "ArchiveReader",
    "ArchiveEntry",
    "EntryIndex",
    "ArchiveListener",
    "CallbackListener",
    "EntryEvent",
    "ProgressEvent",
    "BrotliCodec",
    "DeflateCodec",
    "get_codec",
    "BrZipError",
    "ArgumentNoneError",
    "UnseekableStreamError",
    "ArchiveNotOpenError",
    "MalformedArchiveError",
    "BadSignatureError",
    "TruncatedRecordError",
    "CodecError",
]

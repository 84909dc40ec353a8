from __future__ import annotations

import logging
import os
from typing import BinaryIO, Callable, Dict, Iterator, List, Mapping, Optional, Union

from .codec import BrotliCodec, Codec
from .constants import DEFAULT_BUFFER_SIZE
from .entry import ArchiveEntry
from .errors import ArgumentNoneError, ArchiveNotOpenError, TruncatedRecordError, UnseekableStreamError
from .events import ArchiveListener
from .pathutil import destination_path, fold_name
from .records import read_magic, read_header, stream_length


logger = logging.getLogger(__name__)

EntryFactory = Callable[["ArchiveReader", str, int, int, int], ArchiveEntry]


class EntryIndex(Mapping[str, ArchiveEntry]):
    """Read-only, case-insensitive view of the archive's entries.

    Keys are matched lower-cased; iteration yields each entry's
    stored name in the order the name was first seen.
    """

    def __init__(self):
        self._by_key: Dict[str, ArchiveEntry] = {}

    def _put(self, entry: ArchiveEntry) -> Optional[ArchiveEntry]:
        key = fold_name(entry.name)
        previous = self._by_key.get(key)
        self._by_key[key] = entry
        return previous

    def _clear(self):
        self._by_key.clear()

    def __getitem__(self, name: str) -> ArchiveEntry:
        return self._by_key[fold_name(name)]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and fold_name(name) in self._by_key

    def __iter__(self) -> Iterator[str]:
        return (e.name for e in self._by_key.values())

    def __len__(self) -> int:
        return len(self._by_key)

    def __repr__(self) -> str:
        return f"EntryIndex({list(self)!r})"


class ArchiveReader:
    def __init__(
        self,
        source: Union[str, os.PathLike, BinaryIO, None] = None,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        codec: Optional[Codec] = None,
        entry_factory: Optional[EntryFactory] = None,
        leave_open: bool = False,
    ):
        self.source = source
        self.buffer_size = buffer_size
        self.codec = codec or BrotliCodec()
        self.entry_factory: EntryFactory = entry_factory or ArchiveEntry
        self.leave_open = leave_open
        self.stream: Optional[BinaryIO] = None
        self.end_position = 0
        self._entries = EntryIndex()

    def __enter__(self):
        if self.stream is None and self.source is not None:
            self.open(self.source, leave_open=self.leave_open)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def entries(self) -> EntryIndex:
        return self._entries

    def open(self, source: Union[str, os.PathLike, BinaryIO], leave_open: bool = False):
        if source is None:
            raise ArgumentNoneError("source")
        if self.stream is not None:
            raise RuntimeError("Archive already open")
        if isinstance(source, (str, os.PathLike)):
            stream = open(source, "rb")
            leave_open = False
        else:
            stream = source
            if not stream.seekable():
                raise UnseekableStreamError("Archive reading requires a seekable stream")
        self.stream = stream
        self.leave_open = leave_open
        try:
            self._load_index()
        except BaseException:
            # Ensure nothing from a rejected container stays visible
            self._entries._clear()
            self._release()
            raise
        return self

    def close(self):
        self._release()

    def _release(self):
        stream, self.stream = self.stream, None
        if stream is not None and not self.leave_open:
            stream.close()

    def _require_open(self) -> BinaryIO:
        if self.stream is None:
            raise ArchiveNotOpenError("Archive not open")
        return self.stream

    def _load_index(self):
        """
        Scans every record header once, front to back.

        Payload bytes are skipped with a seek and never read, so the cost
        depends on the number of entries only. The scan has to finish exactly
        at the end of the stream; anything else means a truncated or corrupted
        record.
        """
        f = self._require_open()
        read_magic(f)
        pos, end = stream_length(f)
        count = 0
        while pos < end:
            header = read_header(f, end)
            offset = f.tell()
            pos = offset + header.compressed_length
            if pos > end:
                raise TruncatedRecordError(
                    f"Entry '{header.name}' payload runs {pos - end} bytes past the end of the archive"
                )
            entry = self.entry_factory(self, header.name, offset, header.compressed_length, header.length)
            replaced = self._entries._put(entry)
            if replaced is not None:
                logger.debug("Entry '%s' replaces earlier '%s'", entry.name, replaced.name)
            f.seek(pos)
            count += 1
        self.end_position = pos
        logger.debug("Indexed %d record(s), %d unique name(s), %d bytes", count, len(self._entries), end)

    def extract_all(self, directory_path: Union[str, os.PathLike], listener: Optional[ArchiveListener] = None) -> List[str]:
        """Extract every entry below ``directory_path`` and return the written paths."""
        if directory_path is None:
            raise ArgumentNoneError("directory_path")
        self._require_open()
        directory_path = os.fspath(directory_path)
        os.makedirs(directory_path, exist_ok=True)
        written: List[str] = []
        for entry in self._entries.values():
            dst = destination_path(directory_path, entry.name)
            entry.extract_to(dst, listener=listener)
            written.append(dst)
        return written

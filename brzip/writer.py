from __future__ import annotations

import fnmatch
import logging
import os
from typing import BinaryIO, Callable, List, Optional, Tuple, Union

from .codec import BrotliCodec, Codec, CompressWriter
from .constants import DEFAULT_BUFFER_SIZE
from .errors import ArgumentNoneError, ArchiveNotOpenError, UnseekableStreamError
from .events import ArchiveListener, EntryEvent, ProgressEvent, NULL_LISTENER
from .records import write_magic, write_name, write_placeholder, backpatch_sizes, SIZES_STRUCT


logger = logging.getLogger(__name__)

PathFilter = Callable[[str, str], bool]


class ArchiveWriter:
    """Appends compressed entries to a seekable sink.

    Every entry is written as name, zeroed size fields, then the codec output.
    Once the codec is closed the writer seeks back and patches the real sizes
    in, so the sink must support seeking in both directions.
    """

    def __init__(
        self,
        target: Union[str, os.PathLike, BinaryIO, None] = None,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        codec: Optional[Codec] = None,
        listener: Optional[ArchiveListener] = None,
        leave_open: bool = False,
        append: bool = False,
    ):
        self.target = target
        self.buffer_size = buffer_size
        self.codec = codec or BrotliCodec()
        self.listener = listener or NULL_LISTENER
        self.leave_open = leave_open
        self.append = append
        self.stream: Optional[BinaryIO] = None
        self._last_pos = 0

    def __enter__(self):
        if self.stream is None:
            if self.target is None:
                raise ArgumentNoneError("target")
            self.open(self.target, leave_open=self.leave_open, append=self.append)
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def position(self) -> int:
        """Offset where the next entry record starts."""
        return self._last_pos

    def open(self, target: Union[str, os.PathLike, BinaryIO], leave_open: bool = False, append: bool = False):
        if target is None:
            raise ArgumentNoneError("target")
        if self.stream is not None:
            raise RuntimeError("Archive already open")
        if isinstance(target, (str, os.PathLike)):
            if append and os.path.exists(target):
                stream = open(target, "r+b")
            else:
                # Appending to a missing file starts a new archive
                stream = open(target, "w+b")
                append = False
            leave_open = False
        else:
            stream = target
            if not stream.seekable():
                raise UnseekableStreamError("Archive writing requires a seekable stream")
        self.stream = stream
        self.leave_open = leave_open
        try:
            if append:
                self._open_existing()
            else:
                write_magic(stream)
                self._last_pos = stream.tell()
        except BaseException:
            self._release()
            raise
        logger.debug("Opened archive for writing at offset %d (append=%s)", self._last_pos, append)
        return self

    def _open_existing(self):
        # Validate the existing container; the next record goes at its end
        from .reader import ArchiveReader

        with ArchiveReader(codec=self.codec) as reader:
            reader.open(self.stream, leave_open=True)
            self._last_pos = reader.end_position
            logger.debug("Appending after %d existing entries", len(reader.entries))

    def close(self):
        if self.stream is None:
            return
        try:
            if not self.stream.closed:
                self.stream.seek(self._last_pos)
                self.stream.truncate()
                self.stream.flush()
        finally:
            self._release()

    def _release(self):
        stream, self.stream = self.stream, None
        if stream is not None and not self.leave_open:
            stream.close()

    def _require_open(self) -> BinaryIO:
        if self.stream is None:
            raise ArchiveNotOpenError("Archive not open")
        return self.stream

    def add_entry(self, name: str, source: BinaryIO) -> int:
        """Compress ``source`` into a new entry and return its compressed size.

        A listener that cancels during progress leaves the entry truncated to
        the chunks already written; the sizes still describe what is on disk.
        """
        if name is None:
            raise ArgumentNoneError("name")
        if source is None:
            raise ArgumentNoneError("source")
        f = self._require_open()

        f.seek(self._last_pos)
        sizes_pos = write_name(f, name)
        payload_pos = write_placeholder(f)

        size = max(self.buffer_size, 1)
        length = 0
        cancelled = False
        cw = CompressWriter(f, self.codec)
        while True:
            chunk = source.read(size)
            if not chunk:
                break
            length += len(chunk)
            cw.write(chunk)
            cw.flush()
            event = ProgressEvent(name, length, f.tell() - payload_pos)
            self.listener.progress(event)
            if event.cancel:
                cancelled = True
                break
        cw.close()
        self._last_pos = f.tell()
        compressed_length = self._last_pos - sizes_pos - SIZES_STRUCT.size

        backpatch_sizes(f, sizes_pos, length, compressed_length)
        if cancelled:
            logger.warning("Entry '%s' cancelled after %d bytes; stored truncated", name, length)
        else:
            logger.debug("Added '%s': %d -> %d bytes", name, length, compressed_length)
        return compressed_length

    def add_file(self, file_path: Union[str, os.PathLike], name: Optional[str] = None) -> int:
        if file_path is None:
            raise ArgumentNoneError("file_path")
        if name is None:
            name = os.path.basename(os.fspath(file_path))
        with open(file_path, "rb") as rf:
            return self.add_entry(name, rf)

    def add_directory(
        self,
        directory_path: Union[str, os.PathLike],
        pattern: Optional[str] = None,
        recursive: bool = True,
        include: Optional[PathFilter] = None,
        exclude: Optional[PathFilter] = None,
        rename: Optional[Callable[[str], Optional[str]]] = None,
    ) -> int:
        """Add every file under ``directory_path``; returns the number of entries written.

        Args:
            directory_path: Root directory. Stored names are relative to it and use '/'.
            pattern: fnmatch-style pattern applied to file names (default: all files).
            recursive: Descend into subdirectories.
            include: ``(file_path, relative_path) -> bool``; files it rejects are skipped.
            exclude: ``(file_path, relative_path) -> bool``; checked before ``include``.
            rename: ``relative_path -> name``; a falsy result keeps the relative path.
        """
        if directory_path is None:
            raise ArgumentNoneError("directory_path")
        self._require_open()
        pattern = pattern or "*"
        root = os.path.abspath(os.fspath(directory_path))
        added = 0
        for file_path, rel_path in _iter_files(root, pattern, recursive):
            if exclude is not None and exclude(file_path, rel_path):
                continue
            if include is not None and not include(file_path, rel_path):
                continue

            name = rename(rel_path) if rename is not None else None
            name = name or rel_path
            event = EntryEvent(name, 0, file_path, rel_path)
            self.listener.adding_entry(event)
            if event.cancel:
                logger.debug("Skipping '%s' on listener request", rel_path)
                continue
            if event.name:
                name = event.name

            compressed_length = self.add_file(file_path, name)
            self.listener.added_entry(EntryEvent(name, compressed_length, file_path, rel_path))
            added += 1
        return added


def _iter_files(root: str, pattern: str, recursive: bool) -> List[Tuple[str, str]]:
    found: List[Tuple[str, str]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for fn in sorted(filenames):
            if not fnmatch.fnmatch(fn, pattern):
                continue
            full = os.path.join(dirpath, fn)
            rel = os.path.relpath(full, start=root).replace(os.sep, "/")
            found.append((full, rel))
        if not recursive:
            break
    return found

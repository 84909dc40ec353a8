from __future__ import annotations

import io
import logging
import os
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, BinaryIO, Optional, Union

from .codec import DecompressReader
from .errors import ArgumentNoneError
from .events import ArchiveListener, ProgressEvent, NULL_LISTENER

if TYPE_CHECKING:
    from .reader import ArchiveReader


logger = logging.getLogger(__name__)

Destination = Union[str, os.PathLike, BinaryIO]


class ArchiveEntry:
    """An indexed entry: where its payload starts and how big it is.

    Entries share their reader's stream. Extracting two entries of the same
    reader at once is not safe; serialize them or open a second reader.
    """

    def __init__(self, archive: "ArchiveReader", name: str, offset: int, compressed_length: int, length: int):
        if archive is None:
            raise ArgumentNoneError("archive")
        if name is None:
            raise ArgumentNoneError("name")
        self.archive = archive
        self.name = name
        self.offset = offset
        self.compressed_length = compressed_length
        self.length = length

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return (
            f"ArchiveEntry(name={self.name!r}, offset={self.offset}, "
            f"compressed_length={self.compressed_length}, length={self.length})"
        )

    def extract_to(self, destination: Destination, listener: Optional[ArchiveListener] = None) -> int:
        """Decompress the payload into ``destination``; returns bytes written.

        ``destination`` is a writable binary stream or a filesystem path. For a
        path the parent directories are created and the file is closed again
        afterwards. A listener that cancels leaves the destination truncated.
        """
        if destination is None:
            raise ArgumentNoneError("destination")
        if isinstance(destination, (str, os.PathLike)):
            parent = os.path.dirname(os.fspath(destination))
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(destination, "wb") as wf:
                return self._extract_stream(wf, listener or NULL_LISTENER)
        return self._extract_stream(destination, listener or NULL_LISTENER)

    def _extract_stream(self, destination: BinaryIO, listener: ArchiveListener) -> int:
        archive = self.archive
        f = archive._require_open()
        f.seek(self.offset)
        size = max(archive.buffer_size, 1)
        written = 0
        with DecompressReader(f, archive.codec, self.compressed_length, size) as dr:
            while True:
                chunk = dr.read(size)
                if not chunk:
                    break
                destination.write(chunk)
                written += len(chunk)
                event = ProgressEvent(self.name, written, dr.consumed)
                listener.progress(event)
                if event.cancel:
                    logger.warning("Extraction of '%s' cancelled after %d bytes", self.name, written)
                    return written
        logger.debug("Extracted '%s' (%d bytes)", self.name, written)
        return written

    def extract_to_async(
        self,
        destination: Destination,
        listener: Optional[ArchiveListener] = None,
        executor: Optional[Executor] = None,
    ) -> "Future[int]":
        """Run :meth:`extract_to` without blocking the caller.

        Without an ``executor`` a private single-worker pool runs the job and
        is shut down once it finishes.
        """
        if destination is None:
            raise ArgumentNoneError("destination")
        if executor is not None:
            return executor.submit(self.extract_to, destination, listener)
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="brzip-extract")
        try:
            return pool.submit(self.extract_to, destination, listener)
        finally:
            pool.shutdown(wait=False)

    def read_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.extract_to(buf)
        return buf.getvalue()

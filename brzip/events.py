"""Progress and entry notifications.

Writers and entries deliver one :class:`ProgressEvent` per chunk to an
:class:`ArchiveListener`. A receiver stops the operation by setting
``event.cancel``; the producer checks the flag before the next chunk, never in
the middle of one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class ProgressEvent:
    name: str
    in_size: int  # logical (uncompressed) bytes so far
    out_size: int  # physical (compressed) bytes so far
    cancel: bool = False

    def __str__(self) -> str:
        return self.name


@dataclass
class EntryEvent:
    name: str
    compressed_length: int = 0
    file_path: Optional[str] = None
    relative_path: Optional[str] = None
    cancel: bool = False

    def __str__(self) -> str:
        return self.name


class ArchiveListener:
    """Notification sink for writers and extraction. Every hook is a no-op."""

    def progress(self, event: ProgressEvent) -> None:
        pass

    def adding_entry(self, event: EntryEvent) -> None:
        pass

    def added_entry(self, event: EntryEvent) -> None:
        pass


class CallbackListener(ArchiveListener):
    """Adapts plain callables to :class:`ArchiveListener`."""

    def __init__(
        self,
        progress: Optional[Callable[[ProgressEvent], None]] = None,
        adding_entry: Optional[Callable[[EntryEvent], None]] = None,
        added_entry: Optional[Callable[[EntryEvent], None]] = None,
    ):
        self._progress = progress
        self._adding_entry = adding_entry
        self._added_entry = added_entry

    def progress(self, event: ProgressEvent) -> None:
        if self._progress is not None:
            self._progress(event)

    def adding_entry(self, event: EntryEvent) -> None:
        if self._adding_entry is not None:
            self._adding_entry(event)

    def added_entry(self, event: EntryEvent) -> None:
        if self._added_entry is not None:
            self._added_entry(event)


NULL_LISTENER = ArchiveListener()

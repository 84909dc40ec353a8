from __future__ import annotations

import zlib
from typing import BinaryIO, Optional

import brotli

from .constants import (
    BROTLI_DEFAULT_QUALITY,
    BROTLI_DEFAULT_LGWIN,
    DEFLATE_DEFAULT_LEVEL,
    DEFAULT_BUFFER_SIZE,
)
from .errors import CodecError


CODEC_BROTLI = "brotli"
CODEC_DEFLATE = "deflate"


class Codec:
    """Streaming compression adapter.

    The container never stores which codec produced a payload, so the reader
    must be configured with the same codec as the writer.
    """

    codec_id = ""

    def __init__(self, level: Optional[int] = None):
        self.level = level

    def compressor(self):
        raise NotImplementedError

    def decompressor(self):
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(level={self.level!r})"


class _BrotliCompressor:
    def __init__(self, quality: int, lgwin: int):
        self._c = brotli.Compressor(mode=brotli.MODE_GENERIC, quality=quality, lgwin=lgwin)

    def compress(self, data: bytes) -> bytes:
        return self._c.process(data)

    def flush(self) -> bytes:
        return self._c.flush()

    def finish(self) -> bytes:
        return self._c.finish()


class _BrotliDecompressor:
    def __init__(self):
        self._d = brotli.Decompressor()

    def decompress(self, data: bytes) -> bytes:
        return self._d.process(data)

    @property
    def eof(self) -> bool:
        return self._d.is_finished()


class BrotliCodec(Codec):
    codec_id = CODEC_BROTLI

    def __init__(self, level: Optional[int] = None, lgwin: int = BROTLI_DEFAULT_LGWIN):
        super().__init__(BROTLI_DEFAULT_QUALITY if level is None else level)
        self.lgwin = lgwin

    def compressor(self):
        return _BrotliCompressor(self.level, self.lgwin)

    def decompressor(self):
        return _BrotliDecompressor()


class _DeflateCompressor:
    def __init__(self, level: int):
        # Raw deflate stream, no zlib header or adler32 trailer
        self._c = zlib.compressobj(level, zlib.DEFLATED, -15)

    def compress(self, data: bytes) -> bytes:
        return self._c.compress(data)

    def flush(self) -> bytes:
        return self._c.flush(zlib.Z_SYNC_FLUSH)

    def finish(self) -> bytes:
        return self._c.flush(zlib.Z_FINISH)


class _DeflateDecompressor:
    def __init__(self):
        self._d = zlib.decompressobj(-15)

    def decompress(self, data: bytes) -> bytes:
        return self._d.decompress(data)

    @property
    def eof(self) -> bool:
        return self._d.eof


class DeflateCodec(Codec):
    codec_id = CODEC_DEFLATE

    def __init__(self, level: Optional[int] = None):
        super().__init__(DEFLATE_DEFAULT_LEVEL if level is None else level)

    def compressor(self):
        return _DeflateCompressor(self.level)

    def decompressor(self):
        return _DeflateDecompressor()


_CODECS = {
    CODEC_BROTLI: BrotliCodec,
    CODEC_DEFLATE: DeflateCodec,
}


def get_codec(codec_id: str, level: Optional[int] = None) -> Codec:
    try:
        klass = _CODECS[codec_id.lower()]
    except KeyError:
        raise ValueError(f"unsupported codec: {codec_id}") from None
    return klass(level)


def codec_names():
    return sorted(_CODECS)


_CODEC_ERRORS = (brotli.error, zlib.error)


class CompressWriter:
    """Compress-on-write wrapper around a sink it does not own.

    ``close`` writes the codec's trailing state but leaves ``sink`` open.
    """

    def __init__(self, sink: BinaryIO, codec: Codec):
        self.sink = sink
        self._c = codec.compressor()
        self.closed = False

    def write(self, data: bytes) -> int:
        try:
            out = self._c.compress(data)
        except _CODEC_ERRORS as e:
            raise CodecError(f"{type(self._c).__name__} compression failed: {e}") from e
        if out:
            self.sink.write(out)
        return len(data)

    def flush(self) -> None:
        try:
            out = self._c.flush()
        except _CODEC_ERRORS as e:
            raise CodecError(f"{type(self._c).__name__} flush failed: {e}") from e
        if out:
            self.sink.write(out)
        self.sink.flush()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            out = self._c.finish()
        except _CODEC_ERRORS as e:
            raise CodecError(f"{type(self._c).__name__} finish failed: {e}") from e
        if out:
            self.sink.write(out)
        self.sink.flush()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class DecompressReader:
    """Decompress-on-read wrapper over at most ``limit`` bytes of ``source``.

    The source is read from its current position and is never closed.
    ``consumed`` counts compressed bytes pulled from the source so far.
    """

    def __init__(self, source: BinaryIO, codec: Codec, limit: int, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.source = source
        self.limit = limit
        self.buffer_size = max(buffer_size, 1)
        self.consumed = 0
        self._d = codec.decompressor()
        self._pending = b""
        self._pos = 0

    def _fill(self) -> bool:
        while self._pos >= len(self._pending):
            remaining = self.limit - self.consumed
            if remaining <= 0:
                if self.consumed and not self._d.eof:
                    raise CodecError("compressed payload ended before the codec stream was complete")
                return False
            raw = self.source.read(min(self.buffer_size, remaining))
            if not raw:
                raise CodecError(
                    f"unexpected end of archive after {self.consumed} of {self.limit} payload bytes"
                )
            self.consumed += len(raw)
            try:
                self._pending = self._d.decompress(raw)
                self._pos = 0
            except _CODEC_ERRORS as e:
                raise CodecError(f"{type(self._d).__name__} decompression failed: {e}") from e
        return True

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            size = self.buffer_size
        if not self._fill():
            return b""
        out = self._pending[self._pos : self._pos + size]
        self._pos += len(out)
        return out

    def close(self) -> None:
        self._pending = b""
        self._pos = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

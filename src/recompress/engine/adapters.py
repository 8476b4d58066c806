"""Stream adapters around the incremental codecs.

DecodingReader: compressed stream in, plain bytes out (readable).
EncodingWriter: plain bytes in, compressed stream out (writable, ``finish()``).

Neither adapter closes the stream it wraps; the caller owns it. Closing an
EncodingWriter does not finish it: call ``finish()`` explicitly.
"""

from __future__ import annotations

import io
from typing import Any, Protocol

from recompress.core.codec_base import Decoder, Encoder
from recompress.engine.detect import Readable
from recompress.options import CHUNK_SIZE_DEFAULT


class Writable(Protocol):
    def write(self, data: bytes, /) -> int | None: ...


def write_all(sink: Writable, data: bytes) -> int:
    """Write every byte of ``data``; raw sinks may accept fewer bytes per call."""
    view = memoryview(data)
    total = len(view)
    while view:
        n = sink.write(view)
        if n is None:
            # buffered/text-style sinks take everything or raise
            break
        if n <= 0:
            raise OSError(f"sink accepted 0 of {len(view)} bytes")
        view = view[n:]
    return total


class DecodingReader(io.RawIOBase):
    def __init__(
        self, stream: Readable, decoder: Decoder, *, chunk_size: int = CHUNK_SIZE_DEFAULT
    ) -> None:
        super().__init__()
        self._stream = stream
        self.decoder = decoder
        self._chunk_size = chunk_size
        self._eof = False
        # compressed bytes pulled from the source
        self.bytes_in = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b: Any) -> int:
        view = memoryview(b).cast("B")
        if not len(view) or self._eof:
            return 0
        while True:
            if self.decoder.needs_input:
                chunk = self._stream.read(self._chunk_size)
                if not chunk:
                    self._eof = True
                    self.decoder.finish()
                    return 0
                self.bytes_in += len(chunk)
            else:
                chunk = b""
            # never more than the caller asked for, whatever the ratio
            data = self.decoder.decompress(chunk, len(view))
            if data:
                view[: len(data)] = data
                return len(data)


class EncodingWriter(io.RawIOBase):
    def __init__(self, stream: Writable, encoder: Encoder) -> None:
        super().__init__()
        self._stream = stream
        self.encoder = encoder
        self.finished = False
        # compressed bytes handed to the sink
        self.bytes_out = 0

    def writable(self) -> bool:
        return True

    def write(self, b: Any) -> int:
        if self.finished:
            raise ValueError("write after finish()")
        data = bytes(b)
        out = self.encoder.compress(data)
        if out:
            self.bytes_out += write_all(self._stream, out)
        return len(data)

    def finish(self) -> None:
        """Emit the encoder trailer. Only the first call does anything."""
        if self.finished:
            return
        self.finished = True
        tail = self.encoder.flush()
        if tail:
            self.bytes_out += write_all(self._stream, tail)

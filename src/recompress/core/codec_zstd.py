from __future__ import annotations

from typing import Any

try:
    import zstandard as zstd  # type: ignore
except ImportError:  # pragma: no cover
    zstd = None

from recompress.core.codec_base import Encoder, MemberDecoder
from recompress.kinds import CompressionKind


def _require() -> None:
    if zstd is None:
        raise RuntimeError(
            "Module 'zstandard' not available. Install with: python3 -m pip install zstandard"
        )


# compressed bytes per decompressobj call. The call has no output limit and a
# 4-byte RLE block expands to 128 KiB, so one call yields at most 8 MiB.
FEED_SIZE = 256


class FrameStream:
    """
    One zstd frame behind the ``bz2.BZ2Decompressor`` interface.

    Input goes to zstandard in FEED_SIZE slices; output of the last slice is
    handed out from a view, ``max_length`` bytes at a time.
    """

    def __init__(self) -> None:
        self._obj = zstd.ZstdDecompressor().decompressobj()
        self._input = memoryview(b"")
        self._out = memoryview(b"")
        self._pos = 0

    def _drained(self) -> bool:
        return self._pos >= len(self._out)

    @property
    def needs_input(self) -> bool:
        return not self._input and self._drained()

    @property
    def eof(self) -> bool:
        return self._obj.eof and self._drained()

    @property
    def unused_data(self) -> bytes:
        return self._obj.unused_data + bytes(self._input)

    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        if data:
            self._input = memoryview(bytes(self._input) + bytes(data))
        while self._drained() and self._input and not self._obj.eof:
            piece, self._input = self._input[:FEED_SIZE], self._input[FEED_SIZE:]
            # drop the drained output before the next one is built
            self._out = memoryview(b"")
            self._out = memoryview(self._obj.decompress(bytes(piece)))
            self._pos = 0
        end = len(self._out) if max_length < 0 else self._pos + max_length
        out = bytes(self._out[self._pos : end])
        self._pos += len(out)
        return out


class ZstdDecoder(MemberDecoder):
    """
    zstd decoder; one decompressobj per frame, frames decode back to back.
    """

    kind = CompressionKind.ZSTD
    multi_member = True

    def __init__(self) -> None:
        _require()
        super().__init__()
        self.errors = (zstd.ZstdError,)

    def _new(self) -> Any:
        return FrameStream()


class ZstdEncoder(Encoder):
    """
    Streaming zstd encoder.

    Content size is unknown up front, so frames carry no content size field.
    """

    kind = CompressionKind.ZSTD

    def __init__(self, level: int = 3):
        _require()
        if not (1 <= level <= 22):
            raise ValueError(f"zstd level must be 1..22, got {level}")
        self.level = level
        self._obj = zstd.ZstdCompressor(level=int(level)).compressobj()

    def compress(self, data: bytes) -> bytes:
        return self._obj.compress(data)

    def flush(self) -> bytes:
        return self._obj.flush(zstd.COMPRESSOBJ_FLUSH_FINISH)

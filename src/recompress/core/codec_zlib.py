from __future__ import annotations

import zlib
from typing import Any

from recompress.core.codec_base import Encoder, MemberDecoder
from recompress.kinds import CompressionKind

# wbits per framing (see zlib docs)
WBITS_GZIP = 16 + zlib.MAX_WBITS
WBITS_ZLIB = zlib.MAX_WBITS
WBITS_RAW = -zlib.MAX_WBITS


def looks_like_zlib_header(head: bytes) -> bool:
    """True if the first two bytes are a valid zlib (RFC 1950) header without preset dict."""
    if len(head) < 2:
        return False
    # low nibble 8 in raw DEFLATE = stored block with nonzero pad bits, which zlib never writes
    cmf, flg = head[0], head[1]
    return (
        (cmf & 0x0F) == 8
        and (cmf >> 4) <= 7
        and (cmf * 256 + flg) % 31 == 0
        and not (flg & 0x20)
    )


class InflateStream:
    """``zlib.decompressobj`` behind the ``bz2.BZ2Decompressor`` interface."""

    def __init__(self, wbits: int) -> None:
        self.wbits = wbits
        self._obj = zlib.decompressobj(wbits)
        self.needs_input = True

    @property
    def eof(self) -> bool:
        return self._obj.eof

    @property
    def unused_data(self) -> bytes:
        return self._obj.unused_data

    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        # zlib spells "no limit" as 0
        limit = max(max_length, 0)
        tail = self._obj.unconsumed_tail
        out = self._obj.decompress(tail + data if tail else data, limit)
        # a full buffer may leave output inside zlib even with no tail left
        self.needs_input = not self._obj.unconsumed_tail and (limit == 0 or len(out) < limit)
        return out


class GzipDecoder(MemberDecoder):
    kind = CompressionKind.GZIP
    multi_member = True
    skip_padding = True
    errors = (zlib.error,)

    def _new(self) -> Any:
        return InflateStream(WBITS_GZIP)


class ZlibDecoder(MemberDecoder):
    kind = CompressionKind.ZLIB
    multi_member = False
    errors = (zlib.error,)

    def _new(self) -> Any:
        return InflateStream(WBITS_ZLIB)


class DeflateDecoder(MemberDecoder):
    """
    DEFLATE decoder.

    A stream is only detected as DEFLATE through a ``78 01`` prefix, which is a
    zlib header, so both framings are accepted: zlib-wrapped when the first two
    bytes are a valid zlib header, raw DEFLATE otherwise. Nothing is decoded
    before those two bytes are in.
    """

    kind = CompressionKind.DEFLATE
    multi_member = False
    errors = (zlib.error,)

    def __init__(self) -> None:
        super().__init__()
        self.wbits: int | None = None

    def _undecided(self) -> bool:
        return self._obj is None and not self._members

    @property
    def needs_input(self) -> bool:
        if self._undecided() and len(self._input) < 2:
            return True
        return super().needs_input

    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        if self._undecided() and len(self._input) + len(data) < 2:
            self._input += bytes(data)
            return b""
        return super().decompress(data, max_length)

    def _new(self) -> Any:
        # only reached with the first two bytes buffered in self._input
        head = self._input[:2]
        self.wbits = WBITS_ZLIB if looks_like_zlib_header(head) else WBITS_RAW
        return InflateStream(self.wbits)


class ZlibFamilyEncoder(Encoder):
    """zlib/gzip/raw DEFLATE encoder (no external deps)."""

    def __init__(self, kind: CompressionKind, level: int = 6):
        if not (0 <= level <= 9):
            raise ValueError(f"zlib level must be 0..9, got {level}")
        wbits = {
            CompressionKind.GZIP: WBITS_GZIP,
            CompressionKind.ZLIB: WBITS_ZLIB,
            CompressionKind.DEFLATE: WBITS_RAW,
        }.get(kind)
        if wbits is None:
            raise ValueError(f"not a zlib-family kind: {kind.label}")
        self.kind = kind
        self.level = level
        self._obj = zlib.compressobj(level, zlib.DEFLATED, wbits)

    def compress(self, data: bytes) -> bytes:
        return self._obj.compress(data)

    def flush(self) -> bytes:
        return self._obj.flush(zlib.Z_FINISH)

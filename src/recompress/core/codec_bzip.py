from __future__ import annotations

import bz2
from typing import Any

from recompress.core.codec_base import Encoder, MemberDecoder
from recompress.kinds import CompressionKind


class BzipDecoder(MemberDecoder):
    """bzip2 decoder; concatenated streams (pbzip2, ``cat a.bz2 b.bz2``) decode back to back."""

    kind = CompressionKind.BZIP
    multi_member = True
    # bz2 reports corrupt data as OSError ("Invalid data stream")
    errors = (OSError,)

    def _new(self) -> Any:
        return bz2.BZ2Decompressor()


class BzipEncoder(Encoder):
    kind = CompressionKind.BZIP

    def __init__(self, level: int = 9):
        if not (1 <= level <= 9):
            raise ValueError(f"bzip2 level must be 1..9, got {level}")
        self.level = level
        self._obj = bz2.BZ2Compressor(level)

    def compress(self, data: bytes) -> bytes:
        return self._obj.compress(data)

    def flush(self) -> bytes:
        return self._obj.flush()

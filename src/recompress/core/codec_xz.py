from __future__ import annotations

import lzma
from typing import Any

from recompress.core.codec_base import Encoder, MemberDecoder
from recompress.kinds import CompressionKind


class XzDecoder(MemberDecoder):
    kind = CompressionKind.XZ
    multi_member = True
    skip_padding = True
    errors = (lzma.LZMAError,)

    def _new(self) -> Any:
        return lzma.LZMADecompressor(format=lzma.FORMAT_XZ)


class XzEncoder(Encoder):
    """
    xz container, CRC64 check (same defaults as the ``xz`` tool).
    """

    kind = CompressionKind.XZ

    def __init__(self, preset: int = 6):
        if not (0 <= preset <= 9):
            raise ValueError(f"xz preset must be 0..9, got {preset}")
        self.preset = preset
        self._obj = lzma.LZMACompressor(
            format=lzma.FORMAT_XZ, check=lzma.CHECK_CRC64, preset=preset
        )

    def compress(self, data: bytes) -> bytes:
        return self._obj.compress(data)

    def flush(self) -> bytes:
        return self._obj.flush()

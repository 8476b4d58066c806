from __future__ import annotations

from recompress.core.codec_base import Decoder, Encoder
from recompress.kinds import CompressionKind


class RawDecoder(Decoder):
    """
    Codec identity: the "compressed" stream is the payload.
    """

    kind = CompressionKind.NONE

    def __init__(self) -> None:
        self._view = memoryview(b"")

    @property
    def needs_input(self) -> bool:
        return not self._view

    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        if data:
            self._view = memoryview(bytes(self._view) + bytes(data))
        n = len(self._view) if max_length < 0 else max_length
        out, self._view = bytes(self._view[:n]), self._view[n:]
        return out

    def finish(self) -> None:
        # any length is a complete plain stream
        return None


class RawEncoder(Encoder):
    kind = CompressionKind.NONE

    def compress(self, data: bytes) -> bytes:
        return bytes(data)

    def flush(self) -> bytes:
        return b""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from recompress.errors import DecodeError, TruncatedStream
from recompress.kinds import CompressionKind


class Decoder(ABC):
    """
    Incremental decoder: compressed chunks in, plain bytes out.

    Same contract as ``bz2.BZ2Decompressor``: with ``max_length >= 0`` at most
    that many bytes come back and the rest stays inside the decoder. Feed new
    input only when ``needs_input`` is true; otherwise call with ``b""`` to
    drain. Output therefore stays bounded whatever the compression ratio.

    NOTE: one instance per stream, never reused across calls.
    """

    kind: CompressionKind

    @abstractmethod
    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        raise NotImplementedError

    @property
    @abstractmethod
    def needs_input(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def finish(self) -> None:
        """Called once at end of input. Raise TruncatedStream if the stream is incomplete."""
        raise NotImplementedError


class Encoder(ABC):
    """
    Incremental encoder: plain chunks in, compressed bytes out.

    ``flush`` emits everything still buffered plus the trailer (checksums,
    end-of-stream markers). Without it the output is not decodable.
    """

    kind: CompressionKind

    @abstractmethod
    def compress(self, data: bytes) -> bytes:
        raise NotImplementedError

    @abstractmethod
    def flush(self) -> bytes:
        raise NotImplementedError


class MemberDecoder(Decoder):
    """
    Decoder backed by one library decompressor per member. ``_new`` returns an
    object with the ``bz2.BZ2Decompressor`` interface: ``decompress(data,
    max_length)``, ``needs_input``, ``eof`` and ``unused_data``.

    Concatenated members (gzip members, bzip2/xz streams, zstd frames) are
    decoded back to back when ``multi_member`` is true; otherwise bytes after
    the end of the stream are an error.
    """

    multi_member: bool = True
    # NUL padding allowed between members (gzip, xz)
    skip_padding: bool = False
    errors: tuple[type[BaseException], ...] = ()

    def __init__(self) -> None:
        self._obj: Any = None
        # input not handed to a library object yet (start of the next member)
        self._input = b""
        self._members = 0

    @abstractmethod
    def _new(self) -> Any:
        raise NotImplementedError

    @property
    def needs_input(self) -> bool:
        if self._input:
            return False
        return self._obj is None or self._obj.needs_input

    def _step(self, limit: int) -> bytes | None:
        """One library call; None when nothing more comes out without new input."""
        if self._obj is None:
            if self._members and self.skip_padding:
                self._input = self._input.lstrip(b"\x00")
            if not self._input:
                return None
            if self._members and not self.multi_member:
                raise DecodeError(
                    f"{self.kind.label}: trailing data after end of stream", kind=self.kind
                )
            self._obj = self._new()
        elif not self._input and self._obj.needs_input:
            return None
        data, self._input = self._input, b""
        try:
            out = self._obj.decompress(data, limit)
        except self.errors as e:
            raise DecodeError(f"{self.kind.label}: {e}", kind=self.kind) from e
        if self._obj.eof:
            self._input = self._obj.unused_data
            self._obj = None
            self._members += 1
        return out

    def decompress(self, data: bytes, max_length: int = -1) -> bytes:
        if data:
            self._input += bytes(data)
        out = bytearray()
        while max_length < 0 or len(out) < max_length:
            piece = self._step(-1 if max_length < 0 else max_length - len(out))
            if piece is None:
                break
            out += piece
        return bytes(out)

    def finish(self) -> None:
        if self._obj is not None or not self._members or self._input:
            raise TruncatedStream(
                f"{self.kind.label}: input ended before end of compressed stream", kind=self.kind
            )

"""Readers that replay an already consumed prefix before the rest of a stream.

"Peeking" is read-then-reconstruct: the wrapped stream is never rewound.
"""

from __future__ import annotations

import io
from typing import Any

from recompress.engine.detect import AsyncReadable, Readable


class PrefixedReader(io.RawIOBase):
    """``prefix`` followed by whatever ``stream`` still has to give."""

    def __init__(self, prefix: bytes, stream: Readable, *, close_source: bool = False) -> None:
        super().__init__()
        self._prefix = memoryview(bytes(prefix))
        self._pos = 0
        self._stream = stream
        self._close_source = close_source

    def readable(self) -> bool:
        return True

    def readinto(self, b: Any) -> int:
        view = memoryview(b).cast("B")
        if not len(view):
            return 0
        if self._pos < len(self._prefix):
            n = min(len(view), len(self._prefix) - self._pos)
            view[:n] = self._prefix[self._pos : self._pos + n]
            self._pos += n
            return n
        data = self._stream.read(len(view))
        if not data:
            return 0
        n = len(data)
        view[:n] = data
        return n

    def close(self) -> None:
        if not self.closed and self._close_source:
            close = getattr(self._stream, "close", None)
            if close is not None:
                close()
        super().close()


class AsyncPrefixedReader:
    """Asyncio flavour of PrefixedReader: ``await read(n)``."""

    def __init__(self, prefix: bytes, reader: AsyncReadable) -> None:
        self._prefix = bytes(prefix)
        self._reader = reader

    async def read(self, n: int = -1) -> bytes:
        if self._prefix:
            if n < 0:
                head, self._prefix = self._prefix, b""
                return head + await self._reader.read(-1)
            head, self._prefix = self._prefix[:n], self._prefix[n:]
            return head
        return await self._reader.read(n)

"""Format sniffing from a fixed-size stream prefix.

The input may be a pipe or a socket: nothing here seeks. The bytes read are
returned to the caller, who replays them (see ``recompress.engine.replay``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from recompress.kinds import CompressionKind

logger = logging.getLogger(__name__)

# Long enough for every signature below (xz needs all 6).
# A longer signature means widening this, detector and replay share it.
DETECTION_WINDOW = 6


class Readable(Protocol):
    def read(self, size: int = ..., /) -> bytes: ...


class AsyncReadable(Protocol):
    async def read(self, n: int = ..., /) -> bytes: ...


@dataclass(frozen=True)
class Signature:
    """Magic bytes; ``None`` positions are wildcards and never compared."""

    pattern: tuple[int | None, ...]
    kind: CompressionKind

    @classmethod
    def from_hex(cls, spec: str, kind: CompressionKind) -> Signature:
        pattern = tuple(None if tok == "??" else int(tok, 16) for tok in spec.split())
        return cls(pattern=pattern, kind=kind)

    @property
    def required(self) -> int:
        """Bytes needed to compare every non-wildcard position."""
        n = 0
        for i, b in enumerate(self.pattern):
            if b is not None:
                n = i + 1
        return n

    def matches(self, prefix: bytes) -> bool:
        if len(prefix) < self.required:
            return False
        return all(b is None or prefix[i] == b for i, b in enumerate(self.pattern[: self.required]))


SIGNATURES: tuple[Signature, ...] = (
    Signature.from_hex("28 B5 2F FD ?? ??", CompressionKind.ZSTD),
    Signature.from_hex("1F 8B ?? ?? ?? ??", CompressionKind.GZIP),
    Signature.from_hex("78 01 ?? ?? ?? ??", CompressionKind.DEFLATE),
    Signature.from_hex("78 9C ?? ?? ?? ??", CompressionKind.ZLIB),
    Signature.from_hex("FD 37 7A 58 5A 00", CompressionKind.XZ),
    Signature.from_hex("42 5A 68 ?? ?? ??", CompressionKind.BZIP),
)


@dataclass(frozen=True)
class DetectionResult:
    kind: CompressionKind
    # exactly the bytes consumed from the stream, possibly empty
    prefix: bytes


def classify(prefix: bytes) -> CompressionKind:
    """Match a prefix against SIGNATURES. Unmatched is NONE, never an error."""
    window = bytes(prefix[:DETECTION_WINDOW])
    for sig in SIGNATURES:
        if sig.matches(window):
            return sig.kind
    return CompressionKind.NONE


def read_prefix(stream: Readable, size: int = DETECTION_WINDOW) -> bytes:
    """Read up to ``size`` bytes, retrying short reads until EOF."""
    buf = bytearray()
    while len(buf) < size:
        chunk = stream.read(size - len(buf))
        if not chunk:
            break
        buf += chunk
    return bytes(buf)


async def read_prefix_async(reader: AsyncReadable, size: int = DETECTION_WINDOW) -> bytes:
    buf = bytearray()
    while len(buf) < size:
        chunk = await reader.read(size - len(buf))
        if not chunk:
            break
        buf += chunk
    return bytes(buf)


def _result(prefix: bytes) -> DetectionResult:
    kind = classify(prefix)
    logger.debug("detected %s from %d prefix bytes (%s)", kind.label, len(prefix), prefix.hex())
    return DetectionResult(kind=kind, prefix=prefix)


def detect(stream: Readable) -> DetectionResult:
    """Consume up to DETECTION_WINDOW bytes from ``stream`` and classify them."""
    return _result(read_prefix(stream))


async def detect_async(reader: AsyncReadable) -> DetectionResult:
    return _result(await read_prefix_async(reader))

from __future__ import annotations

from enum import Enum
from functools import total_ordering

from recompress.errors import UsageError


@total_ordering
class CompressionKind(Enum):
    """
    Closed set of compression kinds understood by recompress.

    NONE = uncompressed or unrecognized.
    Ordering follows declaration order; it only exists for sorting.
    """

    BZIP = "bzip"
    DEFLATE = "deflate"
    GZIP = "gzip"
    XZ = "xz"
    ZLIB = "zlib"
    ZSTD = "zstd"
    NONE = "none"

    @property
    def label(self) -> str:
        return self.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, CompressionKind):
            return NotImplemented
        return _ORDER[self] < _ORDER[other]

    @classmethod
    def parse(cls, name: str | CompressionKind) -> CompressionKind:
        """Resolve a kind from its name or a common alias (case-insensitive)."""
        if isinstance(name, CompressionKind):
            return name
        if not isinstance(name, str) or not name.strip():
            raise UsageError(f"compression kind: expected a non-empty name, got {name!r}")
        key = name.strip().lower()
        kind = _ALIASES.get(key)
        if kind is None:
            known = ", ".join(sorted(_ALIASES))
            raise UsageError(f"compression kind: unknown name {name!r} (known: {known})")
        return kind


_ORDER: dict[CompressionKind, int] = {k: i for i, k in enumerate(CompressionKind)}

_ALIASES: dict[str, CompressionKind] = {k.value: k for k in CompressionKind}
_ALIASES.update(
    {
        "bz2": CompressionKind.BZIP,
        "bzip2": CompressionKind.BZIP,
        "gz": CompressionKind.GZIP,
        "zst": CompressionKind.ZSTD,
        "zstandard": CompressionKind.ZSTD,
        "raw": CompressionKind.NONE,
        "identity": CompressionKind.NONE,
    }
)

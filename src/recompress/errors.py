"""Typed errors for recompress.

Policy:
- Errors are small and boring.
- I/O failures are NOT wrapped: they stay ``OSError`` and reach the caller untouched.
- Anything that means "these bytes are not what the detected kind says" is a
  ``DecodeError``; detection itself never raises one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from recompress.kinds import CompressionKind


class RecompressError(Exception):
    """Base error for recompress.

    ``stage`` is the pipeline stage name where the error surfaced, when known.
    """

    def __init__(self, message: str, *, stage: str | None = None) -> None:
        super().__init__(message)
        self.stage = stage


class UsageError(RecompressError):
    """Invalid argument: unknown kind name, invalid options, etc."""


class DecodeError(RecompressError):
    """Compressed data does not conform to its kind's framing."""

    def __init__(
        self,
        message: str,
        *,
        kind: CompressionKind | None = None,
        stage: str | None = None,
    ) -> None:
        super().__init__(message, stage=stage)
        self.kind = kind


class TruncatedStream(DecodeError):
    """End of input reached before the end of the compressed stream."""

"""Codec options (v1) for recompress.

Goal: make encoder output reproducible: same options, same bytes.

This module intentionally stays *small* and strict:
  - a mapping or an inline JSON object, never a file
  - explicit schema id
  - unknown keys are rejected
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from recompress.errors import UsageError
from recompress.kinds import CompressionKind

OPTIONS_ID_V1 = "recompress.options.v1"

CHUNK_SIZE_DEFAULT = 64 * 1024

# Defaults match each library's own default level.
DEFAULT_LEVELS: dict[CompressionKind, int] = {
    CompressionKind.BZIP: 9,
    CompressionKind.DEFLATE: 6,
    CompressionKind.GZIP: 6,
    CompressionKind.XZ: 6,
    CompressionKind.ZLIB: 6,
    CompressionKind.ZSTD: 3,
}

LEVEL_RANGES: dict[CompressionKind, tuple[int, int]] = {
    CompressionKind.BZIP: (1, 9),
    CompressionKind.DEFLATE: (0, 9),
    CompressionKind.GZIP: (0, 9),
    CompressionKind.XZ: (0, 9),
    CompressionKind.ZLIB: (0, 9),
    CompressionKind.ZSTD: (1, 22),
}


class OptionsError(UsageError, ValueError):
    pass


def _parse_kind(key: object) -> CompressionKind:
    try:
        return CompressionKind.parse(key)  # type: ignore[arg-type]
    except UsageError as e:
        raise OptionsError(f"options: levels: {e}") from e


def _check_level(kind: CompressionKind, level: object) -> int:
    if kind not in LEVEL_RANGES:
        raise OptionsError(f"options: kind '{kind.label}' has no level")
    if isinstance(level, bool) or not isinstance(level, int):
        raise OptionsError(f"options: level for '{kind.label}' must be an integer")
    lo, hi = LEVEL_RANGES[kind]
    if not (lo <= level <= hi):
        raise OptionsError(f"options: level for '{kind.label}' must be {lo}..{hi}, got {level}")
    return level


@dataclass(frozen=True)
class CodecOptions:
    """Encoder levels per kind plus the pipeline chunk size."""

    levels: Mapping[CompressionKind | str, int] = field(
        default_factory=lambda: dict(DEFAULT_LEVELS)
    )
    chunk_size: int = CHUNK_SIZE_DEFAULT

    def __post_init__(self) -> None:
        merged = dict(DEFAULT_LEVELS)
        for key, level in self.levels.items():
            kind = _parse_kind(key)
            merged[kind] = _check_level(kind, level)
        object.__setattr__(self, "levels", merged)
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int):
            raise OptionsError("options: 'chunk_size' must be an integer")
        if self.chunk_size <= 0:
            raise OptionsError(f"options: 'chunk_size' must be > 0, got {self.chunk_size}")

    def level(self, kind: CompressionKind) -> int:
        return self.levels[kind]


def _load_json_arg(arg: str) -> dict[str, Any]:
    s = arg.strip()
    if not s:
        raise OptionsError("options: empty argument")
    try:
        obj = json.loads(s)
    except json.JSONDecodeError as e:
        raise OptionsError(f"options: invalid inline JSON: {e}") from e
    if not isinstance(obj, dict):
        raise OptionsError("options: inline JSON must be an object")
    return obj


def _optional_levels(obj: Mapping[str, Any]) -> dict[str, Any]:
    v = obj.get("levels")
    if v is None:
        return {}
    if not isinstance(v, Mapping):
        raise OptionsError("options: 'levels' must be an object {kind: level}")
    # kinds and ranges are checked by CodecOptions
    return dict(v)


def load_codec_options(arg: str | Mapping[str, Any]) -> CodecOptions:
    """Load and validate codec options.

    arg:
      - inline JSON object
      - an already parsed mapping
    """
    obj = _load_json_arg(arg) if isinstance(arg, str) else dict(arg)

    allowed = {"spec", "levels", "chunk_size"}
    extra = sorted(set(obj.keys()) - allowed)
    if extra:
        raise OptionsError(f"options: unsupported keys: {', '.join(extra)}")

    spec_id = obj.get("spec")
    if spec_id != OPTIONS_ID_V1:
        raise OptionsError(f"options: unsupported spec {spec_id!r} (expected {OPTIONS_ID_V1!r})")

    levels = _optional_levels(obj)
    chunk_size = obj.get("chunk_size", CHUNK_SIZE_DEFAULT)

    return CodecOptions(levels=levels, chunk_size=chunk_size)

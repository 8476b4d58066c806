"""recompress: sniff a compressed byte stream and re-encode it in another format."""

from __future__ import annotations

import logging

from recompress.engine.aio import recompress_async
from recompress.engine.detect import DETECTION_WINDOW, DetectionResult, classify, detect
from recompress.engine.pipeline import RecompressResult, recompress, recompress_bytes
from recompress.errors import DecodeError, RecompressError, TruncatedStream, UsageError
from recompress.kinds import CompressionKind
from recompress.options import CodecOptions, OptionsError, load_codec_options

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DETECTION_WINDOW",
    "CodecOptions",
    "CompressionKind",
    "DecodeError",
    "DetectionResult",
    "OptionsError",
    "RecompressError",
    "RecompressResult",
    "TruncatedStream",
    "UsageError",
    "classify",
    "detect",
    "load_codec_options",
    "recompress",
    "recompress_async",
    "recompress_bytes",
]

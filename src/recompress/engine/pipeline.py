"""Transcoding pipeline: detect, replay, then copy or decode -> encode.

Stages per call:
  START -> DETECTING -> {COPYING | TRANSCODING} -> FINALIZING -> DONE
Any stage may end in FAILED; the error reaches the caller unchanged
(``OSError`` for I/O, ``DecodeError`` for malformed data). Nothing is retried:
output written before a failure must be discarded by the caller.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from recompress.core.dispatch import decoder_for, encoder_for
from recompress.engine.adapters import DecodingReader, EncodingWriter, Writable, write_all
from recompress.engine.detect import Readable, detect
from recompress.engine.replay import PrefixedReader
from recompress.errors import RecompressError
from recompress.kinds import CompressionKind
from recompress.options import CodecOptions

logger = logging.getLogger(__name__)

PATH_COPY = "copy"
PATH_TRANSCODE = "transcode"


class Stage(str, Enum):
    START = "start"
    DETECTING = "detecting"
    COPYING = "copying_verbatim"
    TRANSCODING = "transcoding"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RecompressResult:
    detected: CompressionKind
    target: CompressionKind
    path: str
    # bytes read from the (replayed) input / written to the output
    bytes_in: int
    bytes_out: int


def _copy(src: Readable, dst: Writable, chunk_size: int) -> int:
    n = 0
    while True:
        b = src.read(chunk_size)
        if not b:
            break
        n += len(b)
        write_all(dst, b)
    return n


def finalize_output(stream: Any) -> None:
    """The sink's explicit flush, when it has one."""
    flush = getattr(stream, "flush", None)
    if flush is not None:
        flush()


def mark_failed(err: BaseException, stage: Stage) -> None:
    if isinstance(err, RecompressError) and err.stage is None:
        err.stage = stage.value
    logger.debug("recompress %s during %s: %s", Stage.FAILED.value, stage.value, err)


def recompress(
    input_stream: Readable,
    output_stream: Writable,
    target: CompressionKind | str,
    *,
    options: CodecOptions | None = None,
) -> RecompressResult:
    """Re-encode ``input_stream`` (kind sniffed) as ``target`` into ``output_stream``.

    Same kind in and out is a verbatim copy. ``output_stream.flush()`` is called
    exactly once at the end; neither stream is closed.
    """
    stage = Stage.START
    try:
        target_kind = CompressionKind.parse(target)
        opts = options if options is not None else CodecOptions()

        stage = Stage.DETECTING
        detection = detect(input_stream)
        source = PrefixedReader(detection.prefix, input_stream)

        if detection.kind is target_kind:
            stage = Stage.COPYING
            logger.debug("%s -> %s: verbatim copy", detection.kind.label, target_kind.label)
            n = _copy(source, output_stream, opts.chunk_size)
            stage = Stage.FINALIZING
            finalize_output(output_stream)
            result = RecompressResult(detection.kind, target_kind, PATH_COPY, n, n)
        else:
            stage = Stage.TRANSCODING
            logger.debug("%s -> %s: transcoding", detection.kind.label, target_kind.label)
            reader = DecodingReader(source, decoder_for(detection.kind), chunk_size=opts.chunk_size)
            writer = EncodingWriter(output_stream, encoder_for(target_kind, opts))
            _copy(reader, writer, opts.chunk_size)
            stage = Stage.FINALIZING
            writer.finish()
            finalize_output(output_stream)
            result = RecompressResult(
                detection.kind, target_kind, PATH_TRANSCODE, reader.bytes_in, writer.bytes_out
            )
    except Exception as e:
        mark_failed(e, stage)
        raise

    logger.debug(
        "recompress %s: %s -> %s via %s (%d bytes in, %d bytes out)",
        Stage.DONE.value,
        result.detected.label,
        result.target.label,
        result.path,
        result.bytes_in,
        result.bytes_out,
    )
    return result


def recompress_bytes(
    data: bytes, target: CompressionKind | str, *, options: CodecOptions | None = None
) -> bytes:
    """In-memory convenience around ``recompress``."""
    out = io.BytesIO()
    recompress(io.BytesIO(bytes(data)), out, target, options=options)
    return out.getvalue()

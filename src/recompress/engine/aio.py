"""Cooperative (asyncio) flavour of the transcoding pipeline.

Every ``await reader.read()`` and ``await writer.drain()`` is a suspension
point. Each call owns its codecs, so any number of calls can run
concurrently on one loop. Cancellation is the streams' business: cancelling
the task or closing a stream makes the next await raise, and that error
propagates like any other.
"""

from __future__ import annotations

import logging
from typing import Protocol

from recompress.core.codec_base import Decoder, Encoder
from recompress.core.dispatch import decoder_for, encoder_for
from recompress.engine.detect import AsyncReadable, detect_async
from recompress.engine.pipeline import (
    PATH_COPY,
    PATH_TRANSCODE,
    RecompressResult,
    Stage,
    mark_failed,
)
from recompress.engine.replay import AsyncPrefixedReader
from recompress.kinds import CompressionKind
from recompress.options import CodecOptions

logger = logging.getLogger(__name__)


class AsyncWritable(Protocol):
    """The asyncio.StreamWriter subset we need."""

    def write(self, data: bytes, /) -> object: ...

    async def drain(self) -> None: ...


async def _pump(
    reader: AsyncReadable,
    writer: AsyncWritable,
    decoder: Decoder,
    encoder: Encoder,
    chunk_size: int,
) -> tuple[int, int]:
    """Decode -> encode until end of input. The encoder trailer is not written here."""
    n_in = 0
    n_out = 0
    while True:
        if decoder.needs_input:
            chunk = await reader.read(chunk_size)
            if not chunk:
                break
            n_in += len(chunk)
        else:
            chunk = b""
        data = decoder.decompress(chunk, chunk_size)
        if not data:
            continue
        out = encoder.compress(data)
        if out:
            writer.write(out)
            n_out += len(out)
            await writer.drain()
    decoder.finish()
    return n_in, n_out


async def _copy(reader: AsyncReadable, writer: AsyncWritable, chunk_size: int) -> int:
    n = 0
    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break
        n += len(chunk)
        writer.write(chunk)
        await writer.drain()
    return n


async def recompress_async(
    reader: AsyncReadable,
    writer: AsyncWritable,
    target: CompressionKind | str,
    *,
    options: CodecOptions | None = None,
) -> RecompressResult:
    """``recompress`` over asyncio streams; the final ``drain()`` is the flush.

    The writer is not closed.
    """
    stage = Stage.START
    try:
        target_kind = CompressionKind.parse(target)
        opts = options if options is not None else CodecOptions()

        stage = Stage.DETECTING
        detection = await detect_async(reader)
        source = AsyncPrefixedReader(detection.prefix, reader)

        if detection.kind is target_kind:
            stage = Stage.COPYING
            logger.debug("%s -> %s: verbatim copy", detection.kind.label, target_kind.label)
            n = await _copy(source, writer, opts.chunk_size)
            stage = Stage.FINALIZING
            await writer.drain()
            result = RecompressResult(detection.kind, target_kind, PATH_COPY, n, n)
        else:
            stage = Stage.TRANSCODING
            logger.debug("%s -> %s: transcoding", detection.kind.label, target_kind.label)
            encoder = encoder_for(target_kind, opts)
            n_in, n_out = await _pump(
                source, writer, decoder_for(detection.kind), encoder, opts.chunk_size
            )
            stage = Stage.FINALIZING
            tail = encoder.flush()
            if tail:
                writer.write(tail)
                n_out += len(tail)
            await writer.drain()
            result = RecompressResult(detection.kind, target_kind, PATH_TRANSCODE, n_in, n_out)
    except Exception as e:
        mark_failed(e, stage)
        raise

    logger.debug(
        "recompress_async %s: %s -> %s via %s (%d bytes in, %d bytes out)",
        Stage.DONE.value,
        result.detected.label,
        result.target.label,
        result.path,
        result.bytes_in,
        result.bytes_out,
    )
    return result

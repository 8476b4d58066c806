from __future__ import annotations

import bz2
import io
import tracemalloc
import zlib
from pathlib import Path

import pytest
import zstandard as zstd

from _support import (
    ALL_KINDS,
    BIG_PAYLOAD,
    COMPRESSED_KINDS,
    PAYLOAD,
    RecordingSink,
    TrickleReader,
    reference_decode,
    reference_encode,
    sample_input,
)
from recompress import recompress, recompress_bytes
from recompress.engine.pipeline import PATH_COPY, PATH_TRANSCODE, Stage
from recompress.errors import DecodeError, TruncatedStream, UsageError
from recompress.kinds import CompressionKind
from recompress.options import CodecOptions


def test_none_passthrough() -> None:
    sink = RecordingSink()
    result = recompress(io.BytesIO(PAYLOAD), sink, CompressionKind.NONE)
    assert bytes(sink.buf) == PAYLOAD
    assert result.detected is CompressionKind.NONE
    assert result.path == PATH_COPY
    assert result.bytes_in == result.bytes_out == len(PAYLOAD)


@pytest.mark.parametrize("kind", COMPRESSED_KINDS)
def test_plain_input_matches_reference_encoder(kind: CompressionKind) -> None:
    out = recompress_bytes(PAYLOAD, kind)
    expected = reference_encode(kind, PAYLOAD)
    assert out
    assert out != PAYLOAD
    assert out == expected


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_same_kind_is_byte_identity(kind: CompressionKind) -> None:
    data = sample_input(kind, BIG_PAYLOAD) if kind is not CompressionKind.NONE else BIG_PAYLOAD
    sink = RecordingSink()
    result = recompress(TrickleReader(data, step=5000), sink, kind)
    assert bytes(sink.buf) == data
    assert result.path == PATH_COPY


@pytest.mark.parametrize("src", ALL_KINDS)
@pytest.mark.parametrize("dst", ALL_KINDS)
def test_any_to_any_roundtrip(src: CompressionKind, dst: CompressionKind) -> None:
    data = sample_input(src, BIG_PAYLOAD) if src is not CompressionKind.NONE else BIG_PAYLOAD
    opts = CodecOptions(chunk_size=1024)
    out = recompress_bytes(data, dst, options=opts)
    if src is dst:
        assert out == data
    else:
        assert reference_decode(dst, out) == BIG_PAYLOAD


def test_target_by_name() -> None:
    out = recompress_bytes(PAYLOAD, "gz")
    assert out == reference_encode(CompressionKind.GZIP, PAYLOAD)


def test_unknown_target_name() -> None:
    with pytest.raises(UsageError):
        recompress_bytes(PAYLOAD, "brotli")


def test_result_counts_for_transcode() -> None:
    src = sample_input(CompressionKind.GZIP, BIG_PAYLOAD)
    sink = RecordingSink()
    result = recompress(io.BytesIO(src), sink, CompressionKind.ZSTD)
    assert result.path == PATH_TRANSCODE
    assert result.detected is CompressionKind.GZIP
    assert result.target is CompressionKind.ZSTD
    assert result.bytes_in == len(src)
    assert result.bytes_out == len(sink.buf)


@pytest.mark.parametrize("target", [CompressionKind.NONE, CompressionKind.XZ])
def test_output_flushed_once_after_payload_and_never_closed(target: CompressionKind) -> None:
    sink = RecordingSink()
    recompress(io.BytesIO(PAYLOAD), sink, target)
    assert sink.flushes == 1
    assert sink.bytes_at_flush == len(sink.buf)
    assert not sink.closed


def test_slow_source_does_not_lose_bytes() -> None:
    src = sample_input(CompressionKind.BZIP, BIG_PAYLOAD)
    out = io.BytesIO()
    recompress(TrickleReader(src, step=3), out, CompressionKind.ZLIB)
    assert zlib.decompress(out.getvalue()) == BIG_PAYLOAD


def test_unrecognized_compressed_data_is_copied_verbatim() -> None:
    # raw DEFLATE carries no magic bytes: best-effort passthrough, not an error
    c = zlib.compressobj(6, zlib.DEFLATED, -15)
    raw = c.compress(BIG_PAYLOAD) + c.flush()
    assert recompress_bytes(raw, CompressionKind.NONE) == raw


def test_short_inputs() -> None:
    for data in (b"", b"x", b"12345"):
        assert recompress_bytes(data, CompressionKind.NONE) == data
        assert reference_decode(CompressionKind.GZIP, recompress_bytes(data, "gzip")) == data


def test_truncated_input_fails_during_transcoding() -> None:
    src = sample_input(CompressionKind.GZIP, BIG_PAYLOAD)[:-10]
    with pytest.raises(TruncatedStream) as ei:
        recompress_bytes(src, CompressionKind.ZSTD)
    assert ei.value.kind is CompressionKind.GZIP
    assert ei.value.stage == Stage.TRANSCODING.value


def test_corrupt_input_is_decode_error() -> None:
    src = b"\x28\xb5\x2f\xfd" + b"\xff" * 32
    with pytest.raises(DecodeError) as ei:
        recompress_bytes(src, CompressionKind.GZIP)
    assert ei.value.kind is CompressionKind.ZSTD


def test_same_kind_corrupt_input_is_copied() -> None:
    # fast path never decodes
    src = b"\x1f\x8b" + b"not really gzip"
    assert recompress_bytes(src, CompressionKind.GZIP) == src


def test_read_error_propagates_unwrapped() -> None:
    class FailsAfterPrefix:
        def __init__(self) -> None:
            self.calls = 0

        def read(self, n: int = -1) -> bytes:
            self.calls += 1
            if self.calls == 1:
                return PAYLOAD[:6]
            raise OSError("connection reset")

    with pytest.raises(OSError, match="connection reset"):
        recompress(FailsAfterPrefix(), io.BytesIO(), CompressionKind.GZIP)


def test_write_error_propagates_unwrapped() -> None:
    class FullDisk:
        def write(self, data: bytes) -> int:
            raise OSError(28, "No space left on device")

        def flush(self) -> None:
            raise AssertionError("flush after failed write")

    with pytest.raises(OSError) as ei:
        recompress(io.BytesIO(BIG_PAYLOAD), FullDisk(), CompressionKind.NONE)
    assert ei.value.errno == 28


def test_partial_writes_are_completed() -> None:
    class Stingy(RecordingSink):
        def write(self, data: bytes) -> int:
            return super().write(bytes(data[:7]))

    sink = Stingy()
    recompress(io.BytesIO(BIG_PAYLOAD), sink, CompressionKind.XZ)
    assert reference_decode(CompressionKind.XZ, bytes(sink.buf)) == BIG_PAYLOAD


def test_works_with_files(tmp_path: Path) -> None:
    src = tmp_path / "in.xz"
    dst = tmp_path / "out.zst"
    src.write_bytes(sample_input(CompressionKind.XZ, BIG_PAYLOAD))
    with src.open("rb") as fi, dst.open("wb") as fo:
        recompress(fi, fo, CompressionKind.ZSTD)
    assert reference_decode(CompressionKind.ZSTD, dst.read_bytes()) == BIG_PAYLOAD


class CountingSink:
    """Keeps only the byte count, so memory use is the pipeline's own."""

    def __init__(self) -> None:
        self.n = 0

    def write(self, data: bytes) -> int:
        self.n += len(data)
        return len(data)


def _compressed_zeros(kind: CompressionKind, mib: int) -> bytes:
    if kind is CompressionKind.GZIP:
        c = zlib.compressobj(9, zlib.DEFLATED, 31)
    elif kind is CompressionKind.BZIP:
        c = bz2.BZ2Compressor(9)
    else:
        c = zstd.ZstdCompressor(level=3).compressobj()
    block = bytes(1 << 20)
    parts = [c.compress(block) for _ in range(mib)]
    parts.append(c.flush())
    return b"".join(parts)


@pytest.mark.parametrize(
    "kind", [CompressionKind.GZIP, CompressionKind.BZIP, CompressionKind.ZSTD]
)
def test_high_ratio_input_decodes_in_bounded_memory(kind: CompressionKind) -> None:
    mib = 96
    blob = _compressed_zeros(kind, mib)
    # ratio above 500: one 64 KiB input chunk expands past the bound below
    assert len(blob) * 500 < mib << 20
    sink = CountingSink()
    tracemalloc.start()
    try:
        result = recompress(io.BytesIO(blob), sink, CompressionKind.NONE)
        _, peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    assert sink.n == result.bytes_out == mib << 20
    assert peak < 32 << 20

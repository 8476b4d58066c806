"""Codec selection over the closed set of compression kinds.

One explicit branch per kind: the set is fixed, there is no registry.
"""

from __future__ import annotations

from recompress.core.codec_base import Decoder, Encoder
from recompress.core.codec_bzip import BzipDecoder, BzipEncoder
from recompress.core.codec_raw import RawDecoder, RawEncoder
from recompress.core.codec_xz import XzDecoder, XzEncoder
from recompress.core.codec_zlib import (
    DeflateDecoder,
    GzipDecoder,
    ZlibDecoder,
    ZlibFamilyEncoder,
)
from recompress.core.codec_zstd import ZstdDecoder, ZstdEncoder
from recompress.kinds import CompressionKind
from recompress.options import CodecOptions


def decoder_for(kind: CompressionKind) -> Decoder:
    if kind is CompressionKind.BZIP:
        return BzipDecoder()
    if kind is CompressionKind.DEFLATE:
        return DeflateDecoder()
    if kind is CompressionKind.GZIP:
        return GzipDecoder()
    if kind is CompressionKind.XZ:
        return XzDecoder()
    if kind is CompressionKind.ZLIB:
        return ZlibDecoder()
    if kind is CompressionKind.ZSTD:
        return ZstdDecoder()
    if kind is CompressionKind.NONE:
        return RawDecoder()
    raise ValueError(f"no decoder for {kind!r}")


def encoder_for(kind: CompressionKind, options: CodecOptions | None = None) -> Encoder:
    opts = options if options is not None else CodecOptions()
    if kind is CompressionKind.BZIP:
        return BzipEncoder(opts.level(kind))
    if kind in (CompressionKind.DEFLATE, CompressionKind.GZIP, CompressionKind.ZLIB):
        return ZlibFamilyEncoder(kind, opts.level(kind))
    if kind is CompressionKind.XZ:
        return XzEncoder(opts.level(kind))
    if kind is CompressionKind.ZSTD:
        return ZstdEncoder(opts.level(kind))
    if kind is CompressionKind.NONE:
        return RawEncoder()
    raise ValueError(f"no encoder for {kind!r}")

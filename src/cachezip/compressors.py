"""
Compression Codecs
==================

Pluggable compressors used by the store to shrink serialized cache values.

Every compressor exposes the same two-method contract::

    deflate(payload: bytes) -> bytes
    inflate(payload: bytes) -> bytes

The built-in compressors are thin wrappers around blosc2 and differ only in the
codec they select. Their output is a blosc2 chunk followed by the 8-byte xxh3_64
digest of the uncompressed input, so ``inflate`` detects corrupted chunks that
blosc2 itself would decompress into garbage.

Custom compressors either subclass ``Compressor`` or are any class with
``deflate`` and ``inflate`` methods whose constructor accepts ``level=``.

Supported codecs:
- zstd: Zstandard compression (excellent ratio, default)
- lz4: Very fast compression
- lz4hc: High compression variant of lz4
- zlib: Standard zlib compression
- blosclz: Blosc's own fast codec

Usage:
    from cachezip.compressors import ZstdCompressor

    compressor = ZstdCompressor(level=5)
    packed = compressor.deflate(data)
    assert compressor.inflate(packed) == data
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, Union

import blosc2
import xxhash

from .error_handling import CompressionError, DecompressionError, with_error_handling

logger = logging.getLogger(__name__)

DEFAULT_COMPRESS_LEVEL = 5
DIGEST_SIZE = 8

_CODEC_MAP = {
    "blosclz": blosc2.Codec.BLOSCLZ,
    "lz4": blosc2.Codec.LZ4,
    "lz4hc": blosc2.Codec.LZ4HC,
    "zlib": blosc2.Codec.ZLIB,
    "zstd": blosc2.Codec.ZSTD,
}


def list_available_codecs() -> List[str]:
    """List the codec names accepted by ``Blosc2Compressor``."""
    return list(_CODEC_MAP)


def is_compressor(obj: Any) -> bool:
    """True if ``obj`` (a class or an instance) has callable ``deflate`` and ``inflate``."""
    return callable(getattr(obj, "deflate", None)) and callable(getattr(obj, "inflate", None))


def _digest(payload: bytes) -> bytes:
    return xxhash.xxh3_64(payload).digest()


class Compressor(ABC):
    """
    Abstract base class for compressors.

    Compressors are stateless apart from the level fixed at construction, so a
    single instance can be shared between threads.
    """

    def __init__(self, level: int = DEFAULT_COMPRESS_LEVEL):
        self.level = level

    @abstractmethod
    def deflate(self, payload: bytes) -> bytes:
        """
        Compress a serialized value.

        Args:
            payload: Raw bytes to compress

        Returns:
            Compressed bytes

        Raises:
            CompressionError: If the payload cannot be compressed
        """
        pass

    @abstractmethod
    def inflate(self, payload: bytes) -> bytes:
        """
        Decompress bytes produced by ``deflate``.

        Args:
            payload: Compressed bytes

        Returns:
            The original bytes

        Raises:
            DecompressionError: If the payload is not valid compressed output
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(level={self.level})"


class Blosc2Compressor(Compressor):
    """Compressor backed by ``blosc2.compress`` / ``blosc2.decompress``."""

    codec_name = "zstd"

    def __init__(self, level: int = DEFAULT_COMPRESS_LEVEL, codec: Optional[str] = None):
        super().__init__(level)
        if codec is not None:
            self.codec_name = codec.lower()
        if self.codec_name not in _CODEC_MAP:
            raise ValueError(
                f"Unsupported codec: {self.codec_name}. Supported: {list_available_codecs()}"
            )
        if not (0 <= level <= 9):
            raise ValueError("blosc2 compression level must be between 0 and 9")
        self._codec = _CODEC_MAP[self.codec_name]

    @with_error_handling(CompressionError)
    def deflate(self, payload: bytes) -> bytes:
        if len(payload) > blosc2.MAX_BUFFERSIZE:
            raise CompressionError(
                f"Payload of {len(payload)} bytes exceeds the blosc2 buffer limit",
                {"max_buffersize": blosc2.MAX_BUFFERSIZE},
            )
        chunk = blosc2.compress(
            payload,
            typesize=1,
            clevel=self.level,
            filter=blosc2.Filter.SHUFFLE,
            codec=self._codec,
        )
        return bytes(chunk) + _digest(payload)

    @with_error_handling(DecompressionError)
    def inflate(self, payload: bytes) -> bytes:
        if len(payload) <= DIGEST_SIZE:
            raise DecompressionError(
                f"Payload of {len(payload)} bytes is too short to be compressed output",
                {"codec": self.codec_name},
            )

        chunk, expected = payload[:-DIGEST_SIZE], bytes(payload[-DIGEST_SIZE:])
        result = blosc2.decompress(chunk)
        if isinstance(result, (bytearray, memoryview)):
            result = bytes(result)
        if not isinstance(result, bytes):
            raise DecompressionError(
                f"Unexpected decompression result type: {type(result).__name__}"
            )

        if _digest(result) != expected:
            raise DecompressionError(
                "Decompressed payload failed its integrity check",
                {"codec": self.codec_name, "size": len(result)},
            )
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(level={self.level}, codec={self.codec_name!r})"


class ZstdCompressor(Blosc2Compressor):
    codec_name = "zstd"


class LZ4Compressor(Blosc2Compressor):
    codec_name = "lz4"


class ZlibCompressor(Blosc2Compressor):
    codec_name = "zlib"


_COMPRESSOR_CLASSES: Dict[str, Type[Compressor]] = {
    "zstd": ZstdCompressor,
    "lz4": LZ4Compressor,
    "zlib": ZlibCompressor,
}


def get_compressor_class(codec: str) -> Type[Compressor]:
    """
    Get the compressor class for a codec name.

    Codecs without a dedicated subclass fall back to ``Blosc2Compressor``,
    which the caller then instantiates with ``codec=``.
    """
    codec = codec.lower()
    if codec not in _CODEC_MAP:
        raise ValueError(f"Unsupported codec: {codec}. Supported: {list_available_codecs()}")
    return _COMPRESSOR_CLASSES.get(codec, Blosc2Compressor)


def resolve_compressor(
    compressor: Union[Compressor, Type[Compressor], Any],
    level: int = DEFAULT_COMPRESS_LEVEL,
    codec: Optional[str] = None,
) -> Compressor:
    """
    Turn a compressor class or instance into a ready-to-use instance.

    Args:
        compressor: A compressor class or an already built instance. Classes
            that don't subclass ``Compressor`` only need ``deflate`` and
            ``inflate`` and a constructor accepting ``level=``
        level: Compression level used when instantiating a class
        codec: Codec name, only passed to the generic ``Blosc2Compressor``

    Returns:
        An object with ``deflate`` and ``inflate``

    Raises:
        TypeError: If ``compressor`` lacks ``deflate`` or ``inflate``
    """
    if not is_compressor(compressor):
        raise TypeError(
            f"compressor must provide deflate() and inflate(), got {compressor!r}"
        )
    if not isinstance(compressor, type):
        return compressor
    if compressor is Blosc2Compressor and codec is not None:
        return compressor(level=level, codec=codec)
    return compressor(level=level)

"""
Configuration Management for Cachezip
=====================================

``StoreConfig`` holds the construction-time settings of a ``CompressedStore``
and is immutable once built. ``CallOptions`` holds the per-call overrides
parsed from the keyword arguments of each store operation.

Environment variables are only consulted by ``StoreConfig.from_env``, which the
application calls once at startup.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .compressors import is_compressor, list_available_codecs
from .error_handling import CacheConfigurationError
from .serialization import MIN_TRUNCATED_LENGTH

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "br-"
DEFAULT_COMPRESS_THRESHOLD = 1024
DEFAULT_COMPRESS_LEVEL = 5
DEFAULT_CODEC = "zstd"

SERIALIZERS = ("pickle", "dill")

ENV_COMPRESS_THRESHOLD = "CACHEZIP_COMPRESS_THRESHOLD"
ENV_COMPRESS_QUALITY = "CACHEZIP_COMPRESS_QUALITY"
ENV_KEY_PREFIX = "CACHEZIP_KEY_PREFIX"
ENV_CODEC = "CACHEZIP_CODEC"


@dataclass(frozen=True)
class StoreConfig:
    """Construction-time configuration for a ``CompressedStore``."""

    prefix: str = DEFAULT_PREFIX
    compress_threshold: int = DEFAULT_COMPRESS_THRESHOLD  # bytes
    compress_level: int = DEFAULT_COMPRESS_LEVEL
    codec: str = DEFAULT_CODEC
    compressor_class: Optional[type] = None
    serializer: str = "pickle"
    max_key_length: Optional[int] = None

    def __post_init__(self):
        """Validate store configuration."""
        if not isinstance(self.prefix, str):
            raise CacheConfigurationError(
                "prefix must be a string", {"prefix": self.prefix}
            )

        if isinstance(self.compress_threshold, bool) or self.compress_threshold < 0:
            raise CacheConfigurationError(
                "compress_threshold must be a non-negative number of bytes",
                {"compress_threshold": self.compress_threshold},
            )

        if not (0 <= self.compress_level <= 9):
            raise CacheConfigurationError(
                "compress_level must be between 0 and 9",
                {"compress_level": self.compress_level},
            )

        if self.codec not in list_available_codecs():
            raise CacheConfigurationError(
                f"codec must be one of {list_available_codecs()}", {"codec": self.codec}
            )

        if self.compressor_class is not None and not (
            isinstance(self.compressor_class, type) and is_compressor(self.compressor_class)
        ):
            raise CacheConfigurationError(
                "compressor_class must be a class providing deflate() and inflate()",
                {"compressor_class": self.compressor_class},
            )

        if self.serializer not in SERIALIZERS:
            raise CacheConfigurationError(
                f"serializer must be one of {SERIALIZERS}",
                {"serializer": self.serializer},
            )

        if self.max_key_length is not None and (
            self.max_key_length < len(self.prefix) + MIN_TRUNCATED_LENGTH
        ):
            raise CacheConfigurationError(
                "max_key_length must leave room for the key prefix and digest",
                {"max_key_length": self.max_key_length, "prefix": self.prefix},
            )

        logger.debug(
            f"Store configured: prefix={self.prefix!r}, "
            f"threshold={self.compress_threshold}B, "
            f"codec={self.codec}@{self.compress_level}, serializer={self.serializer}"
        )

    def replace(self, **changes) -> "StoreConfig":
        """Return a validated copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "StoreConfig":
        """
        Build a configuration from environment variables.

        The threshold variable is expressed in kilobytes and may be fractional
        (``0.5`` means 512 bytes). Explicit ``overrides`` win over the
        environment.

        Args:
            environ: Mapping to read from, defaults to ``os.environ``
            **overrides: Field values that take precedence over the environment

        Returns:
            A validated StoreConfig
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if ENV_COMPRESS_THRESHOLD in environ:
            try:
                kilobytes = float(environ[ENV_COMPRESS_THRESHOLD])
            except ValueError as e:
                raise CacheConfigurationError(
                    f"{ENV_COMPRESS_THRESHOLD} must be a number",
                    {"value": environ[ENV_COMPRESS_THRESHOLD]},
                ) from e
            values["compress_threshold"] = int(kilobytes * 1024)

        if ENV_COMPRESS_QUALITY in environ:
            try:
                values["compress_level"] = int(environ[ENV_COMPRESS_QUALITY])
            except ValueError as e:
                raise CacheConfigurationError(
                    f"{ENV_COMPRESS_QUALITY} must be an integer",
                    {"value": environ[ENV_COMPRESS_QUALITY]},
                ) from e

        if ENV_KEY_PREFIX in environ:
            values["prefix"] = environ[ENV_KEY_PREFIX]

        if ENV_CODEC in environ:
            values["codec"] = environ[ENV_CODEC].lower()

        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class CallOptions:
    """Per-call options for store operations."""

    force: bool = False
    compress: bool = True
    compressor_class: Optional[Any] = None
    backend_options: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def from_kwargs(cls, options: Optional[Mapping[str, Any]] = None) -> "CallOptions":
        """
        Split keyword options into the fields this layer owns and the rest.

        Unknown keys (``expires_in``, ``version``, ...) are kept in
        ``backend_options`` and forwarded to the backend untouched. A
        ``compress`` of ``None`` counts as unset.
        """
        remaining = dict(options or {})
        force = remaining.pop("force", False)
        compress = remaining.pop("compress", None)
        compressor_class = remaining.pop("compressor_class", None)

        return cls(
            force=bool(force),
            compress=True if compress is None else bool(compress),
            compressor_class=compressor_class,
            backend_options=MappingProxyType(remaining),
        )

    def backend_kwargs(self, **extra) -> Dict[str, Any]:
        """Keyword arguments for the backend call, with ``extra`` applied last."""
        kwargs = dict(self.backend_options)
        kwargs.update(extra)
        return kwargs

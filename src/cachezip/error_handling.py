"""
Standardized Error Handling for Cachezip
========================================

This module provides the exception hierarchy and the logging helpers shared by
the store, the codecs and the payload layer.

Backend errors are never wrapped here: only failures raised while serializing,
compressing or decoding values are converted into ``CacheError`` subclasses.
"""

import functools
import logging
import time
from typing import Any, Callable, Dict, Optional, Type

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Base exception for all cachezip errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.context = context or {}
        super().__init__(message)

        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        logger.error(
            f"Cache error: {message}" + (f" ({context_str})" if context_str else "")
        )


class CacheConfigurationError(CacheError):
    """Raised when store configuration is invalid."""

    pass


class CacheStorageError(CacheError):
    """Raised when a backend is asked to do something its contract forbids."""

    pass


class CacheSerializationError(CacheError):
    """Raised when a value cannot be serialized for storage."""

    pass


class CorruptPayloadError(CacheError):
    """Raised when stored bytes are not a valid serialization stream."""

    pass


class CompressionError(CacheError):
    """Raised when compression fails."""

    pass


class DecompressionError(CacheError):
    """Raised when decompression fails."""

    pass


class MissingProducerError(CacheError, ValueError):
    """Raised when a forced fetch is called without a value producer."""

    pass


def with_error_handling(
    error_type: Type[CacheError] = CacheError,
    context: Optional[Dict[str, Any]] = None,
):
    """
    Decorator converting foreign exceptions into a ``CacheError`` subclass.

    ``CacheError`` instances propagate unchanged. Anything else is re-raised as
    ``error_type`` chained to the original exception.

    Args:
        error_type: Type of CacheError to raise
        context: Additional context to include in the error
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except CacheError:
                raise
            except Exception as e:
                error_context = (context or {}).copy()
                error_context.update(
                    {
                        "function": func.__name__,
                        "original_error_type": type(e).__name__,
                    }
                )
                raise error_type(f"Error in {func.__name__}: {e}", error_context) from e

        return wrapper

    return decorator


def log_cache_performance(func: Callable) -> Callable:
    """Decorator to log timings for store operations."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.warning(
                f"Cache operation {func.__name__} failed after {duration:.3f}s: {e}"
            )
            raise

        duration = time.perf_counter() - start_time
        logger.debug(f"Cache operation {func.__name__} completed in {duration:.3f}s")
        return result

    return wrapper

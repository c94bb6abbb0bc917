"""
Stored Payload Format
=====================

Values pass through this module on their way to and from a backend.

Wire format of an encoded value::

    [0x02?][serialized bytes]

The marker byte is present only when the remainder is compressed. pickle and
dill streams always start with ``0x80``, so an uncompressed payload can never be
mistaken for a compressed one.

Integers are not encoded at all: they are handed to the backend as native
integers so that backend-side ``increment``/``decrement`` keep working.
"""

import logging
import pickle
from dataclasses import dataclass
from typing import Any, Optional, Union

import dill

from .compressors import Compressor
from .error_handling import (
    CacheSerializationError,
    CorruptPayloadError,
    with_error_handling,
)

logger = logging.getLogger(__name__)

MARK_COMPRESSED = b"\x02"


@dataclass(frozen=True)
class Counter:
    """An integer stored verbatim in the backend."""

    value: int


@dataclass(frozen=True)
class Encoded:
    """A serialized value, optionally compressed."""

    data: bytes
    compressed: bool = False

    def to_bytes(self) -> bytes:
        """Render the wire format."""
        if self.compressed:
            return MARK_COMPRESSED + self.data
        return self.data


StoredPayload = Union[Counter, Encoded]


def is_counter(value: Any) -> bool:
    """Integers take the counter fast path; booleans do not."""
    return isinstance(value, int) and not isinstance(value, bool)


@with_error_handling(CacheSerializationError)
def serialize(value: Any, serializer: str = "pickle") -> bytes:
    """Serialize a value with pickle or dill using the highest protocol."""
    if serializer == "dill":
        return dill.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
    return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)


@with_error_handling(CorruptPayloadError)
def deserialize(data: bytes, serializer: str = "pickle") -> Any:
    """
    Rebuild a value from serialized bytes.

    Raises:
        CorruptPayloadError: If the bytes are not a valid serialization stream
    """
    if serializer == "dill":
        return dill.loads(data)
    return pickle.loads(data)


def encode(
    value: Any,
    compressor: Compressor,
    threshold: int,
    compress: bool = True,
    serializer: str = "pickle",
) -> StoredPayload:
    """
    Encode a value for storage.

    Serialized values at or above ``threshold`` bytes are compressed when
    ``compress`` is enabled, but the compressed form is kept only if it is
    strictly smaller than the serialized form.

    Args:
        value: The value to store
        compressor: Compressor used for large values
        threshold: Minimum serialized size in bytes before compression is tried
        compress: Per-call switch, False skips compression entirely
        serializer: "pickle" or "dill"

    Returns:
        A Counter for integers, an Encoded payload for everything else
    """
    if is_counter(value):
        return Counter(value)

    serialized = serialize(value, serializer)

    if compress and len(serialized) >= threshold:
        compressed = compressor.deflate(serialized)
        if len(compressed) < len(serialized):
            logger.debug(
                f"Compressed payload {len(serialized)}B -> {len(compressed)}B with {compressor!r}"
            )
            return Encoded(compressed, compressed=True)
        logger.debug(
            f"Compression rejected for {len(serialized)}B payload "
            f"(would be {len(compressed)}B)"
        )

    return Encoded(serialized, compressed=False)


def to_backend_value(payload: StoredPayload) -> Union[int, bytes]:
    """The value handed to the backend for a stored payload."""
    if isinstance(payload, Counter):
        return payload.value
    return payload.to_bytes()


def parse_payload(raw: Any) -> Optional[StoredPayload]:
    """
    Classify a value read back from a backend.

    Returns:
        None for missing or empty entries, a Counter for integers and an
        Encoded payload (marker stripped) for bytes

    Raises:
        CorruptPayloadError: If the backend returned any other type
    """
    if raw is None:
        return None

    if is_counter(raw):
        return Counter(raw)

    if isinstance(raw, (bytearray, memoryview)):
        raw = bytes(raw)

    if not isinstance(raw, bytes):
        raise CorruptPayloadError(
            f"Unexpected payload type: {type(raw).__name__}",
            {"payload_type": type(raw).__name__},
        )

    if not raw:
        return None

    if raw.startswith(MARK_COMPRESSED):
        return Encoded(raw[1:], compressed=True)
    return Encoded(raw, compressed=False)


def decode(raw: Any, compressor: Compressor, serializer: str = "pickle") -> Any:
    """
    Decode a value read back from a backend.

    Raises:
        DecompressionError: If a marked payload is not valid compressed output
        CorruptPayloadError: If the bytes are not a valid serialization stream
    """
    payload = parse_payload(raw)

    if payload is None:
        return None

    if isinstance(payload, Counter):
        return payload.value

    serialized = compressor.inflate(payload.data) if payload.compressed else payload.data
    return deserialize(serialized, serializer)

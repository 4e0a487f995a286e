"""
Deterministic cache key generation.

Arguments are packed into a canonical MessagePack byte string, with
mapping entries and set members ordered by their own packed bytes, so
that structurally equal argument lists always produce the same bytes
regardless of dict insertion order. The bytes are then reduced with a
SHA-256 digest to bound key length.

Supported argument types:
- None, bool, int (any size), float, str, bytes, bytearray
- list, tuple (both encoded as arrays, so they are interchangeable)
- dict (field order independent)
- set, frozenset (member order independent)
- datetime, date, time -> ISO 8601 string
- Decimal, UUID -> string
- Enum -> its value
- dataclass instances and objects with __dict__ -> their fields
"""

import base64
import dataclasses
import hashlib
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import msgpack

from .constants import BIG_INT_EXT_CODE, DIGEST_ALGORITHM, MSGPACK_INT_MAX, MSGPACK_INT_MIN
from .exceptions import CacheKeyError
from .validators import validate_key_prefix


def canonical_bytes(obj: Any) -> bytes:
    """Pack an object into canonical MessagePack bytes.

    Args:
        obj: Value to pack

    Returns:
        Canonical byte representation

    Raises:
        CacheKeyError: If the value contains an unsupported type
    """
    packer = msgpack.Packer(use_bin_type=True, autoreset=True)
    try:
        return _pack(packer, obj)
    except CacheKeyError:
        raise
    except (TypeError, ValueError, OverflowError, RecursionError) as e:
        raise CacheKeyError(f"Failed to serialize arguments for cache key: {e}") from e


def _pack(packer: msgpack.Packer, obj: Any) -> bytes:
    if isinstance(obj, int) and not isinstance(obj, bool) and not MSGPACK_INT_MIN <= obj <= MSGPACK_INT_MAX:
        # Outside msgpack native range: ExtType holding the decimal digits
        return packer.pack(msgpack.ExtType(BIG_INT_EXT_CODE, str(obj).encode("ascii")))
    if obj is None or isinstance(obj, (bool, int, float, str, bytes)):
        return packer.pack(obj)
    if isinstance(obj, bytearray):
        return packer.pack(bytes(obj))
    if isinstance(obj, (list, tuple)):
        return packer.pack_array_header(len(obj)) + b"".join(_pack(packer, item) for item in obj)
    if isinstance(obj, Mapping):
        return _pack_mapping(packer, obj)
    if isinstance(obj, (set, frozenset)):
        # Sort for deterministic order
        members = sorted(_pack(packer, item) for item in obj)
        return packer.pack_array_header(len(members)) + b"".join(members)

    converted = _convert_scalar(obj)
    if converted is not None:
        return packer.pack(converted)

    if isinstance(obj, Enum):
        return _pack(packer, obj.value)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        fields = {field.name: getattr(obj, field.name) for field in dataclasses.fields(obj)}
        return _pack_mapping(packer, fields)
    if hasattr(obj, "__dict__") and not callable(obj):
        return _pack_mapping(packer, vars(obj))

    raise CacheKeyError(
        f"Object of type '{type(obj).__name__}' cannot be used in a cache key. "
        f"Supported types: str, int, float, bool, None, bytes, datetime, date, time, "
        f"Decimal, UUID, Enum, set, frozenset, list, tuple, dict, dataclasses. "
        f"For other types, provide a custom key builder."
    )


def _pack_mapping(packer: msgpack.Packer, mapping: Mapping[Any, Any]) -> bytes:
    """Pack a mapping with entries sorted by packed key."""
    entries = sorted((_pack(packer, key), _pack(packer, value)) for key, value in mapping.items())
    return packer.pack_map_header(len(entries)) + b"".join(key + value for key, value in entries)


def _convert_scalar(obj: Any) -> str | None:
    """Convert datetime-related, Decimal and UUID values to strings."""
    # datetime is a subclass of date, both use isoformat()
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    return None


class DefaultKeyBuilder:
    """Cache key builder with deterministic SHA-256 hashing.

    Key format: {prefix}:{digest} when a prefix is given, {digest} otherwise.
    Stateless; one instance can be shared across wrappers.

    Hash collisions are not detected. Pass ``digest=False`` to use the
    (unbounded) base64 canonical form instead of the digest.
    """

    def __init__(self, prefix: str | None = None, digest: bool = True) -> None:
        """Initialize key builder.

        Args:
            prefix: Optional prefix for all generated keys
            digest: Reduce canonical bytes to a fixed-size digest

        Raises:
            ValidationError: If prefix is empty or whitespace-only
        """
        validate_key_prefix(prefix)
        self._prefix = prefix
        self._digest = digest

    @property
    def prefix(self) -> str | None:
        """Get the key prefix used by this builder."""
        return self._prefix

    def build_key(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
        """Build cache key from call arguments.

        Args:
            args: Positional arguments
            kwargs: Keyword arguments

        Returns:
            Cache key string

        Raises:
            CacheKeyError: If arguments cannot be serialized
        """
        payload = canonical_bytes([list(args), kwargs])
        if self._digest:
            body = hashlib.new(DIGEST_ALGORITHM, payload).hexdigest()
        else:
            body = base64.urlsafe_b64encode(payload).decode("ascii")

        if self._prefix is None:
            return body
        return f"{self._prefix}:{body}"

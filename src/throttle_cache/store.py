"""
Bounded in-memory store with TTL expiry and LRU eviction.

Each entry records its creation time. An entry older than the store's
TTL is treated as absent on read even if it has not been evicted yet.
Capacity is enforced independently of TTL: once the number of entries
exceeds ``max_items`` the least-recently-used one is dropped, expired
or not.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .validators import validate_max_cached_items, validate_period

logger = logging.getLogger(__name__)

V = TypeVar("V")

_MISSING = object()


@dataclass(slots=True)
class StoreEntry(Generic[V]):
    """Stored value with its creation timestamp."""

    key: str
    value: V
    created_at: float


class LRUTTLStore(Generic[V]):
    """Key -> value mapping with TTL expiry and LRU capacity bound.

    Not thread-safe. Intended for use from a single event loop, where
    mutations only happen between suspension points.

    Example:
        ```python
        store = LRUTTLStore(ttl=60.0, max_items=100)
        store.set("user:1", {"name": "Ana"})
        store.get("user:1")  # {"name": "Ana"}
        ```
    """

    def __init__(
        self,
        ttl: float,
        max_items: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "store",
    ) -> None:
        """Initialize store.

        Args:
            ttl: Entry time-to-live in seconds
            max_items: Capacity (None = unbounded)
            clock: Monotonic time source in seconds
            name: Label used in log messages

        Raises:
            ValidationError: If ttl or max_items is invalid
        """
        validate_period("ttl", ttl)
        validate_max_cached_items(max_items)
        self._ttl = ttl
        self._max_items = max_items
        self._clock = clock
        self._name = name
        self._entries: OrderedDict[str, StoreEntry[V]] = OrderedDict()

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_items(self) -> int | None:
        return self._max_items

    def __len__(self) -> int:
        """Number of physically stored entries (expired ones included)."""
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[str]:
        now = self._clock()
        return iter([key for key, entry in self._entries.items() if not self._is_expired(entry, now)])

    def get(self, key: str, default: Any = None) -> V | Any:
        """Return the live value for key, refreshing its recency.

        Args:
            key: Entry key
            default: Value returned when the entry is absent or expired
        """
        entry = self._live_entry(key)
        if entry is None:
            return default
        return entry.value

    def get_entry(self, key: str) -> StoreEntry[V] | None:
        """Return the live entry (value and creation time) for key."""
        return self._live_entry(key)

    def has(self, key: str) -> bool:
        """Check whether a live entry exists; refreshes recency."""
        return self._live_entry(key) is not None

    def set(self, key: str, value: V) -> None:
        """Store value, resetting its age and marking it most recently used."""
        self._entries[key] = StoreEntry(key=key, value=value, created_at=self._clock())
        self._entries.move_to_end(key)
        self._evict_overflow()

    def delete(self, key: str) -> bool:
        """Remove key. Returns True if an entry was present."""
        return self._entries.pop(key, _MISSING) is not _MISSING

    def reset(self) -> None:
        """Remove all entries."""
        self._entries.clear()

    def purge_expired(self) -> int:
        """Physically remove expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _live_entry(self, key: str) -> StoreEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    def _is_expired(self, entry: StoreEntry[V], now: float) -> bool:
        return now - entry.created_at > self._ttl

    def _evict_overflow(self) -> None:
        if self._max_items is None:
            return
        while len(self._entries) > self._max_items:
            evicted_key, _ = self._entries.popitem(last=False)
            logger.debug("Evicted LRU entry '%s' from %s (capacity %d)", evicted_key, self._name, self._max_items)

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class EphemeralCache(Generic[V]):
    """
    In-process cache for fact-check responses with TTL and LRU bound.
    """

    def __init__(
        self,
        ttl_seconds: float = 600.0,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Default time-to-live measured from insertion (default: 10 minutes)
            max_entries: Upper bound on stored entries; least recently used is evicted first
            clock: Monotonic time source, injectable for tests
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[V, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[V]:
        """
        Retrieve a cached value.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None

            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: V, ttl_seconds: Optional[float] = None):
        """
        Store a value, overwriting any previous entry for the key.

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Override of the default TTL for this entry
        """
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted least recently used cache entry: {evicted}")

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

"""In-process TTL cache for extraction results.

One instance is created per data domain (raw payloads, seller offers) and
injected where it is needed. The cache holds a single entry: writes always
replace it, and expiry is checked lazily on read.
"""

import logging
import time
from collections.abc import Callable
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

V = TypeVar("V")

Clock = Callable[[], float]


class CacheConfig(BaseModel):
    """TTL cache configuration."""

    name: str = Field(default="cache", description="Domain name used in log messages")
    ttl: float = Field(default=30.0, gt=0, description="Entry freshness window in seconds")


class CacheEntry(Generic[V]):
    """Cached value tagged with its product identity and store time."""

    __slots__ = ("value", "key", "stored_at")

    def __init__(self, value: V, key: str, stored_at: float):
        self.value = value
        self.key = key
        self.stored_at = stored_at


class TTLCache(Generic[V]):
    """Single-entry cache keyed by product identity.

    A lookup hits only while ``now - stored_at < ttl`` and the stored key
    equals the requested key. Anything else is a miss, and the stale entry
    stays in place until the next write replaces it.
    """

    def __init__(self, config: CacheConfig, clock: Clock = time.monotonic):
        """Initialize the cache.

        Args:
            config: Domain name and TTL.
            clock: Monotonic time source in seconds.
        """
        self.config = config
        self._clock = clock
        self._entry: CacheEntry[V] | None = None

    def get(self, key: str) -> V | None:
        """Return the cached value for ``key`` or None on a miss.

        Args:
            key: Product identity.

        Returns:
            Cached value if fresh and matching, None otherwise.
        """
        entry = self._entry
        if entry is None:
            logger.debug(f"{self.config.name} cache miss for {key}: empty")
            return None

        if entry.key != key:
            logger.debug(f"{self.config.name} cache miss for {key}: holds {entry.key}")
            return None

        age = self._clock() - entry.stored_at
        if age >= self.config.ttl:
            logger.debug(f"{self.config.name} cache miss for {key}: expired {age:.1f}s ago")
            return None

        logger.debug(f"{self.config.name} cache hit for {key}")
        return entry.value

    def set(self, key: str, value: V) -> None:
        """Store ``value`` for ``key``, replacing any previous entry."""
        self._entry = CacheEntry(value, key, self._clock())
        logger.debug(f"{self.config.name} cache stored {key}")

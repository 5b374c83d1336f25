"""
Read-through result cache.

ResultCache stores pydantic models as JSON in a pluggable CacheBackend with a
positive TTL and group tags. A backend outage never fails a request: read
errors count as misses, write and invalidation errors are logged and dropped.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from user_directory.infrastructure.observability.logging import get_logger, log_cache_event

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CacheBackendError(Exception):
    """Raised by cache backends when the storage engine fails."""

    def __init__(self, message: str, operation: str | None = None, key: str | None = None):
        super().__init__(message)
        self.operation = operation
        self.key = key


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One stored value. Replaced wholesale, never edited."""

    key: str
    payload: str
    expires_at: float
    tags: frozenset[str] = frozenset()

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class CacheBackend(ABC):
    """Port for cache storage engines."""

    @abstractmethod
    def get(self, key: str) -> CacheEntry | None:
        """Return the live entry at key, or None if missing or expired."""
        pass

    @abstractmethod
    def set(self, entry: CacheEntry) -> None:
        """Store entry, overwriting anything at entry.key."""
        pass

    @abstractmethod
    def invalidate_tags(self, tags: Iterable[str]) -> None:
        """Drop every entry carrying any of the tags."""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Check the storage engine is reachable."""
        pass

    def close(self) -> None:
        """Release connections, if any."""
        return None


class ResultCache(Generic[ModelT]):
    """Typed cache facade with degrade-to-miss failure semantics."""

    def __init__(
        self,
        backend: CacheBackend,
        model: type[ModelT],
        clock: Callable[[], float] = time.time,
    ):
        self.backend = backend
        self.model = model
        self._clock = clock

    def get(self, key: str) -> tuple[ModelT | None, bool]:
        """
        Look up key.

        Returns:
            (value, True) on a hit, (None, False) on a miss, an expired entry,
            a backend error or an unreadable payload.
        """
        try:
            entry = self.backend.get(key)
        except Exception as e:
            logger.warning("Cache read failed, treating as miss", key=key, error=str(e))
            return None, False

        if entry is None or entry.is_expired(self._clock()):
            log_cache_event("miss", key)
            return None, False

        try:
            value = self.model.model_validate_json(entry.payload)
        except ValidationError as e:
            logger.warning("Cached payload unreadable, treating as miss", key=key, error_count=e.error_count())
            return None, False

        log_cache_event("hit", key)
        return value, True

    def set(self, key: str, value: ModelT, ttl_seconds: int, tags: Iterable[str] = ()) -> None:
        """
        Store value under key for ttl_seconds.

        Raises:
            ValueError: If ttl_seconds is not positive. Callers skip the cache
                entirely instead of storing zero-lifetime entries.
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")

        entry = CacheEntry(
            key=key,
            payload=value.model_dump_json(),
            expires_at=self._clock() + ttl_seconds,
            tags=frozenset(tags),
        )
        try:
            self.backend.set(entry)
        except Exception as e:
            logger.warning("Cache write failed, result not cached", key=key, error=str(e))
            return

        log_cache_event("store", key, ttl_seconds=ttl_seconds, tags=sorted(entry.tags))

    def invalidate_tags(self, tags: Iterable[str]) -> None:
        tags = list(tags)
        try:
            self.backend.invalidate_tags(tags)
        except Exception as e:
            logger.warning("Cache invalidation failed", tags=tags, error=str(e))
            return

        logger.info("Cache tags invalidated", tags=tags)

"""In-process cache backend. One instance per process (or per test)."""

import threading
import time
from collections.abc import Callable, Iterable

from user_directory.services.result_cache import CacheBackend, CacheEntry


class InMemoryCacheBackend(CacheBackend):
    """Dict-backed cache with lazy expiry and a tag index."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._tag_index: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                self._drop(key)
                return None
            return entry

    def set(self, entry: CacheEntry) -> None:
        with self._lock:
            self._drop(entry.key)
            self._entries[entry.key] = entry
            for tag in entry.tags:
                self._tag_index.setdefault(tag, set()).add(entry.key)

    def invalidate_tags(self, tags: Iterable[str]) -> None:
        with self._lock:
            for tag in tags:
                for key in self._tag_index.pop(tag, set()):
                    self._drop(key)

    def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _drop(self, key: str) -> None:
        # Caller holds the lock
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tag_index[tag]

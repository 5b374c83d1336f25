# user_directory/services/infrastructure/redis_cache_backend.py
"""
Redis cache backend.

Each entry is one string key holding a JSON envelope (payload, expires_at,
tags) written with SET ... EX, so readers never see a half-written entry.
Tags are Redis sets of member keys under cache_tag:<tag>.
"""

import json
import math
import time
from collections.abc import Callable, Iterable

import redis

from user_directory.infrastructure.observability.logging import get_logger
from user_directory.services.result_cache import CacheBackend, CacheBackendError, CacheEntry

logger = get_logger(__name__)

TAG_KEY_PREFIX = "cache_tag:"


class RedisCacheBackend(CacheBackend):
    """CacheBackend on a synchronous redis-py client."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = "user_directory:",
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self._clock = clock

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = 2.0, **kwargs) -> "RedisCacheBackend":
        client = redis.Redis.from_url(
            url,
            socket_connect_timeout=socket_timeout,
            socket_timeout=socket_timeout,
            retry_on_timeout=False,
            health_check_interval=30,
            decode_responses=True,
        )
        logger.info("Redis cache backend created", url_preview=url[:20] + "...")
        return cls(client, **kwargs)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.key_prefix}{TAG_KEY_PREFIX}{tag}"

    def get(self, key: str) -> CacheEntry | None:
        try:
            raw = self.client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis GET failed: {e}", operation="get", key=key) from e

        if raw is None:
            return None

        try:
            envelope = json.loads(raw)
            entry = CacheEntry(
                key=key,
                payload=envelope["payload"],
                expires_at=float(envelope["expires_at"]),
                tags=frozenset(envelope.get("tags", [])),
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Discarding unreadable cache envelope", key=key[:60], error=str(e))
            return None

        # Redis expires the key itself; this covers clock skew between the two.
        if entry.is_expired(self._clock()):
            return None
        return entry

    def set(self, entry: CacheEntry) -> None:
        ttl_s = max(1, math.ceil(entry.expires_at - self._clock()))
        envelope = json.dumps(
            {"payload": entry.payload, "expires_at": entry.expires_at, "tags": sorted(entry.tags)}
        )
        try:
            self.client.set(self._key(entry.key), envelope, ex=ttl_s)
            # Members may outlive their entries; deleting a missing key is a no-op.
            for tag in entry.tags:
                self.client.sadd(self._tag_key(tag), entry.key)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis SET failed: {e}", operation="set", key=entry.key) from e

    def invalidate_tags(self, tags: Iterable[str]) -> None:
        try:
            for tag in tags:
                tag_key = self._tag_key(tag)
                members = self.client.smembers(tag_key)
                if members:
                    self.client.delete(*(self._key(member) for member in members))
                self.client.delete(tag_key)
        except redis.RedisError as e:
            raise CacheBackendError(f"Redis invalidation failed: {e}", operation="invalidate_tags") from e

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError as e:
            logger.error("Redis ping failed", error=str(e))
            return False

    def close(self) -> None:
        try:
            self.client.close()
            logger.info("Redis cache backend closed")
        except redis.RedisError as e:
            logger.error("Error closing Redis client", error=str(e))

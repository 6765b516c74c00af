"""Redis-backed JSON cache that degrades to a miss when Redis is unavailable."""

import json
from collections.abc import Callable
from typing import Any, TypeVar

import redis

from docstudy.config.settings import Settings
from docstudy.logging.logger import Log

T = TypeVar("T")


class Cache:
    """Keyed, TTL-based JSON store.

    Every Redis failure is logged and swallowed: reads become misses and
    writes become no-ops. Callers must treat the cache as an optimization.
    """

    def __init__(self, client: redis.Redis | None, *, enabled: bool = True) -> None:
        self._client = client
        self._enabled = enabled and client is not None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def get(self, key: str) -> Any | None:
        """Return the decoded value for key, or None on miss or outage."""
        if not self._enabled:
            return None
        try:
            raw = self._client.get(key)  # type: ignore[union-attr]
        except redis.RedisError as exc:
            Log.warning(f"Cache get failed for {key}: {exc}")
            return None
        return self._decode(key, raw)

    def get_many(self, keys: list[str]) -> list[Any | None]:
        """Return decoded values for several keys in one round trip."""
        if not self._enabled or not keys:
            return [None] * len(keys)
        try:
            raws = self._client.mget(keys)  # type: ignore[union-attr]
        except redis.RedisError as exc:
            Log.warning(f"Cache mget failed for {keys}: {exc}")
            return [None] * len(keys)
        return [self._decode(key, raw) for key, raw in zip(keys, raws)]

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if not self._enabled:
            return
        try:
            self._client.setex(key, ttl_seconds, json.dumps(value))  # type: ignore[union-attr]
        except (redis.RedisError, TypeError, ValueError) as exc:
            Log.warning(f"Cache set failed for {key}: {exc}")

    def delete(self, *keys: str) -> None:
        if not self._enabled or not keys:
            return
        try:
            self._client.delete(*keys)  # type: ignore[union-attr]
        except redis.RedisError as exc:
            Log.warning(f"Cache delete failed for {keys}: {exc}")

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Returns the number deleted."""
        if not self._enabled:
            return 0
        try:
            keys = list(self._client.scan_iter(match=pattern, count=500))  # type: ignore[union-attr]
            if not keys:
                return 0
            return int(self._client.delete(*keys))  # type: ignore[union-attr]
        except redis.RedisError as exc:
            Log.warning(f"Cache invalidation failed for pattern {pattern}: {exc}")
            return 0

    @staticmethod
    def _decode(key: str, raw: Any) -> Any | None:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as exc:
            Log.warning(f"Discarding undecodable cache entry {key}: {exc}")
            return None


def get_or_compute(
    cache: Cache,
    key: str,
    ttl_seconds: int,
    compute: Callable[[], T],
) -> T:
    """Return the cached value for key, computing and storing it on a miss.

    A cache outage only costs the recomputation. Errors raised by `compute`
    propagate and nothing is stored.
    """
    cached = cache.get(key)
    if cached is not None:
        Log.debug(f"Cache hit: {key}")
        return cached  # type: ignore[no-any-return]
    value = compute()
    cache.set(key, value, ttl_seconds)
    return value


def build_cache(settings: Settings) -> Cache:
    """Create a Cache from settings. Redis connects lazily on first use."""
    if not settings.cache_enabled:
        return Cache(None, enabled=False)
    client = redis.Redis.from_url(
        settings.redis_url,
        socket_timeout=settings.redis_socket_timeout_seconds,
        socket_connect_timeout=settings.redis_socket_timeout_seconds,
        decode_responses=True,
    )
    return Cache(client)

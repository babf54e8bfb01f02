"""Read-through caches for analysis reports.

Every backend implements ``get_or_set``: return the cached report for a key,
or compute, store and return it. Concurrent misses for the same key each
compute their own report.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional, Protocol, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError
from redis import Redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from redis.retry import Retry

__all__ = ["AnalysisCache", "NullCache", "InMemoryCache", "RedisCache"]

logger = logging.getLogger(__name__)

ReportT = TypeVar("ReportT", bound=BaseModel)


class AnalysisCache(Protocol):
    def get_or_set(
        self,
        key: str,
        factory: Callable[[], ReportT],
        ttl_seconds: int,
        schema: Type[ReportT],
    ) -> ReportT: ...

    def close(self) -> None: ...


class NullCache:
    """Cache that never stores anything."""

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], ReportT],
        ttl_seconds: int,
        schema: Type[ReportT],
    ) -> ReportT:
        return factory()

    def close(self) -> None:
        pass


class InMemoryCache:
    """Process-local cache with per-entry expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[float, BaseModel]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], ReportT],
        ttl_seconds: int,
        schema: Type[ReportT],
    ) -> ReportT:
        now = self._clock()
        entry = self._entries.get(key)
        if entry is not None and entry[0] > now and isinstance(entry[1], schema):
            return entry[1]

        value = factory()
        if ttl_seconds > 0:
            self._entries[key] = (now + ttl_seconds, value)
        return value

    def clear(self) -> None:
        self._entries.clear()

    def close(self) -> None:
        self.clear()


class RedisCache:
    """Redis-backed cache storing reports as JSON.

    Redis failures degrade to computing the report; they never fail the
    analysis itself.
    """

    def __init__(self, client: Redis, *, prefix: str = "insights") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisCache":
        """Create a cache with retry logic for transient failures."""

        client = Redis.from_url(
            url,
            decode_responses=True,
            retry=Retry(ExponentialBackoff(), retries=3),
            retry_on_error=[ConnectionError, TimeoutError],
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        logger.info("Redis analysis cache initialized with retry logic")
        return cls(client, **kwargs)

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def _read(self, key: str, schema: Type[ReportT]) -> Optional[ReportT]:
        try:
            raw = self._client.get(self._key(key))
        except RedisError as e:
            logger.debug(f"Failed to get cache key '{key}': {e}")
            return None
        if raw is None:
            return None
        try:
            return schema.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable cache entry '{key}': {e}")
            return None

    def _write(self, key: str, value: BaseModel, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            return
        try:
            self._client.setex(self._key(key), ttl_seconds, value.model_dump_json())
        except RedisError as e:
            logger.debug(f"Failed to setex cache key '{key}' with TTL {ttl_seconds}: {e}")

    def get_or_set(
        self,
        key: str,
        factory: Callable[[], ReportT],
        ttl_seconds: int,
        schema: Type[ReportT],
    ) -> ReportT:
        cached = self._read(key, schema)
        if cached is not None:
            return cached
        value = factory()
        self._write(key, value, ttl_seconds)
        return value

    def close(self) -> None:
        self._client.close()

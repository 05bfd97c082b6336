"""Enhancement cache: in-memory TTL map with an optional Redis backend.

Entries are keyed by the exact raw query string and hold the corrected query
and intent produced by a successful LLM enhancement. The in-memory backend
purges expired entries lazily on read and is also swept on a fixed schedule
by :func:`run_sweeper` so idle keys do not accumulate over a long uptime.
"""
from __future__ import annotations

import asyncio
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol

import redis
from pydantic import ValidationError

from .config import settings
from .models import Intent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedEnhancement:
    corrected_query: str
    intent: Intent


class EnhancementCache(Protocol):
    def get(self, query: str) -> Optional[CachedEnhancement]: ...

    def put(self, query: str, corrected_query: str, intent: Intent) -> None: ...

    def sweep(self) -> int: ...


class InMemoryEnhancementCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: Dict[str, tuple[float, CachedEnhancement]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def _expired(self, inserted_at: float, now: float) -> bool:
        return now - inserted_at >= self.ttl_seconds

    def get(self, query: str) -> Optional[CachedEnhancement]:
        with self._lock:
            value = self._store.get(query)
            if not value:
                return None
            inserted_at, entry = value
            if self._expired(inserted_at, self._clock()):
                self._store.pop(query, None)
                return None
            return entry

    def put(self, query: str, corrected_query: str, intent: Intent) -> None:
        entry = CachedEnhancement(corrected_query=corrected_query, intent=intent)
        with self._lock:
            self._store[query] = (self._clock(), entry)

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [key for key, (inserted_at, _) in self._store.items() if self._expired(inserted_at, now)]
            for key in stale:
                del self._store[key]
        return len(stale)


@dataclass
class RedisEnhancementCache:
    client: redis.Redis
    ttl_seconds: int
    prefix: str = "enhancement:"

    def get(self, query: str) -> Optional[CachedEnhancement]:
        try:
            data = self.client.get(self.prefix + query)
        except redis.RedisError as exc:  # pragma: no cover - protective
            logger.warning("Redis get failed: %s", exc)
            return None
        if not data:
            return None
        try:
            payload = json.loads(data)
            return CachedEnhancement(
                corrected_query=payload["corrected"],
                intent=Intent.model_validate(payload["intent"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError, ValidationError):
            return None

    def put(self, query: str, corrected_query: str, intent: Intent) -> None:
        value = {"corrected": corrected_query, "intent": intent.model_dump(mode="json")}
        try:
            self.client.setex(self.prefix + query, self.ttl_seconds, json.dumps(value))
        except redis.RedisError as exc:  # pragma: no cover - protective
            logger.warning("Redis set failed: %s", exc)

    def sweep(self) -> int:
        # Redis expires keys on its own.
        return 0


_cache: EnhancementCache | None = None


def get_cache() -> EnhancementCache:
    global _cache
    if _cache is not None:
        return _cache
    ttl = settings.enhancement_cache_ttl_seconds
    if settings.enhancement_cache_backend.lower() == "redis":
        try:
            client = redis.Redis(host=settings.redis_host, port=settings.redis_port, decode_responses=False)
            client.ping()
            logger.info("Using Redis enhancement cache at %s:%s", settings.redis_host, settings.redis_port)
            _cache = RedisEnhancementCache(client, ttl)
            return _cache
        except redis.RedisError:
            logger.warning("Redis not available, using in-memory enhancement cache")
    _cache = InMemoryEnhancementCache(ttl)
    return _cache


async def run_sweeper(cache: EnhancementCache, interval_seconds: float) -> None:
    """Sweep ``cache`` every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = cache.sweep()
        if removed:
            logger.info("cache_sweep removed=%s", removed)
        else:
            logger.debug("cache_sweep removed=0")

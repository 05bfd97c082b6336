"""Tests for the enhancement cache backends and the background sweeper."""

import asyncio
import json

from product_search.cache import InMemoryEnhancementCache, RedisEnhancementCache, run_sweeper
from product_search.models import Intent, PricePreference

TTL = 1800


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_get_returns_entry_within_ttl():
    clock = FakeClock()
    cache = InMemoryEnhancementCache(TTL, clock=clock)
    cache.put("ifone", "iphone", Intent(pricePreference=PricePreference.CHEAP))

    clock.now = TTL - 1
    entry = cache.get("ifone")

    assert entry is not None
    assert entry.corrected_query == "iphone"
    assert entry.intent.pricePreference == PricePreference.CHEAP


def test_keys_are_exact_strings():
    cache = InMemoryEnhancementCache(TTL, clock=FakeClock())
    cache.put("ifone", "iphone", Intent())

    assert cache.get("IFONE") is None
    assert cache.get(" ifone") is None


def test_expired_entry_is_purged_on_read():
    clock = FakeClock()
    cache = InMemoryEnhancementCache(TTL, clock=clock)
    cache.put("ifone", "iphone", Intent())

    clock.now = TTL
    assert cache.get("ifone") is None
    assert len(cache) == 0


def test_put_overwrites_with_fresh_timestamp():
    clock = FakeClock()
    cache = InMemoryEnhancementCache(TTL, clock=clock)
    cache.put("q", "first", Intent())
    clock.now = TTL - 10
    cache.put("q", "second", Intent())
    clock.now = TTL + 10

    entry = cache.get("q")
    assert entry is not None
    assert entry.corrected_query == "second"


def test_sweep_removes_only_expired_entries():
    clock = FakeClock()
    cache = InMemoryEnhancementCache(TTL, clock=clock)
    cache.put("old-1", "a", Intent())
    cache.put("old-2", "b", Intent())
    clock.now = TTL + 1
    cache.put("fresh", "c", Intent())

    assert cache.sweep() == 2
    assert len(cache) == 1
    assert cache.get("fresh") is not None


def test_run_sweeper_sweeps_without_traffic():
    clock = FakeClock()
    cache = InMemoryEnhancementCache(TTL, clock=clock)
    cache.put("idle", "x", Intent())
    clock.now = TTL * 2

    async def scenario() -> None:
        task = asyncio.create_task(run_sweeper(cache, 0.01))
        await asyncio.sleep(0.05)
        task.cancel()

    asyncio.run(scenario())
    assert len(cache) == 0


class FakeRedis:
    def __init__(self) -> None:
        self.data: dict[str, tuple[int, str]] = {}

    def get(self, key):
        value = self.data.get(key)
        return value[1] if value else None

    def setex(self, key, ttl, value):
        self.data[key] = (ttl, value)


def test_redis_backend_stores_with_ttl():
    client = FakeRedis()
    cache = RedisEnhancementCache(client, TTL)
    cache.put("sasta fone", "sasta phone", Intent(pricePreference=PricePreference.CHEAP, storage="64GB"))

    ttl, raw = client.data["enhancement:sasta fone"]
    assert ttl == TTL
    assert json.loads(raw)["corrected"] == "sasta phone"

    entry = cache.get("sasta fone")
    assert entry is not None
    assert entry.intent.storage == "64GB"
    assert cache.sweep() == 0


def test_redis_backend_ignores_garbage():
    client = FakeRedis()
    client.data["enhancement:q"] = (TTL, "not json")

    assert RedisEnhancementCache(client, TTL).get("q") is None

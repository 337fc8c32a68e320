"""
Tests for the tag-invalidated service cache.
"""
from datetime import datetime
from typing import List

import pytest

from survey_platform.core import cache as cache_module
from survey_platform.core.cache import (
    CacheBackendError,
    MemoryCacheBackend,
    RedisCacheBackend,
    ServiceCache,
    cached,
    get_cache,
)
from survey_platform.core.exceptions import InvalidInputError
from survey_platform.services.webhook import get_webhook


@pytest.fixture
def service_cache():
    return ServiceCache(MemoryCacheBackend(max_entries=100), namespace="test", default_ttl=60)


class CountingLoader:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


class BrokenBackend(MemoryCacheBackend):
    def get(self, key):
        raise CacheBackendError("store unreachable")

    def get_counters(self, keys):
        raise CacheBackendError("store unreachable")


def test_second_read_is_served_from_cache(service_cache):
    loader = CountingLoader({"answer": 42})

    assert service_cache.get_or_set("k", loader, tags=["t"]) == {"answer": 42}
    assert service_cache.get_or_set("k", loader, tags=["t"]) == {"answer": 42}
    assert loader.calls == 1


def test_revalidating_a_tag_forces_reload(service_cache):
    loader = CountingLoader([1, 2, 3])
    service_cache.get_or_set("k", loader, tags=["a", "b"])

    service_cache.revalidate_tag("b")
    service_cache.get_or_set("k", loader, tags=["a", "b"])

    assert loader.calls == 2


def test_unrelated_tag_does_not_invalidate(service_cache):
    loader = CountingLoader("value")
    service_cache.get_or_set("k", loader, tags=["a"])

    service_cache.revalidate_tag("other")
    service_cache.get_or_set("k", loader, tags=["a"])

    assert loader.calls == 1


def test_revalidation_during_load_leaves_entry_stale(service_cache):
    calls = []

    def loader():
        calls.append(1)
        if len(calls) == 1:
            # A writer commits while this read is still loading
            service_cache.revalidate_tag("t")
        return len(calls)

    assert service_cache.get_or_set("k", loader, tags=["t"]) == 1
    assert service_cache.get_or_set("k", loader, tags=["t"]) == 2
    assert service_cache.get_or_set("k", loader, tags=["t"]) == 2


def test_entries_expire_after_ttl(service_cache, monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr(cache_module.time, "monotonic", lambda: clock[0])
    loader = CountingLoader("value")

    service_cache.get_or_set("k", loader, revalidate=30)
    clock[0] += 29
    service_cache.get_or_set("k", loader, revalidate=30)
    assert loader.calls == 1

    clock[0] += 2
    service_cache.get_or_set("k", loader, revalidate=30)
    assert loader.calls == 2


def test_memory_backend_evicts_least_recently_used():
    backend = MemoryCacheBackend(max_entries=2)
    backend.set("a", "1", ttl=60)
    backend.set("b", "2", ttl=60)
    backend.get("a")
    backend.set("c", "3", ttl=60)

    assert backend.get("a") == "1"
    assert backend.get("b") is None
    assert backend.get("c") == "3"


def test_backend_failure_falls_back_to_loader():
    service_cache = ServiceCache(BrokenBackend(), namespace="test")
    loader = CountingLoader("fresh")

    assert service_cache.get_or_set("k", loader, tags=["t"]) == "fresh"
    assert service_cache.get_or_set("k", loader, tags=["t"]) == "fresh"
    assert loader.calls == 2


def test_cached_decorator_restores_types_on_hit():
    calls: List[int] = []

    @cached(key=lambda n: f"test:stamp:{n}", tags=lambda n: ["test-stamps"])
    def stamp(n: int) -> datetime:
        calls.append(n)
        return datetime(2024, 1, 2, 3, 4, 5)

    first = stamp(1)
    second = stamp(1)

    assert calls == [1]
    assert isinstance(second, datetime)
    assert first == second

    get_cache().revalidate_tag("test-stamps")
    stamp(1)
    assert calls == [1, 1]


def test_cached_decorator_exposes_uncached_function():
    @cached(key=lambda: "test:constant")
    def constant() -> int:
        return 7

    assert constant.uncached() == 7


def test_invalid_input_is_rejected_on_every_call(db_session):
    for _ in range(2):
        with pytest.raises(InvalidInputError):
            get_webhook(db_session, "")


@pytest.fixture
def clock(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(cache_module.time, "monotonic", lambda: now[0])
    return now


def test_tag_counters_expire_after_tag_ttl(clock):
    backend = MemoryCacheBackend(max_entries=10)
    service_cache = ServiceCache(backend, namespace="test", default_ttl=60, tag_ttl=120)

    for i in range(5000):
        service_cache.revalidate_tag(f"people-{i}")
    assert backend.counter_count() == 5000

    clock[0] += 121
    service_cache.revalidate_tag("people-new")

    assert backend.counter_count() == 1


def test_tagged_entries_never_outlive_their_counters(clock):
    service_cache = ServiceCache(MemoryCacheBackend(), namespace="test", default_ttl=60, tag_ttl=120)
    loader = CountingLoader("value")

    service_cache.get_or_set("k", loader, tags=["t"], revalidate=1000)
    service_cache.revalidate_tag("t")
    clock[0] += 121

    # The counter for "t" has expired and reads 0 again, like the stored entry
    service_cache.get_or_set("k", loader, tags=["t"], revalidate=1000)
    assert loader.calls == 2


def test_untagged_entries_keep_their_own_ttl(clock):
    service_cache = ServiceCache(MemoryCacheBackend(), namespace="test", default_ttl=60, tag_ttl=120)
    loader = CountingLoader("value")

    service_cache.get_or_set("k", loader, revalidate=1000)
    clock[0] += 500
    service_cache.get_or_set("k", loader, revalidate=1000)

    assert loader.calls == 1


def test_expired_counter_never_reuses_a_version(clock):
    backend = MemoryCacheBackend()

    first = backend.incr("a", 10)
    backend.incr("b", 10)
    clock[0] += 11

    assert backend.get_counters(["a"]) == [0]
    assert backend.incr("a", 10) > first


class RecordingRedis:
    def __init__(self):
        self.values = {}
        self.expiries = {}

    def incr(self, key):
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    def set(self, key, value, ex=None):
        self.values[key] = value
        self.expiries[key] = ex


def test_redis_counters_are_set_with_expiry():
    client = RecordingRedis()
    backend = RedisCacheBackend(client, namespace="test")

    assert backend.incr("test:tag:people-1", 120) == 1
    assert backend.incr("test:tag:people-2", 120) == 2

    assert client.expiries == {"test:tag:people-1": 120, "test:tag:people-2": 120}

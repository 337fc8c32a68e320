"""
Service Cache

Cache-aside layer for the service functions, keyed by string and invalidated
by tag.

ARCHITECTURE: Tags are version counters. Every stored entry records the
versions of its tags at the moment its loader started; revalidating a tag
gives its counter a version never handed out before, so every entry stored
under an older version becomes a miss on its next read. Entries also expire
after their TTL, which bounds staleness for data no write ever tags (relative
dates, counts by time window).

Counters expire tag_ttl seconds after their last bump and then read as 0.
Tagged entries are never stored for longer than tag_ttl, so an entry that
recorded 0 is gone before the counter that invalidated it.

Values are stored as JSON and re-validated through a pydantic TypeAdapter on
the way out, so a cached datetime comes back as a datetime.

BACKENDS:
- RedisCacheBackend: shared across workers (production)
- MemoryCacheBackend: per-process LRU, used in tests and when Redis is down
"""
import json
import threading
import time
from collections import OrderedDict
from functools import lru_cache, wraps
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, get_type_hints

import redis
from pydantic import TypeAdapter

from survey_platform.config import get_settings
from survey_platform.utils.logging import get_logger

logger = get_logger(__name__)


class CacheBackendError(Exception):
    """Raised by a backend when its store cannot be reached."""


class MemoryCacheBackend:
    """In-process LRU store with per-key expiry."""

    def __init__(self, max_entries: int = 10000):
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, tuple[str, float]]" = OrderedDict()
        # Ordered by expiry: every bump moves its counter to the end
        self._counters: "OrderedDict[str, tuple[int, float]]" = OrderedDict()
        self._sequence = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at <= time.monotonic():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: str, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (value, time.monotonic() + ttl)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def _counter(self, key: str, now: float) -> int:
        item = self._counters.get(key)
        if item is None or item[1] <= now:
            return 0
        return item[0]

    def _prune_counters(self, now: float) -> None:
        while self._counters:
            _, (_, expires_at) = next(iter(self._counters.items()))
            if expires_at > now:
                break
            self._counters.popitem(last=False)

    def get_counters(self, keys: Sequence[str]) -> List[int]:
        now = time.monotonic()
        with self._lock:
            return [self._counter(key, now) for key in keys]

    def incr(self, key: str, ttl: int) -> int:
        now = time.monotonic()
        with self._lock:
            self._prune_counters(now)
            self._sequence += 1
            self._counters[key] = (self._sequence, now + ttl)
            self._counters.move_to_end(key)
            return self._sequence

    def counter_count(self) -> int:
        return len(self._counters)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._counters.clear()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheBackend:
    """
    Redis store. Entries use SETEX.

    Tag counters take their values from one shared sequence and expire
    ttl seconds after their last bump.
    """

    def __init__(self, client: "redis.Redis", namespace: str):
        self.client = client
        self.namespace = namespace

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise CacheBackendError(str(e)) from e

    def set(self, key: str, value: str, ttl: int) -> None:
        try:
            self.client.setex(key, ttl, value)
        except redis.RedisError as e:
            raise CacheBackendError(str(e)) from e

    def get_counters(self, keys: Sequence[str]) -> List[int]:
        if not keys:
            return []
        try:
            return [int(v) if v is not None else 0 for v in self.client.mget(list(keys))]
        except redis.RedisError as e:
            raise CacheBackendError(str(e)) from e

    def incr(self, key: str, ttl: int) -> int:
        try:
            value = int(self.client.incr(f"{self.namespace}:tag-sequence"))
            self.client.set(key, value, ex=ttl)
            return value
        except redis.RedisError as e:
            raise CacheBackendError(str(e)) from e

    def clear(self) -> None:
        try:
            for key in self.client.scan_iter(match=f"{self.namespace}:*"):
                self.client.delete(key)
        except redis.RedisError as e:
            raise CacheBackendError(str(e)) from e


class ServiceCache:
    """Tag-invalidated, TTL-bounded cache in front of service queries."""

    def __init__(
        self,
        backend,
        namespace: str = "cache",
        default_ttl: int = 300,
        tag_ttl: Optional[int] = None,
    ):
        self.backend = backend
        self.namespace = namespace
        self.default_ttl = default_ttl
        self.tag_ttl = max(tag_ttl or default_ttl, default_ttl)

    def _entry_key(self, key: str) -> str:
        return f"{self.namespace}:entry:{key}"

    def _tag_key(self, tag: str) -> str:
        return f"{self.namespace}:tag:{tag}"

    def _tag_versions(self, tags: Sequence[str]) -> Dict[str, int]:
        counters = self.backend.get_counters([self._tag_key(tag) for tag in tags])
        return dict(zip(tags, counters))

    def get_or_set(
        self,
        key: str,
        loader: Callable[[], Any],
        tags: Iterable[str] = (),
        revalidate: Optional[int] = None,
        adapter: Optional[TypeAdapter] = None,
    ) -> Any:
        """
        Return the cached value for key, or call loader and store its result.

        The loader runs outside any lock; concurrent misses may both load.
        """
        tags = sorted(set(tags))
        adapter = adapter or TypeAdapter(Any)
        entry_key = self._entry_key(key)

        try:
            versions = self._tag_versions(tags)
            raw = self.backend.get(entry_key)
        except CacheBackendError as e:
            logger.error(f"Cache read failed, loading uncached: {e}", extra={"cache_key": key})
            return loader()

        if raw is not None:
            envelope = json.loads(raw)
            if envelope.get("tags") == versions:
                logger.debug(f"Cache hit: {key}")
                return adapter.validate_python(envelope["data"])

        logger.debug(f"Cache miss: {key}")
        value = loader()

        envelope = {"tags": versions, "data": adapter.dump_python(value, mode="json")}
        ttl = revalidate or self.default_ttl
        if tags:
            ttl = min(ttl, self.tag_ttl)
        try:
            self.backend.set(entry_key, json.dumps(envelope), ttl)
        except CacheBackendError as e:
            logger.error(f"Cache write failed: {e}", extra={"cache_key": key})
        return value

    def revalidate_tag(self, tag: str) -> None:
        try:
            self.backend.incr(self._tag_key(tag), self.tag_ttl)
        except CacheBackendError as e:
            # Entries under this tag stay valid until their TTL runs out
            logger.error(f"Tag revalidation failed for {tag}: {e}")

    def revalidate_tags(self, tags: Iterable[str]) -> None:
        for tag in tags:
            self.revalidate_tag(tag)

    def clear(self) -> None:
        self.backend.clear()


def _build_backend(settings):
    if settings.CACHE_BACKEND == "memory":
        return MemoryCacheBackend(max_entries=settings.CACHE_MEMORY_MAX_ENTRIES)

    try:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5
        )
        client.ping()
        logger.info("Redis connection established for service cache")
        return RedisCacheBackend(client, settings.CACHE_KEY_PREFIX)
    except (redis.ConnectionError, redis.TimeoutError) as e:
        # FALLBACK: per-process cache; invalidations do not cross workers
        logger.error(f"Redis connection failed, using in-process cache: {e}")
        return MemoryCacheBackend(max_entries=settings.CACHE_MEMORY_MAX_ENTRIES)


@lru_cache()
def get_cache() -> ServiceCache:
    settings = get_settings()
    return ServiceCache(
        _build_backend(settings),
        namespace=settings.CACHE_KEY_PREFIX,
        default_ttl=settings.SERVICES_REVALIDATION_INTERVAL,
        tag_ttl=settings.CACHE_TAG_TTL,
    )


def cached(
    key: Callable[..., str],
    tags: Optional[Callable[..., Iterable[str]]] = None,
    revalidate: Optional[int] = None,
):
    """
    Wrap a service function in the service cache.

    key and tags receive the same arguments as the wrapped function. The
    function's return annotation decides how cached values are decoded.

        @cached(
            key=lambda db, webhook_id: f"webhook:{webhook_id}",
            tags=lambda db, webhook_id: [webhook_cache.tag_by_id(webhook_id)],
        )
        def get_webhook(db: Session, webhook_id: str) -> Optional[WebhookResponse]:
            ...
    """

    def decorator(func):
        adapter_holder: Dict[str, TypeAdapter] = {}

        def get_adapter() -> TypeAdapter:
            if "adapter" not in adapter_holder:
                return_type = get_type_hints(func).get("return", Any)
                adapter_holder["adapter"] = TypeAdapter(return_type)
            return adapter_holder["adapter"]

        @wraps(func)
        def wrapper(*args, **kwargs):
            return get_cache().get_or_set(
                key(*args, **kwargs),
                lambda: func(*args, **kwargs),
                tags=tags(*args, **kwargs) if tags else (),
                revalidate=revalidate,
                adapter=get_adapter(),
            )

        wrapper.uncached = func
        return wrapper

    return decorator

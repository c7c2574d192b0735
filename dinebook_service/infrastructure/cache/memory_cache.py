"""
In-process time-to-live caches.

Each cache lives in a single worker process, so a horizontally scaled
deployment needs a shared cache instead (see DESIGN.md).
"""
import logging
import threading
from typing import Any, Dict, Optional

from cachetools import TTLCache

from dinebook_service.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


class MemoryCache:
    """Thread-safe wrapper around cachetools.TTLCache with prefix invalidation"""

    def __init__(self, name: str, ttl_seconds: int, max_entries: int = 1024):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self._cache: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds)
        self._lock = threading.Lock()
        # Bumped by every invalidation
        self._generation = 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: Any):
        with self._lock:
            self._cache[key] = value

    def set_if_current(self, key: str, value: Any, generation: int) -> bool:
        """Store a value computed after reading `generation`, unless an invalidation happened since"""
        with self._lock:
            if generation != self._generation:
                return False
            self._cache[key] = value
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            self._generation += 1
            return self._cache.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with prefix"""
        with self._lock:
            self._generation += 1
            keys = [key for key in self._cache.keys() if key.startswith(prefix)]
            for key in keys:
                self._cache.pop(key, None)
        if keys:
            logger.debug(f"Cache '{self.name}': invalidated {len(keys)} entries with prefix {prefix!r}")
        return len(keys)

    def clear(self):
        with self._lock:
            self._generation += 1
            self._cache.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


def availability_prefix(restaurant_id: str) -> str:
    return f"availability-{restaurant_id}-"


def availability_key(restaurant_id: str, date: str) -> str:
    return f"{availability_prefix(restaurant_id)}{date}"


def user_bookings_prefix(user_id: str) -> str:
    return f"user-bookings-{user_id}-"


def user_bookings_key(
    user_id: str,
    status: Optional[str],
    date_from: Optional[str],
    date_to: Optional[str]
) -> str:
    return f"{user_bookings_prefix(user_id)}{status or 'all'}-{date_from or ''}-{date_to or ''}"


def restaurant_key(restaurant_id: str) -> str:
    return f"restaurant-{restaurant_id}"


RESTAURANT_LIST_PREFIX = "restaurants-"


def restaurant_list_key(page: int, limit: int) -> str:
    return f"{RESTAURANT_LIST_PREFIX}{page}-{limit}"


_caches: Dict[str, MemoryCache] = {}


def _get_cache(name: str, ttl_seconds: int) -> MemoryCache:
    if name not in _caches:
        _caches[name] = MemoryCache(name, ttl_seconds, settings.cache_max_entries)
    return _caches[name]


def get_availability_cache() -> MemoryCache:
    return _get_cache("availability", settings.availability_cache_ttl_seconds)


def get_bookings_cache() -> MemoryCache:
    return _get_cache("bookings", settings.bookings_cache_ttl_seconds)


def get_restaurant_cache() -> MemoryCache:
    return _get_cache("restaurants", settings.restaurant_cache_ttl_seconds)


def clear_all_caches():
    for cache in _caches.values():
        cache.clear()


def invalidate_restaurant(restaurant_id: str):
    """Drop every cached view of a restaurant after its profile, menu or rating changed"""
    get_restaurant_cache().delete(restaurant_key(restaurant_id))
    get_restaurant_cache().delete_prefix(RESTAURANT_LIST_PREFIX)
    get_availability_cache().delete_prefix(availability_prefix(restaurant_id))

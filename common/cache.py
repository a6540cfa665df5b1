"""TTL cache helpers for venue listings and day schedules."""
from __future__ import annotations

from datetime import date
from threading import RLock
from typing import Any, Callable, Generic, Optional, TypeVar

from cachetools import TTLCache

from .config import get_settings

T = TypeVar("T")


class SimpleTTLCache(Generic[T]):
    def __init__(self, ttl: int, maxsize: int = 256) -> None:
        self._cache: TTLCache[str, T] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._lock = RLock()

    def get(self, key: str) -> Optional[T]:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: str, value: T) -> None:
        with self._lock:
            self._cache[key] = value

    def get_or_set(self, key: str, factory: Callable[[], T]) -> T:
        cached = self.get(key)
        if cached is not None:
            return cached
        value = factory()
        self.set(key, value)
        return value

    def pop(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def pop_prefix(self, prefix: str) -> None:
        with self._lock:
            for key in [key for key in self._cache.keys() if key.startswith(prefix)]:
                self._cache.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()


schedule_cache: SimpleTTLCache[Any] = SimpleTTLCache(ttl=get_settings().schedule_cache_ttl)


def schedule_key(venue_id: str, day: date) -> str:
    return f"venue-schedule:{venue_id}:{day.isoformat()}"


def invalidate_schedule(venue_id: str, day: Optional[date] = None) -> None:
    """Drop a cached venue schedule for one day, or for every day when ``day`` is omitted."""
    if day is None:
        schedule_cache.pop_prefix(f"venue-schedule:{venue_id}:")
    else:
        schedule_cache.pop(schedule_key(venue_id, day))

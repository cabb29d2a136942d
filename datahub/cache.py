"""
Cache interface injected into the market-data layer.

Anything with ``get(key)`` and ``put(key, value, ttl=None)`` can be handed to
the fetcher; :class:`MemoryCache` is the in-process default and the fake used
by tests, ``infra.cache_store.CacheManager`` adds Redis/MongoDB tiers.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class Cache(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ...


class MemoryCache:
    """Thread-safe dict cache with per-entry expiry."""

    def __init__(
        self,
        default_ttl: int = 300,
        max_entries: int = 2048,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug("Cache entry expired: %s", key)
                return None
            return value

    def put(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        ttl_value = self.default_ttl if ttl is None else ttl
        if ttl_value <= 0:
            return
        with self._lock:
            if len(self._entries) >= self.max_entries and key not in self._entries:
                self._evict()
            self._entries[key] = (self._clock() + ttl_value, value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self) -> None:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if len(self._entries) >= self.max_entries:
            oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
            del self._entries[oldest]


def make_key(namespace: str, *parts: str) -> str:
    return "::".join([namespace.lower(), *(str(part).upper() for part in parts)])

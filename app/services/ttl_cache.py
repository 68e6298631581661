"""
app/services/ttl_cache.py

Small keyed cache with a fixed time-to-live and an injected loader.

Used for per-store ticket-type definitions, which change rarely but are read
on every ticket preview and import.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class TTLCache(Generic[K, V]):
    """
    Cache values produced by `loader(key)` for `ttl_seconds`.

    A TTL of zero disables caching: every `get` calls the loader.
    """

    def __init__(
        self,
        *,
        loader: Callable[[K], V],
        ttl_seconds: float,
        clock: Clock = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl_seconds = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[K, tuple[float, V]] = {}

    def get(self, key: K) -> V:
        """
        Return the cached value for `key`, loading it when absent or expired.
        """

        if self._ttl_seconds <= 0:
            return self._loader(key)

        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] > now:
                return entry[1]

        return self._load(key)

    def invalidate(self, key: K | None = None) -> None:
        """
        Drop one key, or every key when `key` is None.
        """

        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def refresh_if_stale(self, key: K) -> bool:
        """
        Reload `key` if it is missing or expired. Returns True when it reloaded.
        """

        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] > now:
                return False
        self._load(key)
        return True

    def _load(self, key: K) -> V:
        value = self._loader(key)
        if self._ttl_seconds > 0:
            with self._lock:
                self._entries[key] = (self._clock() + self._ttl_seconds, value)
        logger.debug("Loaded cache entry for key=%s", key)
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

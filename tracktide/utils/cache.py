"""In-memory TTL cache used for catalog artist lookups."""

from __future__ import annotations

import time
from collections import OrderedDict
from threading import RLock
from typing import Any, Callable, Hashable, Tuple

MISSING = object()


class TTLCache:
    """Thread-safe TTL cache with LRU eviction.

    Entries expire ``ttl`` seconds after they were written; reads refresh the
    LRU order but not the expiry.
    """

    def __init__(self, maxsize: int = 128, ttl: float = 300.0, clock: Callable[[], float] = time.monotonic) -> None:
        if maxsize <= 0:
            raise ValueError("maxsize must be positive")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.maxsize = maxsize
        self.ttl = ttl
        self._clock = clock
        self._data: "OrderedDict[Hashable, Tuple[Any, float]]" = OrderedDict()
        self._lock = RLock()

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return default
            value, expiry = entry
            if expiry <= self._clock():
                del self._data[key]
                return default
            self._data.move_to_end(key)
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = (value, self._clock() + self.ttl)
            self._data.move_to_end(key)
            while len(self._data) > self.maxsize:
                self._data.popitem(last=False)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value or call ``loader`` and cache its result.

        The loader runs outside the lock; exceptions propagate and nothing is
        cached for that key.
        """
        cached = self.get(key)
        if cached is not MISSING:
            return cached
        value = loader()
        self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


__all__ = ["TTLCache", "MISSING"]

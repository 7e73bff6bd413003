"""Small in-process TTL cache for fetched PR lists."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

DEFAULT_TTL = 300  # seconds
DEFAULT_MAX_SIZE = 100


class TTLCache:
    """Key/value store whose entries expire ``ttl`` seconds after being set.

    When full, expired entries are pruned first; if that frees nothing the
    oldest inserted entry is evicted.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.ttl = ttl
        self.max_size = max_size
        self._clock = clock
        self._store: "OrderedDict[Hashable, tuple[Any, float]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable, default: Optional[Any] = None) -> Any:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return default
            value, expires_at = entry
            if self._clock() > expires_at:
                del self._store[key]
                return default
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            # Re-setting a key moves it to the back of the eviction order
            self._store.pop(key, None)
            if len(self._store) >= self.max_size:
                self._prune_locked()
                if len(self._store) >= self.max_size:
                    self._store.popitem(last=False)
            self._store[key] = (value, self._clock() + self.ttl)

    def delete(self, key: Hashable) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def prune(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        with self._lock:
            return self._prune_locked()

    def _prune_locked(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._store.items() if now > expires_at]
        for key in expired:
            del self._store[key]
        return len(expired)

    def __contains__(self, key: Hashable) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self) -> int:
        return len(self._store)

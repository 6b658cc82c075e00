"""
HYGRO Memoization Cache
=======================

Bounded least-recently-used cache shared by the moving-average and
seasonality engines.

A cache belongs to whoever constructs it (normally an AnalyticsEngine)
and is passed explicitly into the engine functions. All access goes
through a lock so one cache can serve several request threads.

Keys are content hashes over every input element, not boundary
fingerprints, so two series that only share length and endpoints
never collide.
"""

import hashlib
import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, Hashable, Optional

import numpy as np


logger = logging.getLogger(__name__)


def content_key(*parts: Any) -> str:
    """
    Hash arbitrary inputs into a cache key.

    numpy arrays contribute their dtype, shape and raw bytes; everything
    else contributes its repr.
    """
    digest = hashlib.blake2b(digest_size=20)
    for part in parts:
        if isinstance(part, np.ndarray):
            arr = np.ascontiguousarray(part)
            digest.update(str(arr.dtype).encode())
            digest.update(str(arr.shape).encode())
            digest.update(arr.tobytes())
        else:
            digest.update(repr(part).encode('utf-8'))
        digest.update(b'\x1f')
    return digest.hexdigest()


class LRUCache:
    """
    Thread-safe bounded LRU cache.

    Usage:
        cache = LRUCache(capacity=100, name='sma')
        value = cache.get(key)
        if value is None:
            value = compute()
            cache.put(key, value)
    """

    def __init__(self, capacity: int = 100, name: str = 'cache'):
        if capacity < 1:
            raise ValueError(f"Cache capacity must be >= 1, got {capacity}")
        self.capacity = capacity
        self.name = name
        self._data: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def get(self, key: Hashable, default: Optional[Any] = None) -> Any:
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
                self.hits += 1
                return self._data[key]
            self.misses += 1
            return default

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            if key in self._data:
                self._data.move_to_end(key)
            self._data[key] = value
            while len(self._data) > self.capacity:
                evicted, _ = self._data.popitem(last=False)
                self.evictions += 1
                logger.debug(f"{self.name} cache evicted {evicted}")

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
            self.hits = 0
            self.misses = 0
            self.evictions = 0

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def stats(self) -> Dict[str, Any]:
        """Counters for diagnostics."""
        with self._lock:
            return {
                'name': self.name,
                'size': len(self._data),
                'capacity': self.capacity,
                'hits': self.hits,
                'misses': self.misses,
                'evictions': self.evictions,
            }

    def __repr__(self):
        return f"LRUCache({self.name}, {len(self)}/{self.capacity})"

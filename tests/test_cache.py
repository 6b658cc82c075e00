"""
Tests for the LRU memoization cache and content keys.
"""

import threading

import numpy as np
import pytest

from hygro.utils.cache import LRUCache, content_key


class TestLRUCache:

    def test_get_put(self):
        cache = LRUCache(capacity=2)
        cache.put('a', 1)
        assert cache.get('a') == 1
        assert cache.get('missing') is None
        assert cache.get('missing', 5) == 5

    def test_evicts_least_recently_used(self):
        cache = LRUCache(capacity=2)
        cache.put('a', 1)
        cache.put('b', 2)
        cache.get('a')
        cache.put('c', 3)

        assert 'a' in cache
        assert 'b' not in cache
        assert 'c' in cache
        assert len(cache) == 2
        assert cache.stats()['evictions'] == 1

    def test_overwrite_does_not_grow(self):
        cache = LRUCache(capacity=2)
        cache.put('a', 1)
        cache.put('a', 2)
        assert len(cache) == 1
        assert cache.get('a') == 2

    def test_stats_and_clear(self):
        cache = LRUCache(capacity=2, name='test')
        cache.put('a', 1)
        cache.get('a')
        cache.get('b')

        stats = cache.stats()
        assert stats == {'name': 'test', 'size': 1, 'capacity': 2, 'hits': 1, 'misses': 1, 'evictions': 0}

        cache.clear()
        assert len(cache) == 0
        assert cache.stats()['hits'] == 0

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            LRUCache(capacity=0)

    def test_concurrent_puts_stay_bounded(self):
        cache = LRUCache(capacity=10)

        def fill(offset):
            for i in range(200):
                cache.put((offset, i), i)

        threads = [threading.Thread(target=fill, args=(t,)) for t in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 10


class TestContentKey:

    def test_stable(self):
        arr = np.array([1.0, 2.0, 3.0])
        assert content_key('x', arr) == content_key('x', arr.copy())

    def test_interior_values_matter(self):
        a = np.array([1.0, 2.0, 3.0, 4.0])
        b = np.array([1.0, 9.0, 9.0, 4.0])
        assert content_key(a) != content_key(b)

    def test_shape_matters(self):
        arr = np.arange(6, dtype=float)
        assert content_key(arr) != content_key(arr.reshape(3, 2))

    def test_parts_are_separated(self):
        assert content_key('ab', 'c') != content_key('a', 'bc')

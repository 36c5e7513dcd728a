"""Tests for the read-through cache."""

import pytest

from assocdb.services.cache import MISS, ReadThroughCache


class FakeClock:
    """Manually advanced timer."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ReadThroughCache(ttl=1.0, maxsize=3, timer=clock)


class TestReadThroughCache:
    """Tests for get/set/invalidate."""

    def test_never_cached_is_miss(self, cache):
        assert cache.get('k') is MISS

    def test_hit_within_ttl(self, cache, clock):
        cache.set('k', [1, 2])
        clock.now = 0.5
        assert cache.get('k') == [1, 2]

    def test_expired_entry_misses(self, cache, clock):
        cache.set('k', [1])
        clock.now = 1.5
        assert cache.get('k') is MISS

    def test_returns_independent_copies(self, cache):
        """Callers cannot mutate cached state by reference."""
        value = [{'id': 'm1', 'activityIds': []}]
        cache.set('k', value)
        value[0]['activityIds'].append('a1')

        first = cache.get('k')
        first[0]['name'] = 'changed'

        assert cache.get('k') == [{'id': 'm1', 'activityIds': []}]

    def test_invalidate_one_key(self, cache):
        cache.set('a', 1)
        cache.set('b', 2)
        cache.invalidate('a')
        assert cache.get('a') is MISS
        assert cache.get('b') == 2

    def test_global_invalidate_bumps_version(self, cache):
        cache.set('a', 1)
        cache.invalidate()
        assert cache.version == 1
        assert cache.get('a') is MISS

        cache.set('a', 2)
        assert cache.get('a') == 2

    def test_oldest_inserted_evicted_first(self, cache):
        """Reading a key does not protect it from eviction."""
        cache.set('a', 1)
        cache.set('b', 2)
        cache.set('c', 3)
        assert cache.get('a') == 1
        cache.set('d', 4)

        assert cache.get('a') is MISS
        assert cache.get('b') == 2
        assert cache.get('d') == 4

    def test_reinsert_moves_key_to_back(self, cache):
        cache.set('a', 1)
        cache.set('b', 2)
        cache.set('c', 3)
        cache.set('a', 10)
        cache.set('d', 4)

        assert cache.get('a') == 10
        assert cache.get('b') is MISS

    def test_zero_ttl_disables_cache(self, clock):
        cache = ReadThroughCache(ttl=0, timer=clock)
        cache.set('k', 1)
        assert cache.enabled is False
        assert cache.get('k') is MISS
        assert cache.stats()['size'] == 0

    def test_stats(self, cache):
        cache.set('k', 1)
        cache.get('k')
        cache.get('missing')

        stats = cache.stats()
        assert stats['enabled'] is True
        assert stats['size'] == 1
        assert stats['maxsize'] == 3
        assert stats['hits'] == 1
        assert stats['misses'] == 1
        assert stats['keys'] == ['k']

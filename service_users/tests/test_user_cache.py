"""
Unit tests for the user cache.
"""

import pytest

from shared.metrics import MetricsCollector
from service_users.app.caching.user_cache import UserCache
from service_users.app.models import User


class FakeTimer:
    """Manually advanced clock."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestUserCache:
    """Test cases for UserCache."""

    @pytest.fixture
    def timer(self):
        return FakeTimer()

    @pytest.fixture
    def cache(self, timer):
        return UserCache(max_entries=3, ttl=15.0, timer=timer)

    def test_unknown_id_is_absent(self, cache):
        """Test ids never inserted are reported absent."""
        assert cache.get(1) is None
        assert 1 not in cache
        assert len(cache) == 0

    def test_put_then_get_returns_snapshot(self, cache):
        """Test a stored snapshot is returned with the same values."""
        user = User(id=1, signature="hello", clan="red")
        cache.put(1, user)

        cached = cache.get(1)
        assert cached == user
        assert cached is not user

    def test_snapshot_is_isolated_from_callers(self, cache):
        """Test changes to a stored or returned user do not reach the cache."""
        user = User(id=1, avatar=1)
        cache.put(1, user)

        user.avatar = 2
        cache.get(1).avatar = 3

        assert cache.get(1).avatar == 1

    def test_put_replaces_entry(self, cache):
        """Test a second put for the same id replaces the snapshot."""
        cache.put(1, User(id=1, avatar=1))
        cache.put(1, User(id=1, avatar=2))

        assert cache.get(1).avatar == 2
        assert len(cache) == 1

    def test_entry_expires_after_ttl(self, cache, timer):
        """Test an entry is absent once its TTL has elapsed."""
        cache.put(1, User(id=1))

        timer.now = 14.9
        assert cache.get(1) is not None

        timer.now = 15.0
        assert cache.get(1) is None
        assert 1 not in cache

    def test_reads_do_not_extend_ttl(self, cache, timer):
        """Test the age counts from the last put, not the last read."""
        cache.put(1, User(id=1))

        timer.now = 10.0
        assert cache.get(1) is not None

        timer.now = 16.0
        assert cache.get(1) is None

    def test_put_resets_age(self, cache, timer):
        """Test refreshing an entry restarts its TTL."""
        cache.put(1, User(id=1))
        timer.now = 10.0
        cache.put(1, User(id=1, title=3))

        timer.now = 20.0
        assert cache.get(1).title == 3

    def test_capacity_evicts_least_recently_used(self, cache):
        """Test the least recently accessed entry is evicted first."""
        for user_id in (1, 2, 3):
            cache.put(user_id, User(id=user_id))

        # Touch 1 so that 2 becomes the least recently used
        assert cache.get(1) is not None
        cache.put(4, User(id=4))

        assert cache.get(2) is None
        assert cache.get(1) is not None
        assert cache.get(3) is not None
        assert cache.get(4) is not None
        assert len(cache) == 3

    def test_never_exceeds_capacity(self, cache):
        """Test the live entry count stays within capacity."""
        for user_id in range(1, 11):
            cache.put(user_id, User(id=user_id))
            assert len(cache) <= 3

        assert [cache.get(i) is not None for i in range(1, 11)] == [False] * 7 + [True] * 3

    def test_expired_entries_are_evicted_before_live_ones(self, cache, timer):
        """Test inserting into a full cache drops expired entries first."""
        cache.put(1, User(id=1))
        timer.now = 10.0
        cache.put(2, User(id=2))
        cache.put(3, User(id=3))

        timer.now = 16.0
        cache.put(4, User(id=4))

        assert cache.get(1) is None
        assert cache.get(2) is not None
        assert cache.get(3) is not None
        assert cache.get(4) is not None

    def test_invalidate_and_clear(self, cache):
        """Test explicit removal."""
        cache.put(1, User(id=1))
        cache.put(2, User(id=2))

        cache.invalidate(1)
        cache.invalidate(99)
        assert cache.get(1) is None
        assert cache.get(2) is not None

        cache.clear()
        assert len(cache) == 0

    def test_stats_and_metrics(self, timer):
        """Test hit and miss accounting."""
        metrics = MetricsCollector("test")
        cache = UserCache(max_entries=3, ttl=15.0, timer=timer, metrics=metrics)

        cache.put(1, User(id=1))
        cache.get(1)
        cache.get(2)

        assert cache.stats() == {
            "size": 1,
            "capacity": 3,
            "ttl_seconds": 15.0,
            "hits": 1,
            "misses": 1,
        }
        assert metrics.get_sample_value("user_cache_lookups_total", result="hit") == 1.0
        assert metrics.get_sample_value("user_cache_lookups_total", result="miss") == 1.0
        assert metrics.get_sample_value("user_cache_entries") == 1.0

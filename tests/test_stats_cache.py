"""Unit tests for app.services.stats_cache: TTL expiry and publishing system stats."""

import unittest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from app.core.clock import FrozenClock
from app.services.stat_snapshots import SYSTEM_SCOPE, write_snapshot
from app.services.stats_cache import (
    HISTORY_RANGE_KEY,
    STATS_KEY,
    StatsCache,
    get_stats_cache,
    publish_system_stats,
    read_system_stats,
)
from tests.factories import T0, make_session


class FakeTimer:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestStatsCache(unittest.TestCase):
    def test_read_before_expiry(self) -> None:
        timer = FakeTimer()
        cache = StatsCache(ttl_seconds=10, timer=timer)
        cache.write("stats", {"burns": 1})
        timer.now = 9.9
        self.assertEqual(cache.read("stats"), {"burns": 1})

    def test_expired_entry_is_a_miss(self) -> None:
        timer = FakeTimer()
        cache = StatsCache(ttl_seconds=10, timer=timer)
        cache.write("stats", {"burns": 1})
        timer.now = 10
        self.assertIsNone(cache.read("stats"))

    def test_missing_and_clear(self) -> None:
        cache = StatsCache(ttl_seconds=10)
        self.assertIsNone(cache.read("stats"))
        cache.write("stats", 1)
        cache.clear()
        self.assertIsNone(cache.read("stats"))


class TestGetStatsCache(unittest.TestCase):
    def test_disabled_returns_none(self) -> None:
        settings = MagicMock()
        settings.STATS_CACHE_ENABLED = False
        with patch("app.services.stats_cache.get_settings", return_value=settings):
            self.assertIsNone(get_stats_cache())

    def test_enabled_returns_shared_instance(self) -> None:
        settings = MagicMock()
        settings.STATS_CACHE_ENABLED = True
        settings.STATS_CACHE_TTL_SEC = 60
        with patch("app.services.stats_cache.get_settings", return_value=settings):
            self.assertIs(get_stats_cache(), get_stats_cache())


class TestPublishSystemStats(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session()
        self.clock = FrozenClock(T0)

    def tearDown(self) -> None:
        self.session.close()

    def test_writes_stats_and_history_range(self) -> None:
        write_snapshot(self.session, SYSTEM_SCOPE, {"burns": 3}, self.clock)
        self.session.commit()
        self.clock.advance(timedelta(days=2))
        cache = StatsCache(ttl_seconds=60)

        publish_system_stats(self.session, cache, self.clock)

        self.assertEqual(cache.read(STATS_KEY)["burns"], 3)
        history_range = cache.read(HISTORY_RANGE_KEY)
        self.assertEqual(history_range["start_date"], T0)
        self.assertEqual(history_range["resolution"], timedelta(hours=4))

    def test_newer_version_makes_entry_stale(self) -> None:
        write_snapshot(self.session, SYSTEM_SCOPE, {"burns": 3}, self.clock)
        self.session.commit()
        cache = StatsCache(ttl_seconds=60)
        publish_system_stats(self.session, cache, self.clock)
        self.assertEqual(read_system_stats(self.session, cache), cache.read(STATS_KEY))

        self.clock.advance(timedelta(hours=1))
        write_snapshot(self.session, SYSTEM_SCOPE, {"burns": 4}, self.clock)
        self.session.commit()

        self.assertIsNone(read_system_stats(self.session, cache))
        self.assertIsNone(read_system_stats(self.session, None))

    def test_no_cache_is_a_no_op(self) -> None:
        session = MagicMock()
        publish_system_stats(session, None, self.clock)
        session.query.assert_not_called()


if __name__ == "__main__":
    unittest.main()

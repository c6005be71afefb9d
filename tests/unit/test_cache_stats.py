"""Unit tests for cache statistics."""

import re
import threading
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from freezegun import freeze_time

from src.cache.stats import CacheStats


UPTIME_PATTERN = re.compile(r'^\d+h \d+m$')


class TestHitRate(unittest.TestCase):
    """Test hit rate formatting."""

    def test_no_requests(self):
        self.assertEqual(CacheStats().hit_rate(), "0.0%")

    def test_one_hit_one_miss(self):
        stats = CacheStats()
        stats.record_hit()
        stats.record_miss()
        self.assertEqual(stats.hit_rate(), "50.0%")

    def test_one_decimal_digit(self):
        stats = CacheStats()
        stats.record_hit()
        stats.record_miss()
        stats.record_miss()
        self.assertEqual(stats.hit_rate(), "33.3%")

    def test_all_hits(self):
        stats = CacheStats()
        for _ in range(3):
            stats.record_hit()
        self.assertEqual(stats.hit_rate(), "100.0%")

    def test_errors_do_not_affect_hit_rate(self):
        stats = CacheStats()
        stats.record_hit()
        stats.record_error()
        self.assertEqual(stats.hit_rate(), "100.0%")
        self.assertEqual(stats.errors, 1)


class TestUptime(unittest.TestCase):
    """Test uptime formatting."""

    @freeze_time("2024-06-15 12:00:00")
    def test_uptime_at_start(self):
        self.assertEqual(CacheStats().uptime(), "0h 0m")

    def test_uptime_floors_minutes(self):
        with freeze_time("2024-06-15 12:00:00") as frozen:
            stats = CacheStats()
            frozen.tick(timedelta(minutes=5, seconds=59))
            self.assertEqual(stats.uptime(), "0h 5m")

    def test_uptime_hours_do_not_roll_into_days(self):
        with freeze_time("2024-06-15 12:00:00") as frozen:
            stats = CacheStats()
            frozen.tick(timedelta(days=2, hours=3, minutes=7))
            self.assertEqual(stats.uptime(), "51h 7m")

    def test_uptime_format(self):
        stats = CacheStats(start_time=datetime.now() - timedelta(hours=1, minutes=30))
        self.assertRegex(stats.uptime(), UPTIME_PATTERN)

    def test_uptime_ignores_wall_clock_changes(self):
        with patch('src.cache.stats.time.monotonic', return_value=1000.0):
            stats = CacheStats()

        later = 1000.0 + 2 * 3600 + 7 * 60
        with patch('src.cache.stats.time.monotonic', return_value=later), \
                patch('src.cache.stats.datetime') as mock_datetime:
            mock_datetime.now.return_value = datetime(2000, 1, 1, tzinfo=timezone.utc)
            self.assertEqual(stats.uptime(), "2h 7m")


class TestSnapshot(unittest.TestCase):
    """Test the stats document."""

    def test_snapshot_structure(self):
        stats = CacheStats()
        stats.record_hit()
        stats.record_miss()
        stats.record_error()

        body = stats.snapshot(total_keys=4, cache_connected=True)

        self.assertEqual(body['cacheHits'], 1)
        self.assertEqual(body['cacheMisses'], 1)
        self.assertEqual(body['hitRate'], "50.0%")
        self.assertEqual(body['totalKeys'], 4)
        self.assertTrue(body['cacheConnected'])
        self.assertEqual(body['errors'], 1)
        self.assertRegex(body['uptime'], UPTIME_PATTERN)
        # ISO-8601 timestamp in UTC
        parsed = datetime.fromisoformat(body['timestamp'])
        self.assertEqual(parsed.utcoffset(), timedelta(0))
        self.assertTrue(body['timestamp'].endswith('+00:00'))

    def test_counters_are_thread_safe(self):
        stats = CacheStats()

        def worker():
            for _ in range(1000):
                stats.record_hit()
                stats.record_miss()

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(stats.hits, 8000)
        self.assertEqual(stats.misses, 8000)

import unittest

from app.cache import TTLCache
from fakes import FakeClock


class TestTTLCache(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.cache = TTLCache(clock=self.clock.monotonic, name="test")

    def test_value_visible_until_ttl_then_absent(self):
        self.cache.set("k", "v", ttl_seconds=10)
        self.clock.advance(9.5)
        self.assertEqual(self.cache.get("k"), "v")
        self.clock.advance(0.5)
        self.assertIsNone(self.cache.get("k"))

    def test_read_past_expiry_evicts_entry(self):
        self.cache.set("k", "v", ttl_seconds=1)
        self.clock.advance(5)
        self.assertIsNone(self.cache.get("k"))
        self.assertIsNone(self.cache.peek("k"))
        self.assertEqual(len(self.cache), 0)
        # Still absent on a second read without a new set.
        self.assertIsNone(self.cache.get("k"))

    def test_set_overwrites_and_restarts_expiry(self):
        self.cache.set("k", "old", ttl_seconds=5)
        self.clock.advance(4)
        self.cache.set("k", "new", ttl_seconds=5)
        self.clock.advance(4)
        self.assertEqual(self.cache.get("k"), "new")

    def test_peek_does_not_evict(self):
        self.cache.set("k", "v", ttl_seconds=1)
        self.clock.advance(2)
        entry = self.cache.peek("k")
        self.assertIsNotNone(entry)
        self.assertTrue(entry.is_expired(self.clock.monotonic()))
        self.assertEqual(len(self.cache), 1)

    def test_default_ttl_and_missing_ttl(self):
        cache = TTLCache(default_ttl_seconds=3, clock=self.clock.monotonic)
        cache.set("k", 1)
        self.assertAlmostEqual(cache.expires_in("k"), 3)
        with self.assertRaises(ValueError):
            self.cache.set("k", 1)

    def test_stats_delete_and_clear(self):
        self.cache.set("a", 1, ttl_seconds=1)
        self.cache.set("b", 2, ttl_seconds=100)
        self.clock.advance(2)
        self.assertEqual(self.cache.stats(), {"name": "test", "entries": 2, "stale": 1})
        self.assertIsNone(self.cache.expires_in("a"))
        self.cache.delete("b")
        self.assertIsNone(self.cache.get("b"))
        self.cache.clear()
        self.assertEqual(len(self.cache), 0)


if __name__ == "__main__":
    unittest.main()

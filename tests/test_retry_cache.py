"""Tests for the shared message retry counter cache."""

import threading
import time

from wagateway.retry_cache import MessageRetryCache


class TestMessageRetryCache:
    def test_get_set_delete(self):
        cache = MessageRetryCache()
        assert cache.get("m1") is None
        assert cache.get("m1", 0) == 0

        cache.set("m1", 2)
        assert cache.get("m1") == 2
        assert len(cache) == 1

        cache.delete("m1")
        assert cache.get("m1") is None
        cache.delete("m1")

    def test_increment(self):
        cache = MessageRetryCache()
        assert cache.increment("m1") == 1
        assert cache.increment("m1") == 2
        assert cache.increment("m1", 3) == 5

    def test_flush_all(self):
        cache = MessageRetryCache()
        cache.set("a", 1)
        cache.set("b", 1)
        cache.flush_all()
        assert len(cache) == 0

    def test_entries_expire(self):
        cache = MessageRetryCache(ttl_seconds=0.01)
        cache.set("m1", 1)
        time.sleep(0.02)
        assert cache.get("m1") is None
        assert cache.increment("m1") == 1

    def test_concurrent_increments_are_not_lost(self):
        cache = MessageRetryCache()

        def bump():
            for _ in range(500):
                cache.increment("m1")

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert cache.get("m1") == 4000

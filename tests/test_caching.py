"""Tests for the in-memory TTL cache."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

from insider_alerts.utils.caching import TTLCache

HOUR = timedelta(hours=1)


class TestTTLCache:
    def test_roundtrip(self):
        cache = TTLCache()
        cache.set("k", "v", HOUR)
        assert cache.get("k") == "v"

    def test_missing_key(self):
        assert TTLCache().get("nope") is None

    def test_expired(self):
        cache = TTLCache()
        cache.set("k", "v", timedelta(seconds=-1))
        assert cache.get("k") is None

    def test_invalidate(self):
        cache = TTLCache()
        cache.set("k", "v", HOUR)
        cache.invalidate("k")
        assert cache.get("k") is None

    def test_clear(self):
        cache = TTLCache()
        cache.set("a", 1, HOUR)
        cache.set("b", 2, HOUR)
        cache.clear()
        assert cache.get("a") is None
        assert cache.get("b") is None


class TestGetOrLoad:
    def test_loads_once(self):
        cache = TTLCache()
        loader = MagicMock(return_value={"AAPL": 1})
        assert cache.get_or_load("t", loader, HOUR) == {"AAPL": 1}
        assert cache.get_or_load("t", loader, HOUR) == {"AAPL": 1}
        loader.assert_called_once()

    def test_reloads_after_expiry(self):
        cache = TTLCache()
        loader = MagicMock(side_effect=["old", "new"])
        assert cache.get_or_load("t", loader, timedelta(seconds=-1)) == "old"
        assert cache.get_or_load("t", loader, HOUR) == "new"
        assert loader.call_count == 2

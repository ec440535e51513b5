"""Tests for the injected response cache."""

from __future__ import annotations

import pytest

from marketwatch.services.response_cache import ResponseCache


class _Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestResponseCache:
    def test_hit_before_expiry(self):
        clock = _Clock()
        cache = ResponseCache(ttl_seconds=60, clock=clock)
        cache.put(("BTC", "recent"), "point")
        clock.now += 59
        assert cache.get(("BTC", "recent")) == "point"

    def test_miss_after_expiry_evicts(self):
        clock = _Clock()
        cache = ResponseCache(ttl_seconds=60, clock=clock)
        cache.put("k", "v")
        clock.now += 60
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_per_entry_ttl_override(self):
        clock = _Clock()
        cache = ResponseCache(ttl_seconds=60, clock=clock)
        cache.put("mock", "v", ttl=300)
        clock.now += 120
        assert cache.get("mock") == "v"

    def test_keys_are_distinct_per_period(self):
        cache = ResponseCache(ttl_seconds=60, clock=_Clock())
        cache.put(("SPX", "recent"), 1)
        cache.put(("SPX", "year-to-date"), 2)
        assert cache.get(("SPX", "recent")) == 1
        assert cache.get(("SPX", "year-to-date")) == 2

    def test_zero_ttl_is_not_stored(self):
        cache = ResponseCache(ttl_seconds=0, clock=_Clock())
        cache.put("k", "v")
        assert cache.get("k") is None

    def test_clear(self):
        cache = ResponseCache(ttl_seconds=60, clock=_Clock())
        cache.put("a", 1)
        cache.put("b", 2)
        cache.clear()
        assert len(cache) == 0

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            ResponseCache(ttl_seconds=-1)

    def test_separate_instances_do_not_share_state(self):
        a = ResponseCache(ttl_seconds=60, clock=_Clock())
        b = ResponseCache(ttl_seconds=60, clock=_Clock())
        a.put("k", "v")
        assert b.get("k") is None

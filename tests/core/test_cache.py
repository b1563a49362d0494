"""
Tests for the dashboard result cache.
"""

import pytest

from reportql.config import Settings
from reportql.core.reporting.cache import ResultCache, cache_key
from reportql.core.sql_ast.models import Dimension, ReportConfig


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResultCache:
    return ResultCache(ttl_seconds=45, capacity=2, clock=clock)


class TestCacheKey:
    """Keys are a deterministic serialization of (table, config)."""

    def test_dict_and_model_share_a_key(self) -> None:
        as_dict = cache_key("orders", {"dimensions": [{"field": "status"}]})
        as_model = cache_key("orders", ReportConfig(dimensions=[Dimension(field="status")]))
        assert as_dict == as_model

    def test_table_is_part_of_key(self) -> None:
        config = {"dimensions": [{"field": "id"}]}
        assert cache_key("orders", config) != cache_key("agencies", config)

    def test_normalized_keywords_share_a_key(self) -> None:
        lower = {"dimensions": [{"field": "status"}], "sort": [{"field": "status", "direction": "desc"}]}
        upper = {"dimensions": [{"field": "status"}], "sort": [{"field": "status", "direction": "DESC"}]}
        assert cache_key("orders", lower) == cache_key("orders", upper)


class TestResultCache:
    """TTL and LRU behavior with an injected clock."""

    def test_miss(self, cache: ResultCache) -> None:
        assert cache.get("k") is None

    def test_hit_within_ttl(self, cache: ResultCache, clock: FakeClock) -> None:
        cache.set("k", [{"a": 1}])
        clock.advance(45)
        assert cache.get("k") == [{"a": 1}]

    def test_expiry(self, cache: ResultCache, clock: FakeClock) -> None:
        cache.set("k", [{"a": 1}])
        clock.advance(45.1)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_lru_eviction(self, cache: ResultCache) -> None:
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")  # a is now most recently used
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get("c") == 3

    def test_get_or_compute(self, cache: ResultCache) -> None:
        calls = []

        def compute():
            calls.append(1)
            return [{"total": 3}]

        assert cache.get_or_compute("k", compute) == [{"total": 3}]
        assert cache.get_or_compute("k", compute) == [{"total": 3}]
        assert len(calls) == 1

    def test_recompute_after_expiry(self, cache: ResultCache, clock: FakeClock) -> None:
        values = iter([["old"], ["new"]])
        cache.get_or_compute("k", lambda: next(values))
        clock.advance(60)
        assert cache.get_or_compute("k", lambda: next(values)) == ["new"]

    def test_clear(self, cache: ResultCache) -> None:
        cache.set("k", 1)
        cache.clear()
        assert len(cache) == 0

    @pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"capacity": 0}])
    def test_invalid_policy(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            ResultCache(**kwargs)

    def test_from_settings(self) -> None:
        cache = ResultCache.from_settings(Settings(cache_ttl_seconds=10, cache_capacity=1))
        cache.set("a", 1)
        cache.set("b", 2)
        assert len(cache) == 1

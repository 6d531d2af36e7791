"""Tests for the TTL-gated list cache."""

from codex_analysis.engine.cache import CacheStore


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestCacheStore:
    """Tests for CacheStore freshness and persistence."""

    def test_new_cache_is_empty_and_stale(self) -> None:
        items, fresh = CacheStore().get(ttl=300)

        assert items == []
        assert fresh is False

    def test_put_then_get_is_fresh(self) -> None:
        clock = FakeClock()
        cache = CacheStore(clock=clock)

        cache.put(["gpt-4", "kimi-k2"])
        items, fresh = cache.get(ttl=300)

        assert items == ["gpt-4", "kimi-k2"]
        assert fresh is True

    def test_fresh_at_exact_ttl(self) -> None:
        clock = FakeClock()
        cache = CacheStore(clock=clock)
        cache.put(["gpt-4"])

        clock.now += 300
        assert cache.get(ttl=300)[1] is True

    def test_stale_after_ttl_but_items_kept(self) -> None:
        clock = FakeClock()
        cache = CacheStore(clock=clock)
        cache.put(["gpt-4"])

        clock.now += 301
        items, fresh = cache.get(ttl=300)

        assert fresh is False
        assert items == ["gpt-4"]

    def test_empty_put_is_never_fresh(self) -> None:
        clock = FakeClock()
        cache = CacheStore(clock=clock)

        cache.put([])

        assert cache.get(ttl=300) == ([], False)
        assert cache.last_refreshed == clock.now

    def test_put_overwrites(self) -> None:
        cache = CacheStore(clock=FakeClock())
        cache.put(["a", "b"])

        cache.put(["c"])

        assert cache.get()[0] == ["c"]

    def test_get_returns_copy(self) -> None:
        cache = CacheStore(clock=FakeClock())
        cache.put(["a"])

        items, _ = cache.get()
        items.append("mutated")

        assert cache.get()[0] == ["a"]

    def test_put_copies_input(self) -> None:
        cache = CacheStore(clock=FakeClock())
        source = ["a"]

        cache.put(source)
        source.append("b")

        assert cache.get()[0] == ["a"]

    def test_age_seconds(self) -> None:
        clock = FakeClock()
        cache = CacheStore(clock=clock)
        cache.put(["a"])

        clock.now += 125

        assert cache.age_seconds() == 125

    def test_round_trip_through_dict(self) -> None:
        clock = FakeClock()
        cache = CacheStore(clock=clock)
        cache.put(["a", "b"])

        restored = CacheStore.from_dict(cache.to_dict(), clock=clock)

        assert restored.get(ttl=300) == (["a", "b"], True)
        assert restored.last_refreshed == cache.last_refreshed

    def test_from_dict_tolerates_missing_data(self) -> None:
        assert CacheStore.from_dict(None).get() == ([], False)
        assert CacheStore.from_dict({"items": None}).get() == ([], False)

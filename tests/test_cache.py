import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from inuki_search.cache import CachedContentfulClient, EntryCache, TTLStore, cache_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingClient:
    def __init__(self) -> None:
        self.calls = 0

    def get_entries(self, query: dict) -> dict:
        self.calls += 1
        return {"items": [], "total": self.calls, "skip": 0, "limit": 100}

    def get_entry(self, entry_id: str, include: int = 2):
        self.calls += 1
        return {"sys": {"id": entry_id}}


class TestTTLStore:
    def test_expires_after_ttl(self):
        clock = FakeClock()
        store = TTLStore(ttl=60, max_size=10, clock=clock)
        store.set("k", "v")
        clock.now = 59.9
        assert store.get("k") == "v"
        clock.now = 60
        assert store.get("k") is None

    def test_evicts_oldest(self):
        store = TTLStore(ttl=60, max_size=2, clock=FakeClock())
        store.set("a", 1)
        store.set("b", 2)
        store.set("c", 3)
        assert store.get("a") is None
        assert store.get("c") == 3
        assert len(store) == 2


class TestEntryCache:
    def test_property_queries_use_short_ttl(self):
        clock = FakeClock()
        client = CachedContentfulClient(CountingClient(), EntryCache(clock=clock))
        query = {"content_type": "property", "limit": 10}

        client.get_entries(query)
        client.get_entries(dict(query))
        assert client.client.calls == 1

        clock.now = 61
        client.get_entries(query)
        assert client.client.calls == 2

    def test_master_queries_outlive_property_ttl(self):
        clock = FakeClock()
        client = CachedContentfulClient(CountingClient(), EntryCache(clock=clock))
        query = {"content_type": "region", "order": ["fields.order"]}

        client.get_entries(query)
        clock.now = 300
        client.get_entries(query)
        assert client.client.calls == 1

        clock.now = 601
        client.get_entries(query)
        assert client.client.calls == 2

    def test_uncached_content_type_passes_through(self):
        client = CachedContentfulClient(CountingClient())
        client.get_entries({"sys.id": "p1"})
        client.get_entries({"sys.id": "p1"})
        client.get_entry("p1")
        assert client.client.calls == 3

    def test_concurrent_identical_queries_share_one_fetch(self):
        cache = EntryCache()
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow_loader(query):
            calls.append(query)
            started.set()
            release.wait(timeout=5)
            return {"items": [], "total": 7}

        query = {"content_type": "property", "skip": 0}
        with ThreadPoolExecutor(max_workers=4) as pool:
            first = pool.submit(cache.fetch, query, slow_loader)
            started.wait(timeout=5)
            others = [pool.submit(cache.fetch, dict(query), slow_loader) for _ in range(3)]
            release.set()
            results = [first.result()] + [f.result() for f in others]

        assert len(calls) == 1
        assert all(r["total"] == 7 for r in results)

    def test_failure_propagates_and_is_not_cached(self):
        cache = EntryCache()
        query = {"content_type": "property"}

        def failing(_query):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            cache.fetch(query, failing)
        assert cache.fetch(query, lambda q: {"total": 1}) == {"total": 1}


def test_cache_key_ignores_key_order():
    assert cache_key({"a": 1, "b": [1, 2]}) == cache_key({"b": [1, 2], "a": 1})

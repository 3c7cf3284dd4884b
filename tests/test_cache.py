from __future__ import annotations

from ai.cache import AnalysisCache, md5_key


class Clock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_hit_returns_copy():
    cache = AnalysisCache(ttl_seconds=60, max_size=10)
    cache.set("k", {"items": [1]})
    value = cache.get("k")
    value["items"].append(2)
    assert cache.get("k") == {"items": [1]}
    assert cache.stats()["hits"] == 2


def test_entries_expire():
    clock = Clock()
    cache = AnalysisCache(ttl_seconds=30, max_size=10, clock=clock)
    cache.set("k", "v")
    clock.now = 29
    assert cache.get("k") == "v"
    clock.now = 31
    assert cache.get("k") is None
    assert len(cache) == 0
    assert cache.stats()["misses"] == 1


def test_oldest_entry_evicted_when_full():
    cache = AnalysisCache(ttl_seconds=60, max_size=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.get("a") is None
    assert cache.get("b") == 2
    assert cache.get("c") == 3


def test_clear_reports_count():
    cache = AnalysisCache(ttl_seconds=60, max_size=10)
    cache.set("a", 1)
    cache.set("b", 2)
    assert cache.clear() == 2
    assert cache.stats() == {"size": 0, "max_size": 10, "ttl_seconds": 60, "hits": 0, "misses": 0}


def test_md5_key_uses_document_prefix():
    prefix = "x" * 1000
    assert md5_key(prefix + "tail one") == md5_key(prefix + "tail two")
    assert md5_key("a") != md5_key("b")

import threading

import pytest

from anta.services import cache as cache_module
from anta.services.cache import TTLCache


@pytest.fixture
def clock(monkeypatch):
    now = [100.0]
    monkeypatch.setattr(cache_module.time, "monotonic", lambda: now[0])
    return now


def test_entries_expire(clock):
    cache = TTLCache(ttl_seconds=60)

    cache.set("route", {"meters": 9000})
    clock[0] += 59
    assert cache.get("route") == {"meters": 9000}

    clock[0] += 2
    assert cache.get("route") is None
    assert len(cache) == 0


def test_writes_sweep_expired_entries(clock):
    cache = TTLCache(ttl_seconds=60)
    for n in range(100):
        cache.set(("search", n), [])
    clock[0] += 61

    cache.set("fresh", [])

    assert len(cache) == 1


def test_zero_ttl_does_not_accumulate(clock):
    cache = TTLCache(ttl_seconds=0)
    for n in range(10000):
        cache.set(n, n)
    assert len(cache) == 1


def test_maxsize_evicts_oldest():
    cache = TTLCache(ttl_seconds=3600, maxsize=3)
    for key in "abcd":
        cache.set(key, key.upper())

    assert len(cache) == 3
    assert cache.get("a") is None
    assert cache.get("d") == "D"


def test_rewriting_a_key_refreshes_its_position():
    cache = TTLCache(ttl_seconds=3600, maxsize=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 3)
    cache.set("c", 4)

    assert cache.get("a") == 3
    assert cache.get("b") is None


def test_concurrent_reads_of_expired_entry(clock):
    cache = TTLCache(ttl_seconds=10)
    cache.set("reverse", "Kaloum")
    clock[0] += 11
    errors = []

    def read():
        try:
            for _ in range(200):
                cache.get("reverse")
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=read) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(cache) == 0


def test_clear():
    cache = TTLCache(ttl_seconds=60)
    cache.set(("search", "Kaloum"), [])
    assert len(cache) == 1
    cache.clear()
    assert cache.get(("search", "Kaloum")) is None

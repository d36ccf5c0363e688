import pytest

from tracktide.utils.cache import MISSING, TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.mark.unit
def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = TTLCache(maxsize=4, ttl=10, clock=clock)
    cache.set("a", 1)

    clock.now += 9.9
    assert cache.get("a") == 1
    clock.now += 0.1
    assert cache.get("a") is MISSING
    assert cache.get("a", "fallback") == "fallback"
    assert len(cache) == 0


@pytest.mark.unit
def test_least_recently_used_is_evicted():
    cache = TTLCache(maxsize=2, ttl=60)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert cache.get("a") == 1
    assert cache.get("b") is MISSING
    assert cache.get("c") == 3


@pytest.mark.unit
def test_get_or_load_calls_loader_once():
    cache = TTLCache(maxsize=4, ttl=60)
    calls = []

    def loader():
        calls.append(1)
        return {"name": "Daft Punk"}

    assert cache.get_or_load("artist", loader) == {"name": "Daft Punk"}
    assert cache.get_or_load("artist", loader) == {"name": "Daft Punk"}
    assert len(calls) == 1


@pytest.mark.unit
def test_get_or_load_does_not_cache_failures():
    cache = TTLCache(maxsize=4, ttl=60)

    def failing():
        raise RuntimeError("down")

    with pytest.raises(RuntimeError):
        cache.get_or_load("k", failing)
    assert cache.get("k") is MISSING


@pytest.mark.unit
def test_clear_and_invalid_arguments():
    cache = TTLCache(maxsize=4, ttl=60)
    cache.set("a", 1)
    cache.clear()
    assert len(cache) == 0

    with pytest.raises(ValueError):
        TTLCache(maxsize=0)
    with pytest.raises(ValueError):
        TTLCache(ttl=0)

import pytest

from mamsim.lrucache import LruCache


def test_put_then_get_returns_value():
    cache = LruCache(10)
    cache.put("a", 42, 100)
    assert cache.get("a", 0) == 42


def test_get_missing_key_raises():
    cache = LruCache(10)
    with pytest.raises(KeyError):
        cache.get("missing", 0)


def test_size_is_bounded():
    cache = LruCache(2)
    for key in ("a", "b", "c"):
        cache.put(key, key.upper())
    assert len(cache) == 2
    with pytest.raises(KeyError):
        cache.get("a", 0)
    assert cache.get("c", 0) == "C"


def test_get_refreshes_recency():
    cache = LruCache(2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.get("a", 0)
    cache.put("c", 3)
    assert "b" not in cache
    assert cache.get("a", 0) == 1
    assert cache.get("c", 0) == 3


def test_put_existing_key_replaces_without_growing():
    cache = LruCache(3)
    cache.put("a", 1, 10)
    cache.put("a", 2, 20)
    assert len(cache) == 1
    assert cache.get("a", 0) == 2
    assert cache.exists("a", 15)


def test_put_existing_key_makes_it_most_recent():
    cache = LruCache(2)
    cache.put("a", 1)
    cache.put("b", 2)
    cache.put("a", 3)
    cache.put("c", 4)
    assert "a" in cache
    assert "b" not in cache


def test_exists_respects_expiry():
    cache = LruCache(5)
    cache.put("k", 1, 1000)
    assert cache.exists("k", 999) is True
    assert cache.exists("k", 1000) is False
    assert cache.exists("k", 2000) is False


def test_default_expiry_means_never_valid():
    cache = LruCache(5)
    cache.put("k", 1)
    assert cache.exists("k", 0) is False
    assert cache.get("k", 0) == 1


def test_exists_for_missing_key_is_false():
    cache = LruCache(5)
    assert cache.exists("nothing", 0) is False


def test_exists_does_not_refresh_recency():
    cache = LruCache(2)
    cache.put("a", 1, 100)
    cache.put("b", 2, 100)
    assert cache.exists("a", 0)
    cache.put("c", 3, 100)
    assert "a" not in cache
    assert len(cache) == 2


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        LruCache(-1)
import pytest

from pourrice.core.cache import FileCache


def test_file_cache_expires_entries(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True, default_ttl_seconds=60)

    monkeypatch.setattr("pourrice.core.cache.time.time", lambda: 0)
    cache.set("ns", "k", [1, 2])
    assert cache.get("ns", "k") == [1, 2]

    monkeypatch.setattr("pourrice.core.cache.time.time", lambda: 61)
    assert cache.get("ns", "k") is None
    assert cache.get_stale("ns", "k") == [1, 2]


def test_file_cache_stale_if_error_returns_expired_value(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True, default_ttl_seconds=1)

    monkeypatch.setattr("pourrice.core.cache.time.time", lambda: 0)
    cache.set("ns", "k", {"v": 1}, ttl_seconds=1)

    monkeypatch.setattr("pourrice.core.cache.time.time", lambda: 100)

    def builder():
        raise RuntimeError("upstream down")

    val = cache.get_or_set(
        "ns",
        "k",
        builder,
        ttl_seconds=1,
        stale_if_error=True,
        stale_predicate=lambda exc: isinstance(exc, RuntimeError),
    )
    assert val == {"v": 1}


def test_file_cache_stale_if_error_respects_predicate(monkeypatch, tmp_path):
    cache = FileCache(tmp_path, enabled=True, default_ttl_seconds=1)

    monkeypatch.setattr("pourrice.core.cache.time.time", lambda: 0)
    cache.set("ns", "k", {"v": 1}, ttl_seconds=1)

    monkeypatch.setattr("pourrice.core.cache.time.time", lambda: 100)

    def builder():
        raise RuntimeError("upstream down")

    with pytest.raises(RuntimeError):
        cache.get_or_set(
            "ns",
            "k",
            builder,
            ttl_seconds=1,
            stale_if_error=True,
            stale_predicate=lambda exc: isinstance(exc, ValueError),
        )


def test_disabled_cache_always_builds(tmp_path):
    cache = FileCache(tmp_path, enabled=False)
    calls = []

    def builder():
        calls.append(1)
        return "v"

    assert cache.get_or_set("ns", "k", builder) == "v"
    assert cache.get_or_set("ns", "k", builder) == "v"
    assert len(calls) == 2
    assert not any(tmp_path.iterdir())


def test_unreadable_entry_is_ignored(tmp_path):
    cache = FileCache(tmp_path, enabled=True)
    cache.set("ns", "k", 1)
    cache._key_path("ns", "k").write_text("{not json", encoding="utf-8")
    assert cache.get("ns", "k") is None

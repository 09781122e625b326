"""Tests for the scope snapshot cache."""

import threading
from datetime import timedelta

import pytest

from configbind.core.cache import MemoryConfigCache
from configbind.domain.config import ConfigEntry
from configbind.errors import InvalidArgumentError


def _entries(*keys: str) -> dict[str, ConfigEntry]:
    return {key: ConfigEntry(key=key, value=f'"{key}"', scope="A") for key in keys}


class TestMemoryConfigCache:
    """Test cases for MemoryConfigCache."""

    def test_hit_within_duration(self, cache: MemoryConfigCache, clock) -> None:
        entries = _entries("a.x", "a.y")
        cache.set_all("A", entries, timedelta(seconds=10))
        clock.advance(9)

        assert cache.try_get_all("A") == entries

    def test_miss_after_duration(self, cache: MemoryConfigCache, clock) -> None:
        cache.set_all("A", _entries("a.x"), timedelta(seconds=10))
        clock.advance(11)

        assert cache.try_get_all("A") is None
        assert len(cache) == 0

    def test_never_set_scope(self, cache: MemoryConfigCache) -> None:
        assert cache.try_get_all("missing") is None

    @pytest.mark.parametrize("duration", [None, timedelta(0), timedelta(seconds=-5)])
    def test_bypass_without_duration(
        self, cache: MemoryConfigCache, duration: timedelta | None
    ) -> None:
        cache.set_all("A", _entries("a.x"), duration)
        assert cache.try_get_all("A") is None

    def test_none_entries_rejected(self, cache: MemoryConfigCache) -> None:
        with pytest.raises(InvalidArgumentError):
            cache.set_all("A", None, timedelta(seconds=10))  # type: ignore[arg-type]

    def test_snapshot_is_read_only_copy(self, cache: MemoryConfigCache) -> None:
        entries = _entries("a.x")
        cache.set_all("A", entries, timedelta(seconds=10))
        entries["a.y"] = ConfigEntry(key="a.y")

        snapshot = cache.try_get_all("A")
        assert snapshot is not None
        assert set(snapshot) == {"a.x"}
        with pytest.raises(TypeError):
            snapshot["a.z"] = ConfigEntry(key="a.z")  # type: ignore[index]

    def test_set_replaces_whole_snapshot(self, cache: MemoryConfigCache) -> None:
        cache.set_all("A", _entries("a.x", "a.y"), timedelta(seconds=10))
        cache.set_all("A", _entries("a.z"), timedelta(seconds=10))

        assert set(cache.try_get_all("A") or {}) == {"a.z"}

    def test_scopes_are_separate(self, cache: MemoryConfigCache) -> None:
        cache.set_all("A", _entries("a.x"), timedelta(seconds=10))
        cache.set_all(None, _entries("g.x"), timedelta(seconds=10))

        assert set(cache.try_get_all("A") or {}) == {"a.x"}
        assert set(cache.try_get_all(None) or {}) == {"g.x"}
        assert cache.try_get_all("B") is None

    def test_clear_is_idempotent(self, cache: MemoryConfigCache) -> None:
        cache.set_all("A", _entries("a.x"), timedelta(seconds=10))

        cache.clear("A")
        cache.clear("A")
        cache.clear("never-set")

        assert cache.try_get_all("A") is None

    def test_clear_keeps_other_scopes(self, cache: MemoryConfigCache) -> None:
        cache.set_all("A", _entries("a.x"), timedelta(seconds=10))
        cache.set_all("B", _entries("b.x"), timedelta(seconds=10))

        cache.clear("A")

        assert cache.try_get_all("B") is not None

    def test_clear_all(self, cache: MemoryConfigCache) -> None:
        cache.set_all("A", _entries("a.x"), timedelta(seconds=10))
        cache.set_all("B", _entries("b.x"), timedelta(seconds=10))

        cache.clear_all()

        assert len(cache) == 0

    def test_concurrent_access(self) -> None:
        cache = MemoryConfigCache()
        errors: list[BaseException] = []
        snapshots = [_entries(f"k{i}.a", f"k{i}.b") for i in range(10)]

        def worker(n: int) -> None:
            try:
                for i in range(500):
                    scope = f"S{(n + i) % 3}"
                    cache.set_all(scope, snapshots[i % 10], timedelta(minutes=1))
                    seen = cache.try_get_all(scope)
                    if seen is not None:
                        # снапшот всегда целый: оба ключа из одной пачки
                        assert len(seen) == 2
                    if i % 7 == 0:
                        cache.clear(scope)
            except BaseException as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []

"""In-process configuration store."""

import threading
from collections.abc import Iterable

from configbind.domain.config import ConfigEntry
from configbind.repository.base import ConfigStore, check_lookup, check_scope, prepare_batch


class MemoryConfigStore(ConfigStore):
    """Store backed by a dict; each upsert batch is applied under one lock."""

    atomic_upsert = True

    def __init__(self) -> None:
        self._rows: dict[tuple[str, str | None], ConfigEntry] = {}
        self._lock = threading.Lock()

    async def get(self, key: str, scope: str | None = None) -> ConfigEntry | None:
        key, scope = check_lookup(key, scope)
        with self._lock:
            return self._rows.get((key, scope))

    async def get_all(self, scope: str | None = None) -> dict[str, ConfigEntry]:
        scope = check_scope(scope)
        with self._lock:
            return {
                entry.key: entry
                for (_, row_scope), entry in self._rows.items()
                if row_scope == scope
            }

    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        batch = prepare_batch(entries, scope)
        with self._lock:
            for entry in batch:
                self._rows[(entry.key, entry.scope)] = entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

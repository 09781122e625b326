"""In-memory snapshot cache, one snapshot per scope."""

import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from types import MappingProxyType

from configbind.domain.config import ConfigEntry
from configbind.errors import InvalidArgumentError
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param


@dataclass(frozen=True)
class _Snapshot:
    entries: Mapping[str, ConfigEntry]
    expires_at: float


class MemoryConfigCache:
    """
    Read-through cache of whole key→entry snapshots, partitioned by scope.

    Snapshots are immutable and replaced as a whole, so a reader never sees a
    half-updated scope. Expiry is lazy: an expired snapshot is evicted when it
    is next looked up.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize MemoryConfigCache.

        Args:
            clock: Monotonic seconds source, injectable for tests
        """
        self._clock = clock
        self._snapshots: dict[str, _Snapshot] = {}
        self._lock = threading.Lock()
        self.logger = get_logger().with_category(Category.CACHE)

    def try_get_all(self, scope: str | None) -> Mapping[str, ConfigEntry] | None:
        """
        Get the cached snapshot for a scope.

        Args:
            scope: Scope, None for the global partition

        Returns:
            Read-only entries mapping, or None if absent or expired
        """
        scope_key = _scope_key(scope)
        with self._lock:
            snapshot = self._snapshots.get(scope_key)
            if snapshot is None:
                return None
            if self._clock() > snapshot.expires_at:
                del self._snapshots[scope_key]
                expired = True
            else:
                expired = False

        if expired:
            self.logger.debug("Cache snapshot expired", param("scope", scope_key))
            return None
        return snapshot.entries

    def set_all(
        self,
        scope: str | None,
        entries: Mapping[str, ConfigEntry],
        duration: timedelta | None,
    ) -> None:
        """
        Store a snapshot for a scope.

        A None or non-positive duration disables caching for this call.

        Args:
            scope: Scope, None for the global partition
            entries: Entries keyed by normalized key
            duration: Time to live
        """
        if entries is None:
            raise InvalidArgumentError("entries must not be None")
        if duration is None or duration <= timedelta(0):
            return

        snapshot = _Snapshot(
            entries=MappingProxyType(dict(entries)),
            expires_at=self._clock() + duration.total_seconds(),
        )
        with self._lock:
            self._snapshots[_scope_key(scope)] = snapshot

    def clear(self, scope: str | None) -> None:
        """Evict the snapshot for a scope. Missing scopes are ignored."""
        with self._lock:
            self._snapshots.pop(_scope_key(scope), None)

    def clear_all(self) -> None:
        """Evict every snapshot."""
        with self._lock:
            self._snapshots.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)


def _scope_key(scope: str | None) -> str:
    return scope or ""

"""Store contract shared by every backend."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from configbind.domain.config import ConfigEntry
from configbind.errors import InvalidArgumentError
from configbind.repository.validation import (
    normalize_scope,
    validate_key,
    validate_scope,
    validate_value,
)


class ConfigStore(ABC):
    """
    Durable CRUD of configuration entries keyed by (key, scope).

    scope None addresses only unscoped rows; it is never a wildcard.
    Backend errors propagate unchanged.
    """

    #: True when upsert() applies a whole batch atomically.
    atomic_upsert: bool = False

    @abstractmethod
    async def get(self, key: str, scope: str | None = None) -> ConfigEntry | None:
        """Get one entry, or None if (key, scope) is absent."""

    @abstractmethod
    async def get_all(self, scope: str | None = None) -> dict[str, ConfigEntry]:
        """Get every entry of one scope, keyed by entry key."""

    @abstractmethod
    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        """Insert or overwrite entries. Last write wins."""

    async def close(self) -> None:
        """Release the client handle."""
        return None


def check_lookup(key: str, scope: str | None) -> tuple[str, str | None]:
    """Validate get() arguments and normalize the scope."""
    validate_key(key)
    scope = normalize_scope(scope)
    validate_scope(scope)
    return key, scope


def check_scope(scope: str | None) -> str | None:
    """Validate a get_all() scope and normalize it."""
    scope = normalize_scope(scope)
    validate_scope(scope)
    return scope


def prepare_batch(
    entries: Iterable[ConfigEntry], scope: str | None
) -> list[ConfigEntry]:
    """
    Validate an upsert batch before any write.

    Entries with a blank key are skipped. The effective scope of each entry
    is the method-level scope if given, else the entry's own scope.

    Args:
        entries: Entries to write
        scope: Method-level scope

    Returns:
        Entries ready to write, each carrying its effective scope
    """
    if entries is None:
        raise InvalidArgumentError("entries must not be None")

    method_scope = normalize_scope(scope)
    batch: list[ConfigEntry] = []

    for entry in entries:
        if entry is None or entry.key is None or not entry.key.strip():
            continue

        effective_scope = method_scope if method_scope is not None else normalize_scope(entry.scope)
        validate_key(entry.key)
        validate_scope(effective_scope)
        value = validate_value(entry.value, entry.key)
        batch.append(ConfigEntry(key=entry.key, value=value, scope=effective_scope))

    return batch

"""Configuration domain models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigEntry:
    """
    Single configuration entry.

    Uniqueness in a store is the (key, scope) pair; scope None is the global
    partition and is distinct from every named scope. Stores skip entries
    whose key is blank on upsert.
    """

    key: str
    value: str = ""
    scope: str | None = None

    def __post_init__(self) -> None:
        if self.value is None:
            object.__setattr__(self, "value", "")

    def with_scope(self, scope: str | None) -> "ConfigEntry":
        """Return a copy of the entry placed in another scope."""
        return ConfigEntry(key=self.key, value=self.value, scope=scope)

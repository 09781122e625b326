"""Binding of configuration types to store entries."""

import time
from collections.abc import Mapping
from typing import Any, TypeVar

from configbind.config.settings import ConfigBindOptions
from configbind.core.cache import MemoryConfigCache
from configbind.core.key_formatter import KeyFormatter
from configbind.core.serializer import JsonSerializer
from configbind.core.sync import run_sync
from configbind.domain.binding import bindable_fields
from configbind.domain.config import ConfigEntry
from configbind.errors import InvalidArgumentError
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, duration_ms, param
from configbind.repository.base import ConfigStore

T = TypeVar("T")


class ConfigManager:
    """
    Reads and writes configuration objects field by field.

    Each public writable field of a configuration class is stored as one
    entry keyed ``{typename}.{fieldname}`` in the scope resolved from the
    options. Reads go through the scope cache; saves write the whole batch
    and then evict that scope from the cache.
    """

    def __init__(
        self,
        store: ConfigStore,
        cache: MemoryConfigCache | None = None,
        serializer: JsonSerializer | None = None,
        key_formatter: KeyFormatter | None = None,
        options: ConfigBindOptions | None = None,
    ) -> None:
        """
        Initialize ConfigManager.

        Args:
            store: Store adapter holding the entries
            cache: Scope snapshot cache, a fresh one if omitted
            serializer: Field value serializer
            key_formatter: Entry key builder
            options: Default scope and cache duration
        """
        if store is None:
            raise InvalidArgumentError("Store must be provided.")
        self.store = store
        self.cache = cache if cache is not None else MemoryConfigCache()
        self.serializer = serializer or JsonSerializer()
        self.key_formatter = key_formatter or KeyFormatter()
        self.options = options or ConfigBindOptions()
        self.logger = get_logger().with_category(Category.BINDING)

    async def get_async(self, config_type: type[T]) -> T:
        """
        Load a configuration object from the current scope.

        Fields without a stored entry keep the value set by the class
        constructor.

        Args:
            config_type: Configuration class, constructible without arguments

        Returns:
            Populated instance of config_type

        Raises:
            InvalidArgumentError: If config_type is None or not a class
            SerializationError: If a stored payload does not fit its field type
        """
        fields = bindable_fields(config_type)
        scope = self.options.resolve_scope()
        entries = await self._load_entries(scope)

        instance = config_type()
        bound = 0
        for field in fields:
            entry = entries.get(self.key_formatter.get_key(config_type, field.name))
            if entry is None:
                continue
            field.set(instance, self.serializer.deserialize(entry.value, field.type_hint))
            bound += 1

        self.logger.trace(
            "Configuration bound",
            param("type", config_type.__name__),
            param("scope", scope),
            param("fields", bound),
        )
        return instance

    async def _load_entries(self, scope: str | None) -> Mapping[str, ConfigEntry]:
        cached = self.cache.try_get_all(scope)
        if cached is not None:
            return cached

        start = time.perf_counter()
        stored = await self.store.get_all(scope)
        entries = {
            self.key_formatter.normalize(key): entry for key, entry in (stored or {}).items()
        }
        self.cache.set_all(scope, entries, self.options.cache_duration)

        self.logger.debug(
            "Configuration loaded from store",
            param("scope", scope),
            param("count", len(entries)),
            duration_ms(int((time.perf_counter() - start) * 1000)),
        )
        return entries

    async def save_async(self, instance: Any) -> None:
        """
        Save every bindable field of a configuration object to the current scope.

        A class without bindable fields saves nothing and does not touch the store.

        Args:
            instance: Configuration object

        Raises:
            InvalidArgumentError: If instance is None
        """
        if instance is None:
            raise InvalidArgumentError("Configuration instance must be provided.")

        config_type = type(instance)
        fields = bindable_fields(config_type)
        scope = self.options.resolve_scope()

        entries = [
            ConfigEntry(
                key=self.key_formatter.get_key(config_type, field.name),
                value=self.serializer.serialize(field.get(instance)),
                scope=scope,
            )
            for field in fields
        ]
        if not entries:
            return

        await self.store.upsert(entries, scope)
        self.cache.clear(scope)

        self.logger.debug(
            "Configuration saved",
            param("type", config_type.__name__),
            param("scope", scope),
            param("count", len(entries)),
        )

    def get(self, config_type: type[T]) -> T:
        """Blocking variant of get_async(). Not for use inside a running event loop."""
        return run_sync(self.get_async(config_type))

    def save(self, instance: Any) -> None:
        """Blocking variant of save_async(). Not for use inside a running event loop."""
        run_sync(self.save_async(instance))

    def invalidate(self, scope: str | None = None) -> None:
        """Evict the cached snapshot of a scope (the global partition when None)."""
        self.cache.clear(scope)

    def invalidate_all(self) -> None:
        """Evict every cached snapshot."""
        self.cache.clear_all()

    async def close(self) -> None:
        """Close the underlying store."""
        await self.store.close()

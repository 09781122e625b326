"""configbind: typed configuration objects persisted as key/value entries."""

from configbind.bootstrap import ConfigBindBuilder, create_config_manager
from configbind.config.settings import ConfigBindOptions, Settings
from configbind.core.cache import MemoryConfigCache
from configbind.core.key_formatter import KeyFormatter
from configbind.core.manager import ConfigManager
from configbind.core.serializer import JsonSerializer
from configbind.core.sync import shutdown_sync_runner
from configbind.domain.config import ConfigEntry
from configbind.errors import (
    ConfigBindError,
    IdentifierValidationError,
    InvalidArgumentError,
    SerializationError,
    SizeLimitError,
    StoreNotConfiguredError,
)
from configbind.repository.base import ConfigStore
from configbind.repository.memory import MemoryConfigStore

__version__ = "0.1.0"

__all__ = [
    "ConfigBindBuilder",
    "create_config_manager",
    "ConfigBindOptions",
    "Settings",
    "MemoryConfigCache",
    "KeyFormatter",
    "ConfigManager",
    "JsonSerializer",
    "shutdown_sync_runner",
    "ConfigEntry",
    "ConfigBindError",
    "IdentifierValidationError",
    "InvalidArgumentError",
    "SerializationError",
    "SizeLimitError",
    "StoreNotConfiguredError",
    "ConfigStore",
    "MemoryConfigStore",
]

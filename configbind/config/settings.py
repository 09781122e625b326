"""Settings module for configbind."""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

from configbind.config.secrets import read_secret
from configbind.database.mysql import MySqlConfig
from configbind.database.postgres import PostgresConfig
from configbind.database.sqlserver import SqlServerConfig
from configbind.errors import InvalidArgumentError
from configbind.logger.types import Level

ScopeResolver = Callable[[], "str | None"]

BACKENDS = ("memory", "postgres", "mysql", "sqlserver", "redis", "mongo", "ravendb")


@dataclass
class ConfigBindOptions:
    """
    Runtime options of the config manager.

    default_scope is either a fixed scope or a resolver called once per
    Get/Save. A blank result means the global (unscoped) partition.
    cache_duration None or zero disables caching, so every Get reads the store.
    """

    default_scope: str | ScopeResolver | None = "Default"
    cache_duration: timedelta | None = field(default_factory=lambda: timedelta(minutes=10))

    def resolve_scope(self) -> str | None:
        """Resolve the scope for one operation; blank becomes None."""
        scope = self.default_scope() if callable(self.default_scope) else self.default_scope
        if scope is None or not scope.strip():
            return None
        return scope


class RedisConfig:
    """Redis configuration."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        db: int | None = None,
        password: str | None = None,
        url: str | None = None,
        key_prefix: str | None = None,
    ) -> None:
        self.host = host or os.getenv("CONFIGBIND_REDIS_HOST", "localhost")
        self.port = port or int(os.getenv("CONFIGBIND_REDIS_PORT", "6379"))
        self.db = db if db is not None else int(os.getenv("CONFIGBIND_REDIS_DB", "0"))
        self.password = password or read_secret("redis_password", "CONFIGBIND_REDIS_PASSWORD")
        self.url = url or os.getenv("CONFIGBIND_REDIS_URL")
        self.key_prefix = key_prefix or os.getenv("CONFIGBIND_REDIS_PREFIX", "configbind")


class MongoConfig:
    """MongoDB configuration."""

    def __init__(
        self,
        url: str | None = None,
        database: str | None = None,
        collection: str | None = None,
        auto_create: bool | None = None,
    ) -> None:
        self.url = url or read_secret(
            "mongo_url", "CONFIGBIND_MONGO_URL", "mongodb://localhost:27017"
        )
        self.database = database or os.getenv("CONFIGBIND_MONGO_DATABASE", "configbind")
        self.collection = collection or os.getenv("CONFIGBIND_MONGO_COLLECTION", "ConfigBind")
        self.auto_create = (
            auto_create
            if auto_create is not None
            else os.getenv("CONFIGBIND_AUTO_CREATE", "true").lower() == "true"
        )


class RavenDbConfig:
    """RavenDB configuration."""

    def __init__(
        self,
        urls: list[str] | None = None,
        database: str | None = None,
        key_prefix: str | None = None,
    ) -> None:
        env_urls = os.getenv("CONFIGBIND_RAVENDB_URLS", "http://localhost:8080")
        self.urls = urls or [u.strip() for u in env_urls.split(",") if u.strip()]
        self.database = database or os.getenv("CONFIGBIND_RAVENDB_DATABASE", "configbind")
        self.key_prefix = key_prefix or os.getenv("CONFIGBIND_RAVENDB_PREFIX", "configbind")


class Settings:
    """Application settings."""

    def __init__(self) -> None:
        self.environment = os.getenv("CONFIGBIND_ENVIRONMENT", "dev")
        self.service_name = os.getenv("CONFIGBIND_SERVICE_NAME", "configbind")
        log_level = os.getenv("CONFIGBIND_LOG_LEVEL", "info").lower()
        try:
            self.log_level = Level(log_level)
        except ValueError as e:
            raise InvalidArgumentError(f"Unknown CONFIGBIND_LOG_LEVEL '{log_level}'") from e

        self.backend = os.getenv("CONFIGBIND_BACKEND", "memory").lower()
        if self.backend not in BACKENDS:
            raise InvalidArgumentError(
                f"Unknown CONFIGBIND_BACKEND '{self.backend}', expected one of {', '.join(BACKENDS)}"
            )

        self.default_scope = os.getenv("CONFIGBIND_DEFAULT_SCOPE", "Default")
        cache_seconds = float(os.getenv("CONFIGBIND_CACHE_SECONDS", "600"))
        self.cache_duration = timedelta(seconds=cache_seconds) if cache_seconds > 0 else None

        # Хранилища
        self.postgres = PostgresConfig()
        self.mysql = MySqlConfig()
        self.sqlserver = SqlServerConfig()
        self.redis = RedisConfig()
        self.mongo = MongoConfig()
        self.ravendb = RavenDbConfig()

    def options(self) -> ConfigBindOptions:
        """Build manager options from the environment."""
        return ConfigBindOptions(
            default_scope=self.default_scope,
            cache_duration=self.cache_duration,
        )

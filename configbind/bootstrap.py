"""Wiring of a ConfigManager from code or from the environment."""

from pymongo import MongoClient
from ravendb import DocumentStore

from configbind.config.settings import (
    ConfigBindOptions,
    MongoConfig,
    RavenDbConfig,
    RedisConfig,
    Settings,
)
from configbind.core.cache import MemoryConfigCache
from configbind.core.manager import ConfigManager
from configbind.database.mongo import MongoDbClient
from configbind.database.mysql import MySqlClient, MySqlConfig
from configbind.database.postgres import PostgresClient, PostgresConfig
from configbind.database.ravendb import RavenDbClient
from configbind.database.redis_client import RedisClient
from configbind.database.sqlserver import SqlServerClient, SqlServerConfig
from configbind.errors import StoreNotConfiguredError
from configbind.logger.logger import get_logger, init_logger
from configbind.logger.stream_writer import StreamWriter
from configbind.logger.types import param
from configbind.repository.base import ConfigStore
from configbind.repository.memory import MemoryConfigStore
from configbind.repository.mongo import MongoConfigStore
from configbind.repository.mysql import MySqlConfigStore
from configbind.repository.postgres import PostgresConfigStore
from configbind.repository.ravendb import RavenDbConfigStore
from configbind.repository.redis_store import RedisConfigStore
from configbind.repository.sqlserver import SqlServerConfigStore


class ConfigBindBuilder:
    """
    Chainable builder of a ConfigManager.

    Exactly one store is kept: each use_*() call replaces the previous one.
    Store constructors validate their identifiers, so a bad table or prefix
    name fails here, before any connection is opened.
    """

    def __init__(self) -> None:
        self._store: ConfigStore | None = None
        self._options: ConfigBindOptions | None = None
        self._cache: MemoryConfigCache | None = None

    def with_options(self, options: ConfigBindOptions) -> "ConfigBindBuilder":
        self._options = options
        return self

    def with_cache(self, cache: MemoryConfigCache) -> "ConfigBindBuilder":
        self._cache = cache
        return self

    def use_store(self, store: ConfigStore) -> "ConfigBindBuilder":
        self._store = store
        return self

    def use_memory(self) -> "ConfigBindBuilder":
        return self.use_store(MemoryConfigStore())

    def use_postgres(
        self,
        config: PostgresConfig | None = None,
        schema: str | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
    ) -> "ConfigBindBuilder":
        client = PostgresClient(config)
        return self.use_store(PostgresConfigStore(client, schema, table, auto_create))

    def use_mysql(
        self,
        config: MySqlConfig | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
    ) -> "ConfigBindBuilder":
        client = MySqlClient(config)
        return self.use_store(MySqlConfigStore(client, table, auto_create))

    def use_sqlserver(
        self,
        config: SqlServerConfig | None = None,
        schema: str | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
    ) -> "ConfigBindBuilder":
        client = SqlServerClient(config)
        return self.use_store(SqlServerConfigStore(client, schema, table, auto_create))

    def use_redis(
        self,
        config: RedisConfig | None = None,
        key_prefix: str | None = None,
    ) -> "ConfigBindBuilder":
        client = RedisClient(config or RedisConfig())
        return self.use_store(RedisConfigStore(client, key_prefix))

    def use_mongo(
        self,
        config: MongoConfig | None = None,
        collection: str | None = None,
        auto_create: bool | None = None,
        client: MongoClient | None = None,
    ) -> "ConfigBindBuilder":
        mongo = MongoDbClient(config or MongoConfig(), client)
        return self.use_store(MongoConfigStore(mongo, collection, auto_create))

    def use_ravendb(
        self,
        config: RavenDbConfig | None = None,
        key_prefix: str | None = None,
        store: DocumentStore | None = None,
    ) -> "ConfigBindBuilder":
        ravendb = RavenDbClient(config or RavenDbConfig(), store)
        return self.use_store(RavenDbConfigStore(ravendb, key_prefix))

    def build(self) -> ConfigManager:
        """
        Build the manager.

        Raises:
            StoreNotConfiguredError: If no store was selected
        """
        if self._store is None:
            raise StoreNotConfiguredError(
                "No configuration store selected; call one of the use_*() methods first."
            )
        return ConfigManager(self._store, cache=self._cache, options=self._options)


def create_config_manager(settings: Settings | None = None) -> ConfigManager:
    """
    Build a ConfigManager for the backend selected in the environment.

    Initializes the global logger from the settings first, so stores created
    here log with the configured service name and level.

    Args:
        settings: Settings, read from the environment if omitted

    Returns:
        ConfigManager
    """
    settings = settings or Settings()

    init_logger(
        service_name=settings.service_name,
        environment=settings.environment,
        writer=StreamWriter(min_level=settings.log_level),
    )

    builder = ConfigBindBuilder().with_options(settings.options())

    if settings.backend == "postgres":
        builder.use_postgres(settings.postgres)
    elif settings.backend == "mysql":
        builder.use_mysql(settings.mysql)
    elif settings.backend == "sqlserver":
        builder.use_sqlserver(settings.sqlserver)
    elif settings.backend == "redis":
        builder.use_redis(settings.redis)
    elif settings.backend == "mongo":
        builder.use_mongo(settings.mongo)
    elif settings.backend == "ravendb":
        builder.use_ravendb(settings.ravendb)
    else:
        builder.use_memory()

    get_logger().info(
        "Config manager created",
        param("backend", settings.backend),
        param("default_scope", settings.default_scope),
    )
    return builder.build()

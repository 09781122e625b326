"""Configuration store for MySQL."""

import asyncio
import threading
from collections.abc import Iterable

import pymysql

from configbind.database.mysql import MySqlClient
from configbind.domain.config import ConfigEntry
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param
from configbind.repository.base import ConfigStore, check_lookup, check_scope, prepare_batch
from configbind.repository.validation import MYSQL_IDENTIFIER_MAX, validate_identifier


class MySqlConfigStore(ConfigStore):
    """
    Store backed by a MySQL table.

    Runs in autocommit mode and writes a batch row by row, so a failure
    mid-batch leaves earlier rows committed and a concurrent reader may see
    some fields of a save but not others. A stored generated column
    ``scope_key = IFNULL(scope, '')`` carries the unique index, since MySQL
    unique keys treat NULLs as distinct. Key and scope columns use the
    binary NO PAD collation ``utf8mb4_0900_bin`` so scopes differing in case
    or trailing spaces stay apart; this and the ``AS new`` row alias need
    MySQL 8.0.19 or later.
    """

    atomic_upsert = False

    def __init__(
        self,
        mysql_client: MySqlClient,
        table: str | None = None,
        auto_create: bool | None = None,
    ) -> None:
        """
        Initialize MySqlConfigStore.

        Args:
            mysql_client: MySQL client instance
            table: Table name, defaults to the client config
            auto_create: Create the table on first use

        Raises:
            IdentifierValidationError: If table is not a safe identifier
        """
        config = mysql_client.config
        self.table = validate_identifier(table or config.table, "table", MYSQL_IDENTIFIER_MAX)
        self.auto_create = config.auto_create if auto_create is None else auto_create
        self.mysql = mysql_client
        self.logger = get_logger().with_category(Category.DATABASE)

        self._initialized = False
        self._init_lock = threading.Lock()

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return
        await asyncio.to_thread(self._initialize)

    def _initialize(self) -> None:
        with self._init_lock:
            if self._initialized:
                return
            if self.auto_create:
                self._create_table()
            self._initialized = True

    def _create_table(self) -> None:
        try:
            self.mysql.execute(
                f"""
                CREATE TABLE IF NOT EXISTS `{self.table}` (
                    id INT NOT NULL AUTO_INCREMENT PRIMARY KEY,
                    cfg_key VARCHAR(256) COLLATE utf8mb4_0900_bin NOT NULL,
                    cfg_value LONGTEXT NOT NULL,
                    scope VARCHAR(128) COLLATE utf8mb4_0900_bin NULL,
                    scope_key VARCHAR(128) COLLATE utf8mb4_0900_bin
                        AS (IFNULL(scope, '')) STORED,
                    UNIQUE KEY uk_config (cfg_key, scope_key)
                ) DEFAULT CHARSET=utf8mb4
                """
            )
        except pymysql.Error as e:
            self.logger.error("Failed to create config table", e, param("table", self.table))
            raise

        self.logger.info("Config table ensured", param("table", self.table))

    async def get(self, key: str, scope: str | None = None) -> ConfigEntry | None:
        """
        Get configuration entry by key and scope.

        Args:
            key: Configuration key
            scope: Scope, None matches only unscoped rows

        Returns:
            ConfigEntry or None if not found
        """
        key, scope = check_lookup(key, scope)
        await self._ensure_initialized()

        if scope is None:
            query = (
                f"SELECT cfg_key, cfg_value, scope FROM `{self.table}` "
                "WHERE cfg_key = %s AND scope IS NULL LIMIT 1"
            )
            params: tuple[str, ...] = (key,)
        else:
            query = (
                f"SELECT cfg_key, cfg_value, scope FROM `{self.table}` "
                "WHERE cfg_key = %s AND scope = %s LIMIT 1"
            )
            params = (key, scope)

        row = await asyncio.to_thread(self.mysql.fetch_one, query, params)
        if row is None:
            return None
        return ConfigEntry(key=row["cfg_key"], value=row["cfg_value"], scope=row["scope"])

    async def get_all(self, scope: str | None = None) -> dict[str, ConfigEntry]:
        """
        Get all configuration entries of a scope.

        Args:
            scope: Scope, None matches only unscoped rows

        Returns:
            Entries keyed by configuration key
        """
        scope = check_scope(scope)
        await self._ensure_initialized()

        if scope is None:
            query = f"SELECT cfg_key, cfg_value, scope FROM `{self.table}` WHERE scope IS NULL"
            params: tuple[str, ...] = ()
        else:
            query = f"SELECT cfg_key, cfg_value, scope FROM `{self.table}` WHERE scope = %s"
            params = (scope,)

        rows = await asyncio.to_thread(self.mysql.fetch_all, query, params)
        return {
            row["cfg_key"]: ConfigEntry(
                key=row["cfg_key"], value=row["cfg_value"], scope=row["scope"]
            )
            for row in rows
        }

    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        """
        Insert or update configuration entries, one autocommitted row at a time.

        Args:
            entries: Entries to write; blank keys are skipped
            scope: Scope overriding the scope carried by each entry
        """
        batch = prepare_batch(entries, scope)
        if not batch:
            return
        await self._ensure_initialized()
        await asyncio.to_thread(self._upsert, batch)

    def _upsert(self, batch: list[ConfigEntry]) -> None:
        query = (
            f"INSERT INTO `{self.table}` (cfg_key, cfg_value, scope) "
            "VALUES (%s, %s, %s) AS new "
            "ON DUPLICATE KEY UPDATE cfg_value = new.cfg_value"
        )
        written = 0
        try:
            with self.mysql.cursor() as cursor:
                for entry in batch:
                    cursor.execute(query, (entry.key, entry.value, entry.scope))
                    written += 1
        except pymysql.Error as e:
            self.logger.error(
                "Failed to upsert config entries",
                e,
                param("table", self.table),
                param("written", written),
                param("count", len(batch)),
            )
            raise

        self.logger.debug(
            "Config entries upserted",
            param("table", self.table),
            param("count", written),
        )

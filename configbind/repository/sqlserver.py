"""Configuration store for SQL Server."""

import asyncio
import threading
from collections.abc import Iterable

from configbind.database.sqlserver import SqlServerClient
from configbind.domain.config import ConfigEntry
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param
from configbind.repository.base import ConfigStore, check_lookup, check_scope, prepare_batch
from configbind.repository.validation import SQLSERVER_IDENTIFIER_MAX, validate_identifier

_SCOPE_MATCH = "(([Scope] IS NULL AND %(scope)s IS NULL) OR [Scope] = %(scope)s)"


class SqlServerConfigStore(ConfigStore):
    """
    Store backed by a SQL Server table.

    An upsert batch runs in one transaction and is rolled back entirely on
    failure. The unique index on ([Key], [Scope]) treats NULL scopes as equal.
    Both columns are declared ``Latin1_General_BIN2`` so that key and scope
    comparisons are case-sensitive whatever the database default collation.
    """

    atomic_upsert = True

    def __init__(
        self,
        sqlserver_client: SqlServerClient,
        schema: str | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
    ) -> None:
        """
        Initialize SqlServerConfigStore.

        Args:
            sqlserver_client: SQL Server client instance
            schema: Schema name, defaults to the client config
            table: Table name, defaults to the client config
            auto_create: Create schema, table and index on first use

        Raises:
            IdentifierValidationError: If schema or table is not a safe identifier
        """
        config = sqlserver_client.config
        self.schema = validate_identifier(
            schema or config.schema, "schema", SQLSERVER_IDENTIFIER_MAX
        )
        self.table = validate_identifier(
            table or config.table, "table", SQLSERVER_IDENTIFIER_MAX
        )
        self.auto_create = config.auto_create if auto_create is None else auto_create
        self.sqlserver = sqlserver_client
        self.logger = get_logger().with_category(Category.DATABASE)

        self._full_table = f"[{self.schema}].[{self.table}]"
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
        index_name = f"UX_{self.table}_Key_Scope"[:SQLSERVER_IDENTIFIER_MAX]
        statement = f"""
            IF NOT EXISTS (SELECT 1 FROM sys.schemas WHERE name = %(schema)s)
                EXEC('CREATE SCHEMA [{self.schema}]');

            IF OBJECT_ID(%(full_table)s, 'U') IS NULL
            BEGIN
                CREATE TABLE {self._full_table} (
                    [Id] INT IDENTITY(1,1) NOT NULL PRIMARY KEY,
                    [Key] NVARCHAR(256) COLLATE Latin1_General_BIN2 NOT NULL,
                    [Value] NVARCHAR(MAX) NOT NULL,
                    [Scope] NVARCHAR(128) COLLATE Latin1_General_BIN2 NULL
                );
                CREATE UNIQUE INDEX [{index_name}] ON {self._full_table} ([Key], [Scope]);
            END
        """
        with self.sqlserver.connection() as conn:
            try:
                cursor = conn.cursor()
                cursor.execute(
                    statement,
                    {"schema": self.schema, "full_table": f"{self.schema}.{self.table}"},
                )
                conn.commit()
            except Exception as e:
                conn.rollback()
                self.logger.error(
                    "Failed to create config table",
                    e,
                    param("schema", self.schema),
                    param("table", self.table),
                )
                raise

        self.logger.info(
            "Config table ensured",
            param("schema", self.schema),
            param("table", self.table),
        )

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
        rows = await asyncio.to_thread(
            self._fetch,
            f"SELECT TOP (1) [Key], [Value], [Scope] FROM {self._full_table} "
            f"WHERE [Key] = %(key)s AND {_SCOPE_MATCH}",
            {"key": key, "scope": scope},
        )
        if not rows:
            return None
        row = rows[0]
        return ConfigEntry(key=row["Key"], value=row["Value"], scope=row["Scope"])

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
        rows = await asyncio.to_thread(
            self._fetch,
            f"SELECT [Key], [Value], [Scope] FROM {self._full_table} WHERE {_SCOPE_MATCH}",
            {"scope": scope},
        )
        return {
            row["Key"]: ConfigEntry(key=row["Key"], value=row["Value"], scope=row["Scope"])
            for row in rows
        }

    def _fetch(self, query: str, params: dict[str, str | None]) -> list[dict[str, str | None]]:
        with self.sqlserver.connection() as conn:
            try:
                cursor = conn.cursor()
                cursor.execute(query, params)
                return list(cursor.fetchall())
            finally:
                conn.rollback()

    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        """
        Insert or update configuration entries in one transaction.

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
        statement = f"""
            UPDATE {self._full_table} WITH (UPDLOCK, HOLDLOCK)
            SET [Value] = %(value)s
            WHERE [Key] = %(key)s AND {_SCOPE_MATCH};

            IF @@ROWCOUNT = 0
                INSERT INTO {self._full_table} ([Key], [Value], [Scope])
                VALUES (%(key)s, %(value)s, %(scope)s);
        """
        with self.sqlserver.connection() as conn:
            try:
                cursor = conn.cursor()
                for entry in batch:
                    cursor.execute(
                        statement,
                        {"key": entry.key, "value": entry.value, "scope": entry.scope},
                    )
                conn.commit()
            except Exception as e:
                conn.rollback()
                self.logger.error(
                    "Failed to upsert config entries",
                    e,
                    param("table", self.table),
                    param("count", len(batch)),
                )
                raise

        self.logger.debug(
            "Config entries upserted",
            param("table", self.table),
            param("count", len(batch)),
        )

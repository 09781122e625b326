"""Configuration store for PostgreSQL."""

import asyncio
import threading
from collections.abc import Iterable

from psycopg2 import sql
from psycopg2.extras import RealDictCursor, execute_values

from configbind.database.postgres import PostgresClient
from configbind.domain.config import ConfigEntry
from configbind.logger.logger import get_logger
from configbind.logger.types import Category, param
from configbind.repository.base import ConfigStore, check_lookup, check_scope, prepare_batch
from configbind.repository.validation import POSTGRES_IDENTIFIER_MAX, validate_identifier


class PostgresConfigStore(ConfigStore):
    """
    Store backed by a PostgreSQL table.

    An upsert batch runs in one transaction and is rolled back entirely on
    failure. Uniqueness is enforced on (key, COALESCE(scope, '')) so that the
    unscoped partition holds at most one row per key.
    """

    atomic_upsert = True

    def __init__(
        self,
        postgres_client: PostgresClient,
        schema: str | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
    ) -> None:
        """
        Initialize PostgresConfigStore.

        Args:
            postgres_client: PostgreSQL client instance
            schema: Schema name, defaults to the client config
            table: Table name, defaults to the client config
            auto_create: Create schema, table and index on first use

        Raises:
            IdentifierValidationError: If schema or table is not a safe identifier
        """
        config = postgres_client.config
        self.schema = validate_identifier(
            schema or config.schema, "schema", POSTGRES_IDENTIFIER_MAX
        )
        self.table = validate_identifier(table or config.table, "table", POSTGRES_IDENTIFIER_MAX)
        self.auto_create = config.auto_create if auto_create is None else auto_create
        self.postgres = postgres_client
        self.logger = get_logger().with_category(Category.DATABASE)

        self._table_sql = sql.Identifier(self.schema, self.table)
        self._index_sql = sql.Identifier(f"{self.table}_key_scope_ux"[:POSTGRES_IDENTIFIER_MAX])
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
        with self.postgres.connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(
                        sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(
                            sql.Identifier(self.schema)
                        )
                    )
                    cur.execute(
                        sql.SQL(
                            """
                            CREATE TABLE IF NOT EXISTS {} (
                                id SERIAL PRIMARY KEY,
                                key VARCHAR(256) NOT NULL,
                                value TEXT NOT NULL,
                                scope VARCHAR(128) NULL
                            )
                            """
                        ).format(self._table_sql)
                    )
                    cur.execute(
                        sql.SQL(
                            "CREATE UNIQUE INDEX IF NOT EXISTS {} ON {} (key, (COALESCE(scope, '')))"
                        ).format(self._index_sql, self._table_sql)
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
        return await asyncio.to_thread(self._get, key, scope)

    def _get(self, key: str, scope: str | None) -> ConfigEntry | None:
        if scope is None:
            query = sql.SQL(
                "SELECT key, value, scope FROM {} WHERE key = %s AND scope IS NULL LIMIT 1"
            ).format(self._table_sql)
            params: tuple[str, ...] = (key,)
        else:
            query = sql.SQL(
                "SELECT key, value, scope FROM {} WHERE key = %s AND scope = %s LIMIT 1"
            ).format(self._table_sql)
            params = (key, scope)

        with self.postgres.connection() as conn:
            try:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(query, params)
                    row = cur.fetchone()
            finally:
                conn.rollback()

        if row is None:
            return None
        return ConfigEntry(key=row["key"], value=row["value"], scope=row["scope"])

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
        return await asyncio.to_thread(self._get_all, scope)

    def _get_all(self, scope: str | None) -> dict[str, ConfigEntry]:
        if scope is None:
            query = sql.SQL("SELECT key, value, scope FROM {} WHERE scope IS NULL").format(
                self._table_sql
            )
            params: tuple[str, ...] = ()
        else:
            query = sql.SQL("SELECT key, value, scope FROM {} WHERE scope = %s").format(
                self._table_sql
            )
            params = (scope,)

        with self.postgres.connection() as conn:
            try:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
            finally:
                conn.rollback()

        return {
            row["key"]: ConfigEntry(key=row["key"], value=row["value"], scope=row["scope"])
            for row in rows
        }

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
        # ON CONFLICT не может обновить одну строку дважды за команду
        rows = {(e.key, e.scope): (e.key, e.value, e.scope) for e in batch}
        query = sql.SQL(
            """
            INSERT INTO {} (key, value, scope)
            VALUES %s
            ON CONFLICT (key, (COALESCE(scope, '')))
            DO UPDATE SET value = EXCLUDED.value
            """
        ).format(self._table_sql)

        with self.postgres.connection() as conn:
            try:
                with conn.cursor() as cur:
                    execute_values(cur, query, list(rows.values()))
                conn.commit()
            except Exception as e:
                conn.rollback()
                self.logger.error(
                    "Failed to upsert config entries",
                    e,
                    param("table", self.table),
                    param("count", len(rows)),
                )
                raise

        self.logger.debug(
            "Config entries upserted",
            param("table", self.table),
            param("count", len(rows)),
        )

    async def close(self) -> None:
        await asyncio.to_thread(self.postgres.close)

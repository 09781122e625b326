"""PostgreSQL client for configbind."""

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from psycopg2.extensions import connection as Connection
from psycopg2.pool import ThreadedConnectionPool

from configbind.config.secrets import read_secret


class PostgresConfig:
    """PostgreSQL connection and table configuration."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        dsn: str | None = None,
        schema: str | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
        min_conn: int = 1,
        max_conn: int = 10,
    ) -> None:
        self.host = host or os.getenv("CONFIGBIND_POSTGRES_HOST", "localhost")
        self.port = port or int(os.getenv("CONFIGBIND_POSTGRES_PORT", "5432"))
        self.database = database or os.getenv("CONFIGBIND_POSTGRES_DB", "configbind")
        self.user = user or os.getenv("CONFIGBIND_POSTGRES_USER", "configbind")
        self.password = password or read_secret(
            "postgres_password", "CONFIGBIND_POSTGRES_PASSWORD", ""
        )
        self._dsn = dsn or os.getenv("CONFIGBIND_POSTGRES_DSN")
        self.schema = schema or os.getenv("CONFIGBIND_POSTGRES_SCHEMA", "public")
        self.table = table or os.getenv("CONFIGBIND_POSTGRES_TABLE", "configbind")
        self.auto_create = (
            auto_create
            if auto_create is not None
            else os.getenv("CONFIGBIND_AUTO_CREATE", "false").lower() == "true"
        )
        self.min_conn = min_conn
        self.max_conn = max_conn

    @property
    def dsn(self) -> str:
        """Get PostgreSQL DSN."""
        if self._dsn:
            return self._dsn
        return (
            f"host={self.host} "
            f"port={self.port} "
            f"dbname={self.database} "
            f"user={self.user} "
            f"password={self.password}"
        )


class PostgresClient:
    """PostgreSQL client with connection pooling."""

    def __init__(self, config: PostgresConfig | Any = None) -> None:
        """
        Initialize PostgreSQL client.

        Args:
            config: PostgresConfig, config dict or None for env defaults
        """
        if isinstance(config, dict):
            self.config = PostgresConfig(**config)
        elif config is None:
            self.config = PostgresConfig()
        else:
            self.config = config

        self.pool: ThreadedConnectionPool | None = None
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        return self.pool is not None

    def connect(self) -> None:
        """Create the connection pool. Safe to call more than once."""
        with self._lock:
            if self.pool is not None:
                return
            try:
                self.pool = ThreadedConnectionPool(
                    minconn=self.config.min_conn,
                    maxconn=self.config.max_conn,
                    dsn=self.config.dsn,
                )
            except Exception as e:
                raise ConnectionError(f"Failed to create connection pool: {e}") from e

    def close(self) -> None:
        """Close database connection pool."""
        if self.pool:
            self.pool.closeall()
            self.pool = None

    def get_connection(self) -> Connection:
        """Get connection from pool."""
        if not self.pool:
            raise RuntimeError("Connection pool not initialized. Call connect() first.")
        return self.pool.getconn()  # type: ignore[no-any-return]

    def put_connection(self, conn: Connection) -> None:
        """Return connection to pool."""
        if self.pool:
            self.pool.putconn(conn)

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Borrow a pooled connection, connecting lazily on first use."""
        if not self.pool:
            self.connect()
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.put_connection(conn)

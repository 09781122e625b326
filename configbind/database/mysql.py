"""MySQL client for configbind.

PyMySQL connections are not thread-safe, so every operation opens its own
short-lived connection instead of sharing one.
"""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import pymysql
from pymysql.connections import Connection
from pymysql.cursors import DictCursor

from configbind.config.secrets import read_secret


class MySqlConfig:
    """MySQL connection and table configuration."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
        connect_timeout: int = 10,
        read_timeout: int = 30,
        write_timeout: int = 30,
        charset: str = "utf8mb4",
    ) -> None:
        self.host = host or os.getenv("CONFIGBIND_MYSQL_HOST", "localhost")
        self.port = port or int(os.getenv("CONFIGBIND_MYSQL_PORT", "3306"))
        self.database = database or os.getenv("CONFIGBIND_MYSQL_DATABASE", "configbind")
        self.user = user or read_secret("mysql_user", "CONFIGBIND_MYSQL_USER", "configbind")
        self.password = password or read_secret("mysql_password", "CONFIGBIND_MYSQL_PASSWORD", "")
        self.table = table or os.getenv("CONFIGBIND_MYSQL_TABLE", "configbind")
        self.auto_create = (
            auto_create
            if auto_create is not None
            else os.getenv("CONFIGBIND_AUTO_CREATE", "true").lower() == "true"
        )
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.charset = charset

    def to_dict(self) -> dict[str, Any]:
        """Convert config to PyMySQL connection kwargs."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
            "user": self.user,
            "password": self.password,
            "charset": self.charset,
            "connect_timeout": self.connect_timeout,
            "read_timeout": self.read_timeout,
            "write_timeout": self.write_timeout,
            "cursorclass": DictCursor,
            "autocommit": True,
        }


class MySqlClient:
    """MySQL client opening one connection per operation."""

    def __init__(self, config: MySqlConfig | None = None) -> None:
        """
        Initialize MySQL client.

        Args:
            config: MySqlConfig instance or None for defaults
        """
        self.config = config or MySqlConfig()

    def _connect(self) -> Connection:
        try:
            return pymysql.connect(**self.config.to_dict())
        except pymysql.Error as e:
            raise ConnectionError(
                f"Failed to connect to MySQL at {self.config.host}:{self.config.port}: {e}"
            ) from e

    @contextmanager
    def cursor(self) -> Generator[DictCursor, None, None]:
        """Open a connection and yield a dict cursor on it."""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            try:
                yield cursor
            finally:
                cursor.close()
        finally:
            conn.close()

    def execute(self, query: str, params: tuple[Any, ...] | None = None) -> int:
        """
        Execute query without returning results.

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            Number of affected rows
        """
        with self.cursor() as cursor:
            cursor.execute(query, params)
            return cursor.rowcount

    def fetch_one(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> dict[str, Any] | None:
        """Execute query and fetch one row as a dict."""
        with self.cursor() as cursor:
            cursor.execute(query, params)
            return cursor.fetchone()  # type: ignore[return-value]

    def fetch_all(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query and fetch all rows as dicts."""
        with self.cursor() as cursor:
            cursor.execute(query, params)
            return list(cursor.fetchall())

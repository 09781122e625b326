"""SQL Server client for configbind."""

import os
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import pymssql

from configbind.config.secrets import read_secret


class SqlServerConfig:
    """SQL Server connection and table configuration."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        schema: str | None = None,
        table: str | None = None,
        auto_create: bool | None = None,
        login_timeout: int = 10,
        timeout: int = 30,
    ) -> None:
        self.host = host or os.getenv("CONFIGBIND_SQLSERVER_HOST", "localhost")
        self.port = port or int(os.getenv("CONFIGBIND_SQLSERVER_PORT", "1433"))
        self.database = database or os.getenv("CONFIGBIND_SQLSERVER_DATABASE", "configbind")
        self.user = user or read_secret("sqlserver_user", "CONFIGBIND_SQLSERVER_USER", "sa")
        self.password = password or read_secret(
            "sqlserver_password", "CONFIGBIND_SQLSERVER_PASSWORD", ""
        )
        self.schema = schema or os.getenv("CONFIGBIND_SQLSERVER_SCHEMA", "dbo")
        self.table = table or os.getenv("CONFIGBIND_SQLSERVER_TABLE", "ConfigBind")
        self.auto_create = (
            auto_create
            if auto_create is not None
            else os.getenv("CONFIGBIND_AUTO_CREATE", "false").lower() == "true"
        )
        self.login_timeout = login_timeout
        self.timeout = timeout

    def to_dict(self) -> dict[str, Any]:
        """Convert config to pymssql connection kwargs."""
        return {
            "server": self.host,
            "port": str(self.port),
            "database": self.database,
            "user": self.user,
            "password": self.password,
            "login_timeout": self.login_timeout,
            "timeout": self.timeout,
            "as_dict": True,
            "autocommit": False,
        }


class SqlServerClient:
    """SQL Server client opening one connection per operation."""

    def __init__(self, config: SqlServerConfig | None = None) -> None:
        self.config = config or SqlServerConfig()

    @contextmanager
    def connection(self) -> Generator[Any, None, None]:
        """Open a connection; the caller commits or rolls back."""
        try:
            conn = pymssql.connect(**self.config.to_dict())
        except pymssql.Error as e:
            raise ConnectionError(
                f"Failed to connect to SQL Server at {self.config.host}:{self.config.port}: {e}"
            ) from e
        try:
            yield conn
        finally:
            conn.close()

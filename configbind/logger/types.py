"""Types and constants for structured logging."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class Level(str, Enum):
    """Log level определяет уровень важности лога."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    Level.TRACE: 0,
    Level.DEBUG: 1,
    Level.INFO: 2,
    Level.WARN: 3,
    Level.ERROR: 4,
}


class Category(str, Enum):
    """Category определяет категорию события для группировки логов."""

    DATABASE = "database"  # SQL-хранилища (Postgres, MySQL, SQL Server)
    CACHE = "cache"  # In-memory кеш снапшотов
    BINDING = "binding"  # Get/Save типизированных конфигов
    SECURITY = "security"  # Отклонённые идентификаторы и размеры
    REDIS = "redis"
    MONGO = "mongo"
    RAVENDB = "ravendb"


# Поля, значения которых никогда не попадают в лог
REDACTED_KEYS = frozenset({"value", "password", "dsn", "url", "secret"})
REDACTED = "***"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LogEntry:
    """LogEntry представляет одну запись лога."""

    timestamp: datetime
    service_name: str
    environment: str
    level: Level
    message: str
    category: Category | None = None
    function_name: str | None = None
    file_path: str | None = None
    line_number: int | None = None
    error_message: str | None = None
    stack_trace: str | None = None
    context: dict[str, Any] | None = None
    duration_ms: int | None = None
    ingestion_time: datetime = field(default_factory=_utcnow)


@dataclass
class Field:
    """Field для структурированных данных в логах."""

    key: str
    value: Any

    def safe_value(self) -> Any:
        """Значение для записи в лог; секретные поля маскируются."""
        if self.key.lower() in REDACTED_KEYS:
            return REDACTED
        return self.value


def category(cat: Category) -> Field:
    """Создаёт поле для категории лога."""
    return Field(key="_category", value=cat)


def param(key: str, value: Any) -> Field:
    """Универсальная функция для добавления параметра."""
    return Field(key=key, value=value)


def duration_ms(value: int) -> Field:
    """Создаёт поле для duration в миллисекундах."""
    return Field(key="duration_ms", value=value)


def error(err: Exception) -> Field:
    """Создаёт поле для ошибки."""
    return Field(key="error", value=str(err))

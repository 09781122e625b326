"""Основной logger для структурированного логирования."""

import inspect
import os
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from configbind.logger.stream_writer import LogWriter, StreamWriter
from configbind.logger.types import Category, Field, Level, LogEntry


class Logger:
    """Logger для структурированного логирования через подключаемый writer."""

    def __init__(
        self,
        service_name: str,
        environment: str,
        writer: LogWriter | None = None,
    ) -> None:
        """
        Initialize Logger.

        Args:
            service_name: Имя сервиса
            environment: Окружение (dev, stage, prod)
            writer: Writer для записи логов (по умолчанию StreamWriter в stderr)
        """
        self.service_name = service_name
        self.environment = environment
        self.writer = writer if writer is not None else StreamWriter()

        # Контекстные поля
        self._fields: dict[str, Any] = {}
        self._category: Category | None = None

    def trace(self, msg: str, *fields: Field) -> None:
        """Log trace level message."""
        self._log(Level.TRACE, msg, None, *fields)

    def debug(self, msg: str, *fields: Field) -> None:
        """Log debug level message."""
        self._log(Level.DEBUG, msg, None, *fields)

    def info(self, msg: str, *fields: Field) -> None:
        """Log info level message."""
        self._log(Level.INFO, msg, None, *fields)

    def warn(self, msg: str, *fields: Field) -> None:
        """Log warn level message."""
        self._log(Level.WARN, msg, None, *fields)

    def error(self, msg: str, err: Exception | None = None, *fields: Field) -> None:
        """Log error level message."""
        self._log(Level.ERROR, msg, err, *fields)

    def _log(
        self,
        level: Level,
        msg: str,
        err: Exception | None,
        *fields: Field,
    ) -> None:
        """Основной метод логирования."""
        # Получаем информацию о caller
        frame = inspect.currentframe()
        caller_frame = frame.f_back.f_back if frame and frame.f_back else None

        function_name = None
        file_path = None
        line_number = None

        if caller_frame:
            function_name = caller_frame.f_code.co_name
            file_path = self._clean_file_path(caller_frame.f_code.co_filename)
            line_number = caller_frame.f_lineno

        context: dict[str, Any] = dict(self._fields)
        category = self._category

        for field in fields:
            if field.key == "_category":
                if isinstance(field.value, Category):
                    category = field.value
                continue
            context[field.key] = field.safe_value()

        duration_ms = context.pop("duration_ms", None)
        if duration_ms is not None:
            duration_ms = int(duration_ms)

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc),
            service_name=self.service_name,
            environment=self.environment,
            level=level,
            category=category,
            function_name=function_name,
            file_path=file_path,
            line_number=line_number,
            message=msg,
            context=context if context else None,
            duration_ms=duration_ms,
        )

        if err:
            entry.error_message = str(err)
            if level is Level.ERROR:
                entry.stack_trace = "".join(
                    traceback.format_exception(type(err), err, err.__traceback__)
                )

        try:
            self.writer.write(entry)
        except Exception as write_err:
            # Логгер не должен ронять вызывающий код
            print(f"[LOGGER ERROR] Failed to write log: {write_err}", file=sys.stderr)

    def with_category(self, category: Category) -> "Logger":
        """Возвращает новый logger с указанной категорией."""
        new_logger = self._copy()
        new_logger._category = category
        return new_logger

    def with_fields(self, *fields: Field) -> "Logger":
        """Возвращает новый logger с дополнительными полями."""
        new_logger = self._copy()
        for field in fields:
            new_logger._fields[field.key] = field.safe_value()
        return new_logger

    def _copy(self) -> "Logger":
        """Создаёт копию logger."""
        new_logger = Logger(self.service_name, self.environment, self.writer)
        new_logger._fields = dict(self._fields)
        new_logger._category = self._category
        return new_logger

    @staticmethod
    def _clean_file_path(file_path: str) -> str:
        """Очищает путь к файлу от абсолютного пути."""
        path = Path(file_path)

        parts = path.parts
        if "configbind" in parts:
            idx = parts.index("configbind")
            return str(Path(*parts[idx:]))

        return path.name


# Глобальный logger instance
_global_logger: Logger | None = None


def get_logger() -> Logger:
    """Возвращает глобальный logger, создавая logger по умолчанию при первом вызове."""
    global _global_logger
    if _global_logger is None:
        _global_logger = Logger(
            service_name="configbind",
            environment=os.getenv("CONFIGBIND_ENVIRONMENT", "dev"),
        )
    return _global_logger


def init_logger(
    service_name: str,
    environment: str,
    writer: LogWriter | None = None,
) -> Logger:
    """
    Инициализирует глобальный logger.

    Loggers already handed out by get_logger() keep their old writer, so call
    this before building stores and managers.

    Args:
        service_name: Имя сервиса
        environment: Окружение (dev, stage, prod)
        writer: Writer для записи логов

    Returns:
        Logger instance
    """
    global _global_logger
    _global_logger = Logger(service_name, environment, writer)
    return _global_logger

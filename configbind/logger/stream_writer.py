"""Stream writer для логов: одна JSON-строка на запись."""

import json
import sys
import threading
from typing import Any, Protocol, TextIO

from configbind.logger.types import Level, LogEntry


class LogWriter(Protocol):
    """Anything that can accept a finished log entry."""

    def write(self, entry: LogEntry) -> None: ...


class StreamWriter:
    """StreamWriter пишет логи в stderr (или любой text stream) в формате JSON lines."""

    def __init__(
        self,
        stream: TextIO | None = None,
        min_level: Level = Level.INFO,
    ) -> None:
        """
        Initialize StreamWriter.

        Args:
            stream: Target stream, stderr by default (resolved on every write)
            min_level: Entries below this level are dropped
        """
        self._stream = stream
        self.min_level = min_level
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def write(self, entry: LogEntry) -> None:
        """Сериализует запись и пишет её в поток."""
        if entry.level.rank < self.min_level.rank:
            return

        line = json.dumps(self._to_dict(entry), default=str, ensure_ascii=False)
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    @staticmethod
    def _to_dict(entry: LogEntry) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": entry.timestamp.isoformat(),
            "level": entry.level.value,
            "category": entry.category.value if entry.category else None,
            "message": entry.message,
            "service_name": entry.service_name,
            "environment": entry.environment,
        }
        if entry.function_name:
            data["caller"] = f"{entry.file_path}:{entry.line_number} {entry.function_name}"
        if entry.error_message:
            data["error"] = entry.error_message
        if entry.stack_trace:
            data["stack_trace"] = entry.stack_trace
        if entry.context:
            data["context"] = entry.context
        if entry.duration_ms is not None:
            data["duration_ms"] = entry.duration_ms
        return data

"""Logger module for configbind."""

from configbind.logger.logger import Logger, get_logger, init_logger
from configbind.logger.stream_writer import LogWriter, StreamWriter
from configbind.logger.types import Category, Field, Level, LogEntry, param

__all__ = [
    "Logger",
    "get_logger",
    "init_logger",
    "LogWriter",
    "StreamWriter",
    "Category",
    "Level",
    "LogEntry",
    "Field",
    "param",
]

"""Tests for the structured logger."""

import io
import json

from configbind.logger import logger as logger_module
from configbind.logger.logger import Logger, get_logger, init_logger
from configbind.logger.stream_writer import StreamWriter
from configbind.logger.types import Category, Level, duration_ms, param


class TestLogger:
    """Test cases for Logger."""

    def test_fields_and_category(self, log_writer) -> None:
        logger = get_logger().with_category(Category.CACHE).with_fields(param("scope", "A"))

        logger.info("snapshot stored", param("count", 3), duration_ms(12))

        entry = log_writer.entries[-1]
        assert entry.level is Level.INFO
        assert entry.category is Category.CACHE
        assert entry.context == {"scope": "A", "count": 3}
        assert entry.duration_ms == 12
        assert entry.function_name == "test_fields_and_category"

    def test_with_category_returns_copy(self, log_writer) -> None:
        base = get_logger()
        cached = base.with_category(Category.CACHE)

        base.info("plain")

        assert log_writer.entries[-1].category is None
        assert cached is not base

    def test_error_keeps_stack_trace(self, log_writer) -> None:
        try:
            raise ValueError("broken")
        except ValueError as e:
            get_logger().error("operation failed", e, param("key", "a.b"))

        entry = log_writer.entries[-1]
        assert entry.error_message == "broken"
        assert entry.stack_trace is not None
        assert "ValueError" in entry.stack_trace

    def test_failing_writer_does_not_raise(self, capsys) -> None:
        class BrokenWriter:
            def write(self, entry) -> None:
                raise OSError("disk full")

        Logger("svc", "test", BrokenWriter()).info("hello")

        assert "Failed to write log" in capsys.readouterr().err

    def test_init_logger_replaces_global(self, monkeypatch) -> None:
        monkeypatch.setattr(logger_module, "_global_logger", None)

        logger = init_logger("other-service", "prod")

        assert get_logger() is logger
        assert logger.service_name == "other-service"


class TestStreamWriter:
    """Test cases for StreamWriter."""

    def test_json_lines(self) -> None:
        stream = io.StringIO()
        logger = Logger("configbind", "test", StreamWriter(stream=stream))

        logger.with_category(Category.DATABASE).warn("slow query", param("table", "configbind"))

        record = json.loads(stream.getvalue().strip())
        assert record["level"] == "warn"
        assert record["category"] == "database"
        assert record["message"] == "slow query"
        assert record["context"] == {"table": "configbind"}
        assert record["service_name"] == "configbind"

    def test_min_level_filter(self) -> None:
        stream = io.StringIO()
        logger = Logger("configbind", "test", StreamWriter(stream=stream, min_level=Level.WARN))

        logger.debug("dropped")
        logger.info("dropped too")
        logger.error("kept")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["message"] == "kept"


class TestRedaction:
    """Secret-bearing fields never reach the writer."""

    def test_value_and_password_masked(self, log_writer) -> None:
        get_logger().with_fields(param("password", "hunter2")).info(
            "entry written", param("key", "a.b"), param("Value", '"secret"')
        )

        assert log_writer.entries[-1].context == {
            "password": "***",
            "key": "a.b",
            "Value": "***",
        }

"""Pytest configuration and fixtures for configbind tests."""

from collections.abc import Iterable

import pytest

from configbind.config.settings import ConfigBindOptions
from configbind.core.cache import MemoryConfigCache
from configbind.core.manager import ConfigManager
from configbind.domain.config import ConfigEntry
from configbind.logger import logger as logger_module
from configbind.logger.logger import Logger
from configbind.logger.types import LogEntry
from configbind.repository.memory import MemoryConfigStore


class ListWriter:
    """Log writer keeping entries in memory."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def write(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def messages(self) -> list[str]:
        return [entry.message for entry in self.entries]


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingStore(MemoryConfigStore):
    """Memory store recording how often it is read and written."""

    def __init__(self) -> None:
        super().__init__()
        self.get_all_calls = 0
        self.upsert_calls = 0

    async def get_all(self, scope: str | None = None) -> dict[str, ConfigEntry]:
        self.get_all_calls += 1
        return await super().get_all(scope)

    async def upsert(self, entries: Iterable[ConfigEntry], scope: str | None = None) -> None:
        self.upsert_calls += 1
        await super().upsert(entries, scope)


@pytest.fixture(autouse=True)
def log_writer(monkeypatch: pytest.MonkeyPatch) -> ListWriter:
    """Route every log entry of a test into a list instead of stderr."""
    writer = ListWriter()
    monkeypatch.setattr(
        logger_module, "_global_logger", Logger("configbind-test", "test", writer)
    )
    return writer


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> MemoryConfigCache:
    return MemoryConfigCache(clock=clock)


@pytest.fixture
def store() -> CountingStore:
    return CountingStore()


@pytest.fixture
def options() -> ConfigBindOptions:
    return ConfigBindOptions()


@pytest.fixture
def manager(
    store: CountingStore, cache: MemoryConfigCache, options: ConfigBindOptions
) -> ConfigManager:
    return ConfigManager(store, cache=cache, options=options)

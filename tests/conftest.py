"""
Pytest configuration and fixtures for oml-client.

Provides in-memory sinks, a deterministic clock and a registry wired to them.
"""

import threading

import pytest
from loguru import logger

from oml_client.channel import ChannelDirectory
from oml_client.registry import Registry


class MemorySink:
    """Sink that records everything written to it."""

    def __init__(self, closeable: bool = True):
        self.closeable = closeable
        self.chunks: list[str] = []
        self.flushes = 0
        self.closed = False

    def write(self, text: str) -> None:
        if self.closed:
            raise ValueError("write to closed sink")
        self.chunks.append(text)

    def flush(self) -> None:
        self.flushes += 1

    def close(self) -> None:
        self.closed = True

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    def data_lines(self) -> list[str]:
        """Lines after the header block."""
        _, _, body = self.text.partition("\n\n")
        return [line for line in body.split("\n") if line]


class MemoryConnector:
    """Connector handing out a new MemorySink per connect, remembered by URL."""

    def __init__(self):
        self.sinks: dict[str, list[MemorySink]] = {}
        self._lock = threading.Lock()

    def __call__(self, url: str) -> MemorySink:
        sink = MemorySink()
        with self._lock:
            self.sinks.setdefault(url, []).append(sink)
        return sink

    def sink(self, url: str, n: int = -1) -> MemorySink:
        return self.sinks[url][n]


class FakeClock:
    """Clock advancing by ``step`` seconds on every read."""

    def __init__(self, start: float = 1_700_000_000.0, step: float = 0.25):
        self.now = start
        self.step = step
        self._lock = threading.Lock()

    def __call__(self) -> float:
        with self._lock:
            t = self.now
            self.now += self.step
            return t


@pytest.fixture(autouse=True)
def clean_oml_env(monkeypatch):
    """Keep OML_* variables of the developer's shell out of the tests."""
    for name in (
        "OML_DOMAIN",
        "OML_EXP_ID",
        "OML_NAME",
        "OML_ID",
        "OML_COLLECT",
        "OML_SERVER",
        "OML_URL",
        "OML_LOG_LEVEL",
        "OML_NOOP",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def connector():
    return MemoryConnector()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def directory(connector):
    d = ChannelDirectory(connector=connector, reconnect_interval=0.01)
    yield d
    d.close_all()


@pytest.fixture
def registry(directory, clock):
    """Registry writing to in-memory sinks with a deterministic clock."""
    reg = Registry(directory, clock=clock)
    yield reg
    reg.close()


@pytest.fixture
def log_messages():
    """Captured loguru messages (all levels)."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)

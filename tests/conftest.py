"""Shared pytest fixtures for ftptail tests."""

import time

import pytest

from ftptail.config import TransportConfig, WatchConfig
from ftptail.mocks import MockClock, MockLogger, MockRemoteFileClient
from ftptail.scratch_store import MemoryScratchStore

REMOTE_PATH = "/logs/server.log"


@pytest.fixture
def client():
    return MockRemoteFileClient()


@pytest.fixture
def logger():
    return MockLogger()


@pytest.fixture
def clock():
    return MockClock()


@pytest.fixture
def scratch():
    return MemoryScratchStore()


@pytest.fixture
def watch_config():
    return WatchConfig(
        remote_path=REMOTE_PATH,
        transport=TransportConfig(host="ftp.example.com", user="bob", password="secret"),
    )


def wait_for(predicate, timeout: float = 5.0, interval: float = 0.005) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()

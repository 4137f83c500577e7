"""Root pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest

from quota_watcher.config import reset_default_values
from quota_watcher.connection_client import ConnectionClient
from quota_watcher.events import EventBus
from quota_watcher.models import ConnectionInfo
from tests.helpers.quota_fakes import EventRecorder, FakeSession, ManualClock

# Keep tests independent of a developer's environment
for _name in list(os.environ):
    if _name.startswith("QUOTA_WATCHER_"):
        del os.environ[_name]


@pytest.fixture(autouse=True)
def _fresh_config_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("quota_watcher.config.runtime._DOTENV_CANDIDATES", (tmp_path / ".env",))
    reset_default_values()
    yield
    reset_default_values()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(bus) -> EventRecorder:
    return EventRecorder(bus)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def client(fake_session) -> ConnectionClient:
    return ConnectionClient(session_factory=lambda timeout: fake_session)


@pytest.fixture
def connection_info() -> ConnectionInfo:
    return ConnectionInfo(connect_port=51001, csrf_token="abcDEF123456", http_fallback_port=51000)

"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from vibecoder.config import reset_config
from vibecoder.storage import JsonStore

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep user config out of tests and point default storage at tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("VC_DATA_ROOT", str(tmp_path / "data-root"))
    monkeypatch.delenv("VC_LOG", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def agent_store(tmp_path: Path) -> JsonStore:
    return JsonStore(tmp_path / "config" / "agents")


@pytest.fixture
def server_store(tmp_path: Path) -> JsonStore:
    return JsonStore(tmp_path / "data" / "mcp_servers")

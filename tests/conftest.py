"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime
from itertools import count
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from taskpulse.config import CONFIG_ENV_VAR, Config  # noqa: E402
from taskpulse.task import Task  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point configuration at an empty temp location for every test."""
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "config.yaml"))
    Config.reset()
    yield
    Config.reset()


@pytest.fixture
def now() -> datetime:
    """Friday 2024-03-15, mid-afternoon."""
    return datetime(2024, 3, 15, 15, 30)


@pytest.fixture
def make_task():
    """Factory for tasks with sequential ids."""
    ids = count(1)

    def factory(**fields) -> Task:
        fields.setdefault("id", f"task-{next(ids)}")
        fields.setdefault("title", "Sample task")
        return Task(**fields)

    return factory

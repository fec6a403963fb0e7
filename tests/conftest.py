"""Shared test fixtures for Solar Optimizer."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncGenerator

import aiosqlite
import pytest
import pytest_asyncio

from solar_optimizer.config.manager import ConfigManager
from solar_optimizer.config.schema import AppConfig
from solar_optimizer.db.engine import close_db, init_db
from solar_optimizer.db.repository import Repository
from solar_optimizer.history.sqlite import SqliteHistorySink
from solar_optimizer.state import TelemetryState


@pytest.fixture
def config() -> AppConfig:
    """Provide a default test configuration."""
    return AppConfig()


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Provide a config manager with test paths and an empty environment."""
    defaults = tmp_path / "config.defaults.yaml"
    defaults.write_text("db:\n  path: ':memory:'\n")
    user = tmp_path / "config.yaml"
    mgr = ConfigManager(defaults_path=defaults, user_path=user, environ={})
    mgr.load()
    return mgr


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """Provide a fresh on-disk database for each test."""
    conn = await init_db(tmp_path / "test.db")
    yield conn
    await close_db()


@pytest_asyncio.fixture
async def repo(db: aiosqlite.Connection) -> Repository:
    """Provide a repository with a fresh database."""
    return Repository(db)


@pytest_asyncio.fixture
async def sqlite_sink(repo: Repository) -> SqliteHistorySink:
    return SqliteHistorySink(repo)


@pytest.fixture
def state() -> TelemetryState:
    return TelemetryState()

"""Shared pytest fixtures for database-backed tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

from wpt_monitor.db import db_create_engine

PROJECT_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture()
def migrated_database_url(tmp_path, monkeypatch) -> str:
    """Return a temporary SQLite URL upgraded to the latest schema revision."""

    database_url = f"sqlite:///{tmp_path / 'wpt_monitor_test.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)
    alembic_config = Config()
    alembic_config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_config, "head")
    return database_url


@pytest.fixture()
def migrated_engine(migrated_database_url):
    """Return an engine bound to a freshly migrated SQLite database."""

    engine = db_create_engine(database_url=migrated_database_url)
    yield engine
    engine.dispose()

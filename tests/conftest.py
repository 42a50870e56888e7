# tests/conftest.py

from __future__ import annotations

import os

# Importing task_service.app.main builds the module-level app from the
# environment; keep that one in memory and off the filesystem.
os.environ.setdefault("TASK_REPO", "memory")
os.environ.setdefault("LOG_DIR", "")

from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from task_service.app.main import create_app
from task_service.config import Settings
from task_service.infra.db.database import create_schema, make_engine, make_sessionmaker
from task_service.infra.db.task_repo_memory import InMemoryTaskRepo
from task_service.infra.db.task_repo_sql import SQLTaskRepo

from .fakes import FailingTaskRepo


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """SQLite file per test, console-only logging."""
    return Settings(db_path=str(tmp_path / "tasks.db"), log_dir=None, log_level="WARNING")


@pytest.fixture()
def memory_repo() -> InMemoryTaskRepo:
    return InMemoryTaskRepo()


@pytest_asyncio.fixture()
async def sql_repo(settings: Settings):
    engine = make_engine(settings)
    await create_schema(engine)
    try:
        yield SQLTaskRepo(make_sessionmaker(engine))
    finally:
        await engine.dispose()


@pytest.fixture()
def client(settings: Settings):
    """
    Full app against a real SQLite file. Entering the TestClient runs the
    startup hook, which creates the schema.
    """
    with TestClient(create_app(settings)) as c:
        yield c


@pytest.fixture()
def failing_client(settings: Settings):
    with TestClient(create_app(settings, repo=FailingTaskRepo())) as c:
        yield c

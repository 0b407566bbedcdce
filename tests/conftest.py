from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from todolist.client import TaskGateway
from todolist.db import create_db_engine, init_db
from todolist.main import app, get_repository
from todolist.repository import TaskRepository


@pytest.fixture()
def repo(tmp_path: Path) -> TaskRepository:
    """Real SQLite-backed repository, one fresh database per test."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'tasks.sqlite3'}")
    yield TaskRepository(init_db(engine))
    engine.dispose()


@pytest.fixture()
def api(repo: TaskRepository) -> TestClient:
    app.dependency_overrides[get_repository] = lambda: repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def gateway(repo: TaskRepository) -> TaskGateway:
    """Gateway talking to the real app in-process over ASGI."""
    app.dependency_overrides[get_repository] = lambda: repo
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")
    try:
        yield TaskGateway(client=client)
    finally:
        await client.aclose()
        app.dependency_overrides.clear()

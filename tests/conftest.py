"""
Shared test fixtures.

Each test gets its own SQLite file (tables created with the sync driver),
an async session factory bound to it, and, for HTTP tests, a freshly built
application whose get_session dependency points at that database.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlmodel import SQLModel

from shortener.core.setting import Settings
from shortener.db import models  # noqa: F401  registers tables
from shortener.db.session import get_session, make_session_maker
from shortener.db.sqlite_adapter import get_database_adapter
from shortener.main import create_app


class FakeClock:
    """Manually advanced clock for the rate limit cache."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database_url(tmp_path):
    path = tmp_path / "test.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    SQLModel.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def session_maker(database_url):
    engine = get_database_adapter().create_engine(database_url)
    yield make_session_maker(engine)
    engine.sync_engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


def build_client_app(session_maker, **overrides):
    config = Settings(**{"RATE_LIMIT": "1000/minute", **overrides})
    app = create_app(config)

    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    return app


@pytest.fixture
def client(session_maker):
    app = build_client_app(session_maker)
    with TestClient(app) as test_client:
        yield test_client

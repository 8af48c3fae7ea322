import os

# Point the app at an in-memory database before puzzlezone.db is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["SEED_ON_STARTUP"] = "true"

import pytest
import pytest_asyncio
from fastapi import Header
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from puzzlezone.db import Base, make_engine
from puzzlezone import models  # noqa: F401  (registers tables)
from puzzlezone.auth import get_current_user_id
from puzzlezone.main import app


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory database per test, tables created, nothing seeded."""
    engine = make_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


def _user_from_header(x_user_id: str | None = Header(None)) -> str | None:
    return x_user_id


@pytest.fixture(scope="session")
def client():
    """App client whose caller identity comes from the X-User-Id header."""
    app.dependency_overrides[get_current_user_id] = _user_from_header
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

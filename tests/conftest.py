import os

# Settings are read at import time; point them at an in-memory database first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401  (registers tables)
from app.database import get_db
from app.main import app as fastapi_app
from app.models.scenario import ScenarioAssumptions
from app.models.user import User


def make_scenario(**overrides) -> ScenarioAssumptions:
    """Scenario with the stock defaults, spending growth off unless overridden."""
    fields = {
        "currentRate": 7,
        "swr": 4,
        "inflationRate": 3,
        "baseMonthlyBudget": 3000,
        "spendingGrowthRate": 0,
        "yearlyContribution": 0,
    }
    fields.update(overrides)
    return ScenarioAssumptions.from_scenario(fields)


# An entry recorded at the very end of a year: row 0 sits exactly on it
YEAR_END = datetime(2025, 12, 31, 23, 59, 59, 999000)


@pytest.fixture
def year_end() -> datetime:
    return YEAR_END


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def user(session) -> User:
    user = User(email="saver@example.com", password="not-a-real-hash")
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_client(client):
    response = await client.post(
        "/api/auth/signup",
        json={"email": "planner@example.com", "password": "hunter22", "firstName": "Pat"},
    )
    assert response.status_code == 200
    token = response.cookies.get("access_token")
    client.headers["Authorization"] = f"Bearer {token}"
    return client

"""Pytest configuration and fixtures for metal.fun backend tests"""
import os

# In-memory SQLite for tests; must be set before app settings are loaded
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("METAL_API_KEY", "test-key")

import pytest
import pytest_asyncio
from typing import Any, AsyncGenerator, Dict, List, Optional
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from dotenv import load_dotenv

from app.main import app
from app.api.deps import get_registry
from app.models.database import Base, enable_sqlite_savepoints, engine_options, get_db
from app.services.errors import RegistryUnavailableError

# Load environment variables
load_dotenv()

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeRegistry:
    """In-memory stand-in for MetalClient.

    Tests populate `tokens` (listing), `details` (by address) and `jobs` (by
    job id). Addresses in `failing_details` make get_token raise.
    """

    def __init__(self):
        self.tokens: List[Dict[str, Any]] = []
        self.details: Dict[str, Dict[str, Any]] = {}
        self.jobs: Dict[str, Dict[str, Any]] = {}
        self.failing_details: set = set()
        self.create_response: Dict[str, Any] = {"jobId": "job-1", "status": "pending"}
        self.create_error: Optional[RegistryUnavailableError] = None
        self.holders: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []

    async def list_tokens(self) -> Dict[str, Any]:
        self.calls.append(("list_tokens",))
        return {"tokens": [dict(t) for t in self.tokens]}

    async def get_token(self, address: str) -> Dict[str, Any]:
        self.calls.append(("get_token", address))
        if address in self.failing_details or address not in self.details:
            raise RegistryUnavailableError("get_token", 500, "boom")
        return dict(self.details[address])

    async def get_job_status(self, job_id: str) -> Dict[str, Any]:
        self.calls.append(("get_job_status", job_id))
        if job_id not in self.jobs:
            raise RegistryUnavailableError("get_job_status", 404, "job not found")
        return dict(self.jobs[job_id])

    async def create_token(self, **kwargs) -> Dict[str, Any]:
        self.calls.append(("create_token", kwargs))
        if self.create_error is not None:
            raise self.create_error
        return dict(self.create_response)

    async def create_liquidity(self, address: str) -> Dict[str, Any]:
        self.calls.append(("create_liquidity", address))
        return {"success": True, "address": address}

    async def get_or_create_holder(self, user_id: str) -> Dict[str, Any]:
        self.calls.append(("get_or_create_holder", user_id))
        return self.holders.setdefault(user_id, {"id": user_id, "address": f"0xholder{user_id}"})

    async def distribute(self, address: str, send_to: str, amount: float) -> Dict[str, Any]:
        self.calls.append(("distribute", address, send_to, amount))
        return {"success": True}


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh in-memory database and session for each test"""
    engine = enable_sqlite_savepoints(
        create_async_engine(TEST_DATABASE_URL, **engine_options(TEST_DATABASE_URL))
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, registry: FakeRegistry) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client"""

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    async def override_get_registry():
        return registry

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_registry] = override_get_registry

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def mock_metal_token():
    """Full registry token details for a completed token"""
    return {
        "id": "tok-1",
        "name": "Alpha",
        "symbol": "ALP",
        "address": "0xA1",
        "status": "completed",
        "merchantAddress": "0xM",
        "totalSupply": 1000000,
        "merchantSupply": 100000,
        "remainingAppSupply": 800000,
        "startingAppSupply": 900000,
        "price": 0.002,
        "marketCap": 5000,
        "holders": 12,
    }


@pytest.fixture
def mock_user_data():
    return {
        "username": "alice",
        "email": "alice@example.com",
        "password": "correct horse",
    }

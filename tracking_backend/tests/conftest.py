"""
Centralized Test Configuration.
"""

from datetime import date

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from tracking_backend.app.main import app
from tracking_backend.app.db.session import get_db, Base
from tracking_backend.app.core.redis_client import get_redis
from tracking_backend.app.core.jwt import build_token_payload, create_access_token
from tracking_backend.app.core.security import get_password_hash
from tracking_backend.app.models.enums import UserRole
from tracking_backend.app.models.user import User
import tracking_backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "password123"
# bcrypt is slow on purpose; hash once for every fixture user
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self.expiry = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        self.expiry.pop(key, None)
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}
        self.expiry = {}
        self._closed = False

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Apply overrides once for the session.
    Global override is safer here than per-test override to avoid app state flux.
    """
    # Patch the global redis client used by token revocation
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    async def override_get_redis():
        return redis_client_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield

    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def setup_database(redis_client_session):
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await redis_client_session.flushdb()

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


def auth_headers(user: User) -> dict:
    token = create_access_token(data=build_token_payload(user))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user():
    """
    Factory creating an account directly in the database.

    Returns (user, headers) where headers carry a valid bearer token.
    """
    async def _make_user(email: str, role: UserRole = UserRole.USER, is_active: bool = True,
                         full_name: str = None, location: str = None):
        async with TestingSessionLocal() as session:
            user = User(
                email=email,
                full_name=full_name,
                hashed_password=TEST_PASSWORD_HASH,
                role=role,
                location=location,
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user, auth_headers(user)

    return _make_user


@pytest.fixture
async def superadmin(make_user):
    return await make_user("root@tracking.example.com", UserRole.SUPERADMIN, full_name="Root")


@pytest.fixture
async def admin(make_user):
    return await make_user("ops@tracking.example.com", UserRole.ADMIN, full_name="Ops", location="Lagos Hub")


@pytest.fixture
async def customer(make_user):
    return await make_user("customer@tracking.example.com", UserRole.USER, full_name="Ada Customer")


def build_shipment_payload(**overrides) -> dict:
    payload = {
        "sender_name": "Ada Customer",
        "sender_contact": {"phone": "+2348000000001", "email": "ada@example.com"},
        "receiver_name": "Bola Receiver",
        "receiver_contact": {"phone": "+2348000000002", "address": "12 Marina, Lagos"},
        "items_description": "Books",
        "weight": 2.5,
        "package_quantity": 1,
        "origin_location": "Abuja",
        "destination": "Lagos",
        "shipment_date": date.today().isoformat(),
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def shipment_payload():
    """Builder for a valid shipment submission body."""
    return build_shipment_payload


@pytest.fixture
def create_shipment(client):
    """Factory submitting a shipment through the API; returns the response JSON."""
    async def _create_shipment(headers: dict, **overrides) -> dict:
        response = await client.post("/v1/shipments", json=build_shipment_payload(**overrides), headers=headers)
        assert response.status_code == 201, response.text
        return response.json()

    return _create_shipment

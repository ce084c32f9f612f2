"""
Centralized Test Configuration.
"""

import itertools
from datetime import timedelta

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import Pool, StaticPool

from fleetops.app.main import app
from fleetops.app.db.session import get_db, Base
import fleetops.app.core.redis_client as redis_client_module
from fleetops.app.core.jwt import create_access_token
from fleetops.app.core.security import get_password_hash
from fleetops.app.core.timeutils import utctoday
from fleetops.app.models.user import User
from fleetops.app.models.enums import UserRole
from fleetops.app.models.vehicle import Vehicle
from fleetops.app.models.vehicle_enums import VehicleStatus, VehicleType
from fleetops.app.models.driver import Driver
from fleetops.app.models.driver_enums import DriverStatus

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password123"
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# In-memory stand-in for the token revocation store
class MockRedis:
    def __init__(self):
        self.store = {}

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def exists(self, key):
        return 1 if key in self.store else 0


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


# Shared session for fixture data creation and service-level tests
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
async def client(session_factory, mock_redis):
    """Async client for testing, wired to the test database and Redis double."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = mock_redis
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture
async def users(db_session):
    """One active user per role."""
    created = {}
    for role in UserRole:
        user = User(
            email=f"{role.value.lower()}@fleetops.com",
            name=role.value.replace("_", " ").title(),
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            is_active=True,
        )
        db_session.add(user)
        created[role] = user
    await db_session.commit()
    for user in created.values():
        await db_session.refresh(user)
    return created


@pytest.fixture
def user_password():
    """Plain password of every seeded test user."""
    return TEST_PASSWORD


@pytest.fixture
def auth_headers(users):
    def _headers(role: UserRole) -> dict:
        user = users[role]
        token = create_access_token(user)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_vehicle(db_session):
    counter = itertools.count(1)

    async def _make(**overrides) -> Vehicle:
        n = next(counter)
        values = dict(
            license_plate=f"FL-{n:04d}",
            vehicle_type=VehicleType.TRUCK,
            make="Volvo",
            model="FH16",
            year=2021,
            max_load_kg=1000.0,
            odometer_km=100.0,
            acquisition_cost=50000.0,
            status=VehicleStatus.AVAILABLE,
        )
        values.update(overrides)
        vehicle = Vehicle(**values)
        db_session.add(vehicle)
        await db_session.commit()
        await db_session.refresh(vehicle)
        return vehicle

    return _make


@pytest.fixture
def make_driver(db_session):
    counter = itertools.count(1)

    async def _make(**overrides) -> Driver:
        n = next(counter)
        values = dict(
            employee_id=f"EMP-{n:03d}",
            first_name="Sam",
            last_name=f"Driver{n}",
            phone=f"+1555000{n:04d}",
            license_number=f"LIC-{n:05d}",
            license_category=VehicleType.TRUCK,
            license_expiry_date=utctoday() + timedelta(days=365),
            status=DriverStatus.ON_DUTY,
        )
        values.update(overrides)
        driver = Driver(**values)
        db_session.add(driver)
        await db_session.commit()
        await db_session.refresh(driver)
        return driver

    return _make

"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import Pool, StaticPool

from finance_backend.app.main import app
from finance_backend.app.core.security import get_password_hash
from finance_backend.app.db.session import Base, Database
from finance_backend.app.models.company import Company
from finance_backend.app.models.enums import UserRole
from finance_backend.app.models.user import User
import finance_backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin123"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture(scope="session")
def redis_client_session():
    return MockRedis()


@pytest.fixture(scope="session", autouse=True)
def apply_overrides(redis_client_session):
    """Swap the global Redis client for the whole session."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client_session

    yield

    redis_client_module.redis_client = original_client


@pytest.fixture(autouse=True)
async def database(redis_client_session):
    """
    Fresh in-memory database per test, attached to the app the way the
    lifespan does it.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    test_database = Database(engine=engine)
    await test_database.create_all()
    app.state.database = test_database
    await redis_client_session.flushdb()

    yield test_database

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_database.dispose()


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
async def admin_user(db_session):
    user = User(
        username=ADMIN_USERNAME,
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_active=True
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
async def admin_headers(client, admin_user):
    response = await client.post(
        "/v1/auth/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
async def company(db_session):
    company = Company(name="PT Maju Jaya")
    db_session.add(company)
    await db_session.commit()
    return company


@pytest.fixture
async def employee_headers(client, admin_headers):
    """Login of employee 'Budi' created through the API."""
    response = await client.post(
        "/v1/employees",
        json={
            "name": "Budi",
            "position": "Sales",
            "email": "budi@example.com",
            "username": "budi",
            "password": "budi123",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201

    response = await client.post("/v1/auth/login", json={"username": "budi", "password": "budi123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['accessToken']}"}


@pytest.fixture
def reimbursement_payload(company):
    """Build a reimbursement body whose items add up to the grand total."""
    def build(reimbursement_id="R1", requestor_name="Budi", description="Transport ke client", items=None):
        if items is None:
            items = [
                {"id": f"{reimbursement_id}-I1", "name": "Taxi", "qty": 1, "price": 100000, "total": 100000},
                {"id": f"{reimbursement_id}-I2", "name": "Parkir", "qty": 1, "price": 50000, "total": 50000},
            ]
        return {
            "id": reimbursement_id,
            "date": "2024-03-01",
            "requestorName": requestor_name,
            "category": "Transportasi",
            "companyId": company.id,
            "activityName": "Kunjungan client",
            "description": description,
            "grandTotal": sum(item["total"] for item in items),
            "items": items,
        }
    return build

"""
Pytest configuration and fixtures for backend tests.
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.main import app
from shared.infrastructure.cache import ReadCache, get_read_cache
from shared.infrastructure.db import get_db
from shared.security.auth import sign_jwt
from shared.security.password import hash_password
from shared.security.rate_limit import limiter
from rest_api.models import Area, Base, Category, Product, Table, User
from rest_api.services.domain import SettlementService


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
# Same session options as production
TestingSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
)

SUPERVISOR_PASSWORD = "gerente123"

# Cheap bcrypt rounds keep the suite fast
_FAST_ROUNDS = 4


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(db_session):
    """Sessionmaker bound to the test database, for code that opens its own sessions."""
    return TestingSessionLocal


@pytest.fixture
def redis_mock():
    """Sync Redis client double. Every call succeeds and reads miss."""
    client = MagicMock()
    client.get.return_value = None
    client.delete.return_value = 1
    return client


@pytest.fixture
def read_cache(redis_mock):
    return ReadCache(redis_mock)


@pytest.fixture
def service(db_session, read_cache):
    return SettlementService(db_session, cache=read_cache)


@pytest.fixture(scope="function")
def client(db_session, read_cache):
    """
    Test client with the database session and read cache overridden.

    Used without a `with` block so the lifespan (outbox processor, Redis)
    does not start.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_read_cache] = lambda: read_cache
    # Rate-limit counters are per process; start every test from zero
    limiter.reset()

    yield TestClient(app)

    app.dependency_overrides.clear()


# =============================================================================
# Seed data
# =============================================================================


def _user(db_session, id, name, role, password="senha123"):
    user = User(
        id=id,
        name=name,
        email=f"{name.lower()}@pos.test",
        password=hash_password(password, rounds=_FAST_ROUNDS),
        role=role,
        is_active=True,
    )
    db_session.add(user)
    return user


@pytest.fixture
def seed_users(db_session):
    """One user per role. The manager's password is SUPERVISOR_PASSWORD."""
    users = {
        "ADMIN": _user(db_session, 1, "Admin", "ADMIN"),
        "MANAGER": _user(db_session, 2, "Marta", "MANAGER", SUPERVISOR_PASSWORD),
        "CASHIER": _user(db_session, 3, "Caio", "CASHIER"),
        "WAITER": _user(db_session, 4, "Wagner", "WAITER"),
        "KITCHEN": _user(db_session, 5, "Katia", "KITCHEN"),
    }
    db_session.commit()
    return users


@pytest.fixture
def seed_tables(db_session):
    """Three FREE tables in one area."""
    area = Area(id=1, name="Salão")
    db_session.add(area)
    tables = [
        Table(id=i, number=str(i), capacity=4, area_id=area.id, status="FREE")
        for i in (1, 2, 3)
    ]
    db_session.add_all(tables)
    db_session.commit()
    return tables


@pytest.fixture
def seed_products(db_session):
    """
    burger: 25.00, tracked with 10 units (minimum 3)
    soda: 5.00, untracked
    steak: 50.00, tracked with 1 unit
    old: inactive
    """
    category = Category(id=1, name="Cardápio")
    db_session.add(category)
    products = {
        "burger": Product(id=1, category_id=1, code="B01", name="Burger", price_cents=2500,
                          stock_quantity=10, stock_minimum=3),
        "soda": Product(id=2, category_id=1, code="D01", name="Soda", price_cents=500),
        "steak": Product(id=3, category_id=1, code="S01", name="Steak", price_cents=5000,
                         stock_quantity=1, stock_minimum=2),
        "old": Product(id=4, category_id=1, code="X01", name="Old dish", price_cents=1000,
                       is_active=False),
    }
    db_session.add_all(products.values())
    db_session.commit()
    return products


@pytest.fixture
def seed(seed_users, seed_tables, seed_products):
    return {"users": seed_users, "tables": seed_tables, "products": seed_products}


@pytest.fixture
def actor(seed_users):
    waiter = seed_users["WAITER"]
    return {"user_id": waiter.id, "name": waiter.name, "role": waiter.role}


# =============================================================================
# Auth helpers
# =============================================================================


def token_for(user: User) -> str:
    return sign_jwt({"sub": str(user.id), "name": user.name, "email": user.email, "role": user.role})


@pytest.fixture
def auth_headers(seed_users):
    """Factory: auth_headers("CASHIER") -> Authorization header for that role."""
    def _headers(role: str = "ADMIN") -> dict[str, str]:
        return {"Authorization": f"Bearer {token_for(seed_users[role])}"}

    return _headers

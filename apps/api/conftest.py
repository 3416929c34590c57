# Pharma API test suite - shared fixtures
#
# Every test gets its own in-memory SQLite database and its own app
# instance, so metrics, audit rows and users never leak between tests.

from typing import Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from auth import get_password_hash
from config import Settings
from database import create_db_and_tables
from main import create_app
from models import User, Role
from rate_limit import limiter

TEST_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_rate_limits():
    # Every TestClient shares one remote address, so counters must not carry over
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        secret_key="test-secret-key",
        migrate_on_start=False,
    )


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def app(settings, engine):
    return create_app(settings=settings, engine=engine)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(engine) -> Callable[..., User]:
    """Insert a user directly, bypassing registration"""
    def _make_user(email: str, role: Role = Role.USER, name: Optional[str] = None,
                   password: str = TEST_PASSWORD) -> User:
        with Session(engine) as session:
            user = User(
                name=name or email.split("@")[0],
                email=email,
                password_hash=get_password_hash(password),
                role=role.value,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user
    return _make_user


@pytest.fixture
def login_as(app, make_user) -> Callable[..., TestClient]:
    """A fresh client, with its own cookie jar, logged in as a new user of the given role"""
    def _login_as(role: Role = Role.USER, email: Optional[str] = None) -> TestClient:
        email = email or f"{role.value}@example.com"
        make_user(email, role)
        logged_in = TestClient(app)
        response = logged_in.post("/api/auth/login", json={"email": email, "password": TEST_PASSWORD})
        assert response.status_code == 200, response.text
        return logged_in
    return _login_as


@pytest.fixture
def user_client(login_as) -> TestClient:
    return login_as(Role.USER)


@pytest.fixture
def admin_client(login_as) -> TestClient:
    return login_as(Role.ADMIN)


@pytest.fixture
def mr_client(login_as) -> TestClient:
    return login_as(Role.MR)

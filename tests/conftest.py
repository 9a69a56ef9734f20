"""Pytest fixtures — SQLite database, fresh schema for every test."""
import os

# must be set before eduhub settings are first read
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["MAINTENANCE_TOKEN"] = "test-maintenance-token"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from eduhub.db.base import Base  # noqa: E402
from eduhub.db.session import get_db  # noqa: E402
from eduhub.main import app  # noqa: E402

SQLITE_URL = "sqlite:///./test.db"
DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Session for arranging and inspecting rows directly."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_test_user(
    client: TestClient,
    email: str = "learner@example.com",
    password: str = DEFAULT_PASSWORD,
    first_name: str = "Test",
    last_name: str = "Learner",
    **extra,
) -> dict:
    """Helper — POST /api/auth/register and return response JSON."""
    resp = client.post("/api/auth/register", json={
        "email": email,
        "password": password,
        "firstName": first_name,
        "lastName": last_name,
        **extra,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_guest(
    client: TestClient,
    first_name: str = "Amina",
    last_name: str = "Mwansa",
    grade: str | None = "9",
) -> dict:
    """Helper — POST /api/auth/guest and return response JSON."""
    resp = client.post("/api/auth/guest", json={
        "firstName": first_name,
        "lastName": last_name,
        "grade": grade,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()

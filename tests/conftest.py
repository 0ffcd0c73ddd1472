import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TOKEN_SECRET_KEY"] = "test-secret"
for name in ("POSTS_HIDDEN_BY_DEFAULT", "ADMIN_BOOTSTRAP_NAME", "ADMIN_BOOTSTRAP_EMAIL", "ADMIN_BOOTSTRAP_PASSWORD"):
    os.environ.pop(name, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import users
from database import Base, get_db
from main import app
from models import UserType


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register + log in a blogger over HTTP; returns auth headers."""

    def _signup(name, email=None, password="pw1"):
        email = email or f"{name}@x.com"
        resp = client.post("/api/v1/users/register", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 204, resp.text
        resp = client.post("/api/v1/users/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['token']}"}

    return _signup


@pytest.fixture
def admin_headers(client, db):
    users.create_user(db, UserType.ADMIN, "root", "root@x.com", "rootpw")
    resp = client.post("/api/v1/users/login", json={"email": "root@x.com", "password": "rootpw"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}

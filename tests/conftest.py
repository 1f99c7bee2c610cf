import os
import sys

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.config import settings

TEST_SECRET = "test-secret-key-with-enough-length-for-hs256"

settings.SECRET_KEY = TEST_SECRET
settings.BCRYPT_ROUNDS = 4

from connect_db import Base, get_db
from main import app
import models.models  # noqa: F401


@pytest.fixture(autouse=True)
def signing_secret():
    """Every test starts with a configured secret; tests may remove it."""
    settings.SECRET_KEY = TEST_SECRET
    yield
    settings.SECRET_KEY = TEST_SECRET


@pytest.fixture
def engine(tmp_path):
    # File backed so concurrent requests each get their own connection
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
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


def signup(client, name="Asha", email="asha@example.com", password="secret123"):
    response = client.post("/auth/signup", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def alice(client):
    data = signup(client, name="Alice", email="alice@example.com")
    return {"user": data["user"], "headers": {"Authorization": f"Bearer {data['token']}"}}


@pytest.fixture
def bob(client):
    data = signup(client, name="Bob", email="bob@example.com")
    return {"user": data["user"], "headers": {"Authorization": f"Bearer {data['token']}"}}

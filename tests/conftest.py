import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-signing-key"

import pytest
from fastapi.testclient import TestClient

import models
from database import SessionLocal, engine
from main import app


@pytest.fixture(autouse=True)
def fresh_tables():
    models.Base.metadata.drop_all(bind=engine)
    models.Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(client):
    """Register a user and return bearer headers for them."""
    def _make(email, password="secret123", name="User"):
        r = client.post("/api/auth/register", json={
            "email": email, "password": password, "name": name
        })
        assert r.status_code == 201, r.text
        return {"Authorization": f"Bearer {r.json()['access_token']}"}
    return _make


@pytest.fixture
def alice(make_user):
    return make_user("alice@example.com", name="Alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob@example.com", name="Bob")


@pytest.fixture
def account_id(client, alice):
    r = client.post("/api/accounts", json={
        "name": "Checking", "type": "bank", "balance": 100, "currency": "USD"
    }, headers=alice)
    assert r.status_code == 201, r.text
    return r.json()["id"]

"""
Shared fixtures.

Every test gets a fresh in-memory MongoDB (mongomock) wired into an
application built by ``create_app``; no real server is needed.
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

from database import Database
from main import create_app


@pytest.fixture
def database():
    db = Database(name="finance_test", client=mongomock.MongoClient())
    db.connect()
    db.ensure_indexes()
    return db


@pytest.fixture
def app(database):
    return create_app(database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def signup(client, username="alice", email=None, password="secret123"):
    response = client.post(
        "/api/auth/signup",
        json={"email": email or f"{username}@poczta.pl", "username": username, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice(client):
    data = signup(client, "alice")
    return bearer(data["token"])


@pytest.fixture
def bob(client):
    data = signup(client, "bob")
    return bearer(data["token"])

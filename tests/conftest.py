"""Test fixtures: an in-memory MongoDB and a TestClient per test."""
import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from database import Database
from main import create_app


@pytest.fixture()
def settings() -> Settings:
    # Low bcrypt cost keeps the suite fast
    return Settings(secret_key="test-secret", bcrypt_rounds=4, environment="test")


@pytest.fixture()
def database() -> Database:
    return Database(mongomock.MongoClient(), "orbit_test")


@pytest.fixture()
def app(settings, database):
    return create_app(settings, database=database)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def signup(client):
    """Sign up a user; the client keeps that user's session cookie afterwards."""

    def _signup(name: str = "alice", password: str = "secret1") -> dict:
        response = client.post("/signup", json={"name": name, "password": password})
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _signup

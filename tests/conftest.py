# Pytest configuration for backend API tests.
# Forces a local SQLite DB, disables Redis, lowers bcrypt cost and wires a JWT secret for deterministic runs.
import os
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

# Test-time environment: local SQLite DB, Redis disabled, predictable JWT secret, fast hashing
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("UNINEST_JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import sys
# Ensure the repo root is on sys.path so 'uninest' resolves when running pytest from anywhere
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from uninest.main import app  # noqa: E402
from uninest.redis_client import reset_redis  # noqa: E402


@pytest.fixture()
def client() -> Iterator[TestClient]:
    """
    FastAPI TestClient bound to the application for HTTP-level tests.

    Entering the client runs the startup hook, which attaches the database;
    the schema is then dropped and recreated so every test starts clean.
    """
    with TestClient(app) as c:
        database = app.state.database
        database.drop_all()
        database.create_all()
        yield c
    reset_redis()


@pytest.fixture()
def db_session(client: TestClient):
    """Direct ORM session against the test database, for seeding and assertions."""
    session = app.state.database.session()
    try:
        yield session
    finally:
        session.close()

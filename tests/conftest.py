# tests/conftest.py

import os

# Settings are read at import time, so the environment must be ready first.
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("ENV", "local")
os.environ.setdefault("DATABASE_URL_LOCAL", "sqlite://")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from crm_segments.db.base_class import Base
from crm_segments.db.session import get_db
from crm_segments.main import app
import crm_segments.models  # noqa: F401

# --- Test Database Setup ---
# One in-memory SQLite database shared by every connection of the test.
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client(db_session):
    """
    Provides a TestClient wired to the per-test SQLite database.
    No token is sent, so the caller identity is 'anonymous'.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()

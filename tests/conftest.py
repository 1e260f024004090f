"""
Pytest fixtures for testing
"""
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from seiton.config import Settings, get_settings
from seiton.infrastructure.db.session import Base, Backend
import seiton.infrastructure.db.models  # noqa: F401


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared by every thread, with JSONB→JSON mapping."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # SQLite doesn't support JSONB - remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_account_id():
    """Sample account ID for tests"""
    return 1


@pytest.fixture
def local_tz():
    return get_settings().tz


@pytest.fixture
def today(local_tz):
    """Today in the application timezone (the date projections use)"""
    return datetime.now(local_tz).date()


@pytest.fixture
def client(db_engine):
    """Test client for an app wired to the in-memory database"""
    from seiton.main import create_app

    settings = Settings(SECRET_KEY="test-secret", DATABASE_URL="", DEBUG=False)
    app = create_app(settings=settings, backend=Backend(settings, engine=db_engine))
    return TestClient(app)


@pytest.fixture
def auth_client(client):
    """Client signed in as a freshly registered user"""
    response = client.post(
        "/signup",
        data={"email": "owner@example.com", "password": "secret123"},
        follow_redirects=False,
    )
    assert response.status_code == 302
    return client

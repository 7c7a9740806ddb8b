"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campusconnect.api.deps import get_db
from campusconnect.api.main import app
from campusconnect.core.security import Principal, create_access_token
from campusconnect.core.templates import load_templates
from campusconnect.db.base import Base
from campusconnect.db.session import enable_sqlite_savepoints
import campusconnect.db.models  # noqa: F401


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Database session bound to the per-test database."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def client(db_session):
    """TestClient whose requests share the test's database session."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def templates():
    """The built-in Library / Finance / HoD chain."""
    return load_templates()


@pytest.fixture
def auth_headers():
    """Build a bearer header for a principal."""
    def _headers(principal: Principal) -> dict:
        return {"Authorization": f"Bearer {create_access_token(principal)}"}
    return _headers

"""
Pytest configuration and shared fixtures for hr_compliance.
"""
import os

# must be set before hr_compliance.main / db.session are imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["ENABLE_SCHEDULER"] = "0"
os.environ["ENABLE_CREATE_ALL"] = "0"

import pytest
from hypothesis import settings, Verbosity
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from hr_compliance.models import Base

# Configure Hypothesis settings for all property-based tests
settings.register_profile(
    "default",
    max_examples=100,
    deadline=5000,
    verbosity=Verbosity.normal,
)
settings.register_profile(
    "ci",
    max_examples=300,
    deadline=10000,
    verbosity=Verbosity.quiet,
)
settings.register_profile(
    "debug",
    max_examples=10,
    deadline=None,
    verbosity=Verbosity.verbose,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "default"))


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database shared by every session of one test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient with get_db bound to the in-memory database (scheduler disabled)."""
    from fastapi.testclient import TestClient

    from hr_compliance.db.session import get_db
    from hr_compliance.main import app

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

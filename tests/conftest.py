"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os
import tempfile
from datetime import UTC, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

# Force a throwaway SQLite DB when pytest runs; don't inherit from .env
_test_db_path = os.path.join(tempfile.gettempdir(), "strm_triage_test.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ.setdefault("DEFAULT_OPERATOR", "admin")


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    from strm_triage.main import app

    return TestClient(app)


@pytest.fixture
def db() -> Session:
    """Session on a fresh in-memory database with the full schema. Discarded after each test."""
    from strm_triage.db.session import Base
    import strm_triage.models  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = Session(bind=engine)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def client_with_db(db: Session) -> TestClient:
    """TestClient with get_db overridden to use the test db session."""
    from strm_triage.db.session import get_db
    from strm_triage.main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    c = TestClient(app)
    yield c
    app.dependency_overrides.pop(get_db, None)


def _make_create(**overrides):
    """InvalidStrmFileCreate with sensible detector defaults."""
    from strm_triage.schemas.invalid_strm import InvalidStrmFileCreate

    data = dict(
        source_history_id=1,
        detection_time=datetime(2024, 1, 5, 12, 0, tzinfo=UTC),
        detection_type="auto",
        reason="file_not_found",
        error_message="source missing",
        file_name="Movie2024.strm",
        source_path="/alist/movies/Movie2024.mkv",
        target_file_path="/media/movies/Movie2024.strm",
        file_size=128,
        strm_url="http://alist.local/d/movies/Movie2024.mkv",
    )
    data.update(overrides)
    return InvalidStrmFileCreate(**data)


@pytest.fixture
def record_factory(db: Session):
    """Create and persist a pending record; history IDs auto-increment unless given."""
    from strm_triage.services.invalid_strm_records import create_record

    counter = {"next": 1000}

    def _make(**overrides):
        if "source_history_id" not in overrides:
            counter["next"] += 1
            overrides["source_history_id"] = counter["next"]
        return create_record(db, _make_create(**overrides))

    return _make


@pytest.fixture
def make_create():
    """Factory for unsaved InvalidStrmFileCreate payloads."""
    return _make_create

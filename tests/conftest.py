# tests/conftest.py
"""
Pytest configuration.

Tests run against a file-backed SQLite database in a temporary directory so
that sessions opened from different threads see the same data. The URL is
set BEFORE any lessonbook import, because the engine is built at import time.
"""

import os
import shutil
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="lessonbook-tests-")
TEST_DATABASE_URL = f"sqlite:///{os.path.join(_TEST_DB_DIR, 'test.db')}"

# CRITICAL: Set testing mode BEFORE any app imports!
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["IS_TESTING"] = "true"
os.environ["CI"] = "true"  # skip .env loading

from decimal import Decimal
from typing import Any, Callable, Iterator, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy.orm import Session

from lessonbook.api.dependencies.database import get_db
from lessonbook.database import Base, SessionLocal, engine
from lessonbook.main import app
from lessonbook.models import Lesson, Order, OrderItem


@pytest.fixture(scope="session", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()
    shutil.rmtree(_TEST_DB_DIR, ignore_errors=True)


@pytest.fixture(scope="function")
def session_factory() -> Callable[[], Session]:
    """Factory for independent sessions (one per simulated request/thread)."""
    return SessionLocal


@pytest.fixture(scope="function")
def db() -> Iterator[Session]:
    """
    Create a new database session for each test.

    All rows are deleted afterwards, in dependency order.
    """
    session = SessionLocal()

    yield session

    session.rollback()
    session.close()

    cleanup_db = SessionLocal()
    try:
        cleanup_db.query(OrderItem).delete()
        cleanup_db.query(Order).delete()
        cleanup_db.query(Lesson).delete()
        cleanup_db.commit()
    finally:
        cleanup_db.close()


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    """Create a test client with the test database."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    # Don't use context manager - the lifespan would touch the configured database
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def make_lesson(db: Session) -> Callable[..., Lesson]:
    """
    Insert a lesson row directly.

    Capacity columns are written exactly as given so tests can build rows
    that only carry the legacy ``space`` column.
    """

    def _make(
        topic: str = "Math",
        location: str = "Hendon",
        price: Any = 10,
        spaces: Optional[int] = 5,
        space: Optional[int] = None,
        description: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Lesson:
        lesson = Lesson(
            topic=topic,
            location=location,
            price=Decimal(str(price)),
            spaces=spaces,
            space=space,
            description=description,
            image=image,
        )
        db.add(lesson)
        db.commit()
        return lesson

    return _make

"""Pytest fixtures and configuration for CarShopWatch tests."""

import pytest
from datetime import datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from fastapi.testclient import TestClient

from carshopwatch.database.database import Base
from carshopwatch.database.audit_log_repository import AuditLogRepository
from carshopwatch.database.models import UserDB
from carshopwatch.models.audit_record import AuditRecord
from carshopwatch.monitor.detection import ActivityDetector


USER_ID = 1
ADMIN_ID = 2
SUSPECT_ID = 42


@pytest.fixture(scope="function")
def engine(tmp_path):
    """File-backed SQLite engine, fresh per test.

    A file (not :memory:) gives each session its own connection, the way the
    monitor thread and request handlers share the database in production.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
        echo=False,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine, users):
    """Session factory bound to the test database (users already seeded)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def users(engine):
    """Seed a regular user, an admin and the user that tests flag as suspicious."""
    SeedSession = sessionmaker(bind=engine)
    now = datetime.utcnow()
    with SeedSession() as session:
        session.add_all([
            UserDB(id=USER_ID, username="driver", email="driver@example.com", role="user",
                   active=True, created_at=now, updated_at=now),
            UserDB(id=ADMIN_ID, username="admin", email="admin@example.com", role="admin",
                   active=True, created_at=now, updated_at=now),
            UserDB(id=SUSPECT_ID, username="flipper", email="flipper@example.com", role="user",
                   active=True, created_at=now, updated_at=now),
        ])
        session.commit()
    return {"user": USER_ID, "admin": ADMIN_ID, "suspect": SUSPECT_ID}


@pytest.fixture
def db_session(session_factory) -> Session:
    """A database session for tests that drive repositories directly."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now():
    """Fixed reference time for deterministic window arithmetic."""
    return datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def detector(session_factory):
    """Detector with the default thresholds (CREATE 10, UPDATE 15, DELETE 5, LOGIN 8 per 5 minutes)."""
    return ActivityDetector(session_factory)


@pytest.fixture
def add_logs(session_factory):
    """Append `count` audit records for a user, all stamped `at`."""
    def _add(user_id: int, action: str, count: int, at: datetime) -> None:
        with session_factory() as session:
            AuditLogRepository(session).append_batch([
                AuditRecord(user_id=user_id, action=action, entity_type="CAR", timestamp=at)
                for _ in range(count)
            ])
    return _add


@pytest.fixture
def user_headers():
    from carshopwatch.auth.jwt import create_access_token
    return {"Authorization": f"Bearer {create_access_token(USER_ID, 'user')}"}


@pytest.fixture
def admin_headers():
    from carshopwatch.auth.jwt import create_access_token
    return {"Authorization": f"Bearer {create_access_token(ADMIN_ID, 'admin')}"}


@pytest.fixture
def test_client(session_factory, detector):
    """Create a FastAPI test client bound to the test database and detector.

    The lifespan (schema creation and background scheduler) is not started.
    """
    from carshopwatch.api.app import app, get_detector
    from carshopwatch.database.database import get_db

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_detector] = lambda: detector

    client = TestClient(app)
    try:
        yield client
    finally:
        app.dependency_overrides.clear()

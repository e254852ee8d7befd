import os

# The app builds its engine at import time; point it at SQLite before importing.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["BOOKING_RETRY_BACKOFF_SECONDS"] = "0"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.course import Course, CourseInstructor
from app.models.room import Room
from app.models.user import User, UserRole


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def catalog(db_session):
    """Users, rooms and courses shared by the booking tests. Returns ids only."""
    admin = User(name="Ada Admin", email="admin@example.com", role=UserRole.admin)
    coordinator = User(name="Cora Coordinator", email="coordinator@example.com", role=UserRole.coordinator)
    smith = User(name="Dr. Smith", email="smith@example.com", role=UserRole.instructor)
    jones = User(name="Dr. Jones", email="jones@example.com", role=UserRole.instructor)
    lee = User(name="Dr. Lee", email="lee@example.com", role=UserRole.instructor)

    hall = Room(code="R101", name="Lecture Hall 101", capacity=50)
    lab = Room(code="LAB2", name="Small Lab 2", capacity=20)

    algorithms = Course(code="CS201", name="Algorithms", required_capacity=40)
    seminar = Course(code="CS490", name="Research Seminar", required_capacity=10)

    db_session.add_all([admin, coordinator, smith, jones, lee, hall, lab, algorithms, seminar])
    db_session.flush()
    db_session.add_all(
        [
            CourseInstructor(course_id=algorithms.id, instructor_id=smith.id),
            CourseInstructor(course_id=seminar.id, instructor_id=smith.id),
            CourseInstructor(course_id=algorithms.id, instructor_id=jones.id),
            CourseInstructor(course_id=seminar.id, instructor_id=jones.id),
        ]
    )
    db_session.commit()

    return SimpleNamespace(
        admin_id=admin.id,
        coordinator_id=coordinator.id,
        smith_id=smith.id,
        jones_id=jones.id,
        lee_id=lee.id,
        hall_id=hall.id,
        lab_id=lab.id,
        algorithms_id=algorithms.id,
        seminar_id=seminar.id,
    )


@pytest.fixture()
def make_schedule(catalog):
    def _make(**overrides):
        payload = {
            "room_id": catalog.hall_id,
            "course_id": catalog.algorithms_id,
            "instructor_id": catalog.smith_id,
            "date": "2026-11-02",
            "start_time": "09:00",
            "end_time": "10:30",
        }
        payload.update(overrides)
        return payload

    return _make


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def coordinator_headers(catalog):
    return auth_headers(catalog.coordinator_id)


@pytest.fixture()
def instructor_headers(catalog):
    return auth_headers(catalog.smith_id)


@pytest.fixture()
def admin_headers(catalog):
    return auth_headers(catalog.admin_id)

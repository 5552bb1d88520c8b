"""
Shared fixtures. JWT settings and a throwaway SQLite file are put in the environment before lms_api is
imported, so Settings and the engine pick them up. Every test starts from empty tables plus the two roles.
"""
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="lms_api_tests_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["JWT_ISSUER"] = "https://lms.tests.local"
os.environ["JWT_AUDIENCE"] = "https://lms.tests.local/api"
os.environ["JWT_EXPIRES_MINUTES"] = "15"
os.environ["ENV"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lms_api.database import Base, SessionLocal, engine  # noqa: E402
from lms_api.main import app  # noqa: E402
from lms_api.models import ActivityType, Course, Module  # noqa: E402
from lms_api.services.credential_store import CredentialStore  # noqa: E402

PASSWORD = "Passw0rd!"


@pytest.fixture(autouse=True)
def fresh_db():
    """Recreate all tables and seed the roles before each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        CredentialStore(db).ensure_roles()
    finally:
        db.close()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_course(db):
    """Insert a course; return its id."""

    def _make(name: str = "Python fundamentals", description: str = "") -> int:
        course = Course(name=name, description=description, start_date=datetime(2025, 1, 6, tzinfo=timezone.utc))
        db.add(course)
        db.commit()
        db.refresh(course)
        return course.id

    return _make


@pytest.fixture
def make_module(db):
    """Insert a module in course_id; return its id."""

    def _make(course_id: int, name: str = "Week 1") -> int:
        module = Module(
            name=name,
            description="",
            course_id=course_id,
            start_date=datetime(2025, 1, 6, tzinfo=timezone.utc),
            end_date=datetime(2025, 1, 10, tzinfo=timezone.utc),
        )
        db.add(module)
        db.commit()
        db.refresh(module)
        return module.id

    return _make


@pytest.fixture
def activity_type_id(db):
    activity_type = ActivityType(name="Lecture")
    db.add(activity_type)
    db.commit()
    db.refresh(activity_type)
    return activity_type.id


@pytest.fixture
def register(client):
    """POST /api/authentication/register; return the response."""

    def _register(username: str, role: str = "Student", course_id: int | None = None, password: str = PASSWORD):
        return client.post(
            "/api/authentication/register",
            json={
                "username": username,
                "email": f"{username}@school.org",
                "password": password,
                "firstName": username.capitalize(),
                "lastName": "Tester",
                "courseId": course_id,
                "role": role,
            },
        )

    return _register


@pytest.fixture
def login(client):
    """POST /api/authentication/login; return the token body (accessToken, refreshToken)."""

    def _login(username: str, password: str = PASSWORD) -> dict:
        r = client.post("/api/authentication/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        return r.json()

    return _login


@pytest.fixture
def auth_headers(register, login):
    """Register (if needed) and log in; return the Authorization header for that user."""

    def _headers(username: str, role: str = "Student", course_id: int | None = None) -> dict:
        r = register(username, role=role, course_id=course_id)
        assert r.status_code in (201, 400), r.text
        tokens = login(username)
        return {"Authorization": f"Bearer {tokens['accessToken']}"}

    return _headers

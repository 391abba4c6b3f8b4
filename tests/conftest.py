# tests/conftest.py
"""
Shared fixtures: an isolated in-memory SQLite database per test, a FastAPI
TestClient wired to it through a ``get_db`` override, and ready-made users
with bearer tokens for each role.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENABLE_SCHEDULER", "false")

from datetime import date, timedelta
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from huda.core.records import AttendanceEntry, StudentRecord, StudentStatus, UserRole
from huda.crud.students import create_user
from huda.database import get_db
from huda.models.all_models import Base, Student, Subject
from huda.utils.auth import create_access_token
from main import app


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def bearer(user):
    token = create_access_token({"sub": str(user.id), "username": user.username, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def principal(db_session):
    user = create_user(db_session, username="admin", password="admin123", name="Schulleitung", role=UserRole.PRINCIPAL)
    db_session.commit()
    return user


@pytest.fixture
def teacher(db_session):
    user = create_user(
        db_session,
        username="lehrer",
        password="lehrer123",
        name="Lehrer A",
        role=UserRole.TEACHER,
        assigned_classes=["Klasse A"],
    )
    db_session.commit()
    return user


@pytest.fixture
def principal_headers(principal):
    return bearer(principal)


@pytest.fixture
def teacher_headers(teacher):
    return bearer(teacher)


@pytest.fixture
def make_student(db_session):
    def _make(first_name="Yusuf", last_name="Demir", class_name="Klasse A", status=StudentStatus.ACTIVE):
        student = Student(first_name=first_name, last_name=last_name, class_name=class_name, status=status)
        db_session.add(student)
        db_session.commit()
        db_session.refresh(student)
        return student
    return _make


@pytest.fixture
def catalog(db_session):
    names = ["Qur'an", "Tajwid"]
    for position, name in enumerate(names, start=1):
        db_session.add(Subject(name=name, position=position))
    db_session.commit()
    return names


# Pure-core helpers

def student_record(**overrides):
    data = {
        "id": uuid4(),
        "first_name": "Amina",
        "last_name": "Yilmaz",
        "class_name": "Klasse A",
        "status": StudentStatus.ACTIVE,
    }
    data.update(overrides)
    return StudentRecord(**data)


def entries(student_id, flags, start=date(2024, 3, 1)):
    """Attendance entries on consecutive days from ``start``, oldest first."""
    return [
        AttendanceEntry(student_id=student_id, date=start + timedelta(days=i), is_present=flag)
        for i, flag in enumerate(flags)
    ]

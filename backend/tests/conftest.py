from pathlib import Path
import os
import tempfile
import pytest

# Point the app at a throwaway database before `registrar` is imported.
TEST_DB = Path(tempfile.gettempdir()) / f"registrar-test-{os.getpid()}.db"
os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB}")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session  # noqa: E402

from registrar import models  # noqa: E402
from registrar.database import create_db_and_tables, get_session, make_engine  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def reset_db():
    """Remove the throwaway SQLite file once the test session ends."""
    yield
    if TEST_DB.exists():
        try:
            TEST_DB.unlink()
        except OSError:
            pass


@pytest.fixture
def engine():
    """A fresh in-memory database per test."""
    eng = make_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def client(engine):
    """TestClient whose requests use the per-test in-memory database."""
    from registrar.main import app

    def _session_override():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_student(session, school_number: str, name: str = "Ada", surname: str = "Lovelace") -> models.Student:
    student = models.Student(name=name, surname=surname, school_number=school_number)
    session.add(student)
    session.commit()
    session.refresh(student)
    return student


def add_course(session, name: str) -> models.Course:
    course = models.Course(name=name)
    session.add(course)
    session.commit()
    session.refresh(course)
    return course

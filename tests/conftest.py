"""
Pytest configuration for the proctoring engine tests
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quizshield.core.database import Base, get_db
from quizshield.core.models import User, Quiz, QuizAttempt


def seed(db):
    db.add_all([
        User(id="teacher-1", name="Ms. Rivera", role="teacher"),
        User(id="teacher-2", name="Mr. Okafor", role="teacher"),
        User(id="student-1", name="Alice Chen", role="student"),
        User(id="student-2", name="Bilal Aziz", role="student"),
    ])
    db.add_all([
        Quiz(id="quiz-1", title="Cell Biology", teacher_id="teacher-1"),
        Quiz(id="quiz-2", title="Organic Chemistry", teacher_id="teacher-1"),
        Quiz(id="quiz-3", title="World History", teacher_id="teacher-2"),
    ])
    db.add_all([
        QuizAttempt(id="attempt-1", quiz_id="quiz-1", user_id="student-1"),
        QuizAttempt(id="attempt-2", quiz_id="quiz-1", user_id="student-2"),
        QuizAttempt(id="attempt-3", quiz_id="quiz-2", user_id="student-1"),
        QuizAttempt(id="attempt-4", quiz_id="quiz-3", user_id="student-2"),
    ])
    db.commit()


@pytest.fixture(scope="function")
def engine():
    """In-memory SQLite shared across threads"""
    from quizshield.core import models  # noqa: F401

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = factory()
    seed(db)
    db.close()
    return factory


@pytest.fixture(scope="function")
def db(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI test client bound to the in-memory database"""
    from quizshield.main import app

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers(user_id, role):
    return {"X-User-Id": user_id, "X-User-Role": role}


@pytest.fixture
def student_headers():
    return headers("student-1", "student")


@pytest.fixture
def teacher_headers():
    return headers("teacher-1", "teacher")

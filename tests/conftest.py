# =============================================================================
# CONFTEST - shared pytest fixtures
# =============================================================================
# In-memory SQLite, no Redis, no Gemini network calls
# =============================================================================

import copy
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GEMINI_API_KEY", "test-key-123")
os.environ.setdefault("REDIS_URL", "redis://localhost:1/0")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, SessionLocal, get_db
import app.models  # noqa: F401
from app.main import app as fastapi_app
from app.utils.rate_limiter import generation_limiter, live_update_limiter


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database shared across threads."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    SessionLocal.configure(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    """TestClient on a single portal so websocket feeds see HTTP writes."""

    def override_get_db():
        session = SessionLocal()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    generation_limiter.reset()
    live_update_limiter.reset()
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


# =============================================================================
# DOMAIN DATA
# =============================================================================

SHARED_PASSAGE_QUIZ = {
    "title": "The Roman Empire - Reading Check",
    "passage": [
        "(1) The Roman Empire was one of the largest empires in world history.",
        "",
        "(2) Its roads facilitated trade and military movement.",
    ],
    "questions": [
        {
            "id": 7,
            "passage": [],
            "text": "What did the roads facilitate?",
            "options": [
                {"label": "A", "text": "The rise of a new emperor."},
                {"label": "B", "text": "Trade and military movement."},
                {"label": "C", "text": "The defeat of Egypt."},
                {"label": "D", "text": "The discovery of Britannia."},
            ],
            "correctAnswer": "B",
            "explanation": "Sentence 2 says so.",
        },
        {
            "id": 9,
            "passage": [],
            "text": "How large was the empire?",
            "options": [
                {"label": "a", "text": "Small."},
                {"label": "b", "text": "One of the largest."},
            ],
            "correctAnswer": "b",
            "explanation": "Sentence 1 says so.",
        },
    ],
}

PER_QUESTION_QUIZ = {
    "title": "Words in Context",
    "passage": [],
    "questions": [
        {
            "id": 1,
            "passage": ["The committee's decision was [5] provisional."],
            "text": "As used in line 5, 'provisional' most nearly means",
            "options": [
                {"label": "A", "text": "temporary"},
                {"label": "B", "text": "final"},
            ],
            "correctAnswer": "A",
            "explanation": "Line 5 describes a decision open to revision.",
        },
        {
            "id": 2,
            "passage": ["Her tone was wry."],
            "text": "'Wry' most nearly means",
            "options": [
                {"label": "A", "text": "angry"},
                {"label": "B", "text": "dryly humorous"},
            ],
            "correctAnswer": "B",
            "explanation": "Wry humor is understated.",
        },
    ],
}


@pytest.fixture
def shared_quiz_document():
    return copy.deepcopy(SHARED_PASSAGE_QUIZ)


@pytest.fixture
def per_question_document():
    return copy.deepcopy(PER_QUESTION_QUIZ)


@pytest.fixture
def teacher_headers():
    return {"X-Teacher-Id": "teacher-1"}


@pytest.fixture
def classroom(db):
    from app.services.directory_service import directory_service

    return directory_service.create_class(db, "teacher-1", "World History 101")


@pytest.fixture
def quiz(db, classroom, shared_quiz_document):
    from app.services.directory_service import directory_service

    return directory_service.create_test(db, classroom.id, shared_quiz_document)

"""
Pytest configuration and shared fixtures for testing.
"""
import os

# Settings are read at import time; these must be set before importing app.
os.environ.setdefault(
    "JWT_SECRET_KEY", "test-jwt-secret-key-for-unit-tests"  # pragma: allowlist secret
)
os.environ.setdefault("DATABASE_URL", "sqlite:///./assessments_test_unused.db")
os.environ.setdefault("DEBUG", "False")
os.environ.setdefault("ENV", "test")

from contextlib import asynccontextmanager  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.core.config import settings  # noqa: E402
from app.core.test_lifecycle import submit_test  # noqa: E402
from app.main import app  # noqa: E402
from app.models import (  # noqa: E402
    Base,
    PortugueseReadingText,
    QuestionAnswer,
    QuestionGroup,
    QuestionTemplate,
    TestType,
    get_db,
)
from app.services.ai_notification import VideoNotifier, get_video_notifier  # noqa: E402
from app.storage import InMemoryBlobStorage, get_blob_storage  # noqa: E402


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests; skips Sentry initialisation."""
    yield


app.router.lifespan_context = _test_lifespan

# SQLite file inside tests/ regardless of the working directory
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

CANDIDATE_ID = "candidate-123"
OTHER_CANDIDATE_ID = "candidate-456"


class RecordingNotifier(VideoNotifier):
    """Notifier that remembers which videos it was told about."""

    def __init__(self):
        self.notified: List[str] = []

    async def notify_video_ready(self, video_response_id: str) -> bool:
        self.notified.append(video_response_id)
        return True


def make_token(candidate_id: str, **claims) -> str:
    payload = {"candidate_id": candidate_id, "type": "access", **claims}
    return jwt.encode(
        payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def make_template(
    db,
    test_type: TestType,
    question_text: str,
    correct_answer: Optional[List[str]] = None,
    **fields,
) -> QuestionTemplate:
    """Add a question template (and its answer key, if given) to the bank."""
    fields.setdefault("options", {"A": "Option A", "B": "Option B", "C": "Option C"})
    template = QuestionTemplate(
        test_type=test_type, question_text=question_text, **fields
    )
    if correct_answer is not None:
        template.answer = QuestionAnswer(correct_answer=correct_answer)
    db.add(template)
    return template


def submit_from_another_session(test_id: str, candidate_id: str = CANDIDATE_ID):
    """Submit a test through an independent session, as a concurrent request would."""
    other = TestingSessionLocal()
    try:
        return submit_test(other, test_id, candidate_id)
    finally:
        other.close()


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def blob_storage():
    return InMemoryBlobStorage()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(db_session, blob_storage, notifier):
    """
    Create a test client with database, storage and notifier overrides.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_storage] = lambda: blob_storage
    app.dependency_overrides[get_video_notifier] = lambda: notifier
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def candidate_id() -> str:
    return CANDIDATE_ID


@pytest.fixture
def other_candidate_id() -> str:
    return OTHER_CANDIDATE_ID


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    """
    Authentication headers for the main test candidate.
    """
    return {"Authorization": f"Bearer {make_token(CANDIDATE_ID)}"}


@pytest.fixture
def other_auth_headers() -> Dict[str, str]:
    """
    Authentication headers for a second candidate.
    """
    return {"Authorization": f"Bearer {make_token(OTHER_CANDIDATE_ID)}"}


@pytest.fixture
def psychology_templates(db_session):
    """
    Five Psychology templates with explicit display order.

    Inserted out of order so tests can check the canonical ordering.
    """
    templates = [
        make_template(
            db_session,
            TestType.PSYCHOLOGY,
            f"Psychology statement {order}",
            correct_answer=["A"],
            display_order=order,
        )
        for order in (3, 1, 5, 2, 4)
    ]
    db_session.commit()
    return sorted(templates, key=lambda t: t.display_order)


@pytest.fixture
def visual_retention_templates(db_session):
    """
    Fifteen medium Visual Retention templates, correct answer "B" for each.
    """
    templates = [
        make_template(
            db_session,
            TestType.VISUAL_RETENTION,
            f"Which figure did you see? #{i}",
            correct_answer=["B"],
            difficulty_level="medium",
        )
        for i in range(1, 16)
    ]
    db_session.commit()
    return templates


@pytest.fixture
def math_question_group(db_session):
    """
    Active Math group holding a single curated question.

    Math tests have two slots, so one generic prompt gets added.
    """
    group = QuestionGroup(test_type=TestType.MATH, group_name="Math set A")
    db_session.add(group)
    db_session.flush()
    template = make_template(
        db_session,
        TestType.MATH,
        "Explain how you would compute 15% of 240.",
        options=None,
        group_id=group.id,
        group_order=1,
    )
    template.answer = QuestionAnswer(
        correct_answer=None, expected_answer_guide={"answer": "36"}
    )
    db_session.commit()
    return group


@pytest.fixture
def portuguese_reading_text(db_session):
    text = PortugueseReadingText(
        title="O Rio",
        content="O rio corria devagar entre as pedras.",
        difficulty_level="medium",
        version=2,
    )
    db_session.add(text)
    db_session.commit()
    return text

"""
Models package for the assessment backend.
"""
from .base import Base, engine, SessionLocal, get_db
from .models import (
    ACTIVE_TEST_STATUSES,
    PortugueseReadingText,
    QuestionAnswer,
    QuestionGroup,
    QuestionResponse,
    QuestionSnapshot,
    QuestionTemplate,
    TestInstance,
    TestStatus,
    TestType,
    VideoResponse,
    VideoResponseType,
)

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "ACTIVE_TEST_STATUSES",
    "PortugueseReadingText",
    "QuestionAnswer",
    "QuestionGroup",
    "QuestionResponse",
    "QuestionSnapshot",
    "QuestionTemplate",
    "TestInstance",
    "TestStatus",
    "TestType",
    "VideoResponse",
    "VideoResponseType",
]

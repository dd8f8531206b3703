"""
Pydantic schemas for test instance endpoints.

Question schemas returned to candidates have no answer-key fields at all.
"""
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from app.models.models import TestStatus, TestType
from app.schemas.responses import AnswerItem

# Upper bound on answers accepted in one request; larger than any instrument
MAX_ANSWERS_PER_REQUEST = 200


class CreateTestRequest(BaseModel):
    """Schema for creating a test attempt."""

    test_type: TestType = Field(..., description="Test type to create")
    difficulty_level: Optional[str] = Field(
        None,
        max_length=20,
        description="Difficulty filter for randomly sampled test types",
    )


class QuestionSnapshotResponse(BaseModel):
    """A frozen question as shown to the candidate."""

    id: str = Field(..., description="Question snapshot ID")
    question_text: str = Field(..., description="Question text")
    options: Optional[Any] = Field(None, description="Answer options, if any")
    allow_multiple_answers: bool = Field(
        False, description="Whether more than one option may be selected"
    )
    max_answers_allowed: Optional[int] = Field(
        None, description="Maximum number of options that may be selected"
    )
    question_order: int = Field(..., description="1-based position in the test")
    point_value: float = Field(..., description="Points awarded for a correct answer")
    estimated_time_seconds: Optional[int] = Field(
        None, description="Suggested time to spend on this question"
    )

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TestInstanceResponse(BaseModel):
    """Schema for a test attempt."""

    id: str = Field(..., description="Test instance ID")
    candidate_id: str = Field(..., description="Owning candidate")
    test_type: TestType = Field(..., description="Test type")
    status: TestStatus = Field(
        ..., description="Status (not_started, in_progress, submitted)"
    )
    difficulty_level: Optional[str] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    raw_score: Optional[float] = None
    max_possible_score: Optional[float] = None
    score: Optional[float] = Field(None, description="Percentage score (0-100)")
    portuguese_reading_text_id: Optional[str] = None
    portuguese_reading_text_version: Optional[int] = None

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class TestWithQuestionsResponse(BaseModel):
    """A test attempt together with its questions."""

    test: TestInstanceResponse
    questions: List[QuestionSnapshotResponse]
    total_questions: int


class StartTestResponse(BaseModel):
    """Schema for a freshly started test."""

    test: TestInstanceResponse
    remaining_time_seconds: Optional[int] = Field(
        None, description="Seconds left for time-boxed tests, null when untimed"
    )


class SubmitTestRequest(BaseModel):
    """Final answers sent with submission. May be empty if answers were saved earlier."""

    answers: List[AnswerItem] = Field(
        default_factory=list, max_length=MAX_ANSWERS_PER_REQUEST
    )


class SubmitTestResponse(BaseModel):
    """Schema for the outcome of a submission."""

    test_id: str
    status: TestStatus
    score: Optional[float] = None
    raw_score: Optional[float] = None
    max_possible_score: Optional[float] = None
    correct_answers: int
    total_questions: int
    duration_seconds: Optional[int] = None


class TestStatusResponse(BaseModel):
    """Progress and available actions for a test attempt."""

    test_id: str
    test_type: TestType
    status: TestStatus
    total_questions: int
    questions_answered: int
    videos_uploaded: int
    videos_required: int
    can_start: bool
    can_submit: bool
    started_at: Optional[datetime] = None
    remaining_time_seconds: Optional[int] = None


class RemainingTimeResponse(BaseModel):
    test_id: str
    remaining_time_seconds: Optional[int] = Field(
        None, description="Null when the test has no time limit or is not in progress"
    )


class EligibilityResponse(BaseModel):
    test_type: TestType
    can_start: bool

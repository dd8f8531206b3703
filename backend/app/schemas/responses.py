"""
Pydantic schemas for answer and video response endpoints.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.models.models import VideoResponseType

MAX_SELECTED_ANSWERS = 50


class AnswerItem(BaseModel):
    """One multiple-choice answer."""

    question_snapshot_id: str = Field(..., max_length=36)
    selected_answers: List[str] = Field(
        default_factory=list,
        max_length=MAX_SELECTED_ANSWERS,
        description="Selected option identifiers (order does not matter)",
    )
    response_time_ms: Optional[int] = Field(None, ge=0)

    @field_validator("selected_answers")
    @classmethod
    def strip_answers(cls, v: List[str]) -> List[str]:
        """Trim whitespace and reject blank option identifiers."""
        cleaned = [a.strip() for a in v]
        if any(not a for a in cleaned):
            raise ValueError("Selected answers cannot be blank")
        return cleaned


class SubmitAnswersRequest(BaseModel):
    """Answers saved without submitting the test."""

    answers: List[AnswerItem] = Field(..., min_length=1, max_length=200)


class UpdateResponseRequest(BaseModel):
    selected_answers: List[str] = Field(..., max_length=MAX_SELECTED_ANSWERS)
    response_time_ms: Optional[int] = Field(None, ge=0)


class QuestionResponseRead(BaseModel):
    """A saved answer. Grading fields are not exposed to candidates."""

    id: str
    test_instance_id: str
    question_snapshot_id: str
    selected_answers: List[str]
    response_time_ms: Optional[int] = None
    answered_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class VideoResponseRead(BaseModel):
    """Metadata for an uploaded video. Use the URL endpoint to read the bytes."""

    id: str
    test_instance_id: str
    question_snapshot_id: Optional[str] = None
    question_number: int
    response_type: Optional[VideoResponseType] = None
    content_type: Optional[str] = None
    file_size_bytes: int
    uploaded_at: datetime

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class VideoUrlResponse(BaseModel):
    url: str
    expires_in_seconds: int

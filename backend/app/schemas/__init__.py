"""
Pydantic schemas for request/response validation.
"""
from .responses import (
    AnswerItem,
    QuestionResponseRead,
    SubmitAnswersRequest,
    UpdateResponseRequest,
    VideoResponseRead,
    VideoUrlResponse,
)
from .tests import (
    CreateTestRequest,
    EligibilityResponse,
    QuestionSnapshotResponse,
    RemainingTimeResponse,
    StartTestResponse,
    SubmitTestRequest,
    SubmitTestResponse,
    TestInstanceResponse,
    TestStatusResponse,
    TestWithQuestionsResponse,
)

__all__ = [
    "AnswerItem",
    "QuestionResponseRead",
    "SubmitAnswersRequest",
    "UpdateResponseRequest",
    "VideoResponseRead",
    "VideoUrlResponse",
    "CreateTestRequest",
    "EligibilityResponse",
    "QuestionSnapshotResponse",
    "RemainingTimeResponse",
    "StartTestResponse",
    "SubmitTestRequest",
    "SubmitTestResponse",
    "TestInstanceResponse",
    "TestStatusResponse",
    "TestWithQuestionsResponse",
]

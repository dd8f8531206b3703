"""
Standardized error response messages and builders.

User-facing messages live here so that engine modules never render text
themselves. Engine failures (``app.core.exceptions``) are translated to
HTTPExceptions by ``domain_error_to_http``, which the application-level
exception handler calls.

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: abc)"

Usage:
    from app.core.error_responses import ErrorMessages, raise_unauthorized

    if payload is None:
        raise_unauthorized(ErrorMessages.INVALID_TOKEN)
"""

from typing import Dict, NoReturn, Optional, Type

from fastapi import HTTPException, status

from app.core.exceptions import (
    AssessmentError,
    ConflictError,
    InsufficientQuestionBankError,
    InvalidMediaError,
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
)


class ErrorMessages:
    """Centralized error message constants and templates."""

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    INVALID_TOKEN = "Invalid authentication token."
    INVALID_TOKEN_PAYLOAD = "Invalid token payload."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    TEST_ACCESS_DENIED = "Not authorized to access this test."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_NOT_FOUND = "Test not found."
    QUESTION_NOT_FOUND = "Question not found in this test."
    RESPONSE_NOT_FOUND = "Response not found."
    VIDEO_RESPONSE_NOT_FOUND = "Video response not found."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    TEST_ALREADY_EXISTS = (
        "An attempt of this test type already exists for this candidate. "
        "Each test can only be taken once."
    )

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    TEST_ALREADY_SUBMITTED = "Test has already been submitted and can no longer be modified."
    INVALID_MEDIA = "Invalid video file."

    # ==========================================================================
    # Unprocessable (422)
    # ==========================================================================
    INSUFFICIENT_QUESTIONS = "Not enough questions are available to build this test."

    # ==========================================================================
    # Server Errors (500)
    # ==========================================================================
    INTERNAL_ERROR = "Internal server error"

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def invalid_transition(current_status: Optional[str], action: str) -> str:
        """Message for a state machine violation."""
        if current_status is None:
            return f"Cannot {action} this test in its current state."
        return f"Cannot {action} a test that is {current_status}."

    @staticmethod
    def insufficient_questions(required: Optional[int], available: int) -> str:
        """Message when the bank is too small for the requested test."""
        if required is None:
            return "No questions are configured for this test type."
        return (
            f"Only {available} questions available, but {required} are required "
            "for this test."
        )

    @staticmethod
    def invalid_media(reason: str) -> str:
        """Message for a rejected upload."""
        return f"Invalid video file: {reason}"


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_bad_request(detail: str) -> NoReturn:
    """Raise a 400 Bad Request exception."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_unauthorized(
    detail: str,
    include_www_authenticate: bool = True,
) -> NoReturn:
    """Raise a 401 Unauthorized exception.

    Use for authentication failures (invalid/missing credentials).

    Args:
        detail: User-facing error message
        include_www_authenticate: Whether to include WWW-Authenticate header

    Raises:
        HTTPException: 401 Unauthorized
    """
    headers = {"WWW-Authenticate": "Bearer"} if include_www_authenticate else None
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers=headers,
    )


def raise_forbidden(detail: str) -> NoReturn:
    """Raise a 403 Forbidden exception."""
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=detail,
    )


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 Not Found exception."""
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def raise_conflict(detail: str) -> NoReturn:
    """Raise a 409 Conflict exception."""
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    )


# ==============================================================================
# Engine failure translation
# ==============================================================================

DOMAIN_ERROR_STATUS: Dict[Type[AssessmentError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_400_BAD_REQUEST,
    InsufficientQuestionBankError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidMediaError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
}

_NOT_FOUND_MESSAGES = {
    "TestInstance": ErrorMessages.TEST_NOT_FOUND,
    "QuestionSnapshot": ErrorMessages.QUESTION_NOT_FOUND,
    "QuestionResponse": ErrorMessages.RESPONSE_NOT_FOUND,
    "VideoResponse": ErrorMessages.VIDEO_RESPONSE_NOT_FOUND,
}


def _detail_for(exc: AssessmentError) -> str:
    if isinstance(exc, NotFoundError):
        return _NOT_FOUND_MESSAGES.get(exc.entity, f"{exc.entity} not found.")
    if isinstance(exc, UnauthorizedError):
        return ErrorMessages.TEST_ACCESS_DENIED
    if isinstance(exc, InvalidTransitionError):
        if exc.current_status == "submitted":
            return ErrorMessages.TEST_ALREADY_SUBMITTED
        return ErrorMessages.invalid_transition(
            exc.current_status, exc.context.get("action", "modify")
        )
    if isinstance(exc, InsufficientQuestionBankError):
        return ErrorMessages.insufficient_questions(exc.required, exc.available)
    if isinstance(exc, InvalidMediaError):
        return ErrorMessages.invalid_media(exc.message)
    if isinstance(exc, ConflictError):
        return ErrorMessages.TEST_ALREADY_EXISTS
    return ErrorMessages.INTERNAL_ERROR


def domain_error_to_http(exc: AssessmentError) -> HTTPException:
    """Translate an engine failure into the HTTPException the API returns.

    Unknown subclasses fall back to the status of their nearest mapped
    ancestor, or 500.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for klass in type(exc).__mro__:
        if klass in DOMAIN_ERROR_STATUS:
            status_code = DOMAIN_ERROR_STATUS[klass]
            break
    return HTTPException(status_code=status_code, detail=_detail_for(exc))

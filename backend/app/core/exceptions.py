"""
Typed failures raised by the assessment engine.

Engine modules raise these and never render user-facing text. The API layer
maps each class to an HTTP status (see ``app.core.error_responses``).
"""
from typing import Any, Optional


class AssessmentError(Exception):
    """Base class for all engine failures.

    Attributes:
        message: Developer-facing description, safe to log.
        context: Ids involved in the failure (test, candidate, snapshot...).
    """

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.message} ({details})"


class NotFoundError(AssessmentError):
    """An entity id does not resolve."""

    def __init__(self, entity: str, entity_id: Optional[str] = None, **context: Any):
        super().__init__(f"{entity} not found", entity_id=entity_id, **context)
        self.entity = entity
        self.entity_id = entity_id


class UnauthorizedError(AssessmentError):
    """The caller does not own the test instance it is addressing."""


class InvalidTransitionError(AssessmentError):
    """State machine violation (start twice, submit twice, mutate a submitted test)."""

    def __init__(self, message: str, current_status: Optional[str] = None, **context: Any):
        super().__init__(message, current_status=current_status, **context)
        self.current_status = current_status


class InsufficientQuestionBankError(AssessmentError):
    """The bank cannot supply the questions a new test needs."""

    def __init__(
        self,
        test_type: str,
        required: Optional[int] = None,
        available: int = 0,
        **context: Any,
    ):
        super().__init__(
            "Not enough questions in the bank",
            test_type=test_type,
            required=required,
            available=available,
            **context,
        )
        self.test_type = test_type
        self.required = required
        self.available = available


class InvalidMediaError(AssessmentError):
    """Upload rejected by size, content-type or extension checks."""


class ConflictError(AssessmentError):
    """Eligibility rejection: the candidate already has an attempt of this type."""

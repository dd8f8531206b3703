"""
Eligibility guard: one lifetime attempt per candidate and test type.

A candidate may create an attempt only when they have no active attempt
(not started or in progress) of that type and have never submitted one.
Read-only; the partial unique indexes on ``test_instances`` back this up
when two requests race.
"""
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError
from app.models.models import (
    ACTIVE_TEST_STATUSES,
    TestInstance,
    TestStatus,
    TestType,
)

_BLOCKING_STATUSES = (*ACTIVE_TEST_STATUSES, TestStatus.SUBMITTED)


def find_blocking_instance(
    db: Session, candidate_id: str, test_type: TestType
) -> Optional[TestInstance]:
    """Return the attempt that prevents a new one, if any."""
    return (
        db.query(TestInstance)
        .filter(
            TestInstance.candidate_id == candidate_id,
            TestInstance.test_type == test_type,
            TestInstance.status.in_(_BLOCKING_STATUSES),
        )
        .order_by(TestInstance.created_at.desc())
        .first()
    )


def can_start(db: Session, candidate_id: str, test_type: TestType) -> bool:
    return find_blocking_instance(db, candidate_id, test_type) is None


def ensure_can_create(db: Session, candidate_id: str, test_type: TestType) -> None:
    """
    Raise ConflictError when the candidate may not create this test.

    Raises:
        ConflictError: an active or submitted attempt already exists
    """
    blocking = find_blocking_instance(db, candidate_id, test_type)
    if blocking is not None:
        raise ConflictError(
            "Candidate already has an attempt of this test type",
            candidate_id=candidate_id,
            test_type=test_type.value,
            existing_test_instance_id=blocking.id,
            existing_status=blocking.status.value,
        )

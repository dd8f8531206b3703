"""
Multiple-choice answer submission and management.

Answers can be sent incrementally while a test is open, or in the batch
that accompanies submission. At most one live response exists per
candidate and question snapshot: sending an answer again updates it.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.datetime_utils import utc_now
from app.core.exceptions import ConflictError, NotFoundError
from app.core.test_access import ensure_not_submitted, get_owned_test
from app.models.models import QuestionResponse, TestInstance

logger = logging.getLogger(__name__)


@dataclass
class AnswerInput:
    question_snapshot_id: str
    selected_answers: List[str] = field(default_factory=list)
    response_time_ms: Optional[int] = None


def _existing_responses(
    db: Session, instance: TestInstance
) -> Dict[str, QuestionResponse]:
    rows = (
        db.query(QuestionResponse)
        .filter(
            QuestionResponse.test_instance_id == instance.id,
            QuestionResponse.candidate_id == instance.candidate_id,
        )
        .all()
    )
    return {r.question_snapshot_id: r for r in rows}


def upsert_answers(
    db: Session, instance: TestInstance, answers: Iterable[AnswerInput]
) -> List[QuestionResponse]:
    """
    Create or update responses for ``instance`` without committing.

    Items referencing a snapshot outside this test are skipped and logged.
    New responses are appended to ``instance.question_responses``.
    """
    snapshot_ids = {s.id for s in instance.question_snapshots}
    existing = _existing_responses(db, instance)
    now = utc_now()

    saved: List[QuestionResponse] = []
    for answer in answers:
        if answer.question_snapshot_id not in snapshot_ids:
            logger.warning(
                f"Question snapshot {answer.question_snapshot_id} not found in "
                f"test {instance.id}; skipping answer"
            )
            continue

        response = existing.get(answer.question_snapshot_id)
        if response is not None:
            response.selected_answers = list(answer.selected_answers)
            response.response_time_ms = answer.response_time_ms
            response.answered_at = now
        else:
            response = QuestionResponse(
                candidate_id=instance.candidate_id,
                question_snapshot_id=answer.question_snapshot_id,
                selected_answers=list(answer.selected_answers),
                response_time_ms=answer.response_time_ms,
                answered_at=now,
            )
            instance.question_responses.append(response)
            existing[answer.question_snapshot_id] = response
        saved.append(response)

    return saved


def _commit_responses(db: Session, instance: TestInstance) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        # A concurrent request inserted the same (candidate, snapshot) pair
        db.rollback()
        raise ConflictError(
            "Response was modified concurrently", test_instance_id=instance.id
        ) from e


def submit_answers(
    db: Session, test_id: str, candidate_id: str, answers: Iterable[AnswerInput]
) -> List[QuestionResponse]:
    """
    Save answers without submitting the test.

    Raises:
        NotFoundError, UnauthorizedError
        InvalidTransitionError: the test is already submitted
    """
    instance = get_owned_test(db, test_id, candidate_id, for_update=True)
    ensure_not_submitted(instance, "submit answers")

    saved = upsert_answers(db, instance, answers)
    _commit_responses(db, instance)
    for response in saved:
        db.refresh(response)

    logger.info(f"Saved {len(saved)} answers for test {instance.id}")
    return saved


def get_test_responses(
    db: Session, test_id: str, candidate_id: str
) -> List[QuestionResponse]:
    instance = get_owned_test(db, test_id, candidate_id)
    return (
        db.query(QuestionResponse)
        .filter(
            QuestionResponse.test_instance_id == instance.id,
            QuestionResponse.candidate_id == candidate_id,
        )
        .order_by(QuestionResponse.answered_at)
        .all()
    )


def _get_owned_response(
    db: Session, response_id: str, candidate_id: str
) -> QuestionResponse:
    response = db.query(QuestionResponse).filter(QuestionResponse.id == response_id).first()
    if response is None:
        raise NotFoundError("QuestionResponse", response_id)
    # Ownership is decided by the parent test, not the copied candidate id
    get_owned_test(db, response.test_instance_id, candidate_id)
    return response


def get_response(db: Session, response_id: str, candidate_id: str) -> QuestionResponse:
    return _get_owned_response(db, response_id, candidate_id)


def _lock_open_test(
    db: Session, response: QuestionResponse, candidate_id: str, action: str
) -> TestInstance:
    instance = get_owned_test(
        db, response.test_instance_id, candidate_id, for_update=True
    )
    ensure_not_submitted(instance, action)
    return instance


def update_response(
    db: Session,
    response_id: str,
    candidate_id: str,
    selected_answers: List[str],
    response_time_ms: Optional[int] = None,
) -> QuestionResponse:
    response = _get_owned_response(db, response_id, candidate_id)
    _lock_open_test(db, response, candidate_id, "update a response")

    response.selected_answers = list(selected_answers)
    response.response_time_ms = response_time_ms
    response.answered_at = utc_now()
    db.commit()
    db.refresh(response)
    return response


def delete_response(db: Session, response_id: str, candidate_id: str) -> None:
    response = _get_owned_response(db, response_id, candidate_id)
    _lock_open_test(db, response, candidate_id, "delete a response")
    test_instance_id = response.test_instance_id

    db.delete(response)
    db.commit()
    logger.info(f"Deleted response {response_id} from test {test_instance_id}")

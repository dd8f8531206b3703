"""
Snapshot engine: creates a test attempt and freezes its questions.

Question content and answer keys are copied from the bank at creation time.
Later edits to a template, or its deletion, never reach an attempt that
already exists.

Selection depends on the test type (see ``app.core.test_types``):

- fixed order: every active template, difficulty ignored
- random sample: N templates at the requested difficulty
- video slots: the curated question group in group order, padded with
  generic prompts; never carries an answer key
"""
import copy
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.eligibility import ensure_can_create
from app.core.exceptions import ConflictError, InsufficientQuestionBankError
from app.core.question_bank import SqlQuestionBank
from app.core.test_types import (
    SelectionStrategy,
    TestTypeConfig,
    generic_video_prompt,
    get_test_type_config,
)
from app.models.models import (
    QuestionSnapshot,
    QuestionTemplate,
    TestInstance,
    TestStatus,
    TestType,
)
from app.observability import metrics

logger = logging.getLogger(__name__)

GENERIC_SLOT_POINT_VALUE = 1.0


def _snapshot_from_template(
    template: QuestionTemplate, order: int, include_answer_key: bool
) -> QuestionSnapshot:
    answer = template.answer
    correct_answer = None
    if include_answer_key and answer is not None and answer.correct_answer is not None:
        correct_answer = copy.deepcopy(answer.correct_answer)

    return QuestionSnapshot(
        question_template_id=template.id,
        question_template_version=template.version,
        question_text=template.question_text,
        options=copy.deepcopy(template.options),
        allow_multiple_answers=template.allow_multiple_answers,
        max_answers_allowed=template.max_answers_allowed,
        question_order=order,
        point_value=template.point_value,
        estimated_time_seconds=template.estimated_time_seconds,
        correct_answer_snapshot=correct_answer,
        expected_answer_guide_snapshot=(
            copy.deepcopy(answer.expected_answer_guide) if answer is not None else None
        ),
    )


def _generic_video_snapshot(test_type: TestType, order: int) -> QuestionSnapshot:
    return QuestionSnapshot(
        question_template_id=None,
        question_text=generic_video_prompt(test_type, order),
        options=None,
        allow_multiple_answers=False,
        question_order=order,
        point_value=GENERIC_SLOT_POINT_VALUE,
    )


def _select_fixed_order(
    bank: SqlQuestionBank, config: TestTypeConfig
) -> List[QuestionSnapshot]:
    templates = bank.get_all_ordered(config.test_type)
    if not templates:
        raise InsufficientQuestionBankError(config.test_type.value, available=0)
    return [
        _snapshot_from_template(t, order, include_answer_key=True)
        for order, t in enumerate(templates, start=1)
    ]


def _select_random_sample(
    bank: SqlQuestionBank, config: TestTypeConfig, difficulty: Optional[str]
) -> List[QuestionSnapshot]:
    required = config.question_count
    templates = bank.get_random(config.test_type, required, difficulty)
    if len(templates) < required:
        raise InsufficientQuestionBankError(
            config.test_type.value,
            required=required,
            available=len(templates),
            difficulty=difficulty,
        )
    return [
        _snapshot_from_template(t, order, include_answer_key=True)
        for order, t in enumerate(templates, start=1)
    ]


def _select_video_slots(
    bank: SqlQuestionBank, config: TestTypeConfig
) -> List[QuestionSnapshot]:
    slots = config.question_count
    group = bank.get_question_group(config.test_type)

    snapshots: List[QuestionSnapshot] = []
    if group is not None:
        for order, template in enumerate(group.questions[:slots], start=1):
            snapshots.append(
                _snapshot_from_template(template, order, include_answer_key=False)
            )

    if len(snapshots) < slots:
        logger.warning(
            f"Question group for {config.test_type.value} covers "
            f"{len(snapshots)}/{slots} slots; filling the rest with generic prompts"
            + ("" if group is not None else " (no active group configured)")
        )
        for order in range(len(snapshots) + 1, slots + 1):
            snapshots.append(_generic_video_snapshot(config.test_type, order))

    return snapshots


def select_snapshots(
    bank: SqlQuestionBank,
    test_type: TestType,
    difficulty_level: Optional[str] = None,
) -> List[QuestionSnapshot]:
    """
    Build (unsaved) snapshots for a new attempt of ``test_type``.

    Raises:
        InsufficientQuestionBankError: the bank cannot supply enough questions
    """
    config = get_test_type_config(test_type)
    if config.strategy == SelectionStrategy.FIXED_ORDER:
        return _select_fixed_order(bank, config)
    if config.strategy == SelectionStrategy.RANDOM_SAMPLE:
        return _select_random_sample(bank, config, difficulty_level)
    return _select_video_slots(bank, config)


def _assign_reading_text(
    bank: SqlQuestionBank, instance: TestInstance, difficulty_level: Optional[str]
) -> None:
    reading_text = bank.get_random_reading_text(difficulty_level)
    if reading_text is None:
        logger.warning(
            f"No Portuguese reading text found for difficulty '{difficulty_level}'. "
            f"Test {instance.id} will not have a reading text assigned."
        )
        return
    instance.portuguese_reading_text_id = reading_text.id
    instance.portuguese_reading_text_version = reading_text.version
    logger.info(
        f"Assigned Portuguese reading text {reading_text.id} "
        f"('{reading_text.title}') to test {instance.id}"
    )


def create_test(
    db: Session,
    candidate_id: str,
    test_type: TestType,
    difficulty_level: Optional[str] = None,
    bank: Optional[SqlQuestionBank] = None,
) -> TestInstance:
    """
    Create a NOT_STARTED attempt with its question snapshots.

    Args:
        db: Database session (committed on success, rolled back on conflict)
        candidate_id: Owner of the new attempt
        test_type: Which test to create
        difficulty_level: Difficulty filter for random-sample types
        bank: Question bank reader; defaults to the database bank

    Returns:
        The persisted TestInstance with ``question_snapshots`` loaded

    Raises:
        ConflictError: the candidate already has an attempt of this type
        InsufficientQuestionBankError: not enough questions in the bank
    """
    bank = bank or SqlQuestionBank(db)

    ensure_can_create(db, candidate_id, test_type)
    snapshots = select_snapshots(bank, test_type, difficulty_level)

    instance = TestInstance(
        candidate_id=candidate_id,
        test_type=test_type,
        status=TestStatus.NOT_STARTED,
        difficulty_level=difficulty_level,
    )

    try:
        # Instance first so the snapshots have a parent row to reference
        db.add(instance)
        db.flush()

        if test_type == TestType.PORTUGUESE:
            _assign_reading_text(bank, instance, difficulty_level)

        for snapshot in snapshots:
            snapshot.test_instance_id = instance.id
        db.add_all(snapshots)
        db.commit()
    except IntegrityError as e:
        # Another request created an attempt for the same candidate and type
        db.rollback()
        logger.warning(
            f"Concurrent test creation for candidate {candidate_id} "
            f"({test_type.value}): {e.orig}"
        )
        raise ConflictError(
            "Candidate already has an attempt of this test type",
            candidate_id=candidate_id,
            test_type=test_type.value,
        ) from e

    db.refresh(instance)

    logger.info(
        f"Created {test_type.value} test {instance.id} for candidate {candidate_id} "
        f"with {len(instance.question_snapshots)} questions",
        extra={
            "candidate_id": candidate_id,
            "test_instance_id": instance.id,
            "test_type": test_type.value,
        },
    )
    metrics.record_test_created(test_type.value)
    return instance

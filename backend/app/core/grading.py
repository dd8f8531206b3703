"""
Auto-grading of multiple-choice responses.

Runs once, inside submission, over every live response of the attempt.
Video responses are never graded here.

Scoring:
- a response is correct when its selected options equal the snapshot's
  answer key as unordered sets ({B, D} == {D, B})
- raw score is the sum of point values earned
- max possible score is the sum of point values of the answered snapshots
  that carry an answer key
- score is raw / max as a percentage rounded to two decimals, 0 when max is 0
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from app.models.models import QuestionResponse, QuestionSnapshot, TestInstance

logger = logging.getLogger(__name__)


@dataclass
class GradingResult:
    raw_score: float
    max_possible_score: float
    score: float
    correct_answers: int
    graded_responses: int


def _as_answer_list(value: Any) -> List[str]:
    """Normalise a stored answer payload to a list of option identifiers."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return [str(value)]


def answers_match(selected: Any, correct: Any) -> bool:
    """Order-independent comparison of selected options against the answer key."""
    return sorted(_as_answer_list(selected)) == sorted(_as_answer_list(correct))


def calculate_score(raw_score: float, max_possible_score: float) -> float:
    if max_possible_score <= 0:
        return 0.0
    return round(raw_score / max_possible_score * 100, 2)


def grade_responses(
    snapshots: Iterable[QuestionSnapshot],
    responses: Iterable[QuestionResponse],
) -> GradingResult:
    """
    Mark each response and compute totals.

    Sets ``is_correct`` and ``points_earned`` on responses whose snapshot has
    an answer key. Responses to snapshots without a key (video slots,
    subjective items) are left untouched and count toward neither total.
    """
    snapshots_by_id: Dict[str, QuestionSnapshot] = {s.id: s for s in snapshots}

    raw_score = 0.0
    max_possible = 0.0
    correct_count = 0
    graded = 0

    for response in responses:
        snapshot = snapshots_by_id.get(response.question_snapshot_id)
        if snapshot is None or snapshot.correct_answer_snapshot is None:
            continue

        points = float(snapshot.point_value or 0)
        max_possible += points
        is_correct = answers_match(
            response.selected_answers, snapshot.correct_answer_snapshot
        )
        response.is_correct = is_correct
        response.points_earned = points if is_correct else 0.0
        graded += 1
        if is_correct:
            raw_score += points
            correct_count += 1

    return GradingResult(
        raw_score=raw_score,
        max_possible_score=max_possible,
        score=calculate_score(raw_score, max_possible),
        correct_answers=correct_count,
        graded_responses=graded,
    )


def grade_test(instance: TestInstance) -> GradingResult:
    """Grade the attempt's live responses and store the totals on the instance."""
    responses = [
        r for r in instance.question_responses if r.candidate_id == instance.candidate_id
    ]
    result = grade_responses(instance.question_snapshots, responses)

    instance.raw_score = result.raw_score
    instance.max_possible_score = result.max_possible_score
    instance.score = result.score

    logger.info(
        f"Auto-graded test {instance.id}: {result.raw_score}/"
        f"{result.max_possible_score} points ({result.score}%)"
    )
    return result

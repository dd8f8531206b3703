"""
Per-test-type configuration.

Read-only constants shared by every request: how questions are selected,
how many, whether answers are auto-graded, and the time limit.
"""
import enum
from dataclasses import dataclass
from typing import Dict, Optional

from app.models.models import TestType


class SelectionStrategy(str, enum.Enum):
    """How the snapshot engine picks questions for a new attempt."""

    # Every active template, in canonical order; difficulty is ignored
    FIXED_ORDER = "fixed_order"
    # N random templates filtered by difficulty
    RANDOM_SAMPLE = "random_sample"
    # Curated question group, padded with generic prompts
    VIDEO_SLOTS = "video_slots"


@dataclass(frozen=True)
class TestTypeConfig:
    test_type: TestType
    strategy: SelectionStrategy
    # Slots for video types, sample size for random types. For fixed-order
    # types this is the nominal instrument length and is informational only.
    question_count: int
    time_limit_seconds: Optional[int] = None
    # Portuguese tests record one extra video reading the passage aloud
    reading_video: bool = False

    @property
    def auto_graded(self) -> bool:
        return self.strategy != SelectionStrategy.VIDEO_SLOTS

    @property
    def is_video_type(self) -> bool:
        return self.strategy == SelectionStrategy.VIDEO_SLOTS


TEST_TYPE_CONFIGS: Dict[TestType, TestTypeConfig] = {
    TestType.PORTUGUESE: TestTypeConfig(
        test_type=TestType.PORTUGUESE,
        strategy=SelectionStrategy.VIDEO_SLOTS,
        question_count=3,
        reading_video=True,
    ),
    TestType.MATH: TestTypeConfig(
        test_type=TestType.MATH,
        strategy=SelectionStrategy.VIDEO_SLOTS,
        question_count=2,
    ),
    TestType.INTERVIEW: TestTypeConfig(
        test_type=TestType.INTERVIEW,
        strategy=SelectionStrategy.VIDEO_SLOTS,
        question_count=5,
    ),
    TestType.PSYCHOLOGY: TestTypeConfig(
        test_type=TestType.PSYCHOLOGY,
        strategy=SelectionStrategy.FIXED_ORDER,
        question_count=52,
        time_limit_seconds=60 * 60,
    ),
    TestType.VISUAL_RETENTION: TestTypeConfig(
        test_type=TestType.VISUAL_RETENTION,
        strategy=SelectionStrategy.RANDOM_SAMPLE,
        question_count=15,
        time_limit_seconds=20 * 60,
    ),
}

# Placeholder prompts for video slots the curated group does not cover
_GENERIC_PROMPTS: Dict[TestType, str] = {
    TestType.PORTUGUESE: (
        "Question {index}: Please answer this question about the reading text "
        "by recording a video."
    ),
    TestType.MATH: (
        "Math Question {index}: Please solve this problem and explain your "
        "solution in a video."
    ),
}
_DEFAULT_GENERIC_PROMPT = "Question {index}: Please answer this question by recording a video."


def get_test_type_config(test_type: TestType) -> TestTypeConfig:
    return TEST_TYPE_CONFIGS[test_type]


def generic_video_prompt(test_type: TestType, index: int) -> str:
    """Deterministic prompt text for the 1-based video slot ``index``."""
    template = _GENERIC_PROMPTS.get(test_type, _DEFAULT_GENERIC_PROMPT)
    return template.format(index=index)


def videos_required(test_type: TestType, question_count: int) -> int:
    """Number of videos a candidate must upload before submitting."""
    config = get_test_type_config(test_type)
    if not config.is_video_type:
        return 0
    return question_count + 1 if config.reading_video else question_count

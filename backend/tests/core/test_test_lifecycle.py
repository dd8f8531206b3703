"""
Tests for the start/submit state machine and progress reporting.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from app.core import test_lifecycle
from app.core.answers import AnswerInput, submit_answers
from app.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from app.core.snapshot_engine import create_test
from app.models import QuestionResponse, TestStatus, TestType, VideoResponse
from tests.conftest import CANDIDATE_ID, OTHER_CANDIDATE_ID


@pytest.fixture
def psychology_test(db_session, psychology_templates):
    return create_test(db_session, CANDIDATE_ID, TestType.PSYCHOLOGY)


@pytest.fixture
def started_psychology_test(db_session, psychology_test):
    return test_lifecycle.start_test(db_session, psychology_test.id, CANDIDATE_ID)


def _answers(instance, selections):
    return [
        AnswerInput(question_snapshot_id=s.id, selected_answers=sel)
        for s, sel in zip(instance.question_snapshots, selections)
    ]


class TestGetTest:
    def test_owner_can_read(self, db_session, psychology_test):
        instance = test_lifecycle.get_test(db_session, psychology_test.id, CANDIDATE_ID)
        assert instance.id == psychology_test.id

    def test_unknown_id(self, db_session):
        with pytest.raises(NotFoundError):
            test_lifecycle.get_test(db_session, "missing", CANDIDATE_ID)

    def test_other_candidate_is_rejected(self, db_session, psychology_test):
        with pytest.raises(UnauthorizedError):
            test_lifecycle.get_test(db_session, psychology_test.id, OTHER_CANDIDATE_ID)

    def test_questions_in_order(self, db_session, psychology_test):
        questions = test_lifecycle.get_test_questions(
            db_session, psychology_test.id, CANDIDATE_ID
        )
        assert [q.question_order for q in questions] == [1, 2, 3, 4, 5]

    def test_list_candidate_tests(
        self, db_session, psychology_test, math_question_group
    ):
        math = create_test(db_session, CANDIDATE_ID, TestType.MATH)
        create_test(db_session, OTHER_CANDIDATE_ID, TestType.MATH)

        tests = test_lifecycle.list_candidate_tests(db_session, CANDIDATE_ID)

        assert {t.id for t in tests} == {psychology_test.id, math.id}

    def test_list_filtered_by_type(
        self, db_session, psychology_test, math_question_group
    ):
        math = create_test(db_session, CANDIDATE_ID, TestType.MATH)

        tests = test_lifecycle.list_candidate_tests(
            db_session, CANDIDATE_ID, test_type=TestType.MATH
        )

        assert [t.id for t in tests] == [math.id]


class TestStartTest:
    def test_start_sets_status_and_time(self, db_session, psychology_test):
        instance = test_lifecycle.start_test(db_session, psychology_test.id, CANDIDATE_ID)

        assert instance.status == TestStatus.IN_PROGRESS
        assert instance.started_at is not None

    def test_start_twice_fails(self, db_session, started_psychology_test):
        with pytest.raises(InvalidTransitionError) as exc_info:
            test_lifecycle.start_test(db_session, started_psychology_test.id, CANDIDATE_ID)

        assert exc_info.value.current_status == "in_progress"

    def test_other_candidate_cannot_start(self, db_session, psychology_test):
        with pytest.raises(UnauthorizedError):
            test_lifecycle.start_test(db_session, psychology_test.id, OTHER_CANDIDATE_ID)

        db_session.refresh(psychology_test)
        assert psychology_test.status == TestStatus.NOT_STARTED


class TestSubmitTest:
    def test_cannot_submit_before_start(self, db_session, psychology_test):
        with pytest.raises(InvalidTransitionError) as exc_info:
            test_lifecycle.submit_test(db_session, psychology_test.id, CANDIDATE_ID)

        assert exc_info.value.current_status == "not_started"

    def test_submit_grades_and_records_duration(self, db_session, started_psychology_test):
        started_at = datetime(2026, 3, 1, 10, 0, 0, tzinfo=timezone.utc)
        started_psychology_test.started_at = started_at
        db_session.commit()

        answers = _answers(started_psychology_test, [["A"], ["A"], ["A"], ["B"], ["C"]])
        with patch(
            "app.core.test_lifecycle.utc_now",
            return_value=started_at + timedelta(minutes=12, seconds=30),
        ):
            result = test_lifecycle.submit_test(
                db_session, started_psychology_test.id, CANDIDATE_ID, answers
            )

        instance = result.test_instance
        assert instance.status == TestStatus.SUBMITTED
        assert instance.duration_seconds == 750
        assert instance.raw_score == pytest.approx(3.0)
        assert instance.max_possible_score == pytest.approx(5.0)
        assert instance.score == pytest.approx(60.0)
        assert result.correct_answers == 3
        assert result.total_questions == 5

    def test_submit_merges_earlier_answers(self, db_session, started_psychology_test):
        snapshots = started_psychology_test.question_snapshots
        submit_answers(
            db_session,
            started_psychology_test.id,
            CANDIDATE_ID,
            [AnswerInput(snapshots[0].id, ["B"]), AnswerInput(snapshots[1].id, ["A"])],
        )

        # Corrects the first answer and adds a third
        result = test_lifecycle.submit_test(
            db_session,
            started_psychology_test.id,
            CANDIDATE_ID,
            [AnswerInput(snapshots[0].id, ["A"]), AnswerInput(snapshots[2].id, ["A"])],
        )

        assert result.test_instance.score == pytest.approx(100.0)
        assert result.correct_answers == 3
        assert (
            db_session.query(QuestionResponse)
            .filter(QuestionResponse.test_instance_id == started_psychology_test.id)
            .count()
            == 3
        )

    def test_submit_with_no_answers_scores_zero(self, db_session, started_psychology_test):
        result = test_lifecycle.submit_test(
            db_session, started_psychology_test.id, CANDIDATE_ID
        )

        assert result.test_instance.score == pytest.approx(0.0)
        assert result.test_instance.max_possible_score == pytest.approx(0.0)

    def test_submit_twice_fails(self, db_session, started_psychology_test):
        test_lifecycle.submit_test(db_session, started_psychology_test.id, CANDIDATE_ID)

        with pytest.raises(InvalidTransitionError) as exc_info:
            test_lifecycle.submit_test(
                db_session, started_psychology_test.id, CANDIDATE_ID
            )

        assert exc_info.value.current_status == "submitted"

    def test_start_after_submit_fails(self, db_session, started_psychology_test):
        test_lifecycle.submit_test(db_session, started_psychology_test.id, CANDIDATE_ID)

        with pytest.raises(InvalidTransitionError):
            test_lifecycle.start_test(db_session, started_psychology_test.id, CANDIDATE_ID)

    def test_overdue_test_can_still_be_submitted(
        self, db_session, started_psychology_test
    ):
        started_psychology_test.started_at = datetime.now(timezone.utc) - timedelta(
            hours=3
        )
        db_session.commit()

        result = test_lifecycle.submit_test(
            db_session, started_psychology_test.id, CANDIDATE_ID
        )

        assert result.test_instance.status == TestStatus.SUBMITTED
        assert result.test_instance.duration_seconds >= 3 * 3600


class TestProgress:
    def test_not_started(self, db_session, psychology_test):
        progress = test_lifecycle.get_test_progress(
            db_session, psychology_test.id, CANDIDATE_ID
        )

        assert progress.total_questions == 5
        assert progress.questions_answered == 0
        assert progress.can_start is True
        assert progress.can_submit is False
        assert progress.remaining_time_seconds is None

    def test_all_answered_can_submit(self, db_session, started_psychology_test):
        submit_answers(
            db_session,
            started_psychology_test.id,
            CANDIDATE_ID,
            _answers(started_psychology_test, [["A"]] * 5),
        )

        progress = test_lifecycle.get_test_progress(
            db_session, started_psychology_test.id, CANDIDATE_ID
        )

        assert progress.questions_answered == 5
        assert progress.can_submit is True
        assert 0 < progress.remaining_time_seconds <= 3600

    def test_video_test_needs_all_videos(self, db_session, math_question_group):
        instance = create_test(db_session, CANDIDATE_ID, TestType.MATH)
        test_lifecycle.start_test(db_session, instance.id, CANDIDATE_ID)

        progress = test_lifecycle.get_test_progress(db_session, instance.id, CANDIDATE_ID)
        assert progress.videos_required == 2
        assert progress.can_submit is False

        for number in (1, 2):
            db_session.add(
                VideoResponse(
                    test_instance_id=instance.id,
                    candidate_id=CANDIDATE_ID,
                    question_number=number,
                    blob_reference=f"blob-{number}",
                    file_size_bytes=10,
                )
            )
        db_session.commit()
        db_session.refresh(instance)

        progress = test_lifecycle.get_test_progress(db_session, instance.id, CANDIDATE_ID)
        assert progress.videos_uploaded == 2
        assert progress.can_submit is True

    def test_portuguese_needs_reading_video(self, db_session):
        instance = create_test(db_session, CANDIDATE_ID, TestType.PORTUGUESE)

        progress = test_lifecycle.get_test_progress(db_session, instance.id, CANDIDATE_ID)

        assert progress.videos_required == 4

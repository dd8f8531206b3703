"""
Tests for remaining-time computation.
"""
from datetime import datetime, timedelta, timezone

from app.core.time_guard import remaining_seconds
from app.models import TestInstance, TestStatus, TestType

STARTED = datetime(2026, 3, 1, 10, 0, 0, tzinfo=timezone.utc)


def _instance(test_type, status=TestStatus.IN_PROGRESS, started_at=STARTED):
    return TestInstance(
        candidate_id="candidate-123",
        test_type=test_type,
        status=status,
        started_at=started_at,
    )


class TestRemainingSeconds:
    def test_visual_retention_counts_down_from_twenty_minutes(self):
        instance = _instance(TestType.VISUAL_RETENTION)

        assert remaining_seconds(instance, now=STARTED) == 1200
        assert remaining_seconds(instance, now=STARTED + timedelta(minutes=5)) == 900

    def test_psychology_has_one_hour(self):
        instance = _instance(TestType.PSYCHOLOGY)

        assert remaining_seconds(instance, now=STARTED + timedelta(seconds=1)) == 3599

    def test_never_negative(self):
        instance = _instance(TestType.VISUAL_RETENTION)

        assert remaining_seconds(instance, now=STARTED + timedelta(hours=2)) == 0

    def test_untimed_type_returns_none(self):
        instance = _instance(TestType.MATH)

        assert remaining_seconds(instance, now=STARTED) is None

    def test_not_started_returns_none(self):
        instance = _instance(
            TestType.VISUAL_RETENTION, status=TestStatus.NOT_STARTED, started_at=None
        )

        assert remaining_seconds(instance) is None

    def test_submitted_returns_none(self):
        instance = _instance(TestType.VISUAL_RETENTION, status=TestStatus.SUBMITTED)

        assert remaining_seconds(instance, now=STARTED) is None

    def test_naive_started_at_is_treated_as_utc(self):
        """SQLite hands back naive datetimes."""
        instance = _instance(
            TestType.VISUAL_RETENTION, started_at=STARTED.replace(tzinfo=None)
        )

        assert remaining_seconds(instance, now=STARTED + timedelta(seconds=60)) == 1140

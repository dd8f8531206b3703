"""
Remaining time for time-boxed test types.

Advisory only: an attempt whose time has run out can still be submitted.
"""
from datetime import datetime
from typing import Optional

from app.core.datetime_utils import elapsed_seconds, utc_now
from app.core.test_types import get_test_type_config
from app.models.models import TestInstance, TestStatus


def remaining_seconds(
    instance: TestInstance, now: Optional[datetime] = None
) -> Optional[int]:
    """
    Seconds left on the clock, or None when there is no limit to report.

    None is returned for types without a time limit and for attempts that
    are not in progress. The result never drops below zero.
    """
    if instance.status != TestStatus.IN_PROGRESS or instance.started_at is None:
        return None

    limit = get_test_type_config(instance.test_type).time_limit_seconds
    if limit is None:
        return None

    elapsed = elapsed_seconds(instance.started_at, now or utc_now())
    return max(0, limit - elapsed)

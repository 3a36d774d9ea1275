"""Response-window checks for published surveys.

Nothing here is cached: every call reads the wall clock so that a polling UI
sees a survey flip to expired on the first tick after its deadline.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.surveys.constants import DURATION_UNIT_SECONDS, DurationUnit
from app.surveys.schemas import Survey


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    if expires_at is None:
        return False
    return expires_at < (now or _now())


def compute_expires_at(
    duration_value: int | None,
    duration_unit: DurationUnit | str,
    now: datetime | None = None,
) -> datetime | None:
    """Deadline set when a survey is published with a response window.

    Returns None for ``DurationUnit.NONE`` or a missing/non-positive value,
    which means the survey never expires.
    """
    seconds = DURATION_UNIT_SECONDS.get(duration_unit)
    if seconds is None or not duration_value or duration_value <= 0:
        return None
    return (now or _now()) + timedelta(seconds=duration_value * seconds)


def is_accepting_responses(survey: Survey, now: datetime | None = None) -> bool:
    return survey.is_published and not is_expired(survey.expires_at, now)

"""Date normalization utility for meeting-relative date parsing.

Converts natural language due dates (e.g., "Friday", "in two weeks")
to concrete dates, using the meeting date as the reference point.
"""

from datetime import date, datetime

import dateparser

from src.models.base import utc_now


def normalize_due_date(
    raw_date: str | None,
    meeting_date: datetime | None,
) -> date | None:
    """Convert a natural language due date to a date.

    ISO dates ("2026-03-01") are taken as-is; anything else is parsed by
    dateparser relative to the meeting, preferring future dates.

    Args:
        raw_date: Due date as spoken (e.g., "Friday", "January 25th")
        meeting_date: When the meeting happened; falls back to now if unknown

    Returns:
        Parsed date, or None if raw_date is empty or unparseable

    Examples:
        >>> from datetime import datetime
        >>> meeting = datetime(2026, 1, 18)
        >>> normalize_due_date("Friday", meeting)
        datetime.date(2026, 1, 23)
        >>> normalize_due_date(None, meeting)
        None
    """
    if raw_date is None or not raw_date.strip():
        return None

    raw_date = raw_date.strip()
    try:
        return date.fromisoformat(raw_date)
    except ValueError:
        pass

    reference = meeting_date or utc_now()
    if reference.tzinfo is not None:
        reference = reference.replace(tzinfo=None)

    settings: dict = {
        "RELATIVE_BASE": reference,
        "PREFER_DATES_FROM": "future",
        "RETURN_AS_TIMEZONE_AWARE": False,
    }

    try:
        parsed = dateparser.parse(raw_date, settings=settings)
    except Exception:
        # dateparser can raise various exceptions on malformed input
        return None
    return parsed.date() if parsed else None

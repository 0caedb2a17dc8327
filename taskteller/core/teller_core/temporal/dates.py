"""Calendar date phrase resolution.

Phrases are resolved against an explicit reference instant ``now`` so the
same phrase always yields the same date for the same ``now``. Recognized
forms, in precedence order:

1. relative keywords ("today", "tomorrow", "next week")
2. a weekday name anywhere in the phrase ("monday", "on friday")
3. explicit dates from ``DATE_FORMATS`` ("December 11, 2025", "12/11/2025")
4. ISO 8601 ("2025-12-11", "2025-12-11T16:00:00")
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)


RELATIVE_KEYWORDS: Dict[str, Callable[[date], date]] = {
    "today": lambda today: today,
    "tomorrow": lambda today: today + relativedelta(days=1),
    "next week": lambda today: today + relativedelta(weeks=1),
}

# Python weekday numbers (Monday == 0), checked in this order for containment
WEEKDAYS: List[Tuple[str, int]] = [
    ("sunday", 6),
    ("monday", 0),
    ("tuesday", 1),
    ("wednesday", 2),
    ("thursday", 3),
    ("friday", 4),
    ("saturday", 5),
]

# (strptime format, includes year). First format that parses the whole phrase wins.
DATE_FORMATS: List[Tuple[str, bool]] = [
    ("%B %d, %Y", True),    # December 11, 2025
    ("%B %d %Y", True),     # December 11 2025
    ("%B %d", False),       # December 11
    ("%b %d, %Y", True),    # Dec 11, 2025
    ("%b %d %Y", True),     # Dec 11 2025
    ("%b %d", False),       # Dec 11
    ("%Y-%m-%d", True),     # 2025-12-11
    ("%m/%d/%Y", True),     # 12/11/2025
    ("%m-%d-%Y", True),     # 12-11-2025
    ("%d %B %Y", True),     # 11 December 2025
    ("%d %B", False),       # 11 December
]


def resolve_date(phrase: Optional[str], now: datetime) -> Optional[date]:
    """Resolve a date phrase to a calendar date.

    Args:
        phrase: Raw date phrase from the model reply
        now: Reference instant; its calendar date is "today"

    Returns:
        The resolved date, or None if no rule matches
    """
    if not phrase:
        return None

    text = phrase.strip().lower()
    if not text:
        return None

    today = now.date()

    resolved = (
        _resolve_keyword(text, today)
        or _resolve_weekday(text, today)
        or _resolve_explicit_format(text, now)
        or _resolve_iso(text)
    )

    if resolved is None:
        logger.debug(f"No date rule matched phrase {phrase!r}")
    return resolved


def _resolve_keyword(text: str, today: date) -> Optional[date]:
    shift = RELATIVE_KEYWORDS.get(text)
    return shift(today) if shift else None


def _resolve_weekday(text: str, today: date) -> Optional[date]:
    """Next occurrence of a named weekday, never today itself."""
    for name, weekday in WEEKDAYS:
        if name in text:
            days_ahead = weekday - today.weekday()
            if days_ahead <= 0:
                days_ahead += 7
            return today + timedelta(days=days_ahead)
    return None


def _resolve_explicit_format(text: str, now: datetime) -> Optional[date]:
    for fmt, has_year in DATE_FORMATS:
        try:
            if has_year:
                return datetime.strptime(text, fmt).date()
            # 2000 is a leap year, so "February 29" still parses here
            parsed = datetime.strptime(f"{text} 2000", f"{fmt} %Y")
        except ValueError:
            continue
        return _upcoming(parsed.month, parsed.day, now)

    return None


def _upcoming(month: int, day: int, now: datetime) -> date:
    """This year's month/day, or a later year's if its start is already behind ``now``.

    The day counts from midnight, so today's month/day said after midnight
    rolls to next year.
    """
    year = now.year
    while True:
        try:
            candidate = date(year, month, day)
        except ValueError:
            # February 29 outside a leap year
            year += 1
            continue
        if datetime.combine(candidate, time(0), tzinfo=now.tzinfo) >= now:
            return candidate
        year += 1


def _resolve_iso(text: str) -> Optional[date]:
    try:
        return datetime.fromisoformat(text.upper().replace("Z", "+00:00")).date()
    except ValueError:
        return None

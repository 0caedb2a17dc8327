"""Construction of resolved tasks from decoded fragments."""

import logging
from datetime import datetime
from typing import Optional

from ..temporal import combine, resolve_date, resolve_time
from .models import RawTaskFragment, ResolvedTask, TaskCategory, TaskPriority

logger = logging.getLogger(__name__)


def resolve_due_date(
    date_phrase: Optional[str],
    time_phrase: Optional[str],
    now: datetime
) -> Optional[datetime]:
    """Resolve separate date and time phrases into one timestamp.

    A time without a resolvable date is discarded rather than assumed to be
    today. A date whose time phrase is missing or unrecognized falls back to
    the start of that day.
    """
    if not date_phrase:
        if time_phrase:
            logger.debug(f"Discarding time {time_phrase!r} with no date")
        return None

    day = resolve_date(date_phrase, now)
    if day is None:
        return None

    clock = resolve_time(time_phrase) if time_phrase else None
    return combine(day, clock, now.tzinfo)


def build_task(fragment: RawTaskFragment, now: datetime) -> ResolvedTask:
    """Build a ResolvedTask from one fragment.

    Args:
        fragment: Decoded fragment from the model reply
        now: Reference instant for relative date phrases

    Returns:
        ResolvedTask with defaults applied for missing or unknown fields
    """
    return ResolvedTask(
        title=fragment.title,
        due_date=resolve_due_date(fragment.due_date_phrase, fragment.due_time_phrase, now),
        priority=TaskPriority.from_phrase(fragment.priority_phrase),
        category=TaskCategory.from_phrase(fragment.category_phrase),
        notes=fragment.notes,
    )

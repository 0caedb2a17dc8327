"""Composition of resolved dates and times into absolute timestamps."""

from datetime import date, datetime, time, tzinfo
from typing import Optional

from .times import ClockTime


def combine(day: date, clock: Optional[ClockTime] = None, tz: Optional[tzinfo] = None) -> datetime:
    """Build the timestamp for ``day`` at ``clock`` (midnight when absent).

    The result is composed from calendar components in ``tz``, so UTC offsets
    such as daylight-saving shifts come from the timezone rules rather than
    from adding hours to midnight. ``tz=None`` yields naive local wall time.
    """
    wall = time(clock.hour, clock.minute) if clock else time(0, 0)
    return datetime.combine(day, wall, tzinfo=tz)

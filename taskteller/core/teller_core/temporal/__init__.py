"""Date and time phrase resolution for TaskTeller."""

from .times import ClockTime, resolve_time, TIME_PATTERNS
from .dates import resolve_date, DATE_FORMATS, RELATIVE_KEYWORDS
from .combine import combine

__all__ = [
    "ClockTime",
    "resolve_time",
    "TIME_PATTERNS",
    "resolve_date",
    "DATE_FORMATS",
    "RELATIVE_KEYWORDS",
    "combine",
]

"""Time-of-day phrase resolution."""

import re
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ClockTime:
    """A resolved hour/minute pair on a 24-hour clock."""
    hour: int
    minute: int = 0

    def __post_init__(self):
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour must be in 0..23, got {self.hour}")
        if not 0 <= self.minute <= 59:
            raise ValueError(f"minute must be in 0..59, got {self.minute}")

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


# Tried in order, first match wins. Group 1 is the hour, group 2 (if any) the minute.
TIME_PATTERNS = [
    ("meridiem", re.compile(r"(?<![\d:])(\d{1,2})\s*(?:am|pm)\b")),   # 4 PM, 4pm
    ("clock", re.compile(r"(\d{1,2}):(\d{2})(?:\s*(?:am|pm)\b)?")),    # 4:30 pm, 16:00
    ("bare_hour", re.compile(r"(\d{1,2})")),                           # 16
]


def resolve_time(phrase: Optional[str]) -> Optional[ClockTime]:
    """Resolve a time phrase such as "4 PM", "4:30 pm" or "16:00".

    A meridiem token anywhere in the phrase applies 12-hour correction;
    without one the hour is read as 24-hour.

    Args:
        phrase: Raw time phrase from the model reply

    Returns:
        ClockTime, or None when no pattern matches or the values are out of range
    """
    if not phrase:
        return None

    text = phrase.strip().lower()

    for _name, pattern in TIME_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue

        hour = int(match.group(1))
        minute = int(match.group(2)) if pattern.groups > 1 else 0

        if "pm" in text and hour < 12:
            hour += 12
        elif "am" in text and hour == 12:
            hour = 0

        try:
            return ClockTime(hour=hour, minute=minute)
        except ValueError:
            return None

    return None

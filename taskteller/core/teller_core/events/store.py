"""Event store implementation with JSONL persistence."""

import json
import logging
from pathlib import Path
from typing import Iterator, List

from pydantic import ValidationError

from .schemas import BaseEvent, EVENT_TYPES

logger = logging.getLogger(__name__)


class EventStore:
    """Append-only event store with JSONL persistence."""

    def __init__(self, data_dir: str = "data"):
        """Initialize event store.

        Args:
            data_dir: Directory for storing event logs (default: "data")
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.event_log_path = self.data_dir / "events.log"

    def append(self, event: BaseEvent) -> str:
        """Append an event to the store.

        Args:
            event: Event to append

        Returns:
            The event ID of the appended event
        """
        with open(self.event_log_path, "a") as f:
            f.write(event.model_dump_json() + "\n")

        return event.event_id

    def read_all(self) -> List[BaseEvent]:
        """Read all events in chronological order."""
        return list(self.read_events())

    def read_events(self) -> Iterator[BaseEvent]:
        """Stream events from the store.

        Lines that are not valid JSON, or do not fit their event schema, are
        skipped with a warning so one bad record does not hide the rest of the
        log.
        """
        if not self.event_log_path.exists():
            return

        with open(self.event_log_path, "r") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    event = self._parse_event(json.loads(line))
                except (json.JSONDecodeError, ValidationError, TypeError) as e:
                    logger.warning(f"Skipping corrupt event at line {line_number}: {e}")
                    continue
                yield event

    def _parse_event(self, event_data: dict) -> BaseEvent:
        """Parse event data into its typed event class (BaseEvent if unknown)."""
        if not isinstance(event_data, dict):
            raise TypeError(f"expected a JSON object, got {type(event_data).__name__}")
        event_class = EVENT_TYPES.get(event_data.get("event_type"), BaseEvent)
        return event_class(**event_data)

    def count(self) -> int:
        """Count total number of events in the store."""
        if not self.event_log_path.exists():
            return 0

        with open(self.event_log_path, "r") as f:
            return sum(1 for line in f if line.strip())

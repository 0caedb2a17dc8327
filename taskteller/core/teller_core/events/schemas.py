"""Event schema definitions for TaskTeller."""

from datetime import datetime, UTC
from typing import Any, Dict, Literal
from uuid import uuid4

from pydantic import BaseModel, Field


class BaseEvent(BaseModel):
    """Base event schema with common fields."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    event_type: str
    source: str = "cli"
    payload: Dict[str, Any]


class TaskCreatedEvent(BaseEvent):
    """A resolved task saved for an owner.

    Payload: task_id, owner_id, title, notes, due_date (ISO string or None),
    priority, category, source_text.
    """

    event_type: Literal["task_created"] = "task_created"


class TaskCompletedEvent(BaseEvent):
    """Event for marking tasks as completed."""

    event_type: Literal["task_completed"] = "task_completed"


class TaskDeletedEvent(BaseEvent):
    event_type: Literal["task_deleted"] = "task_deleted"


class TaskUpdatedEvent(BaseEvent):
    """User edits to a stored task.

    Payload: task_id plus only the changed fields (title, notes, due_date,
    priority, category).
    """

    event_type: Literal["task_updated"] = "task_updated"


class TaskReopenedEvent(BaseEvent):
    """A completed task marked incomplete again."""

    event_type: Literal["task_reopened"] = "task_reopened"


# Type alias for all event types
Event = TaskCreatedEvent | TaskCompletedEvent | TaskDeletedEvent | TaskUpdatedEvent | TaskReopenedEvent

EVENT_TYPES: Dict[str, type] = {
    "task_created": TaskCreatedEvent,
    "task_completed": TaskCompletedEvent,
    "task_deleted": TaskDeletedEvent,
    "task_updated": TaskUpdatedEvent,
    "task_reopened": TaskReopenedEvent,
}

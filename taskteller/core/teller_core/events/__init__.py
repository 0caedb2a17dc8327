"""Event system for TaskTeller."""

from .schemas import (
    BaseEvent,
    Event,
    TaskCreatedEvent,
    TaskCompletedEvent,
    TaskDeletedEvent,
    TaskUpdatedEvent,
    TaskReopenedEvent,
)
from .store import EventStore

__all__ = [
    "BaseEvent",
    "Event",
    "TaskCreatedEvent",
    "TaskCompletedEvent",
    "TaskDeletedEvent",
    "TaskUpdatedEvent",
    "TaskReopenedEvent",
    "EventStore",
]

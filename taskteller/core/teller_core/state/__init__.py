"""State management for TaskTeller."""

from .models import (
    TaskItem,
    BoardStats,
    TaskBoard,
)
from .projector import StateProjector, project_events_to_state
from .repository import TaskRepository, SaveOutcome

__all__ = [
    "TaskItem",
    "BoardStats",
    "TaskBoard",
    "StateProjector",
    "project_events_to_state",
    "TaskRepository",
    "SaveOutcome",
]

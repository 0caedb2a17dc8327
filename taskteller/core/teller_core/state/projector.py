"""State projection logic for replaying events."""

import logging
from typing import List

from pydantic import ValidationError

from ..events import BaseEvent
from .models import EDITABLE_FIELDS, BoardStats, TaskBoard, TaskItem

logger = logging.getLogger(__name__)


class StateProjector:
    """Projects events into the current task board."""

    def project_state(self, events: List[BaseEvent]) -> TaskBoard:
        """Project a list of events into the current state.

        Args:
            events: List of events in chronological order

        Returns:
            Current derived board
        """
        board = TaskBoard()

        for event in events:
            self._apply_event(board, event)

        self._update_stats(board)
        return board

    def _apply_event(self, board: TaskBoard, event: BaseEvent) -> None:
        if event.event_type == "task_created":
            self._apply_task_created(board, event)
        elif event.event_type == "task_completed":
            self._apply_task_completed(board, event)
        elif event.event_type == "task_updated":
            self._apply_task_updated(board, event)
        elif event.event_type == "task_reopened":
            task = board.tasks.get(event.payload.get("task_id", ""))
            if task is not None:
                board.tasks[task.task_id] = task.model_copy(update={"completed_at": None})
        elif event.event_type == "task_deleted":
            board.tasks.pop(event.payload.get("task_id", ""), None)

        board.last_event_processed = event.event_id
        board.stats.total_events += 1
        board.stats.last_activity = event.timestamp

    def _apply_task_created(self, board: TaskBoard, event: BaseEvent) -> None:
        payload = event.payload

        task = TaskItem(
            task_id=payload.get("task_id", event.event_id),
            owner_id=payload.get("owner_id", ""),
            title=payload.get("title", ""),
            notes=payload.get("notes"),
            due_date=payload.get("due_date"),
            priority=payload.get("priority", "medium"),
            category=payload.get("category", "other"),
            created_at=event.timestamp,
            source_text=payload.get("source_text"),
        )

        board.tasks[task.task_id] = task

    def _apply_task_completed(self, board: TaskBoard, event: BaseEvent) -> None:
        task_id = event.payload.get("task_id")

        if task_id in board.tasks:
            task = board.tasks[task_id]
            board.tasks[task_id] = task.model_copy(update={"completed_at": event.timestamp})

    def _apply_task_updated(self, board: TaskBoard, event: BaseEvent) -> None:
        task = board.tasks.get(event.payload.get("task_id", ""))
        if task is None:
            return

        changes = {k: v for k, v in event.payload.items() if k in EDITABLE_FIELDS}
        try:
            board.tasks[task.task_id] = TaskItem.model_validate({**task.model_dump(), **changes})
        except ValidationError as e:
            logger.warning(f"Ignoring invalid update {event.event_id} for task {task.task_id}: {e}")

    def _update_stats(self, board: TaskBoard) -> None:
        completed = sum(1 for task in board.tasks.values() if task.is_completed)

        board.stats = BoardStats(
            total_events=board.stats.total_events,
            active_tasks=len(board.tasks) - completed,
            completed_tasks=completed,
            last_activity=board.stats.last_activity,
        )


def project_events_to_state(events: List[BaseEvent]) -> TaskBoard:
    """Convenience function to project events to a board."""
    return StateProjector().project_state(events)

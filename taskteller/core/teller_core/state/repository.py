"""Task persistence on top of the event store."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..events import (
    EventStore,
    TaskCompletedEvent,
    TaskCreatedEvent,
    TaskDeletedEvent,
    TaskReopenedEvent,
    TaskUpdatedEvent,
)
from ..parsing.models import ResolvedTask
from .models import EDITABLE_FIELDS, TaskBoard, TaskItem
from .projector import project_events_to_state

logger = logging.getLogger(__name__)


@dataclass
class SaveOutcome:
    """Result of persisting one task from a batch."""
    task_id: str
    title: str
    saved: bool
    error: Optional[str] = None


class TaskRepository:
    """Stores resolved tasks for an owner and reads them back as a board."""

    def __init__(self, store: EventStore):
        self.store = store

    def save_task(self, task: ResolvedTask, owner_id: str, source_text: Optional[str] = None) -> str:
        """Persist one task.

        Returns:
            The event ID of the stored task_created event

        Raises:
            ValueError: No owner given
            OSError: The event log could not be written
        """
        if not owner_id:
            raise ValueError("Cannot save a task without an owner")

        event = TaskCreatedEvent(
            payload={
                "task_id": task.id,
                "owner_id": owner_id,
                "title": task.title,
                "notes": task.notes,
                "due_date": task.due_date.isoformat() if task.due_date else None,
                "priority": task.priority.value,
                "category": task.category.value,
                "source_text": source_text,
            }
        )
        return self.store.append(event)

    def save_tasks(
        self,
        tasks: List[ResolvedTask],
        owner_id: str,
        source_text: Optional[str] = None
    ) -> List[SaveOutcome]:
        """Persist each task independently.

        A failure on one task is recorded in its outcome; the remaining tasks
        are still attempted and earlier saves are kept.

        Raises:
            ValueError: No owner given
        """
        if not owner_id:
            raise ValueError("Cannot save tasks without an owner")

        outcomes = []
        for task in tasks:
            try:
                self.save_task(task, owner_id, source_text)
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Failed to save task {task.id} ({task.title!r}): {e}")
                outcomes.append(SaveOutcome(task_id=task.id, title=task.title, saved=False, error=str(e)))
            else:
                outcomes.append(SaveOutcome(task_id=task.id, title=task.title, saved=True))

        saved = sum(1 for outcome in outcomes if outcome.saved)
        logger.info(f"Saved {saved}/{len(outcomes)} task(s) for {owner_id}")
        return outcomes

    def load_board(self, owner_id: Optional[str] = None) -> TaskBoard:
        """Replay the event log, optionally keeping only one owner's tasks."""
        board = project_events_to_state(self.store.read_all())
        return board.for_owner(owner_id) if owner_id else board

    def complete_task(self, identifier: str, owner_id: Optional[str] = None) -> Optional[TaskItem]:
        """Mark a task completed by ID or ID prefix. Returns None if not found."""
        task = self.load_board(owner_id).find_task(identifier)
        if task is None:
            return None
        if not task.is_completed:
            self.store.append(TaskCompletedEvent(payload={"task_id": task.task_id}))
        return task

    def reopen_task(self, identifier: str, owner_id: Optional[str] = None) -> Optional[TaskItem]:
        """Mark a completed task incomplete again. Returns None if not found."""
        task = self.load_board(owner_id).find_task(identifier)
        if task is None:
            return None
        if task.is_completed:
            self.store.append(TaskReopenedEvent(payload={"task_id": task.task_id}))
        return task.model_copy(update={"completed_at": None})

    def update_task(
        self,
        identifier: str,
        changes: Dict[str, Any],
        owner_id: Optional[str] = None
    ) -> Optional[TaskItem]:
        """Apply user edits to a task found by ID or ID prefix.

        Only fields whose value actually changes are recorded, and nothing is
        appended when none do.

        Args:
            identifier: Task ID or unique ID prefix
            changes: New values keyed by field (title, notes, due_date, priority, category)
            owner_id: Restrict the lookup to this owner's tasks

        Returns:
            The edited task, or None if no single task matches

        Raises:
            ValueError: Unknown field or blank title
            ValidationError: A value of the wrong type
        """
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValueError(f"Cannot edit field(s): {', '.join(unknown)}")
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValueError("Task title cannot be empty")

        task = self.load_board(owner_id).find_task(identifier)
        if task is None:
            return None

        updated = TaskItem.model_validate({**task.model_dump(), **changes})
        changed = {name for name in changes if getattr(updated, name) != getattr(task, name)}
        if not changed:
            return task

        payload = updated.model_dump(mode="json", include=changed)
        self.store.append(TaskUpdatedEvent(payload={"task_id": task.task_id, **payload}))
        logger.info(f"Updated {', '.join(sorted(changed))} on task {task.task_id}")
        return updated

    def delete_task(self, identifier: str, owner_id: Optional[str] = None) -> Optional[TaskItem]:
        task = self.load_board(owner_id).find_task(identifier)
        if task is None:
            return None
        self.store.append(TaskDeletedEvent(payload={"task_id": task.task_id}))
        return task

"""State models for TaskTeller."""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..parsing.models import TaskCategory, TaskPriority

# TaskItem fields a task_updated event may change
EDITABLE_FIELDS = ("title", "notes", "due_date", "priority", "category")


def normalize_for_comparison(value: datetime, now: datetime) -> datetime:
    """Bring ``value`` onto the same naive/aware footing as ``now``."""
    if value.tzinfo is None and now.tzinfo is not None:
        return value.replace(tzinfo=now.tzinfo)
    if value.tzinfo is not None and now.tzinfo is None:
        return value.astimezone().replace(tzinfo=None)
    return value


class TaskItem(BaseModel):
    """A stored task owned by one user."""

    task_id: str
    owner_id: str
    title: str
    notes: Optional[str] = None
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category: TaskCategory = TaskCategory.OTHER
    created_at: datetime
    completed_at: Optional[datetime] = None
    source_text: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def has_time(self) -> bool:
        """True when the due timestamp carries a time other than midnight."""
        return self.due_date is not None and (self.due_date.hour, self.due_date.minute) != (0, 0)

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on title or notes."""
        needle = query.lower()
        return needle in self.title.lower() or needle in (self.notes or "").lower()

    def is_overdue(self, now: datetime) -> bool:
        if self.due_date is None or self.is_completed:
            return False
        return normalize_for_comparison(self.due_date, now) < now

    def is_due_on(self, now: datetime) -> bool:
        """True when the task falls on the calendar day of ``now``."""
        if self.due_date is None:
            return False
        return normalize_for_comparison(self.due_date, now).date() == now.date()


class BoardStats(BaseModel):
    """Counts derived from the event log."""

    total_events: int = 0
    active_tasks: int = 0
    completed_tasks: int = 0
    last_activity: Optional[datetime] = None


class TaskBoard(BaseModel):
    """Current tasks, derived by replaying the event log."""

    tasks: Dict[str, TaskItem] = Field(default_factory=dict)
    stats: BoardStats = Field(default_factory=BoardStats)
    last_event_processed: Optional[str] = None

    def for_owner(self, owner_id: str) -> "TaskBoard":
        """A board holding only ``owner_id``'s tasks."""
        tasks = {k: t for k, t in self.tasks.items() if t.owner_id == owner_id}
        completed = sum(1 for t in tasks.values() if t.is_completed)
        return TaskBoard(
            tasks=tasks,
            stats=self.stats.model_copy(
                update={"active_tasks": len(tasks) - completed, "completed_tasks": completed}
            ),
            last_event_processed=self.last_event_processed,
        )

    def get_incomplete(self) -> List[TaskItem]:
        return [task for task in self.tasks.values() if not task.is_completed]

    def get_completed(self) -> List[TaskItem]:
        """Completed tasks, most recently completed first."""
        return sorted(
            (task for task in self.tasks.values() if task.is_completed),
            key=lambda t: t.completed_at,
            reverse=True
        )

    def get_due_today(self, now: datetime) -> List[TaskItem]:
        return self._sorted_by_due([t for t in self.get_incomplete() if t.is_due_on(now)], now)

    def get_overdue(self, now: datetime) -> List[TaskItem]:
        return self._sorted_by_due([t for t in self.get_incomplete() if t.is_overdue(now)], now)

    def get_upcoming(self, now: datetime) -> List[TaskItem]:
        """Incomplete tasks due on a later calendar day than ``now``."""
        upcoming = [
            t for t in self.get_incomplete()
            if t.due_date is not None and normalize_for_comparison(t.due_date, now).date() > now.date()
        ]
        return self._sorted_by_due(upcoming, now)

    def search(self, query: str) -> List[TaskItem]:
        """Tasks whose title or notes contain ``query``; every task when it is blank."""
        query = query.strip()
        if not query:
            return list(self.tasks.values())
        return [task for task in self.tasks.values() if task.matches(query)]

    def find_task(self, identifier: str) -> Optional[TaskItem]:
        """Find a task by full ID or unique ID prefix."""
        if not identifier:
            return None
        if identifier in self.tasks:
            return self.tasks[identifier]
        matches = [t for task_id, t in self.tasks.items() if task_id.startswith(identifier)]
        return matches[0] if len(matches) == 1 else None

    @staticmethod
    def _sorted_by_due(tasks: List[TaskItem], now: datetime) -> List[TaskItem]:
        return sorted(tasks, key=lambda t: normalize_for_comparison(t.due_date, now))

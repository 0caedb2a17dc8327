"""Data models for task extraction results."""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class TaskPriority(str, Enum):
    """Priority levels for tasks."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @property
    def rank(self) -> int:
        """Sort key; higher is more urgent."""
        return list(TaskPriority).index(self)

    @classmethod
    def default(cls) -> "TaskPriority":
        return cls.MEDIUM

    @classmethod
    def from_phrase(cls, phrase: Optional[str]) -> "TaskPriority":
        """Case-insensitive lookup; anything unrecognized is the default."""
        try:
            return cls((phrase or "").strip().lower())
        except ValueError:
            return cls.default()


class TaskCategory(str, Enum):
    """Category types for organizing tasks."""
    WORK = "work"
    PERSONAL = "personal"
    SCHOOL = "school"
    HEALTH = "health"
    SHOPPING = "shopping"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def default(cls) -> "TaskCategory":
        return cls.OTHER

    @classmethod
    def from_phrase(cls, phrase: Optional[str]) -> "TaskCategory":
        """Case-insensitive lookup; anything unrecognized is the default."""
        try:
            return cls((phrase or "").strip().lower())
        except ValueError:
            return cls.default()


class RawTaskFragment(BaseModel):
    """One task as described by the model reply, before any resolution."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    due_date_phrase: Optional[str] = Field(default=None, alias="dueDate")
    due_time_phrase: Optional[str] = Field(default=None, alias="dueTime")
    priority_phrase: Optional[str] = Field(default=None, alias="priority")
    category_phrase: Optional[str] = Field(default=None, alias="category")
    notes: Optional[str] = None


class MultiTaskReply(BaseModel):
    """The nominal reply shape: ``{"tasks": [...]}``."""

    model_config = ConfigDict(extra="ignore")

    tasks: List[RawTaskFragment]


class ResolvedTask(BaseModel):
    """A task with resolved priority, category and due timestamp."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    due_date: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category: TaskCategory = TaskCategory.OTHER
    notes: Optional[str] = None

    @property
    def has_time(self) -> bool:
        """True when the due timestamp carries a time other than midnight."""
        return self.due_date is not None and (self.due_date.hour, self.due_date.minute) != (0, 0)


class ExtractionResult(BaseModel):
    """Outcome of running one model reply through the pipeline."""

    tasks: List[ResolvedTask]
    strategy: str  # multi_task, single_task or original_text
    source_text: str

    @property
    def used_fallback(self) -> bool:
        return self.strategy == "original_text"

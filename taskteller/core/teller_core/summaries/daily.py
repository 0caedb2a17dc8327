"""Daily summary generation for the tasks due today."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import List

from ..llm import LLMError, LLMService
from ..parsing.models import TaskPriority
from ..state import TaskBoard, TaskItem

logger = logging.getLogger(__name__)


@dataclass
class DailyDigest:
    """Today's open tasks and what is already overdue."""
    day: date
    due_today: List[TaskItem]
    overdue: List[TaskItem]

    @classmethod
    def from_board(cls, board: TaskBoard, now: datetime) -> "DailyDigest":
        return cls(
            day=now.date(),
            due_today=board.get_due_today(now),
            overdue=board.get_overdue(now),
        )

    @property
    def high_priority_count(self) -> int:
        return sum(1 for task in self.due_today if task.priority == TaskPriority.HIGH)


@dataclass
class DailySummary:
    text: str
    from_llm: bool


def basic_summary(digest: DailyDigest) -> str:
    """Plain summary used when the language model is unavailable."""
    if not digest.due_today and not digest.overdue:
        return "Nothing is due today."

    parts = [f"{len(digest.due_today)} task(s) due today"]
    if digest.high_priority_count:
        parts.append(f"{digest.high_priority_count} high priority")
    if digest.overdue:
        parts.append(f"{len(digest.overdue)} overdue")
    summary = ", ".join(parts) + "."
    if digest.due_today:
        summary += f" Next up: {digest.due_today[0].title}."
    return summary


class DailySummaryGenerator:
    """Summarize a day's tasks with the LLM, falling back to counts."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    async def generate(self, digest: DailyDigest, now: datetime) -> DailySummary:
        try:
            text = await self.llm_service.generate_daily_summary(
                digest.due_today, now, overdue_count=len(digest.overdue)
            )
        except LLMError as e:
            logger.warning(f"LLM summary failed, using basic summary: {e}")
            return DailySummary(text=basic_summary(digest), from_llm=False)
        if not text:
            logger.warning("LLM returned an empty summary, using basic summary")
            return DailySummary(text=basic_summary(digest), from_llm=False)
        return DailySummary(text=text, from_llm=True)

"""Prompt templates for LLM interactions."""

from datetime import datetime, timedelta
from typing import Sequence

from ..parsing.models import TaskCategory, TaskPriority
from ..state.models import TaskItem


class PromptTemplates:
    """Prompt templates for task extraction and daily summaries."""

    DATE_DISPLAY_FORMAT = "%A, %B %d, %Y"

    @staticmethod
    def task_extraction_system_prompt(now: datetime) -> str:
        """System prompt asking for a ``{"tasks": [...]}`` JSON reply.

        Args:
            now: Reference instant, used to anchor "today" and "tomorrow"

        Returns:
            System prompt text
        """
        today = now.strftime(PromptTemplates.DATE_DISPLAY_FORMAT)
        tomorrow = (now + timedelta(days=1)).strftime(PromptTemplates.DATE_DISPLAY_FORMAT)
        priorities = ", ".join(f'"{p.value}"' for p in TaskPriority)
        categories = ", ".join(f'"{c.value}"' for c in TaskCategory)

        return f"""You are a task parser. Extract ALL tasks from the user's input. The user may mention several tasks in one sentence.
Today's date is {today}.

Return a JSON object with a "tasks" array containing one object per task. Each task has:
- title: string (clear, concise task description)
- dueDate: string or null (in "MMMM d, yyyy" format like "December 11, 2025", or "today", "tomorrow", "next week", or a weekday name)
- dueTime: string or null (like "4 PM", "6:30 PM", "16:00")
- priority: string ({priorities}; use "high" for exams, deadlines and urgent items)
- category: string ({categories})
- notes: string or null

IMPORTANT:
- If the user mentions several distinct tasks or events, create a SEPARATE task object for each one
- "tomorrow" means {tomorrow}
- Exams and tests are "school" category and "high" priority

Example input: "I have a math exam on December 11 at 4 PM and an English exam the same day at 6 PM"
Example output: {{"tasks": [{{"title": "Math exam", "dueDate": "December 11, 2025", "dueTime": "4 PM", "priority": "high", "category": "school", "notes": null}}, {{"title": "English exam", "dueDate": "December 11, 2025", "dueTime": "6 PM", "priority": "high", "category": "school", "notes": null}}]}}

Return ONLY valid JSON, no additional text."""

    @staticmethod
    def task_extraction_user_prompt(text: str) -> str:
        return f"Parse these tasks: {text.strip()}"

    DAILY_SUMMARY_TASK_LIMIT = 5

    @staticmethod
    def daily_summary_system_prompt() -> str:
        return (
            "You are a friendly productivity assistant. Generate a brief, encouraging daily "
            "summary (2-3 sentences max). Be concise and positive."
        )

    @staticmethod
    def daily_summary_user_prompt(tasks: Sequence[TaskItem], now: datetime, overdue_count: int = 0) -> str:
        """Describe today's workload, listing at most ``DAILY_SUMMARY_TASK_LIMIT`` tasks.

        Args:
            tasks: Today's open tasks, most important first
            now: Reference instant, quoted as today's date
            overdue_count: Open tasks whose due time has already passed

        Returns:
            User prompt text
        """
        today = now.strftime(PromptTemplates.DATE_DISPLAY_FORMAT)
        lines = [f"Today is {today}. Today I have {len(tasks)} task(s) and {overdue_count} overdue task(s)."]
        if tasks:
            lines.append("My tasks:")
            lines.extend(
                f"- {task.title} (priority: {task.priority.display_name})"
                for task in tasks[:PromptTemplates.DAILY_SUMMARY_TASK_LIMIT]
            )
        else:
            lines.append("No specific tasks yet.")
        return "\n".join(lines)

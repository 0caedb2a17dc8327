"""Core commands for TaskTeller."""

import asyncio
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from taskteller.core.teller_core.config import AppConfig, current_time
from taskteller.core.teller_core.events import EventStore
from taskteller.core.teller_core.llm import LLMService, LLMError
from taskteller.core.teller_core.parsing import (
    ResolvedTask,
    TaskCategory,
    TaskPriority,
    extract_tasks,
    resolve_due_date,
)
from taskteller.core.teller_core.state import TaskItem, TaskRepository
from taskteller.core.teller_core.summaries import (
    DailyDigest,
    DailySummary,
    DailySummaryGenerator,
    basic_summary,
)

console = Console()


class BoardView(str, Enum):
    today = "today"
    overdue = "overdue"
    upcoming = "upcoming"
    completed = "completed"
    all = "all"


def get_repository(config: AppConfig) -> TaskRepository:
    return TaskRepository(EventStore(config.data_dir))


def format_due(task: Union[ResolvedTask, TaskItem]) -> str:
    if task.due_date is None:
        return "[dim]--[/dim]"
    if task.has_time:
        return task.due_date.strftime("%Y-%m-%d %H:%M")
    return task.due_date.strftime("%Y-%m-%d")


def _reference_time(now: Optional[str], config: AppConfig) -> datetime:
    if now is None:
        return current_time(config)
    try:
        parsed = datetime.fromisoformat(now)
    except ValueError:
        raise typer.BadParameter(f"Not an ISO 8601 timestamp: {now}", param_hint="--now")
    tz = config.get_tzinfo()
    return parsed.replace(tzinfo=tz) if parsed.tzinfo is None and tz else parsed


def _render_resolved(tasks: List[ResolvedTask]) -> None:
    table = Table(title="📝 Parsed Tasks", show_header=True, header_style="bold green")
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="white", min_width=20)
    table.add_column("Due", style="yellow", no_wrap=True)
    table.add_column("Priority", justify="center")
    table.add_column("Category", justify="center")

    for index, task in enumerate(tasks, start=1):
        table.add_row(
            str(index),
            task.title,
            format_due(task),
            task.priority.display_name,
            task.category.display_name,
        )
    console.print(table)


def _render_board(title: str, tasks: List[TaskItem]) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Task ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="white", min_width=20)
    table.add_column("Due", style="yellow", no_wrap=True)
    table.add_column("Priority", justify="center")
    table.add_column("Category", justify="center")

    for task in tasks:
        title_text = f"[dim strike]{task.title}[/dim strike]" if task.is_completed else task.title
        table.add_row(
            task.task_id[:8],
            title_text,
            format_due(task),
            task.priority.display_name,
            task.category.display_name,
        )
    console.print(table)


def parse(
    text: str = typer.Argument(..., help="The tasks, in your own words"),
    reply: Optional[str] = typer.Option(None, "--reply", "-r", help="Model reply to decode instead of calling the LLM"),
    reply_file: Optional[Path] = typer.Option(None, "--reply-file", exists=True, dir_okay=False, help="Read the model reply from a file"),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time for relative dates (ISO 8601)"),
    save: bool = typer.Option(False, "--save", "-s", help="Save the parsed tasks"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Owner ID for saved tasks"),
) -> None:
    """Turn natural-language input into tasks with resolved due dates."""
    config = AppConfig.load()
    trimmed_text = text.strip()
    if not trimmed_text:
        console.print("Please enter a task first", style="red")
        raise typer.Exit(code=1)

    reference = _reference_time(now, config)

    if reply_file is not None:
        reply = reply_file.read_text()

    if reply is None:
        try:
            reply = asyncio.run(LLMService().request_task_extraction(trimmed_text, reference))
        except LLMError as e:
            console.print(f"✗ Could not reach the language model: {e}", style="red")
            raise typer.Exit(code=1)

    result = extract_tasks(reply, trimmed_text, now=reference)

    _render_resolved(result.tasks)
    if result.used_fallback:
        console.print("⚠ Could not read structured tasks from the reply; kept your words as one task.", style="yellow")

    if not save:
        return

    outcomes = get_repository(config).save_tasks(result.tasks, owner or config.owner_id, source_text=trimmed_text)
    for outcome in outcomes:
        if outcome.saved:
            console.print(f"✓ Saved: {outcome.title} ({outcome.task_id[:8]})", style="green")
        else:
            console.print(f"✗ Failed to save {outcome.title}: {outcome.error}", style="red")

    if not all(outcome.saved for outcome in outcomes):
        raise typer.Exit(code=1)


def list_tasks(
    view: BoardView = typer.Option(BoardView.all, "--view", "-v", help="Which tasks to show"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Owner whose tasks to show"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Only tasks whose title or notes contain this text"),
) -> None:
    """List saved tasks."""
    config = AppConfig.load()
    board = get_repository(config).load_board(owner or config.owner_id)
    now = current_time(config)

    if view == BoardView.today:
        title, tasks = "📅 Due Today", board.get_due_today(now)
    elif view == BoardView.overdue:
        title, tasks = "⚠ Overdue", board.get_overdue(now)
    elif view == BoardView.upcoming:
        title, tasks = "🗓 Upcoming", board.get_upcoming(now)
    elif view == BoardView.completed:
        title, tasks = "🏁 Completed", board.get_completed()
    else:
        title, tasks = "✅ Open Tasks", board.get_incomplete()

    if search and search.strip():
        matching = {task.task_id for task in board.search(search)}
        tasks = [task for task in tasks if task.task_id in matching]
        if not tasks:
            console.print(f"• No tasks match '{search.strip()}'", style="dim")
            console.print("• Try a different search", style="dim")
            return
        title = f"{title} matching '{search.strip()}'"

    if not tasks:
        console.print("• No tasks to show", style="dim")
        console.print("• Try: taskteller parse \"call mom tomorrow at 5 pm\" --save", style="dim")
        return

    _render_board(title, tasks)
    console.print(f"Summary: {board.stats.active_tasks} open • {board.stats.completed_tasks} completed", style="dim")


def done(task_identifier: str = typer.Argument(..., help="Task ID or ID prefix")) -> None:
    """Mark a task as completed."""
    config = AppConfig.load()
    task = get_repository(config).complete_task(task_identifier, config.owner_id)
    if task is None:
        console.print(f"✗ No single task matches '{task_identifier}'", style="red")
        raise typer.Exit(code=1)
    console.print(f"✓ Completed: {task.title}", style="green")


def delete(task_identifier: str = typer.Argument(..., help="Task ID or ID prefix")) -> None:
    """Delete a task."""
    config = AppConfig.load()
    task = get_repository(config).delete_task(task_identifier, config.owner_id)
    if task is None:
        console.print(f"✗ No single task matches '{task_identifier}'", style="red")
        raise typer.Exit(code=1)
    console.print(f"✓ Deleted: {task.title}", style="green")


def reopen(task_identifier: str = typer.Argument(..., help="Task ID or ID prefix")) -> None:
    """Mark a completed task as not done."""
    config = AppConfig.load()
    task = get_repository(config).reopen_task(task_identifier, config.owner_id)
    if task is None:
        console.print(f"✗ No single task matches '{task_identifier}'", style="red")
        raise typer.Exit(code=1)
    console.print(f"✓ Reopened: {task.title}", style="green")


def edit(
    task_identifier: str = typer.Argument(..., help="Task ID or ID prefix"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    notes: Optional[str] = typer.Option(None, "--notes", help="New notes (an empty string clears them)"),
    due: Optional[str] = typer.Option(None, "--due", "-d", help='New due date, e.g. "tomorrow" or "December 11"'),
    at: Optional[str] = typer.Option(None, "--at", help='Time of day for --due, e.g. "4 pm"'),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
    priority: Optional[TaskPriority] = typer.Option(None, "--priority", "-p", case_sensitive=False),
    category: Optional[TaskCategory] = typer.Option(None, "--category", "-c", case_sensitive=False),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time for relative dates (ISO 8601)"),
) -> None:
    """Edit a saved task."""
    config = AppConfig.load()

    if due is not None and clear_due:
        raise typer.BadParameter("Use either --due or --clear-due, not both", param_hint="--due")
    if at is not None and due is None:
        raise typer.BadParameter("--at needs a --due date", param_hint="--at")

    changes = {}
    if title is not None:
        changes["title"] = title.strip()
    if notes is not None:
        changes["notes"] = notes.strip() or None
    if due is not None:
        due_date = resolve_due_date(due, at, _reference_time(now, config))
        if due_date is None:
            console.print(f"✗ Could not understand the date '{due}'", style="red")
            raise typer.Exit(code=1)
        changes["due_date"] = due_date
    elif clear_due:
        changes["due_date"] = None
    if priority is not None:
        changes["priority"] = priority
    if category is not None:
        changes["category"] = category

    if not changes:
        console.print("Nothing to change; pass --title, --notes, --due, --priority or --category", style="yellow")
        raise typer.Exit(code=1)

    try:
        task = get_repository(config).update_task(task_identifier, changes, config.owner_id)
    except ValueError as e:
        console.print(f"✗ {e}", style="red")
        raise typer.Exit(code=1)

    if task is None:
        console.print(f"✗ No single task matches '{task_identifier}'", style="red")
        raise typer.Exit(code=1)

    console.print(f"✓ Updated: {task.title}", style="green")
    _render_board("✏ Edited Task", [task])


def daily(
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO 8601)"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Owner whose tasks to summarize"),
) -> None:
    """Summarize what is due today."""
    config = AppConfig.load()
    reference = _reference_time(now, config)
    board = get_repository(config).load_board(owner or config.owner_id)
    digest = DailyDigest.from_board(board, reference)

    try:
        generator = DailySummaryGenerator(LLMService())
    except LLMError as e:
        console.print(f"⚠ Could not reach the language model: {e}", style="yellow")
        summary = DailySummary(text=basic_summary(digest), from_llm=False)
    else:
        summary = asyncio.run(generator.generate(digest, reference))

    console.print(Panel(
        summary.text,
        title=f"🌅 {reference.strftime('%A, %B %d')}",
        border_style="cyan" if summary.from_llm else "dim"
    ))
    if not summary.from_llm:
        console.print("⚠ Showing a basic summary; the language model did not answer.", style="yellow")

    if digest.overdue:
        _render_board("⚠ Overdue", digest.overdue)
    if digest.due_today:
        _render_board("📅 Due Today", digest.due_today)
    else:
        console.print("• Nothing due today", style="dim")

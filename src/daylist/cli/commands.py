# src/daylist/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import cast

from ..core.state import AppState
from ..tasks import task_api
from ..tasks.errors import StorageError, TaskListError
from ..tasks.sweeper import sweep_expired_lists
from ..tasks.task_models import Task, TaskListView

CommandEmitter = Callable[[str], None]
CommandHandler3 = Callable[[AppState, list[str], str], str]
CommandHandler4 = Callable[[AppState, list[str], str, CommandEmitter | None], str]
CommandHandler = CommandHandler3 | CommandHandler4

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        owner_id: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Rejected operations come back as "[kind] message"; they are never retried.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 4

        try:
            if nparams >= 4:
                h4 = cast(CommandHandler4, handler)
                return h4(state, args, owner_id, emit)
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, owner_id)
        except TaskListError as e:
            logger.info("/%s rejected: %s", name, e)
            return str(e)
        except StorageError:
            logger.exception("/%s failed in storage", name)
            return "Storage failure; try again later."

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _ts_local(state: AppState, ts: float | None) -> str:
    # Render in the clock's pinned timezone, not the host's.
    if ts is None:
        return "-"
    tz = state.clock.now().tzinfo
    return datetime.fromtimestamp(ts, tz=tz).strftime("%Y-%m-%d %H:%M:%S")


def _split_title(args: list[str]) -> tuple[str, str | None]:
    """'/add Title words | description words' -> ("Title words", "description words")."""
    text = " ".join(args)
    if "|" not in text:
        return text.strip(), None
    title, description = text.split("|", 1)
    return title.strip(), description.strip()


def _parse_id(raw: str) -> int | None:
    try:
        return int(raw)
    except ValueError:
        return None


def _format_task(task: Task) -> str:
    mark = "x" if task.is_completed else " "
    line = f"[{mark}] #{task.id} {task.title} ({task.percentage:.2f}%)"
    if task.description:
        line += f" - {task.description}"
    return line


def _format_view(view: TaskListView, label: str) -> str:
    if view.task_list is None:
        return f"No task list for {label}."
    lines = [f"Tasks for {label} [{view.state.value}] score {view.score:.2f}%:"]
    if not view.tasks:
        lines.append("  (no tasks)")
    for task in view.tasks:
        lines.append(f"  {task.position}. {_format_task(task)}")
    return "\n".join(lines)


def cmd_help(state: AppState, args: list[str], owner_id: str) -> str:
    return registry.build_help()


def cmd_today(state: AppState, args: list[str], owner_id: str) -> str:
    view = task_api.get_today(state, owner_id)
    return _format_view(view, "today")


def cmd_add(state: AppState, args: list[str], owner_id: str) -> str:
    title, description = _split_title(args)
    if not title:
        return "Usage: /add <title> [| description]"
    task = task_api.create_task(state, owner_id, title=title, description=description)
    return f"Added {_format_task(task)}"


def cmd_edit(state: AppState, args: list[str], owner_id: str) -> str:
    """
    /edit <id> <title>                -> rename
    /edit <id> <title> | <description> -> rename + new description
    """
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /edit <id> <title> [| description]"
    title, description = _split_title(args[1:])
    task = task_api.update_task(
        state, owner_id, task_id, title=title or None, description=description
    )
    return f"Updated {_format_task(task)}"


def cmd_desc(state: AppState, args: list[str], owner_id: str) -> str:
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /desc <id> <description>"
    task = task_api.update_task(state, owner_id, task_id, description=" ".join(args[1:]))
    return f"Updated {_format_task(task)}"


def cmd_rm(state: AppState, args: list[str], owner_id: str) -> str:
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /rm <id>"
    remaining = task_api.delete_task(state, owner_id, task_id)
    return f"Deleted #{task_id}. {len(remaining)} task(s) left."


def cmd_order(state: AppState, args: list[str], owner_id: str) -> str:
    ids = [_parse_id(a) for a in args]
    if not ids or any(i is None for i in ids):
        return "Usage: /order <id> <id> ... (every task of the list, highest priority first)"
    tasks = task_api.reorder_tasks(state, owner_id, [i for i in ids if i is not None])
    return "Reordered:\n" + "\n".join(f"  {t.position}. {_format_task(t)}" for t in tasks)


def cmd_done(state: AppState, args: list[str], owner_id: str) -> str:
    task_id = _parse_id(args[0]) if args else None
    if task_id is None:
        return "Usage: /done <id>"
    task = task_api.toggle_completion(state, owner_id, task_id)
    return _format_task(task)


def cmd_submit(state: AppState, args: list[str], owner_id: str) -> str:
    task_api.submit_list(state, owner_id)
    return "Task list submitted."


def cmd_close(state: AppState, args: list[str], owner_id: str) -> str:
    task_api.close_list(state, owner_id)
    return "Task list closed."


def cmd_reopen(state: AppState, args: list[str], owner_id: str) -> str:
    task_api.reopen_list(state, owner_id)
    return "Task list reopened."


def cmd_status(state: AppState, args: list[str], owner_id: str) -> str:
    status = task_api.get_list_status(state, owner_id)
    if not status.exists:
        return "No task list for today yet."
    return (
        "Status:\n"
        f"  State: {status.state.value}\n"
        f"  Submitted at: {_ts_local(state, status.submitted_at)}\n"
        f"  Closed at: {_ts_local(state, status.closed_at)}"
    )


def cmd_history(state: AppState, args: list[str], owner_id: str) -> str:
    if not args:
        return "Usage: /history <YYYY-MM-DD>"
    try:
        day = date.fromisoformat(args[0])
    except ValueError:
        return f"Not a date: {args[0]} (expected YYYY-MM-DD)."
    view = task_api.get_tasks_for_date(state, owner_id, day)
    return _format_view(view, day.isoformat())


def cmd_copy(state: AppState, args: list[str], owner_id: str) -> str:
    result = task_api.copy_from_latest(state, owner_id)
    return f"Copied {len(result.copied)} task(s) from {result.from_date.isoformat()}."


def cmd_sweep(
    state: AppState,
    args: list[str],
    owner_id: str,
    emit: CommandEmitter | None = None,
) -> str:
    """Run one auto-closure sweep now (same as the scheduled one)."""
    if emit:
        emit("[SWEEP] Closing expired task lists...")
    lookback = int(getattr(state.settings, "sweep_lookback_days", 1))
    report = sweep_expired_lists(state.task_store, state.clock, lookback_days=lookback)
    if not report.ok:
        return "Sweep failed; see the log. It will be retried on the next scheduled run."
    return f"Closed {report.closed} task list(s) dated {report.start}..{report.end}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("today", cmd_today, help_text="Show today's tasks (creates the list).", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [| description].")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> <title> [| description].")
registry.register("desc", cmd_desc, help_text="Set a task description: /desc <id> <text>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register("order", cmd_order, help_text="Reorder all tasks: /order <id> <id> ...")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("submit", cmd_submit, help_text="Submit today's list (freezes editing).")
registry.register("close", cmd_close, help_text="Close today's list (freezes everything).")
registry.register("reopen", cmd_reopen, help_text="Reopen today's list.")
registry.register("status", cmd_status, help_text="Show today's list state and timestamps.")
registry.register("history", cmd_history, help_text="Show a past day: /history <YYYY-MM-DD>.")
registry.register("copy", cmd_copy, help_text="Copy tasks from the latest closed list into today.")
registry.register("sweep", cmd_sweep, help_text="Close open lists from past days now.")

"""Rendering task sets as coloured tables or as JSON."""

from __future__ import annotations

import json
import sys
from datetime import datetime, timedelta, timezone
from typing import Any

from .constants import (
    BG_ACTIVE,
    BG_PAUSED,
    FG_ACTIVE,
    FG_PRIORITY_CRITICAL,
    FG_PRIORITY_HIGH,
    FG_PRIORITY_LOW,
    HIDDEN_STATUSES,
    MIN_TASKS_SHOWN,
    PRIORITY_CRITICAL,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    STATUS_ACTIVE,
    STATUS_PAUSED,
    TERMINAL_HEIGHT_MARGIN,
)
from .query import Query
from .table import RowStyle, Table
from .task import Task
from .taskset import Project, SortDirection, TaskSet
from .util import DstaskError, get_term_size, stdout_is_tty

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _aware(value: datetime | None) -> datetime:
    if value is None:
        return _ZERO_TIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _time_string(value: datetime | None) -> str:
    """Long form such as '2009-11-10 23:00:00 +0000 UTC'."""
    value = _aware(value)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    numeric = f"{sign}{minutes // 60:02d}{minutes % 60:02d}"
    name = value.tzname() or numeric
    return f"{text} {numeric} {name}"


def _day_label(value: datetime) -> str:
    return f"{_DAYS[value.weekday()]} {value.day}"


def _date_label(value: datetime | None) -> str:
    value = _aware(value)
    return f"{_day_label(value)} {_MONTHS[value.month - 1]} {value.year}"


def _stdout_is_terminal() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    try:
        return bool(isatty()) if isatty else False
    except ValueError:
        return False


def task_style(task: Task) -> RowStyle:
    """Row colours for a task: active, overdue, then by priority."""
    fg = 0
    bg = 0
    if task.status == STATUS_ACTIVE:
        fg, bg = FG_ACTIVE, BG_ACTIVE
    elif task.due is not None and _aware(task.due) < datetime.now(timezone.utc):
        fg = FG_PRIORITY_HIGH
    elif task.priority == PRIORITY_CRITICAL:
        fg = FG_PRIORITY_CRITICAL
    elif task.priority == PRIORITY_HIGH:
        fg = FG_PRIORITY_HIGH
    elif task.priority == PRIORITY_LOW:
        fg = FG_PRIORITY_LOW

    if task.status == STATUS_PAUSED:
        bg = BG_PAUSED
    return RowStyle(fg=fg, bg=bg)


def project_style(project: Project) -> RowStyle:
    """Row colours for a project summary."""
    if project.active:
        return RowStyle(fg=FG_ACTIVE, bg=BG_ACTIVE)
    if project.priority == PRIORITY_CRITICAL:
        return RowStyle(fg=FG_PRIORITY_CRITICAL)
    if project.priority == PRIORITY_HIGH:
        return RowStyle(fg=FG_PRIORITY_HIGH)
    if project.priority == PRIORITY_LOW:
        return RowStyle(fg=FG_PRIORITY_LOW)
    return RowStyle()


def _dump_json(document: Any) -> None:
    sys.stdout.write(json.dumps(document, indent=2, ensure_ascii=False))
    sys.stdout.flush()


def render_json(task_set: TaskSet) -> None:
    """Write the unfiltered tasks to stdout as a JSON array."""
    _dump_json([task.to_json_dict() for task in task_set.tasks()])


def _print_notes(task: Task) -> None:
    print(f"\nNotes on task {task.id}:\n\033[38;5;245m{task.notes}\033[0m\n")


def render_table(task_set: TaskSet, truncate: bool) -> None:
    """Print the unfiltered tasks as a table, or one task in detail."""
    tasks = task_set.tasks()
    total = len(tasks)

    if task_set.num_total() == 0:
        print("No tasks found. Run `dstask help` for instructions.")
        return
    if not tasks:
        raise DstaskError("No matching tasks in given context or filter.")
    if len(tasks) == 1:
        task = tasks[0]
        display_task(task)
        if task.notes:
            _print_notes(task)
        return

    width, height = get_term_size()
    # leave room for context message, header and prompt
    max_tasks = max(height - TERMINAL_HEIGHT_MARGIN, MIN_TASKS_SHOWN)
    if truncate and max_tasks < len(tasks):
        tasks = tasks[:max_tasks]

    table = Table(width, "ID", "Priority", "Tags", "Project", "Summary")
    for task in tasks:
        table.add_row(
            [
                # at least 2 wide to match the column header
                f"{task.id:<2d}",
                task.priority,
                " ".join(task.tags),
                task.project,
                task.long_summary(),
            ],
            task_style(task),
        )
    table.render()

    if truncate and max_tasks < total:
        print(f"\n{max_tasks}/{total} tasks shown.")
    else:
        print(f"\n{total} tasks.")


def display_task(task: Task) -> None:
    """Print the fields of a single task as a name/value table."""
    width, _ = get_term_size()
    table = Table(width, "Name", "Value")
    table.add_row(["ID", str(task.id)])
    table.add_row(["Priority", task.priority])
    table.add_row(["Summary", task.summary])
    table.add_row(["Status", task.status])
    table.add_row(["Project", task.project])
    table.add_row(["Tags", ", ".join(task.tags)])
    table.add_row(["UUID", task.uuid])
    table.add_row(["Created", _time_string(task.created)])
    if task.resolved is not None:
        table.add_row(["Resolved", _time_string(task.resolved)])
    if task.due is not None:
        table.add_row(["Due", _time_string(task.due)])
    table.render()


def display_by_next(task_set: TaskSet, ctx: Query, truncate: bool) -> None:
    """Show tasks by priority then age: a table on a terminal, else JSON."""
    task_set.sort_by_created(SortDirection.ASCENDING)
    task_set.sort_by_priority(SortDirection.ASCENDING)

    if not stdout_is_tty():
        render_json(task_set)
        return

    ctx.print_context_description()
    render_table(task_set, truncate)

    critical = sum(1 for task in task_set.tasks() if task.priority == PRIORITY_CRITICAL)
    total_critical = sum(
        1
        for task in task_set.all_tasks()
        if task.priority == PRIORITY_CRITICAL and task.status not in HIDDEN_STATUSES
    )
    if critical < total_critical:
        print(
            f"\033[38;5;{FG_PRIORITY_CRITICAL}m{total_critical - critical} critical "
            "task(s) outside this context! Use `dstask -- P0` to see them.\033[0m"
        )


def display_by_week(task_set: TaskSet) -> None:
    """Show tasks by resolution time, one table per ISO week, else JSON."""
    task_set.sort_by_resolved(SortDirection.ASCENDING)

    if not _stdout_is_terminal():
        render_json(task_set)
        return

    width, _ = get_term_size()
    table: Table | None = None
    last_week = 0
    tasks = task_set.tasks()

    for task in tasks:
        resolved = _aware(task.resolved)
        week = resolved.isocalendar()[1]
        # ISO weeks start at 1, so the first task always opens a table
        if week != last_week:
            if table is not None and table.rows:
                table.render()
            print(f"\n\n> Week {week}, starting {_date_label(resolved)}\n")
            table = Table(width, "Resolved", "Priority", "Tags", "Project", "Summary")

        table.add_row(
            [
                _day_label(resolved),
                task.priority,
                " ".join(task.tags),
                task.project,
                task.long_summary(),
            ],
            task_style(task),
        )
        last_week = week

    if table is not None:
        table.render()
    print(f"{len(tasks)} tasks.")


def display_projects(task_set: TaskSet) -> None:
    """Show projects with progress: a table on a terminal, else JSON."""
    projects = task_set.get_projects()
    if not stdout_is_tty():
        _dump_json([project.to_json_dict() for project in projects])
        return

    width, _ = get_term_size()
    table = Table(width, "Name", "Progress", "Created")
    for project in projects:
        if project.tasks_resolved < project.tasks:
            table.add_row(
                [
                    project.name,
                    f"{project.tasks_resolved}/{project.tasks}",
                    _date_label(project.created),
                ],
                project_style(project),
            )
    table.render()
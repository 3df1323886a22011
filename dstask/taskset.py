"""A collection of tasks with ID assignment, filtering, sorting and saving."""

from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from typing import Any

from .constants import (
    ALL_STATUSES,
    HIDDEN_STATUSES,
    MAX_TASKS_OPEN,
    NON_RESOLVED_STATUSES,
    PRIORITY_LOW,
    STATUS_ACTIVE,
    STATUS_RESOLVED,
)
from .localstate import load_ids, save_ids
from .query import Query
from .task import Task, TaskLoadError, TaskValidationError, _format_time, load_task_file
from .util import DstaskError, is_valid_priority, is_valid_state_transition, new_uuid4

log = logging.getLogger(__name__)

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TASK_FIELDS = [f.name for f in fields(Task)]


def _time_key(value: datetime | None) -> datetime:
    if value is None:
        return _ZERO_TIME
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _copy(task: Task) -> Task:
    return replace(
        task,
        tags=list(task.tags),
        subtasks=[replace(sub) for sub in task.subtasks],
        dependencies=list(task.dependencies),
    )


class SortDirection(str, enum.Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass
class Project:
    """Summary of the tasks sharing a project name."""

    name: str
    tasks: int = 0
    tasks_resolved: int = 0
    # any task in the active state
    active: bool = False
    # first task created
    created: datetime | None = None
    # last task resolved
    resolved: datetime | None = None
    # highest non-resolved priority
    priority: str = PRIORITY_LOW

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "taskCount": self.tasks,
            "resolvedCount": self.tasks_resolved,
            "active": self.active,
            "created": _format_time(self.created),
            "resolved": _format_time(self.resolved),
            "priority": self.priority,
        }


class TaskSet:
    """Tasks loaded from a repository, indexed by ID and UUID."""

    def __init__(self, repo_path: str = "", ids_file_path: str = "") -> None:
        self.repo_path = repo_path
        self.ids_file_path = ids_file_path
        self._tasks: list[Task] = []
        self._by_id: dict[int, Task] = {}
        self._by_uuid: dict[str, Task] = {}

    def unhide(self) -> None:
        """Show tasks whose status is hidden by default."""
        for task in self._tasks:
            if task.status in HIDDEN_STATUSES:
                task.filtered = False

    def _sort(self, key, direction: SortDirection) -> None:
        direction = SortDirection(direction)
        self._tasks.sort(key=key, reverse=direction is SortDirection.DESCENDING)

    def sort_by_created(self, direction: SortDirection) -> None:
        self._sort(lambda task: _time_key(task.created), direction)

    def sort_by_priority(self, direction: SortDirection) -> None:
        self._sort(lambda task: task.priority, direction)

    def sort_by_resolved(self, direction: SortDirection) -> None:
        self._sort(lambda task: _time_key(task.resolved), direction)

    def load_task(self, task: Task) -> Task | None:
        """Add a task with a new or empty UUID and return it as stored.

        A task whose UUID is already present is not added; None is returned.
        """
        task = _copy(task)
        task.normalise()

        if not task.uuid:
            task.uuid = new_uuid4()

        task.validate()

        if task.uuid in self._by_uuid:
            return None

        # drop the ID if another task holds it
        if task.id > 0 and task.id in self._by_id:
            task.id = 0

        if task.id == 0 and task.status != STATUS_RESOLVED:
            task.id = next(
                (n for n in range(1, MAX_TASKS_OPEN + 1) if n not in self._by_id), 0
            )

        if task.created is None:
            task.created = datetime.now().astimezone()
            task.write_pending = True

        self._tasks.append(task)
        self._by_uuid[task.uuid] = task
        if task.id > 0:
            self._by_id[task.id] = task
        return _copy(task)

    def update_task(self, task: Task) -> None:
        """Replace the stored task with the same UUID, checking the change."""
        task = _copy(task)
        task.normalise()

        try:
            task.validate()
        except TaskValidationError as exc:
            raise TaskValidationError(f"{exc}, task {task.uuid}") from exc

        old = self._by_uuid.get(task.uuid)
        if old is None:
            raise DstaskError("Could not find given task to update by UUID")

        if not is_valid_priority(task.priority):
            raise DstaskError("Invalid priority specified")

        if old.status != task.status and not is_valid_state_transition(
            old.status, task.status
        ):
            raise DstaskError(f"Invalid state transition: {old.status} -> {task.status}")

        if (
            old.status != task.status
            and task.status == STATUS_RESOLVED
            and "- [ ] " in task.notes
        ):
            raise DstaskError("Refusing to resolve task with incomplete tasklist")

        if task.status == STATUS_RESOLVED:
            task.id = 0
            if task.resolved is None:
                task.resolved = datetime.now().astimezone()

        task.write_pending = True

        if old.id != task.id and self._by_id.get(old.id) is old:
            del self._by_id[old.id]
        for name in _TASK_FIELDS:
            setattr(old, name, getattr(task, name))
        if old.id > 0:
            self._by_id[old.id] = old

    def filter(self, query: Query) -> None:
        for task in self._tasks:
            if not task.matches_filter(query):
                task.filtered = True

    def filter_by_status(self, status: str) -> None:
        for task in self._tasks:
            if task.status != status:
                task.filtered = True

    def filter_organised(self) -> None:
        """Hide tasks that have tags or a project."""
        for task in self._tasks:
            if task.tags or task.project:
                task.filtered = True

    def get_by_id(self, task_id: int) -> Task:
        """Return a copy of the open task with the given ID."""
        task = self._by_id.get(task_id)
        if task is None:
            raise DstaskError(f"no open task with ID {task_id} exists")
        return _copy(task)

    def tasks(self) -> list[Task]:
        """Copies of the tasks not excluded by a filter, in current order."""
        return [_copy(task) for task in self._tasks if not task.filtered]

    def all_tasks(self) -> list[Task]:
        """Copies of every loaded task, filtered or not."""
        return [_copy(task) for task in self._tasks]

    def get_tags(self) -> list[str]:
        """Sorted unique tags of the unfiltered tasks."""
        return sorted({tag for task in self._tasks if not task.filtered for tag in task.tags})

    def get_projects(self) -> list[Project]:
        """Projects of all loaded tasks, sorted by name."""
        projects: dict[str, Project] = {}

        for task in self._tasks:
            name = task.project
            if not name:
                continue
            project = projects.setdefault(name, Project(name=name))
            project.tasks += 1

            if project.created is None or (
                task.created is not None
                and _time_key(task.created) < _time_key(project.created)
            ):
                project.created = task.created

            if task.resolved is not None and (
                project.resolved is None
                or _time_key(task.resolved) > _time_key(project.resolved)
            ):
                project.resolved = task.resolved

            if task.status == STATUS_RESOLVED:
                project.tasks_resolved += 1
            if task.status == STATUS_ACTIVE:
                project.active = True
            if task.status != STATUS_RESOLVED and task.priority < project.priority:
                project.priority = task.priority

        return [projects[name] for name in sorted(projects)]

    def num_total(self) -> int:
        return len(self._tasks)

    def save_pending_changes(self) -> None:
        """Write changed tasks to disk and persist the local ID map."""
        ids: dict[str, int] = {}
        for task in self._tasks:
            if task.write_pending:
                task.save_to_disk(self.repo_path)
            if task.id > 0:
                ids[task.uuid] = task.id
        # IDs are kept locally so they stay stable as tasks come and go
        save_ids(ids, self.ids_file_path)


def load_task_set(repo_path: str, ids_file_path: str, include_resolved: bool) -> TaskSet:
    """Load tasks from the repository; resolved ones only if asked."""
    task_set = TaskSet(repo_path, ids_file_path)
    ids = load_ids(ids_file_path)
    statuses = ALL_STATUSES if include_resolved else NON_RESOLVED_STATUSES

    for status in statuses:
        directory = os.path.join(repo_path, status)
        try:
            names = sorted(os.listdir(directory))
        except FileNotFoundError:
            # status directories are created on demand
            continue
        except OSError as exc:
            raise DstaskError(f"failed to read {directory}: {exc}") from exc

        for name in names:
            if name.startswith("."):
                continue
            try:
                task = load_task_file(os.path.join(directory, name), ids, status)
            except TaskLoadError as exc:
                log.warning("error loading task: %s", exc)
                continue
            try:
                task_set.load_task(task)
            except TaskValidationError:
                continue

    # templates, recurring and resolved tasks are hidden by default
    for task in task_set._tasks:
        if task.status in HIDDEN_STATUSES:
            task.filtered = True

    return task_set
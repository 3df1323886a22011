"""The task record, its YAML file format and its filtering rules."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Mapping

import yaml

from .constants import (
    ALL_STATUSES,
    NOTE_MODE_KEYWORD,
    PRIORITY_NORMAL,
    STATUS_RESOLVED,
    TASK_FILENAME_LEN,
)
from .git import get_repo_path
from .util import DstaskError, deduplicate, is_valid_priority, is_valid_status, is_valid_uuid4

if TYPE_CHECKING:
    from .query import Query

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_TIMESTAMP_RE = re.compile(
    r"(\d{4}-\d{2}-\d{2})"
    r"(?:[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?\s*(Z|z|[+-]\d{2}:?\d{2})?)?"
)

_STR_KEYS = {
    "status": "status",
    "summary": "summary",
    "notes": "notes",
    "project": "project",
    "priority": "priority",
    "delegatedto": "delegated_to",
}
_LIST_KEYS = ("tags", "dependencies")
_TIME_KEYS = ("created", "resolved", "due")


class TaskLoadError(DstaskError):
    """A task file or task YAML could not be read."""


class TaskValidationError(DstaskError):
    """A task has invalid fields."""


def _format_time(value: datetime | None) -> str:
    """RFC 3339 with trailing fractional zeros dropped; None is the zero time."""
    if value is None:
        value = _ZERO_TIME
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    sign = "+" if offset > timedelta(0) else "-"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _parse_time_text(text: str) -> datetime:
    match = _TIMESTAMP_RE.fullmatch(text.strip())
    if not match:
        raise TaskLoadError(f"invalid time {text!r}")
    day, clock, fraction, offset = match.groups()
    iso = f"{day}T{clock or '00:00:00'}"
    if fraction:
        iso += "." + fraction[:6].ljust(6, "0")
    if offset and offset not in ("Z", "z"):
        if ":" not in offset:
            offset = f"{offset[:3]}:{offset[3:]}"
        iso += offset
    else:
        iso += "+00:00"
    try:
        return datetime.fromisoformat(iso)
    except ValueError as exc:
        raise TaskLoadError(f"invalid time {text!r}") from exc


def _parse_time(value: Any) -> datetime | None:
    """Convert a YAML time value to an aware datetime; the zero time is None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = _parse_time_text(value)
    else:
        raise TaskLoadError(f"invalid time {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        if parsed == _ZERO_TIME:
            return None
    except OverflowError:
        return None
    return parsed


def _as_str(key: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, date)):
        return str(value)
    raise TaskLoadError(f"{key}: expected a string")


def _as_str_list(key: str, value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TaskLoadError(f"{key}: expected a list")
    return [_as_str(key, item) for item in value]


def _as_subtasks(value: Any) -> list["SubTask"]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TaskLoadError("subtasks: expected a list")
    subtasks = []
    for item in value:
        if not isinstance(item, dict):
            raise TaskLoadError("subtasks: expected a mapping")
        subtasks.append(
            SubTask(
                summary=_as_str("subtasks", item.get("summary")),
                resolved=bool(item.get("resolved", False)),
            )
        )
    return subtasks


class _TaskDumper(yaml.SafeDumper):
    pass


def _represent_time(dumper: yaml.SafeDumper, value: datetime) -> yaml.Node:
    return dumper.represent_scalar("tag:yaml.org,2002:timestamp", _format_time(value))


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.Node:
    if "\n" in value:
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style="|")
    return dumper.represent_str(value)


_TaskDumper.add_representer(datetime, _represent_time)
_TaskDumper.add_representer(str, _represent_str)


@dataclass
class SubTask:
    summary: str = ""
    resolved: bool = False


@dataclass
class Task:
    """A task as stored in the repository and shown by the task set."""

    # not stored in the file: the filename carries it
    uuid: str = ""
    status: str = ""
    # new or changed; needs writing to disk
    write_pending: bool = False
    # short local handle for non-resolved tasks
    id: int = 0
    # marks the task for deletion on save
    deleted: bool = False
    summary: str = ""
    notes: str = ""
    tags: list[str] = field(default_factory=list)
    project: str = ""
    priority: str = ""
    delegated_to: str = ""
    subtasks: list[SubTask] = field(default_factory=list)
    # uuids of tasks this task depends on
    dependencies: list[str] = field(default_factory=list)
    created: datetime | None = None
    resolved: datetime | None = None
    due: datetime | None = None
    # excluded from the current view by a filter
    filtered: bool = False

    def __str__(self) -> str:
        if self.id > 0:
            return f"{self.id}: {self.summary}"
        return self.summary

    def equals(self, other: "Task") -> bool:
        """Compare core properties, ignoring ID and bookkeeping flags."""
        return (
            self.uuid == other.uuid
            and self.status == other.status
            and self.summary == other.summary
            and self.notes == other.notes
            and self.tags == other.tags
            and self.project == other.project
            and self.priority == other.priority
            and self.delegated_to == other.delegated_to
            and self.subtasks == other.subtasks
            and self.dependencies == other.dependencies
            and self.created == other.created
            and self.resolved == other.resolved
            and self.due == other.due
        )

    def matches_filter(self, query: "Query") -> bool:
        # IDs were given but none match (OR logic)
        if query.ids and self.id not in query.ids:
            return False
        if any(tag not in self.tags for tag in query.tags):
            return False
        if any(tag in self.tags for tag in query.anti_tags):
            return False
        if self.project in query.anti_projects:
            return False
        if query.project and self.project != query.project:
            return False
        if query.priority and self.priority != query.priority:
            return False
        if query.text and query.text.lower() not in (self.summary + self.notes).lower():
            return False
        return True

    def normalise(self) -> None:
        """Lower-case, sort and deduplicate fields for stable files."""
        self.project = self.project.lower()
        self.tags = deduplicate(sorted(tag.lower() for tag in self.tags))
        if self.status == STATUS_RESOLVED:
            # a resolved task has no meaningful ID
            self.id = 0
        if not self.priority:
            self.priority = PRIORITY_NORMAL

    def validate(self) -> None:
        """Raise TaskValidationError for an invalid task; normalise first."""
        if not is_valid_uuid4(self.uuid):
            raise TaskValidationError("invalid task UUID4")
        if not is_valid_status(self.status):
            raise TaskValidationError("invalid status specified on task")
        if not is_valid_priority(self.priority):
            raise TaskValidationError("invalid priority specified")
        if not all(is_valid_uuid4(dep) for dep in self.dependencies):
            raise TaskValidationError("invalid dependency UUID4")

    def long_summary(self) -> str:
        """The summary followed by the last line of the notes, if any."""
        last_note = self.notes.strip().split("\n")[-1]
        if last_note:
            return f"{self.summary} {NOTE_MODE_KEYWORD} {last_note}"
        return self.summary

    def modify(self, query: "Query") -> None:
        """Apply the query's tags, project, priority and note to the task."""
        for tag in query.tags:
            if tag not in self.tags:
                self.tags.append(tag)
        self.tags = [tag for tag in self.tags if tag not in query.anti_tags]

        if query.project:
            self.project = query.project
        if self.project in query.anti_projects:
            self.project = ""
        if query.priority:
            self.priority = query.priority

        if self.notes:
            self.notes += "\n"
        self.notes += query.note

    def to_yaml(self) -> str:
        """The YAML document stored on disk; status is omitted when empty."""
        document: dict[str, Any] = {}
        if self.status:
            document["status"] = self.status
        document.update(
            summary=self.summary,
            notes=self.notes,
            tags=list(self.tags),
            project=self.project,
            priority=self.priority,
            delegatedto=self.delegated_to,
            subtasks=[
                {"summary": sub.summary, "resolved": sub.resolved}
                for sub in self.subtasks
            ],
            dependencies=list(self.dependencies),
            created=self.created or _ZERO_TIME,
            resolved=self.resolved or _ZERO_TIME,
            due=self.due or _ZERO_TIME,
        )
        return yaml.dump(
            document,
            Dumper=_TaskDumper,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )

    def update_from_yaml(self, text: str | bytes) -> None:
        """Overwrite the fields present in a YAML document."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise TaskLoadError(f"invalid task YAML: {exc}") from exc
        if data is None:
            return
        if not isinstance(data, dict):
            raise TaskLoadError("task YAML must be a mapping")

        updates: dict[str, Any] = {}
        for key, value in data.items():
            if key in _STR_KEYS:
                updates[_STR_KEYS[key]] = _as_str(key, value)
            elif key in _LIST_KEYS:
                updates[key] = _as_str_list(key, value)
            elif key == "subtasks":
                updates[key] = _as_subtasks(value)
            elif key in _TIME_KEYS:
                updates[key] = _parse_time(value)

        for name, value in updates.items():
            setattr(self, name, value)

    def to_json_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "status": self.status,
            "id": self.id,
            "summary": self.summary,
            "notes": self.notes,
            "tags": list(self.tags),
            "project": self.project,
            "priority": self.priority,
            "created": _format_time(self.created),
            "resolved": _format_time(self.resolved),
            "due": _format_time(self.due),
        }

    def save_to_disk(self, repo_path: str) -> None:
        """Write or delete the task file, keeping one copy across statuses."""
        self.write_pending = False
        path = get_repo_path(repo_path, self.status, f"{self.uuid}.yml")

        if self.deleted:
            try:
                os.remove(path)
            except OSError as exc:
                raise DstaskError(f"Could not remove task {path}: {exc}") from exc
        else:
            # the directory records the status, so the file omits it
            content = replace(self, status="").to_yaml()
            try:
                fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
            except OSError as exc:
                raise DstaskError(f"Failed to write task {self}") from exc

        for status in ALL_STATUSES:
            if status == self.status:
                continue
            other = get_repo_path(repo_path, status, f"{self.uuid}.yml")
            if os.path.exists(other):
                try:
                    os.remove(other)
                except OSError as exc:
                    raise DstaskError(f"Could not remove task {other}: {exc}") from exc


def load_task_file(path: str | os.PathLike, ids: Mapping[str, int], status: str) -> Task:
    """Read a task file; the status comes from its directory, not the file."""
    name = os.path.basename(os.fspath(path))
    if len(name) != TASK_FILENAME_LEN:
        raise TaskLoadError(f"filename does not encode UUID {name} (wrong length)")

    task_uuid = name[:36]
    if not is_valid_uuid4(task_uuid):
        raise TaskLoadError(f"filename does not encode UUID {name}")

    task = Task(uuid=task_uuid, status=status, id=ids.get(task_uuid, 0))

    try:
        with open(path, encoding="utf-8") as handle:
            content = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise TaskLoadError(f"failed to read {name}") from exc

    try:
        task.update_from_yaml(content)
    except TaskLoadError as exc:
        raise TaskLoadError(f"failed to unmarshal {name}") from exc

    task.status = status
    return task
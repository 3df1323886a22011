"""Importing a JSON export of a taskwarrior database."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, TextIO

from ..config import Config
from ..constants import (
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_NORMAL,
    STATUS_ACTIVE,
    STATUS_PENDING,
    STATUS_RESOLVED,
)
from ..git import commit_and_report
from ..task import Task, TaskValidationError
from ..taskset import load_task_set
from ..util import DstaskError

_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))"
)

PRIORITY_MAP = {
    "H": PRIORITY_HIGH,
    "M": PRIORITY_NORMAL,
    "L": PRIORITY_LOW,
    "": PRIORITY_NORMAL,
}


def parse_tw_time(value: Any) -> datetime | None:
    """Parse a taskwarrior time, in ISO 8601 basic or RFC 3339 form."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"invalid time {value!r}")
    text = value
    if len(text) == 16:
        # basic format such as 20200102T030405Z
        text = f"{text[0:4]}-{text[4:6]}-{text[6:11]}:{text[11:13]}:{text[13:]}"
    match = _RFC3339.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid time {value!r}")
    year, month, day, hour, minute, second, frac, zulu, sign, off_h, off_m = match.groups()
    if zulu:
        tz = timezone.utc
    else:
        offset = timedelta(hours=int(off_h), minutes=int(off_m))
        tz = timezone(-offset if sign == "-" else offset)
    micro = int((frac or "").ljust(6, "0")[:6])
    return datetime(
        int(year), int(month), int(day), int(hour), int(minute), int(second), micro, tzinfo=tz
    )


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


@dataclass
class Annotation:
    description: str = ""
    entry: str = ""


@dataclass
class TwTask:
    """A task as found in a taskwarrior export."""

    description: str = ""
    end: datetime | None = None
    entry: datetime | None = None
    start: datetime | None = None
    modified: datetime | None = None
    due: datetime | None = None
    status: str = ""
    project: str = ""
    priority: str = ""
    depends: str = ""
    tags: list[str] = field(default_factory=list)
    uuid: str = ""
    annotations: list[Annotation] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "TwTask":
        """Build from one decoded JSON object; keys match case-insensitively."""
        if not isinstance(data, Mapping):
            raise TypeError("task must be a JSON object")
        fields_ = {str(key).lower(): value for key, value in data.items()}

        depends = fields_.get("depends")
        if isinstance(depends, list):
            depends = ",".join(str(item) for item in depends)
        elif depends is not None and not isinstance(depends, str):
            raise ValueError("depends must be a string")

        annotations = []
        for raw in fields_.get("annotations") or []:
            if not isinstance(raw, Mapping):
                raise TypeError("annotation must be a JSON object")
            lowered = {str(key).lower(): value for key, value in raw.items()}
            annotations.append(
                Annotation(
                    description=_text(lowered, "description"),
                    entry=_text(lowered, "entry"),
                )
            )

        tags = fields_.get("tags") or []
        if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
            raise ValueError("tags must be a list of strings")

        return cls(
            description=_text(fields_, "description"),
            end=parse_tw_time(fields_.get("end")),
            entry=parse_tw_time(fields_.get("entry")),
            start=parse_tw_time(fields_.get("start")),
            modified=parse_tw_time(fields_.get("modified")),
            due=parse_tw_time(fields_.get("due")),
            status=_text(fields_, "status"),
            project=_text(fields_, "project"),
            priority=_text(fields_, "priority"),
            depends=depends or "",
            tags=list(tags),
            uuid=_text(fields_, "uuid"),
            annotations=annotations,
        )

    def convert_annotations(self) -> str:
        """Annotation descriptions joined into notes, one per line."""
        return "\n".join(annotation.description for annotation in self.annotations)

    def convert_status(self) -> str:
        """The dstask status for this task."""
        if self.start is not None:
            return STATUS_ACTIVE
        if self.status in ("completed", "deleted", "recurring"):
            # recurrence is not supported; such tasks are resolved
            return STATUS_RESOLVED
        if self.status == "waiting":
            return STATUS_PENDING
        return self.status

    def resolved_time(self) -> datetime | None:
        """Best guess at the resolution time, which taskwarrior does not keep."""
        if self.status == "completed":
            return self.modified
        return None

    def to_task(self) -> Task:
        return Task(
            uuid=self.uuid,
            status=self.convert_status(),
            write_pending=True,
            summary=self.description,
            tags=list(self.tags),
            project=self.project,
            priority=PRIORITY_MAP.get(self.priority, ""),
            notes=self.convert_annotations(),
            dependencies=[dep for dep in self.depends.split(",") if dep],
            created=self.entry,
            resolved=self.resolved_time(),
            due=self.due,
        )


def import_taskwarrior(conf: Config, stream: TextIO) -> None:
    """Import a taskwarrior JSON export read from the stream and commit it."""
    task_set = load_task_set(conf.repo, conf.ids_file, True)

    try:
        data = json.load(stream)
        if data is None:
            data = []
        if not isinstance(data, list):
            raise ValueError("expected a JSON array")
        tw_tasks = [TwTask.from_json(item) for item in data]
    except (ValueError, TypeError) as exc:
        raise DstaskError("failed to decode JSON from stdin") from exc

    for tw_task in tw_tasks:
        try:
            task_set.load_task(tw_task.to_task())
        except (TaskValidationError, DstaskError):
            continue

    task_set.save_pending_changes()
    commit_and_report(conf.repo, "Import from taskwarrior")
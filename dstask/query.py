"""Parsing and combining the query typed on the command line."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, replace
from typing import Mapping

from .constants import ALL_CMDS, IGNORE_CONTEXT_KEYWORD, NOTE_MODE_KEYWORD
from .util import DstaskError, is_valid_priority

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def _parse_int(text: str) -> int | None:
    """Parse a signed 64-bit decimal integer, or return None."""
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        return None
    return value


class QueryConflictError(DstaskError):
    """A context could not be merged into a query."""


@dataclass
class Query:
    """A parsed command line: command, IDs, filters, text and note."""

    cmd: str = ""
    ids: list[int] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    anti_tags: list[str] = field(default_factory=list)
    project: str = ""
    anti_projects: list[str] = field(default_factory=list)
    priority: str = ""
    template: int = 0
    text: str = ""
    ignore_context: bool = False
    # any words after the note operator: /
    note: str = ""

    def __str__(self) -> str:
        args = [str(task_id) for task_id in self.ids]
        args.extend(f"+{tag}" for tag in self.tags)
        args.extend(f"-{tag}" for tag in self.anti_tags)
        if self.project:
            args.append(f"project:{self.project}")
        args.extend(f"-project:{project}" for project in self.anti_projects)
        if self.priority:
            args.append(self.priority)
        if self.template > 0:
            args.append(f"template:{self.template}")
        if self.text:
            args.append(f'"{self.text}"')
        return " ".join(args)

    def has_operators(self) -> bool:
        """True if the query has tags, projects, a priority or a template."""
        return bool(
            self.tags
            or self.anti_tags
            or self.project
            or self.anti_projects
            or self.priority
            or self.template > 0
        )

    def merge(self, other: "Query") -> "Query":
        """Return a new query with the other query (a context) applied."""
        merged = replace(
            self,
            ids=list(self.ids),
            tags=list(self.tags),
            anti_tags=list(self.anti_tags),
            anti_projects=list(self.anti_projects),
        )

        for tag in other.tags:
            if tag not in merged.tags:
                merged.tags.append(tag)

        for tag in other.anti_tags:
            if tag not in merged.anti_tags:
                merged.anti_tags.append(tag)

        if other.project:
            if merged.project and merged.project != other.project:
                raise QueryConflictError("Could not apply context, project conflict")
            merged.project = other.project

        if other.priority:
            if merged.priority:
                raise QueryConflictError("Could not apply context, priority conflict")
            merged.priority = other.priority

        return merged

    def context_description(self, environ: Mapping[str, str] | None = None) -> str:
        """The coloured 'Active context' line, or '' for an empty query."""
        if environ is None:
            environ = os.environ
        description = str(self)
        if not description:
            return ""
        notice = " (set by DSTASK_CONTEXT)" if environ.get("DSTASK_CONTEXT") else ""
        return f"\033[33mActive context{notice}: {description}\033[0m"

    def print_context_description(self) -> None:
        line = self.context_description()
        if line:
            print(line)


def parse_query(*args: str) -> Query:
    """Parse the raw command-line words typed by the user."""
    query = Query()
    words: list[str] = []
    notes: list[str] = []
    notes_mode = False
    # once something other than an ID is seen, no more IDs are accepted
    ids_exhausted = False

    for item in args:
        lowered = item.lower()

        if notes_mode:
            notes.append(item)
            continue

        if not query.cmd and lowered in ALL_CMDS:
            query.cmd = lowered
            continue

        if not ids_exhausted:
            number = _parse_int(item)
            if number is not None:
                query.ids.append(number)
                continue

        if item == IGNORE_CONTEXT_KEYWORD:
            query.ignore_context = True
        elif item == NOTE_MODE_KEYWORD:
            notes_mode = True
        elif not query.project and lowered.startswith("project:"):
            query.project = lowered[len("project:"):]
        elif not query.project and lowered.startswith("+project:"):
            # not valid syntax, but an obvious and common mistake
            query.project = lowered[len("+project:"):]
        elif lowered.startswith("-project:"):
            query.anti_projects.append(lowered[len("-project:"):])
        elif lowered.startswith("template:"):
            number = _parse_int(lowered[len("template:"):])
            if number is not None:
                query.template = number
        elif len(item) > 1 and lowered.startswith("+"):
            query.tags.append(lowered[1:])
        elif len(item) > 1 and lowered.startswith("-"):
            query.anti_tags.append(lowered[1:])
        elif not query.priority and is_valid_priority(item):
            query.priority = item
        else:
            words.append(item)

        ids_exhausted = True

    query.text = " ".join(words)
    query.note = " ".join(notes)
    return query
"""Shell completion candidates for a partly typed command line."""

from __future__ import annotations

import logging
from typing import Sequence

from .config import Config
from .constants import (
    ALL_CMDS,
    CMD_ADD,
    CMD_CONTEXT,
    CMD_DONE,
    CMD_HELP,
    CMD_LOG,
    CMD_MODIFY,
    CMD_NEXT,
    CMD_REMOVE,
    CMD_RESOLVE,
    CMD_SHOW_ACTIVE,
    CMD_SHOW_NEXT,
    CMD_SHOW_OPEN,
    CMD_SHOW_PAUSED,
    CMD_SHOW_PROJECTS,
    CMD_SHOW_RESOLVED,
    CMD_SHOW_TEMPLATES,
    CMD_START,
    CMD_STOP,
    PRIORITY_CRITICAL,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_NORMAL,
    STATUS_TEMPLATE,
)
from .query import Query, parse_query
from .taskset import load_task_set
from .util import DstaskError

log = logging.getLogger(__name__)

# commands after which tags, projects and priorities make sense
_TASK_COMMANDS = (
    "",
    CMD_NEXT,
    CMD_ADD,
    CMD_REMOVE,
    CMD_LOG,
    CMD_START,
    CMD_STOP,
    CMD_DONE,
    CMD_RESOLVE,
    CMD_CONTEXT,
    CMD_MODIFY,
    CMD_SHOW_NEXT,
    CMD_SHOW_PROJECTS,
    CMD_SHOW_ACTIVE,
    CMD_SHOW_PAUSED,
    CMD_SHOW_OPEN,
    CMD_SHOW_RESOLVED,
    CMD_SHOW_TEMPLATES,
)


def _may_complete_command(query: Query) -> bool:
    return (
        not query.anti_projects
        and not query.project
        and not query.tags
        and not query.anti_tags
        and not query.priority
        and query.template == 0
        and not query.ignore_context
        and query.cmd in (CMD_HELP, "")
    )


def completion_candidates(conf: Config, args: Sequence[str], ctx: Query) -> list[str]:
    """Candidates for the last word typed.

    args excludes the program name: it is '_completions', the name of the
    program being completed, then the words the user has typed.
    """
    typed = list(args[2:])
    query = parse_query(*typed)
    candidates: list[str] = []

    if _may_complete_command(query):
        candidates.extend(cmd for cmd in ALL_CMDS if not cmd.startswith("_"))

    if query.cmd in _TASK_COMMANDS:
        try:
            task_set = load_task_set(conf.repo, conf.ids_file, False)
        except DstaskError as exc:
            log.warning("completions error: %s", exc)
            return []

        # keep to the context unless it is being changed, ignored or modified
        if not query.ignore_context and query.cmd not in (CMD_CONTEXT, CMD_MODIFY):
            task_set.filter(ctx)

        if query.cmd == CMD_ADD:
            candidates.extend(
                f"template:{task.id}"
                for task in task_set.tasks()
                if task.status == STATUS_TEMPLATE
            )

        candidates.extend((PRIORITY_CRITICAL, PRIORITY_HIGH, PRIORITY_NORMAL, PRIORITY_LOW))

        for project in task_set.get_projects():
            candidates.append(f"project:{project.name}")
            candidates.append(f"-project:{project.name}")

        for tag in task_set.get_tags():
            candidates.append(f"+{tag}")
            candidates.append(f"-{tag}")

    prefix = typed[-1] if typed else ""
    return [c for c in candidates if c.startswith(prefix) and c not in typed]


def completions(conf: Config, args: Sequence[str], ctx: Query) -> None:
    """Print the completion candidates, one per line."""
    for candidate in completion_candidates(conf, args, ctx):
        print(candidate)
"""The dstask command-line entry point."""

from __future__ import annotations

import sys
from typing import Callable, Sequence

from .commands import (
    command_add,
    command_context,
    command_done,
    command_edit,
    command_help,
    command_log,
    command_modify,
    command_next,
    command_note,
    command_open,
    command_remove,
    command_show_active,
    command_show_open,
    command_show_paused,
    command_show_projects,
    command_show_resolved,
    command_show_tags,
    command_show_templates,
    command_show_unorganised,
    command_start,
    command_stop,
    command_sync,
    command_template,
    command_undo,
    command_version,
)
from .completions import completions
from .config import Config, config_from_env
from .constants import (
    CMD_ADD,
    CMD_COMPLETIONS,
    CMD_CONTEXT,
    CMD_DONE,
    CMD_EDIT,
    CMD_GIT,
    CMD_HELP,
    CMD_LOG,
    CMD_MODIFY,
    CMD_NEXT,
    CMD_NOTE,
    CMD_NOTES,
    CMD_OPEN,
    CMD_PRINT_BASH_COMPLETION,
    CMD_PRINT_FISH_COMPLETION,
    CMD_PRINT_ZSH_COMPLETION,
    CMD_REMOVE,
    CMD_RESOLVE,
    CMD_RM,
    CMD_SHOW_ACTIVE,
    CMD_SHOW_NEXT,
    CMD_SHOW_OPEN,
    CMD_SHOW_PAUSED,
    CMD_SHOW_PROJECTS,
    CMD_SHOW_RESOLVED,
    CMD_SHOW_TAGS,
    CMD_SHOW_TEMPLATES,
    CMD_SHOW_UNORGANISED,
    CMD_START,
    CMD_STOP,
    CMD_SYNC,
    CMD_TEMPLATE,
    CMD_UNDO,
    CMD_VERSION,
)
from .git import ensure_repo_exists, run_git_cmd
from .localstate import load_state
from .query import Query, parse_query
from .task import TaskLoadError, TaskValidationError
from .util import AbortedError, DstaskError, exit_fail

_Handler = Callable[[Config, Query, Query], None]

_HANDLERS: dict[str, _Handler] = {
    "": command_next,
    CMD_NEXT: command_next,
    CMD_SHOW_NEXT: command_next,
    CMD_SHOW_OPEN: command_show_open,
    CMD_ADD: command_add,
    CMD_RM: command_remove,
    CMD_REMOVE: command_remove,
    CMD_TEMPLATE: command_template,
    CMD_LOG: command_log,
    CMD_START: command_start,
    CMD_STOP: command_stop,
    CMD_DONE: command_done,
    CMD_RESOLVE: command_done,
    CMD_MODIFY: command_modify,
    CMD_EDIT: command_edit,
    CMD_NOTE: command_note,
    CMD_NOTES: command_note,
    CMD_SHOW_ACTIVE: command_show_active,
    CMD_SHOW_PAUSED: command_show_paused,
    CMD_OPEN: command_open,
    CMD_SHOW_PROJECTS: command_show_projects,
    CMD_SHOW_TAGS: command_show_tags,
    CMD_SHOW_TEMPLATES: command_show_templates,
    CMD_SHOW_RESOLVED: command_show_resolved,
    CMD_SHOW_UNORGANISED: command_show_unorganised,
}

_COMPLETION_SCRIPTS = (
    CMD_PRINT_BASH_COMPLETION,
    CMD_PRINT_ZSH_COMPLETION,
    CMD_PRINT_FISH_COMPLETION,
)

_FAILURES = (DstaskError, AbortedError, TaskValidationError, TaskLoadError)


def _fail(message: str) -> None:
    exit_fail(message)
    raise SystemExit(1)


def _context(conf: Config, state_context: Query, query: Query, argv: list[str]) -> Query:
    ctx = state_context
    if conf.ctx_from_env_var:
        if query.cmd == CMD_CONTEXT and len(argv) >= 2:
            raise DstaskError("setting context not allowed while DSTASK_CONTEXT is set")
        ctx = parse_query(*conf.ctx_from_env_var.split())
    if query.ignore_context:
        ctx = Query()
    return ctx


def _run(query: Query, argv: list[str]) -> None:
    conf = config_from_env()
    ensure_repo_exists(conf.repo)

    state = load_state(conf.state_file)
    ctx = _context(conf, state.context, query, argv)

    handler = _HANDLERS.get(query.cmd)
    if handler is not None:
        handler(conf, ctx, query)
    elif query.cmd == CMD_CONTEXT:
        command_context(conf, state, ctx, query, argv)
    elif query.cmd == CMD_UNDO:
        command_undo(conf, argv, ctx, query)
    elif query.cmd == CMD_SYNC:
        command_sync(conf.repo)
    elif query.cmd == CMD_GIT:
        run_git_cmd(conf.repo, *argv[1:])
    elif query.cmd == CMD_COMPLETIONS:
        completions(conf, argv, ctx)
    else:
        raise DstaskError(f"unknown command: {query.cmd}")


def main(argv: Sequence[str] | None = None) -> None:
    """Run dstask with the given arguments (the program name excluded)."""
    args = list(sys.argv[1:] if argv is None else argv)
    query = parse_query(*args)

    # commands that need no repository
    if query.cmd == CMD_HELP:
        command_help(args)
        return
    if query.cmd == CMD_VERSION:
        command_version()
        return
    if query.cmd in _COMPLETION_SCRIPTS:
        _fail("shell completion scripts are not bundled with this installation")
        return

    try:
        _run(query, args)
    except _FAILURES as exc:
        _fail(str(exc))
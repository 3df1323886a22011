"""The dstask commands: each loads the task set, acts on it and commits."""

from __future__ import annotations

import re
import sys
from datetime import datetime
from typing import Sequence

from .config import Config
from .constants import (
    BUILD_DATE,
    CMD_UNDO,
    GIT_COMMIT,
    STATUS_ACTIVE,
    STATUS_PAUSED,
    STATUS_PENDING,
    STATUS_RESOLVED,
    STATUS_TEMPLATE,
    VERSION,
)
from .display import display_by_next, display_by_week, display_projects
from .git import commit_and_report, run_git_cmd, sync
from .help import print_help
from .localstate import State
from .query import Query
from .task import Task, TaskLoadError
from .taskset import TaskSet, load_task_set
from .util import (
    DstaskError,
    confirm_or_abort,
    edit_text,
    make_temp_filename,
    open_browser,
    stdout_is_tty,
)

_OPERATORS_INVALID = "operators not valid in this context"
_NO_IDS = "no ID(s) specified"

_TLDS = (
    "com|org|net|edu|gov|mil|int|io|dev|app|info|biz|co|uk|us|de|fr|nl|eu|ca|au|"
    "jp|cn|ru|in|br|it|es|se|no|ch|me|tv|ly|ai|xyz|online|site|tech"
)
_URL_RE = re.compile(
    r"(?:[a-z][a-z0-9+.-]*://|mailto:)[^\s<>\"]+"
    r"|\b(?:[\w.+-]+@)?(?:[a-z0-9](?:[a-z0-9-]*[a-z0-9])?\.)+"
    rf"(?:{_TLDS})(?![a-z0-9-])(?::\d{{1,5}})?(?:/[^\s<>\"]*)?",
    re.IGNORECASE,
)
_TRAILING = ".,:;!?'\""
_PAIRS = {")": "(", "]": "["}


def _strip_trailing(url: str) -> str:
    while url:
        last = url[-1]
        if last in _TRAILING:
            url = url[:-1]
        elif last in _PAIRS and url.count(last) > url.count(_PAIRS[last]):
            url = url[:-1]
        else:
            break
    return url


def find_urls(text: str) -> list[str]:
    """URLs in the text, with or without a scheme, in order of appearance."""
    urls = (_strip_trailing(match.group(0)) for match in _URL_RE.finditer(text))
    return [url for url in urls if url]


def _now() -> datetime:
    return datetime.now().astimezone()


def _load(conf: Config, include_resolved: bool = False) -> TaskSet:
    return load_task_set(conf.repo, conf.ids_file, include_resolved)


def _store_new(conf: Config, task_set: TaskSet, task: Task, message: str) -> Task:
    stored = task_set.load_task(task)
    if stored is None:
        stored = task
    task_set.save_pending_changes()
    commit_and_report(conf.repo, message.format(task=stored))
    return stored


def _store_update(conf: Config, task_set: TaskSet, task: Task, message: str) -> None:
    task_set.update_task(task)
    task_set.save_pending_changes()
    commit_and_report(conf.repo, message)


def _require_ids(query: Query, ids_first: bool = True) -> None:
    checks = [
        (not query.ids, _NO_IDS),
        (query.has_operators(), _OPERATORS_INVALID),
    ]
    if not ids_first:
        checks.reverse()
    for failed, message in checks:
        if failed:
            raise DstaskError(message)


def _new_task(status: str, query: Query, notes: str = "", resolved: datetime | None = None) -> Task:
    return Task(
        write_pending=True,
        status=status,
        summary=query.text,
        tags=list(query.tags),
        project=query.project,
        priority=query.priority,
        notes=notes,
        resolved=resolved,
    )


def _print_notes(task: Task) -> None:
    print(f"\nNotes on task {task.id}:\n\033[38;5;245m{task.notes}\033[0m\n")


def _edit(text: str, filename: str) -> str:
    edited = edit_text(text, filename)
    if isinstance(edited, bytes):
        return edited.decode("utf-8")
    return edited


def command_add(conf: Config, ctx: Query, query: Query) -> None:
    """Add a task, either from a description or as a copy of a template."""
    if not query.text and query.template == 0:
        raise DstaskError("Task description or template required")

    task_set = _load(conf)

    if query.template > 0:
        template = task_set.get_by_id(query.template)
        query = query.merge(ctx)
        task = Task(
            write_pending=True,
            status=STATUS_PENDING,
            summary=query.text or template.summary,
            tags=list(template.tags),
            project=template.project,
            priority=template.priority,
            notes=template.notes,
        )
        task.modify(query)
        _store_new(conf, task_set, task, "Added {task}")
        if template.status != STATUS_TEMPLATE:
            sys.stdout.write(
                "\nYou've copied an open task!\n"
                "To learn more about creating templates enter 'dstask help template'\n\n"
            )
    else:
        ctx.print_context_description()
        query = query.merge(ctx)
        _store_new(conf, task_set, _new_task(STATUS_PENDING, query, query.note), "Added {task}")


def command_context(
    conf: Config, state: State, ctx: Query, query: Query, argv: Sequence[str]
) -> None:
    """Show, set or clear the context; argv excludes the program name."""
    if len(argv) < 2:
        print(ctx)
    elif argv[1] == "none":
        state.set_context(Query())
    else:
        state.set_context(query)
    state.save(conf.state_file)


def command_done(conf: Config, ctx: Query, query: Query) -> None:
    """Resolve the given tasks, appending any text to their notes."""
    _require_ids(query, ids_first=False)
    task_set = _load(conf)

    # iterate over IDs rather than filtering: each must exist, context is ignored
    for task_id in query.ids:
        task = task_set.get_by_id(task_id)
        task.status = STATUS_RESOLVED
        task.resolved = _now()
        if query.text:
            task.notes += "\n" + query.text
        _store_update(conf, task_set, task, f"Resolved {task}")


def command_edit(conf: Config, ctx: Query, query: Query) -> None:
    """Edit the given tasks as YAML in the user's editor."""
    _require_ids(query, ids_first=False)
    task_set = _load(conf)

    for task_id in query.ids:
        task = task_set.get_by_id(task_id)
        original = task.to_yaml()
        filename = make_temp_filename(task.id, task.summary, "yml")
        while True:
            edited = _edit(original, filename)
            try:
                task.update_from_yaml(edited)
            except TaskLoadError as exc:
                confirm_or_abort(f"Failed to unmarshal {exc}\nTry again?")
            else:
                break
        _store_update(conf, task_set, task, f"Edited {task}")


def command_help(argv: Sequence[str]) -> None:
    """Print help for the command after 'help'; argv excludes the program name."""
    print_help(argv[1] if len(argv) > 1 else "")


def command_log(conf: Config, ctx: Query, query: Query) -> None:
    """Add a task that is already resolved."""
    if not query.text:
        raise DstaskError("Task description required")

    task_set = _load(conf)
    ctx.print_context_description()
    query = query.merge(ctx)
    task = _new_task(STATUS_RESOLVED, query, resolved=_now())
    _store_new(conf, task_set, task, "Logged {task}")


def command_modify(conf: Config, ctx: Query, query: Query) -> None:
    """Apply the query's operators to the given tasks, or all in context."""
    if not query.has_operators():
        raise DstaskError("no operations specified")

    task_set = _load(conf)

    if not query.ids:
        task_set.filter(ctx)
        if stdout_is_tty():
            confirm_or_abort(
                f"no IDs specified. Apply to all {len(task_set.tasks())} tasks in current ctx?"
            )
        targets = task_set.tasks()
    else:
        targets = [task_set.get_by_id(task_id) for task_id in query.ids]

    for task in targets:
        task.modify(query)
        _store_update(conf, task_set, task, f"Modified {task}")


def command_next(conf: Config, ctx: Query, query: Query) -> None:
    """Show unresolved tasks in the context; the default command."""
    task_set = _load(conf)
    if query.ids:
        # addressing by ID ignores the context
        if query.has_operators():
            raise DstaskError("operators not valid when addressing task by ID")
    else:
        query = query.merge(ctx)
    task_set.filter(query)
    display_by_next(task_set, ctx, True)


def command_note(conf: Config, ctx: Query, query: Query) -> None:
    """Edit or append to a task's notes, or print them when not on a terminal."""
    _require_ids(query)
    task_set = _load(conf)

    for task_id in query.ids:
        task = task_set.get_by_id(task_id)
        if stdout_is_tty():
            if not query.text:
                task.notes = _edit(task.notes, make_temp_filename(task.id, task.summary, "md"))
            elif not task.notes:
                task.notes = query.text
            else:
                task.notes += "\n" + query.text
            _store_update(conf, task_set, task, f"Edit note {task}")
        else:
            try:
                sys.stdout.write(task.notes)
                sys.stdout.flush()
            except OSError as exc:
                raise DstaskError(f"Could not write to stdout: {exc}") from exc


def command_open(conf: Config, ctx: Query, query: Query) -> None:
    """Open every URL in the given tasks' summaries and notes."""
    _require_ids(query)
    task_set = _load(conf)

    for task_id in query.ids:
        task = task_set.get_by_id(task_id)
        urls = find_urls(f"{task.summary} {task.notes}")
        if not urls:
            raise DstaskError(f"no URLs found in task {task.id}")
        for url in urls:
            open_browser(url)


def command_remove(conf: Config, ctx: Query, query: Query) -> None:
    """Delete the given tasks, asking first on a terminal."""
    _require_ids(query)
    task_set = _load(conf)

    for task_id in query.ids:
        print(task_set.get_by_id(task_id))

    if stdout_is_tty():
        confirm_or_abort(
            f"\nThe above {len(query.ids)} task(s) will be deleted without checking "
            "subtasks. Continue?"
        )

    for task_id in query.ids:
        task = task_set.get_by_id(task_id)
        task.deleted = True
        message = f"Removed: {task}"
        if query.text:
            message += f"\n\n{query.text}"
        _store_update(conf, task_set, task, message)


def _show_by_status(conf: Config, ctx: Query, query: Query, status: str) -> None:
    task_set = _load(conf)
    task_set.filter(query.merge(ctx))
    task_set.filter_by_status(status)
    display_by_next(task_set, ctx, True)


def command_show_active(conf: Config, ctx: Query, query: Query) -> None:
    """Show tasks that have been started."""
    _show_by_status(conf, ctx, query, STATUS_ACTIVE)


def command_show_projects(conf: Config, ctx: Query, query: Query) -> None:
    """Show every project with its progress; context and query are not used."""
    if query.ids or query.has_operators():
        raise DstaskError("query/context not supported for show-projects")
    display_projects(_load(conf, include_resolved=True))


def command_show_open(conf: Config, ctx: Query, query: Query) -> None:
    """Show all open tasks without truncation."""
    task_set = _load(conf)
    task_set.filter(query.merge(ctx))
    display_by_next(task_set, ctx, False)


def command_show_paused(conf: Config, ctx: Query, query: Query) -> None:
    """Show tasks that were started and then stopped."""
    _show_by_status(conf, ctx, query, STATUS_PAUSED)


def command_show_resolved(conf: Config, ctx: Query, query: Query) -> None:
    """Show resolved tasks grouped by week."""
    task_set = _load(conf, include_resolved=True)
    query = query.merge(ctx)
    task_set.unhide()
    task_set.filter(query)
    task_set.filter_by_status(STATUS_RESOLVED)
    display_by_week(task_set)


def command_show_tags(conf: Config, ctx: Query, query: Query) -> None:
    """Print the tags of the tasks in the context, one per line."""
    task_set = _load(conf)
    task_set.filter(query.merge(ctx))
    for tag in task_set.get_tags():
        print(tag)


def command_show_templates(conf: Config, ctx: Query, query: Query) -> None:
    """Show template tasks."""
    task_set = _load(conf)
    task_set.unhide()
    task_set.filter_by_status(STATUS_TEMPLATE)
    task_set.filter(query.merge(ctx))
    display_by_next(task_set, ctx, False)


def command_show_unorganised(conf: Config, ctx: Query, query: Query) -> None:
    """Show tasks with neither tags nor a project; context is not used."""
    if query.ids or query.has_operators():
        raise DstaskError("query/context not used for show-unorganised")
    task_set = _load(conf)
    task_set.filter_organised()
    display_by_next(task_set, ctx, True)


def command_start(conf: Config, ctx: Query, query: Query) -> None:
    """Start the given tasks, or add a new task that is already started."""
    task_set = _load(conf)

    if query.template > 0:
        raise DstaskError("templates not yet supported for start command")

    if query.ids:
        for task_id in query.ids:
            task = task_set.get_by_id(task_id)
            task.status = STATUS_ACTIVE
            if query.text:
                task.notes += "\n" + query.text
            _store_update(conf, task_set, task, f"Started {task}")
            if task.notes:
                _print_notes(task)
    elif query.text:
        query = query.merge(ctx)
        task = _new_task(STATUS_ACTIVE, query, query.note)
        _store_new(conf, task_set, task, "Added and started {task}")
    else:
        raise DstaskError("nothing to do -- specify an ID or describe a task")


def command_stop(conf: Config, ctx: Query, query: Query) -> None:
    """Pause the given tasks, appending any text to their notes."""
    task_set = _load(conf)
    _require_ids(query, ids_first=False)

    for task_id in query.ids:
        task = task_set.get_by_id(task_id)
        task.status = STATUS_PAUSED
        if query.text:
            task.notes += "\n" + query.text
        _store_update(conf, task_set, task, f"Stopped {task}")


def command_sync(repo_path: str) -> None:
    """Pull and then push the task repository."""
    sync(repo_path)


def command_template(conf: Config, ctx: Query, query: Query) -> None:
    """Turn the given tasks into templates, or create a new template."""
    task_set = _load(conf)

    if query.ids:
        for task_id in query.ids:
            task = task_set.get_by_id(task_id)
            task.status = STATUS_TEMPLATE
            _store_update(conf, task_set, task, f"Changed {task} to Template")
    elif query.text:
        query = query.merge(ctx)
        task = _new_task(STATUS_TEMPLATE, query, query.note)
        _store_new(conf, task_set, task, "Created Template {task}")


def command_undo(conf: Config, argv: Sequence[str], ctx: Query, query: Query) -> None:
    """Revert the last n commits; argv excludes the program name."""
    count = 1
    if len(argv) == 2:
        try:
            count = int(argv[1])
        except ValueError:
            print_help(CMD_UNDO)
            raise
    run_git_cmd(conf.repo, "revert", "--no-gpg-sign", "--no-edit", f"HEAD~{count}..")


def command_version() -> None:
    """Print version information."""
    print(f"Version: {VERSION}\nGit commit: {GIT_COMMIT}\nBuild date: {BUILD_DATE}")
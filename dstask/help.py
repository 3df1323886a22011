"""Help text for each command and the colour key."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from .constants import (
    BG_ACTIVE,
    BG_DEFAULT_1,
    BG_DEFAULT_2,
    BG_PAUSED,
    CMD_ADD,
    CMD_CONTEXT,
    CMD_DONE,
    CMD_EDIT,
    CMD_GIT,
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
    CMD_SHOW_PROJECTS,
    CMD_SHOW_RESOLVED,
    CMD_SHOW_TEMPLATES,
    CMD_START,
    CMD_STOP,
    CMD_SYNC,
    CMD_TEMPLATE,
    CMD_UNDO,
    FG_ACTIVE,
    FG_DEFAULT,
    FG_PRIORITY_CRITICAL,
    FG_PRIORITY_HIGH,
    FG_PRIORITY_LOW,
)
from .table import fix_str


@dataclass(frozen=True)
class _Entry:
    usage: tuple[str, ...]
    examples: tuple[str, ...] = ()
    body: str = ""

    def render(self) -> str:
        head = [f"Usage: {line}" for line in self.usage]
        head += [f"Example: {line}" for line in self.examples]
        return "\n".join(head) + "\n\n" + self.body


_CONTEXT_NOTE = "Append -- to leave the current context out of it."
_NOTE_NOTE = "Words after a lone / are kept as a note on the new task."
_ATTRS_NOTE = "Tags, a project and a priority may appear anywhere in the summary."

_NEXT = _Entry(
    usage=("dstask next [filter] [--]", "dstask [filter] [--]"),
    examples=("dstask +work +bug --",),
    body=(
        "Lists the unresolved tasks in the current context, newest last, with an\n"
        'optional filter. This is the default command; "next" may be omitted.\n\n'
        f"{_CONTEXT_NOTE}\n\nColour key:\n"
    ),
)

_ADD = _Entry(
    usage=("dstask add [template:<id>] [task summary] [--]",),
    examples=("dstask add Fix main web page 500 error +bug P1 project:website",),
    body=(
        "Creates a task. The git commit output shows the ID used to refer to the\n"
        "task afterwards.\n\n"
        f"{_ATTRS_NOTE}\n\n{_CONTEXT_NOTE}\n{_NOTE_NOTE}\n\n"
        'Include "template:<id>" to copy an existing task; see\n'
        '"dstask help template" for details.\n\n'
    ),
)

_TEMPLATE = _Entry(
    usage=("dstask template <id> [task summary] [--]",),
    examples=(
        "dstask template Fix main web page 500 error +bug P1 project:website",
        "dstask template 34 project:",
    ),
    body=(
        "Given the ID of a task, turns that task into a template. Without an ID,\n"
        "creates a new template.\n\n"
        f"{_ATTRS_NOTE}\n\n{_CONTEXT_NOTE}\n{_NOTE_NOTE}\n\n"
        'Templates are left out of "show-open" and "show-next". They serve as\n'
        "ready-made starting points for tasks that come up again and again.\n\n"
        "To start a task from a template:\n"
        '"dstask add template:<id> [task summary] [--]"\n'
        "The template stays as it is; the new task is a copy of it with the\n"
        "changes given on the command line.\n\n"
        "Checklists in the notes suit templates well, for example:\n\n"
        "- [ ] buy bananas\n- [ ] eat bananas\n- [ ] make coffee\n\n"
    ),
)

_REMOVE = _Entry(
    usage=("dstask remove <id...>",),
    examples=("dstask 15 remove",),
    body="Deletes a task from disk and commits the change.\n\n",
)

_LOG = _Entry(
    usage=("dstask log [task summary] [--]",),
    examples=("dstask log Fix main web page 500 error +bug P1 project:website",),
    body=(
        "Records a task that is already resolved. Takes the same arguments as add.\n\n"
        f"{_ATTRS_NOTE}\n\n{_CONTEXT_NOTE}\n\n"
    ),
)

_START = _Entry(
    usage=("dstask <id...> start", "dstask start [task summary] [--]"),
    examples=(
        "dstask 15 start",
        "dstask start Fix main web page 500 error +bug P1 project:website",
    ),
    body=(
        "Marks tasks as active: you are working on them now.\n\n"
        "Given a summary instead of IDs, creates a task that is already active,\n"
        f"with the same arguments as add. {_ATTRS_NOTE}\n\n{_CONTEXT_NOTE}\n"
    ),
)

_NOTE = _Entry(
    usage=("dstask note <id>", "dstask note <id> <text>"),
    examples=("dstask 13 note problem is faulty hardware",),
    body="Edits the markdown notes of a task, or appends the given text to them.\n",
)

_STOP = _Entry(
    usage=("dstask <id...> stop [text]",),
    examples=("dstask 15 stop", "dstask 15 stop replaced some hardware"),
    body=(
        "Marks tasks as no longer being worked on. Any text given is appended\n"
        "to the notes.\n"
    ),
)

_DONE = _Entry(
    usage=("dstask <id...> done [closing note]",),
    examples=("dstask 15 done", "dstask 15 done replaced some hardware"),
    body="Resolves tasks. Any text given is appended to the notes.\n",
)

_CONTEXT = _Entry(
    usage=("dstask context <filter>",),
    examples=("dstask context +work -bug", "dstask context none"),
    body=(
        "Sets a filter of project, tags and anti-tags that is applied from then\n"
        "on to new tasks and to most commands.\n\n"
        'With a context of +work, "dstask add fix the webserver" gives the new\n'
        'task the tag "work".\n\n'
        "Clear the context with: dstask context none\n\n"
        "The DSTASK_CONTEXT environment variable, when set, takes the place of\n"
        "the context saved on disk.\n"
    ),
)

_MODIFY = _Entry(
    usage=("dstask <id...> modify <filter>", "dstask modify <filter>"),
    examples=("dstask 34 modify -work +home project:workbench -project:website",),
    body=(
        "Changes tags, project and priority of the tasks with the given IDs.\n"
        "Without IDs, every task in the current context is changed, after a\n"
        "confirmation.\n"
    ),
)

_EDIT = _Entry(
    usage=("dstask <id...> edit",),
    body="Opens tasks in your text editor.\n",
)

_UNDO = _Entry(
    usage=("dstask undo", "dstask undo <n>"),
    body=(
        "Reverts the last <n> commits of the repository (one by default).\n"
        "The history is shown by\n\n\tdstask git log\n\n"
        "Anything more involved is best done with git directly in the\n"
        "repository, which lives at ~/.dstask unless configured otherwise.\n"
    ),
)

_SYNC = _Entry(
    usage=("dstask sync",),
    body=(
        "Pulls from and then pushes to the remote git repository. Conflicts that\n"
        'git cannot settle must be resolved by hand in ~/.dstask or with "dstask git".\n'
    ),
)

_GIT = _Entry(
    usage=("dstask git <args...>",),
    examples=("dstask git status",),
    body="Runs git with the given arguments inside ~/.dstask\n",
)

_SHOW_RESOLVED = _Entry(
    usage=("dstask show-resolved",),
    body="Lists resolved tasks, grouped by week.\n",
)

_SHOW_TEMPLATES = _Entry(
    usage=("dstask show-templates [filter] [--]",),
    body="Lists template tasks, optionally filtered.\n\n" + _CONTEXT_NOTE,
)

_OPEN = _Entry(
    usage=("dstask <id...> open",),
    body=(
        "Opens in the browser every URL in the summary and notes of the tasks.\n"
        "Handy for turning a pile of open browser tabs into tasks for later.\n"
    ),
)

_SHOW_PROJECTS = _Entry(
    usage=("dstask show-projects",),
    body="Lists projects with their progress.\n",
)

_COMPLETION = _Entry(
    usage=("dstask [bash|zsh|fish]-completion",),
    body=(
        "Writes a shell completion script to stdout, to be loaded from the\n"
        "shell's start-up file:\n\n"
        "    source <(dstask bash-completion)\n"
        "    source <(dstask zsh-completion)\n"
        "    dstask fish-completion | source\n"
    ),
)

_COMMAND_SUMMARIES = (
    ("next", "Show the most important tasks (by priority, then age; truncated; default)"),
    ("add", "Add a task"),
    ("template", "Add a task template"),
    ("log", "Record a task that is already resolved"),
    ("start", "Mark a task active"),
    ("note", "Append to or edit the notes of a task"),
    ("stop", "Mark a task paused"),
    ("done", "Resolve a task"),
    ("context", 'Set the context for listings and new tasks ("none" clears it)'),
    ("modify", "Change the attributes given on the command line"),
    ("edit", "Edit a task in a text editor"),
    ("undo", "Revert the last n commits"),
    ("sync", "Pull then push the git repository"),
    ("open", "Open every URL in the summary and notes"),
    ("git", "Run a git command in the repository"),
    ("remove", "Delete a task (for tasks added by mistake)"),
    ("show-projects", "List projects with progress"),
    ("show-tags", "List the tags in use"),
    ("show-active", "Show tasks being worked on"),
    ("show-paused", "Show tasks started and then stopped"),
    ("show-open", "Show every unresolved task, untruncated"),
    ("show-resolved", "Show resolved tasks"),
    ("show-templates", "Show task templates"),
    ("show-unorganised", "Show tasks without tags or project (ignores context)"),
    ("bash-completion", "Write the bash completion script to stdout"),
    ("fish-completion", "Write the fish completion script to stdout"),
    ("zsh-completion", "Write the zsh completion script to stdout"),
    ("help", "Show help on a command, or this message"),
    ("version", "Show version information"),
)

_DEFAULT = (
    "Usage: dstask [id...] <cmd> [task summary/filter]\n\n"
    "A task summary is text mixed with attributes. Tags are written +tag (or\n"
    "-tag to exclude them when filtering), the project as project:name without\n"
    "quotes, and the priority as P0 (critical), P1 (high), P2 (default) or P3\n"
    "(low). Any other words search the summary and notes.\n\n"
    "IDs may come before or after the command; several IDs act on several tasks.\n\n"
    'Run "dstask help <cmd>" for help on one command.\n\n'
    f"{_CONTEXT_NOTE}\n{_NOTE_NOTE}\n\n"
    "Available commands:\n\n"
    + "".join(f"{name.ljust(18)}: {text}\n" for name, text in _COMMAND_SUMMARIES)
    + "\nColour Key:\n"
)

_HELP = {
    CMD_NEXT: _NEXT,
    CMD_ADD: _ADD,
    CMD_TEMPLATE: _TEMPLATE,
    CMD_RM: _REMOVE,
    CMD_REMOVE: _REMOVE,
    CMD_LOG: _LOG,
    CMD_START: _START,
    CMD_NOTE: _NOTE,
    CMD_NOTES: _NOTE,
    CMD_STOP: _STOP,
    CMD_RESOLVE: _DONE,
    CMD_DONE: _DONE,
    CMD_CONTEXT: _CONTEXT,
    CMD_MODIFY: _MODIFY,
    CMD_EDIT: _EDIT,
    CMD_UNDO: _UNDO,
    CMD_SYNC: _SYNC,
    CMD_GIT: _GIT,
    CMD_SHOW_RESOLVED: _SHOW_RESOLVED,
    CMD_SHOW_TEMPLATES: _SHOW_TEMPLATES,
    CMD_OPEN: _OPEN,
    CMD_SHOW_PROJECTS: _SHOW_PROJECTS,
    CMD_PRINT_BASH_COMPLETION: _COMPLETION,
    CMD_PRINT_ZSH_COMPLETION: _COMPLETION,
    CMD_PRINT_FISH_COMPLETION: _COMPLETION,
}

_COLOUR_KEY = (
    (FG_PRIORITY_CRITICAL, BG_DEFAULT_2, "Critical priority"),
    (FG_PRIORITY_HIGH, BG_DEFAULT_2, "High priority"),
    (FG_DEFAULT, BG_DEFAULT_1, "Normal priority"),
    (FG_PRIORITY_LOW, BG_DEFAULT_2, "Low priority"),
    (FG_ACTIVE, BG_ACTIVE, "Active"),
    (FG_DEFAULT, BG_PAUSED, "Paused"),
)


def colour_line(mode: int, fg: int, bg: int, line: str) -> str:
    """A line padded to 25 columns with the given ANSI mode and colours."""
    return f"\033[{mode};38;5;{fg};48;5;{bg}m{fix_str(line, 25)}\033[0m"


def help_text(cmd: str) -> str:
    """Help for a command, or the general help for anything unknown."""
    entry = _HELP.get(cmd)
    if entry is not None and cmd != CMD_NEXT:
        return entry.render()
    text = entry.render() if entry is not None else _DEFAULT
    key = "".join(colour_line(0, fg, bg, label) + "\n" for fg, bg, label in _COLOUR_KEY)
    return text + key


def print_help(cmd: str) -> None:
    """Write the help for a command to stderr and exit successfully."""
    sys.stderr.write(help_text(cmd))
    sys.stderr.flush()
    raise SystemExit(0)
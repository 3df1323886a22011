"""Statuses, commands, priorities, limits and colours shared across dstask."""

# Build information, filled in when a release is made.
GIT_COMMIT = VERSION = BUILD_DATE = "Unknown"

# Every status a task may have, in the order used when loading and importing.
ALL_STATUSES = (
    "active", "pending", "delegated", "deferred",
    "paused", "recurring", "resolved", "template",
)
(
    STATUS_ACTIVE, STATUS_PENDING, STATUS_DELEGATED, STATUS_DEFERRED,
    STATUS_PAUSED, STATUS_RECURRING, STATUS_RESOLVED, STATUS_TEMPLATE,
) = ALL_STATUSES

# Hidden unless addressed directly or shown by a show- command.
HIDDEN_STATUSES = (STATUS_RECURRING, STATUS_RESOLVED, STATUS_TEMPLATE)

# Resolved tasks are unbounded and expensive, so most operations skip them.
NON_RESOLVED_STATUSES = tuple(s for s in ALL_STATUSES if s != STATUS_RESOLVED)

VALID_STATUS_TRANSITIONS = (
    (STATUS_PENDING, STATUS_ACTIVE), (STATUS_ACTIVE, STATUS_PAUSED),
    (STATUS_PAUSED, STATUS_ACTIVE), (STATUS_PENDING, STATUS_RESOLVED),
    (STATUS_PAUSED, STATUS_RESOLVED), (STATUS_ACTIVE, STATUS_RESOLVED),
    (STATUS_PENDING, STATUS_TEMPLATE),
)

# Every command word the parser recognises, in completion order.
ALL_CMDS = (
    "next", "add", "rm", "remove", "template", "log", "start", "note", "notes",
    "stop", "done", "resolve", "context", "modify", "edit", "undo", "sync",
    "open", "git", "show-next", "show-projects", "show-tags", "show-active",
    "show-paused", "show-open", "show-resolved", "show-templates",
    "show-unorganised", "_completions", "bash-completion", "fish-completion",
    "zsh-completion", "help", "version",
)
(
    CMD_NEXT, CMD_ADD, CMD_RM, CMD_REMOVE, CMD_TEMPLATE, CMD_LOG, CMD_START,
    CMD_NOTE, CMD_NOTES, CMD_STOP, CMD_DONE, CMD_RESOLVE, CMD_CONTEXT,
    CMD_MODIFY, CMD_EDIT, CMD_UNDO, CMD_SYNC, CMD_OPEN, CMD_GIT, CMD_SHOW_NEXT,
    CMD_SHOW_PROJECTS, CMD_SHOW_TAGS, CMD_SHOW_ACTIVE, CMD_SHOW_PAUSED,
    CMD_SHOW_OPEN, CMD_SHOW_RESOLVED, CMD_SHOW_TEMPLATES, CMD_SHOW_UNORGANISED,
    CMD_COMPLETIONS, CMD_PRINT_BASH_COMPLETION, CMD_PRINT_FISH_COMPLETION,
    CMD_PRINT_ZSH_COMPLETION, CMD_HELP, CMD_VERSION,
) = ALL_CMDS

# Priorities from most to least urgent; their string order is their rank.
_PRIORITIES = ("P0", "P1", "P2", "P3")
PRIORITY_CRITICAL, PRIORITY_HIGH, PRIORITY_NORMAL, PRIORITY_LOW = _PRIORITIES
VALID_PRIORITIES = frozenset(_PRIORITIES)

MAX_TASKS_OPEN, TASK_FILENAME_LEN = 10_000, 40

# Tasks shown even on a short terminal, and lines kept free for messages.
MIN_TASKS_SHOWN, TERMINAL_HEIGHT_MARGIN = 8, 9

IGNORE_CONTEXT_KEYWORD, NOTE_MODE_KEYWORD = "--", "/"

# Table layout.
TABLE_MAX_WIDTH, TABLE_COL_GAP = 160, 2

# ANSI modes and xterm-256 colours.
MODE_HEADER, MODE_DEFAULT = 4, 0
FG_DEFAULT, BG_DEFAULT_1, BG_DEFAULT_2 = 250, 233, 232
FG_ACTIVE, BG_ACTIVE = 233, 250
BG_PAUSED = 236  # started, then stopped
FG_PRIORITY_CRITICAL, FG_PRIORITY_HIGH, FG_PRIORITY_LOW = 160, 166, 245
FG_PRIORITY_NORMAL = FG_DEFAULT
FG_NOTE = 240
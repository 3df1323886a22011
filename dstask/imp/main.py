"""The dstask-import command."""

from __future__ import annotations

import sys
from typing import Sequence

from ..config import config_from_env
from ..task import TaskValidationError
from ..util import DstaskError, exit_fail
from .taskwarrior import import_taskwarrior

_USAGE = """usage: dstask-import tw|--help|help

       dstask-import help or --help       # this menu
       cat export.json | dstask-import tw # import from a taskwarrior json dump which can be obtained with the taskwarrior command 'task export'
"""


def usage() -> None:
    """Print usage to stderr."""
    sys.stderr.write(_USAGE)
    sys.stderr.flush()


def main(argv: Sequence[str] | None = None) -> None:
    """Run dstask-import with the given arguments (the program name excluded)."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        usage()
        raise SystemExit(2)

    command = args[0]
    if command in ("--help", "help"):
        usage()
        return
    if command == "tw":
        try:
            import_taskwarrior(config_from_env(), sys.stdin)
        except (DstaskError, TaskValidationError) as exc:
            exit_fail(str(exc))
            raise SystemExit(1) from exc
        return

    usage()
    raise SystemExit(2)
"""Small helpers: validation, prompts, editors, terminals and browsers."""

from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unicodedata
import uuid
from typing import Iterable, NoReturn

from .constants import ALL_STATUSES, VALID_PRIORITIES, VALID_STATUS_TRANSITIONS


class DstaskError(Exception):
    """An error reported to the user."""


class AbortedError(DstaskError):
    """The user declined a confirmation prompt."""


def fake_pty() -> bool:
    """Whether DSTASK_FAKE_PTY asks to behave as if stdout were a terminal."""
    return bool(os.environ.get("DSTASK_FAKE_PTY"))


def exit_fail(message: str) -> NoReturn:
    """Print the message in red on stderr and exit with status 1."""
    print(f"\033[31m{message}\033[0m", file=sys.stderr)
    raise SystemExit(1)


def confirm_or_abort(message: str) -> None:
    """Ask a yes/no question on stderr; raise AbortedError unless answered 'y'."""
    sys.stderr.write(f"{message} [y/n] ")
    sys.stderr.flush()
    answer = sys.stdin.readline()
    if answer == "y\n":
        return
    raise AbortedError("Aborted.")


def new_uuid4() -> str:
    return str(uuid.uuid4())


def is_valid_uuid4(value) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def is_valid_priority(priority: str) -> bool:
    return priority in VALID_PRIORITIES


def is_valid_status(status: str) -> bool:
    return status in ALL_STATUSES


def run_cmd(name: str, *args: str) -> None:
    """Run a program attached to this process's terminal; raise on failure."""
    subprocess.run([name, *args], check=True)


def _is_punct(char: str) -> bool:
    return unicodedata.category(char).startswith("P")


def make_temp_filename(task_id: int, summary: str, ext: str) -> str:
    """Encode the ID and a slug of the summary into a temp file pattern."""
    slug: list[str] = []
    for char in summary:
        if not char.isascii() or _is_punct(char):
            continue
        if not (char.isalpha() or char.isnumeric()) or char.isspace():
            char = "-"
            # no leading hyphen, and never two in a row
            if not slug or slug[-1] == "-":
                continue
        if len(slug) > 20:
            break
        slug.append(char)

    lowered = f"{task_id}-{''.join(slug)}".lower()
    return f"dstask.*.{lowered}.{ext}"


def edit_text(data: str, tmp_filename: str) -> str:
    """Open data in $EDITOR (default vim) and return the edited text."""
    editor = os.environ.get("EDITOR") or "vim"
    if "*" in tmp_filename:
        prefix, _, suffix = tmp_filename.rpartition("*")
    else:
        prefix, suffix = tmp_filename, ""

    try:
        fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    except OSError as exc:
        raise DstaskError("Could not create temporary file to edit") from exc

    try:
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(data)
        except OSError as exc:
            raise DstaskError("Could not write to temporary file to edit") from exc

        try:
            run_cmd(editor, path)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise DstaskError("Failed to run $EDITOR") from exc

        try:
            with open(path, encoding="utf-8", newline="") as handle:
                return handle.read()
        except OSError as exc:
            raise DstaskError("Could not read back temporary edited file") from exc
    finally:
        try:
            os.remove(path)
        except OSError:
            pass


def contains_all(subset: Iterable[str], superset: Iterable[str]) -> bool:
    pool = set(superset)
    return all(item in pool for item in subset)


def is_valid_state_transition(from_status: str, to_status: str) -> bool:
    return (from_status, to_status) in VALID_STATUS_TRANSITIONS


def open_browser(url: str) -> None:
    """Open the URL with the platform's default handler, without waiting."""
    if sys.platform.startswith("linux"):
        command = ["xdg-open", url]
    elif sys.platform == "win32":
        command = ["rundll32", "url.dll,FileProtocolHandler", url]
    elif sys.platform == "darwin":
        command = ["open", url]
    else:
        raise DstaskError("unsupported platform")

    try:
        subprocess.Popen(command)
    except OSError as exc:
        raise DstaskError("Failed to open browser") from exc


def deduplicate(items: Iterable[str]) -> list[str]:
    """Drop repeated items, keeping the first occurrence of each."""
    return list(dict.fromkeys(items))


def get_term_size() -> tuple[int, int]:
    """Return (columns, rows) of the terminal on stdout."""
    if fake_pty():
        return 80, 24
    try:
        size = os.get_terminal_size(sys.stdout.fileno())
    except (OSError, ValueError, AttributeError) as exc:
        raise DstaskError("Not a TTY") from exc
    return size.columns, size.lines


def stdout_is_tty() -> bool:
    isatty = getattr(sys.stdout, "isatty", None)
    try:
        is_tty = bool(isatty()) if isatty else False
    except ValueError:
        is_tty = False
    return is_tty or fake_pty()


def write_stdout(data) -> None:
    """Write text or bytes to stdout unchanged."""
    if isinstance(data, (bytes, bytearray)):
        buffer = getattr(sys.stdout, "buffer", None)
        if buffer is not None:
            sys.stdout.flush()
            buffer.write(data)
            buffer.flush()
            return
        data = bytes(data).decode("utf-8", errors="replace")
    sys.stdout.write(data)
    sys.stdout.flush()
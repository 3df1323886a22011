import io
import os
import subprocess
import sys
import tempfile

import pytest

from dstask.constants import (
    PRIORITY_CRITICAL,
    PRIORITY_LOW,
    STATUS_ACTIVE,
    STATUS_PENDING,
    STATUS_RESOLVED,
    STATUS_TEMPLATE,
)
from dstask.util import (
    AbortedError,
    DstaskError,
    confirm_or_abort,
    contains_all,
    deduplicate,
    edit_text,
    exit_fail,
    get_term_size,
    is_valid_priority,
    is_valid_state_transition,
    is_valid_status,
    is_valid_uuid4,
    make_temp_filename,
    new_uuid4,
    run_cmd,
    stdout_is_tty,
    write_stdout,
)


@pytest.mark.parametrize(
    "task_id, summary, expected",
    [
        (1, "& &", "dstask.*.1-.md"),
        (2147483647, "J's $100, != €100", "dstask.*.2147483647-js-100-100.md"),
        (-2147483648, "J's $100, != €100", "dstask.*.-2147483648-js-100-100.md"),
        (99, "A simple summary!", "dstask.*.99-a-simple-summary.md"),
        (1, "& that's that.", "dstask.*.1-thats-that.md"),
    ],
)
def test_make_temp_filename(task_id, summary, expected):
    name = make_temp_filename(task_id, summary, "md")
    assert name == expected

    prefix, _, suffix = name.rpartition("*")
    fd, path = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    os.close(fd)
    os.remove(path)
    assert os.path.basename(path).startswith(prefix)


def test_make_temp_filename_slug_is_bounded():
    name = make_temp_filename(5, "a" * 100, "yml")
    slug = name[len("dstask.*.5-") : -len(".yml")]
    assert set(slug) == {"a"}
    assert len(slug) <= 21


@pytest.mark.parametrize(
    "subset, superset, expected",
    [
        ([], [], True),
        (["one"], ["one"], True),
        (["one"], ["two"], False),
        (["one"], [], False),
        (["one"], ["one", "two"], True),
        (["one", "two"], ["one", "two"], True),
        (["two", "one"], ["three", "one", "two"], True),
        (["apple", "two", "one"], ["three", "one", "two"], False),
        ([], ["three", "one", "two"], True),
    ],
)
def test_contains_all(subset, superset, expected):
    assert contains_all(subset, superset) is expected


def test_new_uuid4_is_valid_and_unique():
    first, second = new_uuid4(), new_uuid4()
    assert is_valid_uuid4(first)
    assert first != second
    assert len(first) == 36


@pytest.mark.parametrize("value", ["nope", "", "1234", None])
def test_invalid_uuid(value):
    assert is_valid_uuid4(value) is False


def test_priorities_and_statuses():
    assert is_valid_priority(PRIORITY_CRITICAL)
    assert is_valid_priority(PRIORITY_LOW)
    assert not is_valid_priority("P4")
    assert not is_valid_priority("")
    assert is_valid_status(STATUS_TEMPLATE)
    assert not is_valid_status("bogus")


def test_state_transitions():
    assert is_valid_state_transition(STATUS_PENDING, STATUS_ACTIVE)
    assert is_valid_state_transition(STATUS_ACTIVE, STATUS_RESOLVED)
    assert not is_valid_state_transition(STATUS_RESOLVED, STATUS_PENDING)
    assert not is_valid_state_transition(STATUS_TEMPLATE, STATUS_PENDING)


def test_deduplicate_keeps_first_occurrence_order():
    assert deduplicate(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
    assert deduplicate([]) == []


def test_confirm_accepts_y(monkeypatch, capsys):
    monkeypatch.setattr(sys, "stdin", io.StringIO("y\n"))
    assert confirm_or_abort("Proceed?") is None
    assert "Proceed? [y/n] " in capsys.readouterr().err


@pytest.mark.parametrize("answer", ["n\n", "yes\n", ""])
def test_confirm_aborts_otherwise(monkeypatch, answer):
    monkeypatch.setattr(sys, "stdin", io.StringIO(answer))
    with pytest.raises(AbortedError):
        confirm_or_abort("Proceed?")


def test_exit_fail(capsys):
    with pytest.raises(SystemExit) as info:
        exit_fail("broken thing")
    assert info.value.code == 1
    assert "broken thing" in capsys.readouterr().err


def test_fake_pty_term_size(monkeypatch):
    monkeypatch.setenv("DSTASK_FAKE_PTY", "1")
    assert get_term_size() == (80, 24)
    assert stdout_is_tty() is True


def test_term_size_without_tty(monkeypatch):
    monkeypatch.delenv("DSTASK_FAKE_PTY", raising=False)
    monkeypatch.setattr(sys, "stdout", io.StringIO())
    with pytest.raises(DstaskError):
        get_term_size()
    assert stdout_is_tty() is False


def test_run_cmd_raises_on_failure():
    with pytest.raises(subprocess.CalledProcessError):
        run_cmd(sys.executable, "-c", "import sys; sys.exit(3)")


def test_write_stdout(capsys):
    write_stdout("some notes")
    assert capsys.readouterr().out == "some notes"


def test_edit_text_round_trip(monkeypatch):
    seen = {}

    def fake_run(command, **kwargs):
        path = command[-1]
        seen["command"] = command
        seen["name"] = os.path.basename(path)
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(" edited")
        return subprocess.CompletedProcess(command, 0)

    monkeypatch.setenv("EDITOR", "myeditor")
    monkeypatch.setattr(subprocess, "run", fake_run)
    result = edit_text("original", "dstask.*.3-x.md")
    assert result == "original edited"
    assert seen["command"][0] == "myeditor"
    assert seen["name"].startswith("dstask.")
    assert seen["name"].endswith(".3-x.md")


def test_edit_text_editor_failure(monkeypatch):
    def failing_run(command, **kwargs):
        raise subprocess.CalledProcessError(1, command)

    monkeypatch.setattr(subprocess, "run", failing_run)
    with pytest.raises(DstaskError, match="EDITOR"):
        edit_text("x", "dstask.*.1-x.md")
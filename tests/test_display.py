import io
import json
import sys
from datetime import datetime, timedelta, timezone

import pytest

from dstask.constants import (
    BG_ACTIVE,
    BG_PAUSED,
    FG_ACTIVE,
    FG_PRIORITY_CRITICAL,
    FG_PRIORITY_HIGH,
    FG_PRIORITY_LOW,
)
from dstask.display import (
    display_by_next,
    display_by_week,
    display_projects,
    display_task,
    project_style,
    render_json,
    render_table,
    task_style,
)
from dstask.query import Query
from dstask.table import RowStyle
from dstask.task import Task
from dstask.taskset import Project, TaskSet
from dstask.util import DstaskError

UTC = timezone.utc


class _TTYBuffer(io.StringIO):
    def isatty(self):
        return True


@pytest.fixture
def no_pty(monkeypatch):
    monkeypatch.delenv("DSTASK_FAKE_PTY", raising=False)


@pytest.fixture
def pty(monkeypatch):
    monkeypatch.setenv("DSTASK_FAKE_PTY", "1")


def make_set(*tasks):
    task_set = TaskSet()
    for task in tasks:
        task_set.load_task(task)
    return task_set


def test_task_style_active():
    style = task_style(Task(status="active", priority="P2"))
    assert style == RowStyle(fg=FG_ACTIVE, bg=BG_ACTIVE)


def test_task_style_priorities():
    assert task_style(Task(status="pending", priority="P0")).fg == FG_PRIORITY_CRITICAL
    assert task_style(Task(status="pending", priority="P1")).fg == FG_PRIORITY_HIGH
    assert task_style(Task(status="pending", priority="P3")).fg == FG_PRIORITY_LOW
    assert task_style(Task(status="pending", priority="P2")) == RowStyle()


def test_task_style_overdue_and_paused():
    overdue = Task(
        status="paused",
        priority="P3",
        due=datetime.now(UTC) - timedelta(days=1),
    )
    style = task_style(overdue)
    assert style.fg == FG_PRIORITY_HIGH
    assert style.bg == BG_PAUSED


def test_project_style():
    assert project_style(Project(name="a", active=True)) == RowStyle(fg=FG_ACTIVE, bg=BG_ACTIVE)
    assert project_style(Project(name="a", priority="P0")).fg == FG_PRIORITY_CRITICAL
    assert project_style(Project(name="a", priority="P3")).fg == FG_PRIORITY_LOW
    assert project_style(Project(name="a", priority="P2")) == RowStyle()


def test_render_json_lists_unfiltered_tasks(capsys):
    task_set = make_set(
        Task(summary="one", status="pending", tags=["x"]),
        Task(summary="two", status="pending"),
    )
    task_set.filter(Query(tags=["x"]))
    render_json(task_set)
    data = json.loads(capsys.readouterr().out)
    assert [item["summary"] for item in data] == ["one"]
    assert data[0]["tags"] == ["x"]


def test_display_by_next_json_order(capsys, no_pty):
    base = datetime(2020, 1, 1, tzinfo=UTC)
    task_set = make_set(
        Task(summary="A", status="pending", priority="P2", created=base + timedelta(hours=1)),
        Task(summary="B", status="pending", priority="P1", created=base + timedelta(hours=2)),
        Task(summary="C", status="pending", priority="P2", created=base),
    )
    display_by_next(task_set, Query(), True)
    data = json.loads(capsys.readouterr().out)
    assert [item["summary"] for item in data] == ["B", "C", "A"]


def test_display_by_next_table(capsys, pty):
    task_set = make_set(
        Task(summary="first", status="pending"),
        Task(summary="second", status="pending"),
    )
    display_by_next(task_set, Query(), True)
    out = capsys.readouterr().out
    assert "first" in out and "second" in out
    assert "\n2 tasks.\n" in out


def test_display_by_next_warns_of_hidden_critical(capsys, pty):
    task_set = make_set(
        Task(summary="urgent", status="pending", priority="P0", tags=["x"]),
        Task(summary="y1", status="pending", tags=["y"]),
        Task(summary="y2", status="pending", tags=["y"]),
    )
    task_set.filter(Query(tags=["y"]))
    display_by_next(task_set, Query(tags=["y"]), True)
    out = capsys.readouterr().out
    assert "critical task(s) outside this context!" in out
    assert "urgent" not in out


def test_render_table_empty_repository(capsys, pty):
    render_table(TaskSet(), True)
    assert "No tasks found. Run `dstask help` for instructions." in capsys.readouterr().out


def test_render_table_all_filtered_raises(pty):
    task_set = make_set(Task(summary="one", status="pending"))
    task_set.filter_by_status("active")
    with pytest.raises(DstaskError, match="No matching tasks"):
        render_table(task_set, True)


def test_render_table_single_task_shows_notes(capsys, pty):
    task_set = make_set(Task(summary="solo", status="pending", notes="remember this"))
    render_table(task_set, True)
    out = capsys.readouterr().out
    assert "Notes on task 1:" in out
    assert "remember this" in out


def test_render_table_truncation(capsys, pty):
    task_set = make_set(*(Task(summary=f"task{n}", status="pending") for n in range(20)))
    render_table(task_set, True)
    assert "/20 tasks shown." in capsys.readouterr().out
    render_table(task_set, False)
    assert "\n20 tasks.\n" in capsys.readouterr().out


def test_display_task_fields(capsys, pty):
    task = Task(
        uuid="e09f6975-8a79-433d-b8f8-837b85a1754c",
        id=3,
        summary="details",
        status="pending",
        priority="P2",
        created=datetime(2009, 11, 10, 23, 0, tzinfo=UTC),
    )
    display_task(task)
    out = capsys.readouterr().out
    assert task.uuid in out
    assert "2009-11-10 23:00:00 +0000 UTC" in out
    assert "Resolved" not in out


def test_display_by_week_json_when_not_terminal(capsys, pty):
    task_set = make_set(
        Task(summary="later", status="resolved", resolved=datetime(2020, 2, 1, tzinfo=UTC)),
        Task(summary="earlier", status="resolved", resolved=datetime(2020, 1, 1, tzinfo=UTC)),
    )
    display_by_week(task_set)
    data = json.loads(capsys.readouterr().out)
    assert [item["summary"] for item in data] == ["earlier", "later"]


def test_display_by_week_table(monkeypatch, pty):
    buffer = _TTYBuffer()
    monkeypatch.setattr(sys, "stdout", buffer)
    task_set = make_set(
        Task(summary="a", status="resolved", resolved=datetime(2020, 1, 6, 12, tzinfo=UTC)),
        Task(summary="b", status="resolved", resolved=datetime(2020, 1, 7, 12, tzinfo=UTC)),
        Task(summary="c", status="resolved", resolved=datetime(2020, 1, 20, 12, tzinfo=UTC)),
    )
    display_by_week(task_set)
    out = buffer.getvalue()
    assert out.count("> Week") == 2
    assert "> Week 2, starting Mon 6 Jan 2020" in out
    assert out.endswith("3 tasks.\n")


def test_display_projects_json(capsys, no_pty):
    task_set = make_set(
        Task(summary="one", status="pending", project="alpha"),
        Task(
            summary="two",
            status="resolved",
            project="alpha",
            resolved=datetime(2020, 1, 1, tzinfo=UTC),
        ),
    )
    display_projects(task_set)
    data = json.loads(capsys.readouterr().out)
    assert len(data) == 1
    assert data[0]["name"] == "alpha"
    assert data[0]["taskCount"] == 2
    assert data[0]["resolvedCount"] == 1


def test_display_projects_table_hides_finished(capsys, pty):
    task_set = make_set(
        Task(summary="one", status="pending", project="alpha"),
        Task(
            summary="two",
            status="resolved",
            project="alpha",
            resolved=datetime(2020, 1, 1, tzinfo=UTC),
        ),
        Task(
            summary="three",
            status="resolved",
            project="beta",
            resolved=datetime(2020, 1, 1, tzinfo=UTC),
        ),
    )
    display_projects(task_set)
    out = capsys.readouterr().out
    assert "alpha" in out
    assert "1/2" in out
    assert "beta" not in out
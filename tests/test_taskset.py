import os
from datetime import datetime, timedelta, timezone

import pytest

from dstask.constants import (
    PRIORITY_CRITICAL,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_NORMAL,
    STATUS_ACTIVE,
    STATUS_PAUSED,
    STATUS_PENDING,
    STATUS_RESOLVED,
    STATUS_TEMPLATE,
)
from dstask.localstate import load_ids
from dstask.query import Query
from dstask.task import Task, TaskValidationError
from dstask.taskset import Project, SortDirection, TaskSet, load_task_set
from dstask.util import DstaskError, is_valid_uuid4, new_uuid4

BASE = datetime(2020, 5, 1, 12, 0, tzinfo=timezone.utc)


def pending(summary, **kwargs):
    kwargs.setdefault("status", STATUS_PENDING)
    return Task(summary=summary, write_pending=True, **kwargs)


def make_set(*tasks):
    ts = TaskSet()
    for task in tasks:
        ts.load_task(task)
    return ts


def test_load_task_assigns_sequential_ids_and_defaults():
    ts = make_set(pending("one"), pending("two"))
    tasks = ts.tasks()
    assert [t.summary for t in tasks] == ["one", "two"]
    assert [t.id for t in tasks] == [1, 2]
    assert all(is_valid_uuid4(t.uuid) for t in tasks)
    assert all(t.priority == PRIORITY_NORMAL for t in tasks)
    assert all(t.created is not None for t in tasks)


def test_load_task_duplicate_uuid_is_ignored():
    uuid = new_uuid4()
    ts = TaskSet()
    first = ts.load_task(pending("one", uuid=uuid))
    second = ts.load_task(pending("again", uuid=uuid))
    assert first.uuid == uuid
    assert second is None
    assert ts.num_total() == 1


def test_load_task_taken_id_is_reassigned():
    ts = TaskSet()
    a = ts.load_task(pending("a", id=5))
    b = ts.load_task(pending("b", id=5))
    assert a.id == 5
    assert b.id != 5
    assert ts.get_by_id(b.id).summary == "b"


def test_resolved_task_has_no_id():
    ts = make_set(pending("done", status=STATUS_RESOLVED, id=3))
    task = ts.all_tasks()[0]
    assert task.id == 0
    with pytest.raises(DstaskError, match="no open task with ID 3 exists"):
        ts.get_by_id(3)


def test_load_task_invalid_status_raises():
    with pytest.raises(TaskValidationError):
        TaskSet().load_task(pending("x", status="bogus"))


def test_get_by_id_returns_copy():
    ts = make_set(pending("one"))
    task = ts.get_by_id(1)
    task.summary = "changed"
    task.tags.append("x")
    assert ts.get_by_id(1).summary == "one"
    assert ts.get_by_id(1).tags == []


def test_update_task_valid_transition():
    ts = make_set(pending("one"))
    task = ts.get_by_id(1)
    task.status = STATUS_ACTIVE
    ts.update_task(task)
    updated = ts.get_by_id(1)
    assert updated.status == STATUS_ACTIVE
    assert updated.write_pending is True


def test_update_task_invalid_transition():
    ts = make_set(pending("one"))
    task = ts.get_by_id(1)
    task.status = STATUS_PAUSED
    with pytest.raises(DstaskError, match="Invalid state transition: pending -> paused"):
        ts.update_task(task)
    assert ts.get_by_id(1).status == STATUS_PENDING


def test_update_task_refuses_incomplete_tasklist():
    ts = make_set(pending("one", notes="- [ ] buy bananas"))
    task = ts.get_by_id(1)
    task.status = STATUS_RESOLVED
    with pytest.raises(DstaskError, match="incomplete tasklist"):
        ts.update_task(task)


def test_update_task_resolving_clears_id_and_sets_time():
    ts = make_set(pending("one"))
    task = ts.get_by_id(1)
    task.status = STATUS_RESOLVED
    ts.update_task(task)
    stored = ts.all_tasks()[0]
    assert stored.id == 0
    assert stored.resolved is not None
    with pytest.raises(DstaskError):
        ts.get_by_id(1)


def test_update_unknown_task_raises():
    ts = make_set(pending("one"))
    stranger = pending("other", uuid=new_uuid4())
    with pytest.raises(DstaskError, match="Could not find given task to update by UUID"):
        ts.update_task(stranger)


def test_filter_and_all_tasks():
    ts = make_set(pending("one", tags=["a"]), pending("two", tags=["b"]))
    ts.filter(Query(tags=["b"]))
    assert [t.summary for t in ts.tasks()] == ["two"]
    assert [t.summary for t in ts.all_tasks()] == ["one", "two"]


def test_filter_by_status_and_unhide():
    ts = make_set(pending("one"), pending("tpl", status=STATUS_TEMPLATE))
    ts.filter_by_status(STATUS_TEMPLATE)
    assert [t.summary for t in ts.tasks()] == ["tpl"]


def test_filter_organised():
    ts = make_set(pending("plain"), pending("tagged", tags=["x"]), pending("proj", project="p"))
    ts.filter_organised()
    assert [t.summary for t in ts.tasks()] == ["plain"]


def test_sort_by_priority_is_stable():
    ts = make_set(
        pending("low", priority=PRIORITY_LOW),
        pending("crit", priority=PRIORITY_CRITICAL),
        pending("n1"),
        pending("n2"),
    )
    ts.sort_by_priority(SortDirection.ASCENDING)
    assert [t.summary for t in ts.tasks()] == ["crit", "n1", "n2", "low"]
    ts.sort_by_priority(SortDirection.DESCENDING)
    assert [t.summary for t in ts.tasks()] == ["low", "n1", "n2", "crit"]


def test_sort_by_created():
    ts = make_set(
        pending("newer", created=BASE + timedelta(days=1)),
        pending("older", created=BASE),
    )
    ts.sort_by_created(SortDirection.ASCENDING)
    assert [t.summary for t in ts.tasks()] == ["older", "newer"]
    ts.sort_by_created(SortDirection.DESCENDING)
    assert [t.summary for t in ts.tasks()] == ["newer", "older"]


def test_get_tags_unfiltered_unique_sorted():
    ts = make_set(pending("a", tags=["z", "y"]), pending("b", tags=["y"]), pending("c", tags=["q"]))
    ts.filter(Query(anti_tags=["q"]))
    assert ts.get_tags() == ["y", "z"]


def test_get_projects():
    ts = make_set(
        pending("a", project="Web", created=BASE + timedelta(days=2)),
        pending("b", project="web", priority=PRIORITY_HIGH, created=BASE),
        pending("c", project="web", status=STATUS_RESOLVED, priority=PRIORITY_CRITICAL,
                resolved=BASE + timedelta(days=3)),
        pending("d", project="api", status=STATUS_ACTIVE),
        pending("e"),
    )
    projects = ts.get_projects()
    assert [p.name for p in projects] == ["api", "web"]
    web = projects[1]
    assert web.tasks == 3
    assert web.tasks_resolved == 1
    assert web.priority == PRIORITY_HIGH
    assert web.created == BASE
    assert web.resolved == BASE + timedelta(days=3)
    assert projects[0].active is True
    assert web.active is False


def test_project_json_keys():
    data = Project(name="web", tasks=2, tasks_resolved=1).to_json_dict()
    assert data["name"] == "web"
    assert data["taskCount"] == 2
    assert data["resolvedCount"] == 1
    assert data["priority"] == PRIORITY_LOW


def test_save_and_reload_round_trip(tmp_path):
    repo = str(tmp_path)
    ids_file = os.path.join(repo, ".git", "dstask", "ids.bin")
    ts = TaskSet(repo, ids_file)
    ts.load_task(pending("one", tags=["a"]))
    ts.load_task(pending("two", project="p"))
    ts.load_task(pending("tpl", status=STATUS_TEMPLATE))
    ts.load_task(pending("gone", status=STATUS_RESOLVED))
    ts.save_pending_changes()

    saved_ids = load_ids(ids_file)
    assert sorted(saved_ids.values()) == sorted(t.id for t in ts.all_tasks() if t.id > 0)

    reloaded = load_task_set(repo, ids_file, False)
    visible = {t.summary: t for t in reloaded.tasks()}
    assert set(visible) == {"one", "two"}
    assert {t.summary for t in reloaded.all_tasks()} == {"one", "two", "tpl"}
    original = {t.summary: t for t in ts.all_tasks()}
    for name, task in visible.items():
        assert task.equals(original[name])
        assert task.id == original[name].id

    with_resolved = load_task_set(repo, ids_file, True)
    assert with_resolved.num_total() == 4
    with_resolved.unhide()
    assert {t.summary for t in with_resolved.tasks()} == {"one", "two", "tpl", "gone"}


def test_load_task_set_skips_bad_files(tmp_path):
    repo = str(tmp_path)
    ids_file = os.path.join(repo, ".git", "dstask", "ids.bin")
    ts = TaskSet(repo, ids_file)
    ts.load_task(pending("one"))
    ts.save_pending_changes()
    (tmp_path / STATUS_PENDING / "notatask.yml").write_text("summary: x\n", encoding="utf-8")
    (tmp_path / STATUS_PENDING / ".gitkeep").write_text("", encoding="utf-8")

    reloaded = load_task_set(repo, ids_file, False)
    assert [t.summary for t in reloaded.tasks()] == ["one"]


def test_load_task_set_empty_repo(tmp_path):
    ts = load_task_set(str(tmp_path), str(tmp_path / "ids.bin"), True)
    assert ts.num_total() == 0
    assert ts.tasks() == []
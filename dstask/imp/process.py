"""Merging an imported task into the local repository."""

from __future__ import annotations

import os
from dataclasses import replace

from ..constants import ALL_STATUSES, STATUS_ACTIVE, STATUS_PAUSED, STATUS_PENDING
from ..git import get_repo_path
from ..task import Task, TaskLoadError, load_task_file
from ..util import DstaskError


def _take_local(repo: str, uuid: str) -> Task | None:
    """Load and delete the local copy of a task, whatever its status."""
    for status in ALL_STATUSES:
        path = get_repo_path(repo, status, f"{uuid}.yml")
        if not os.path.isfile(path):
            continue
        try:
            local = load_task_file(path, {}, status)
        except TaskLoadError as exc:
            raise DstaskError(f"failed to unmarshal {path!r}: {exc}") from exc
        os.remove(path)
        return local
    return None


def process_task(repo: str, task: Task) -> None:
    """Write an imported task, keeping local notes and a started status."""
    task = replace(task, tags=list(task.tags))
    local = _take_local(repo, task.uuid)
    if local is not None:
        if local.notes:
            task.notes = local.notes
        if task.status == STATUS_PENDING and local.status in (STATUS_ACTIVE, STATUS_PAUSED):
            task.status = local.status
    task.save_to_disk(repo)
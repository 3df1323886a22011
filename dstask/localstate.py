"""State kept on this machine only: the current context and the ID map."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Mapping

from .query import Query
from .util import DstaskError

_QUERY_FIELDS = {f.name for f in fields(Query)}
_LIST_FIELDS = ("ids", "tags", "anti_tags", "anti_projects")


def _write_json(path: str, document: Any) -> None:
    directory = os.path.dirname(os.fspath(path))
    if directory:
        os.makedirs(directory, exist_ok=True)
    try:
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(document, handle)
    except OSError as exc:
        raise DstaskError(f"Failed to open {path} for writing: {exc}") from exc


def _read_json(path: str) -> Any:
    try:
        with open(path, encoding="utf-8") as handle:
            return json.load(handle)
    except OSError as exc:
        raise DstaskError(f"Failed to open {path} for reading: {exc}") from exc
    except ValueError as exc:
        raise DstaskError(f"Failed to parse state file: {path}, {exc}") from exc


def _query_from_dict(data: Mapping[str, Any]) -> Query:
    values = {key: value for key, value in data.items() if key in _QUERY_FIELDS}
    for key in _LIST_FIELDS:
        if key in values:
            values[key] = list(values[key] or [])
    return Query(**values)


@dataclass
class State:
    """Local state; the context is an implicit command line."""

    context: Query = field(default_factory=Query)

    def save(self, path: str) -> None:
        """Write the state to the given file, creating its directory."""
        _write_json(path, {"context": asdict(self.context)})

    def set_context(self, context: Query) -> None:
        """Set the context; it may hold neither IDs nor text."""
        if context.ids:
            raise DstaskError("context cannot contain IDs")
        if context.text:
            raise DstaskError("context cannot contain text")
        self.context = context


def load_state(path: str) -> State:
    """Read the state file, or return a default State if there is none."""
    if not os.path.exists(path):
        return State()
    data = _read_json(path)
    if not isinstance(data, dict) or not isinstance(data.get("context", {}), dict):
        raise DstaskError(f"Failed to parse state file: {path}")
    try:
        return State(context=_query_from_dict(data.get("context", {})))
    except TypeError as exc:
        raise DstaskError(f"Failed to parse state file: {path}, {exc}") from exc


def save_ids(ids: Mapping[str, int], path: str) -> None:
    """Persist the UUID -> ID map, so tasks keep their IDs on this machine."""
    _write_json(path, dict(ids))


def load_ids(path: str) -> dict[str, int]:
    """Read the UUID -> ID map, or return an empty one if there is none."""
    if not os.path.exists(path):
        return {}
    data = _read_json(path)
    if not isinstance(data, dict) or not all(
        isinstance(key, str) and isinstance(value, int) for key, value in data.items()
    ):
        raise DstaskError(f"Failed to parse state file: {path}")
    return dict(data)
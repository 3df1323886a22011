"""Application configuration read from the environment."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from typing import Mapping


@dataclass(frozen=True)
class Config:
    """Paths and settings dstask needs; all paths are absolute."""

    repo: str
    state_file: str
    ids_file: str
    # unparsed context string from DSTASK_CONTEXT
    ctx_from_env_var: str = ""


def _get_env(environ: Mapping[str, str], key: str, default: str) -> str:
    return environ.get(key) or default


def _join(*parts: str) -> str:
    return posixpath.normpath(posixpath.join(*parts))


def config_from_env(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from the given environment (os.environ by default)."""
    if environ is None:
        environ = os.environ
    home = environ.get("HOME", "")
    repo = _get_env(environ, "DSTASK_GIT_REPO", f"{home}/.dstask")
    return Config(
        repo=repo,
        state_file=_join(repo, ".git", "dstask", "state.bin"),
        ids_file=_join(repo, ".git", "dstask", "ids.bin"),
        ctx_from_env_var=_get_env(environ, "DSTASK_CONTEXT", ""),
    )
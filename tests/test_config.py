import posixpath

import pytest

from dstask.config import Config, config_from_env


def test_default_repo_under_home():
    conf = config_from_env({"HOME": "/home/someone"})
    assert conf.repo == "/home/someone/.dstask"
    assert conf.state_file == posixpath.join(conf.repo, ".git", "dstask", "state.bin")
    assert conf.ids_file == posixpath.join(conf.repo, ".git", "dstask", "ids.bin")
    assert conf.ctx_from_env_var == ""


def test_repo_override_and_context():
    conf = config_from_env(
        {"HOME": "/home/someone", "DSTASK_GIT_REPO": "/srv/tasks", "DSTASK_CONTEXT": "+work"}
    )
    assert conf.repo == "/srv/tasks"
    assert conf.state_file.startswith("/srv/tasks/")
    assert conf.ctx_from_env_var == "+work"


def test_empty_override_falls_back_to_default():
    conf = config_from_env({"HOME": "/h", "DSTASK_GIT_REPO": ""})
    assert conf.repo == "/h/.dstask"


def test_trailing_slash_is_cleaned():
    conf = config_from_env({"DSTASK_GIT_REPO": "/srv/tasks/"})
    assert conf.ids_file == posixpath.join("/srv/tasks", ".git", "dstask", "ids.bin")


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("DSTASK_GIT_REPO", "/tmp/elsewhere")
    monkeypatch.setenv("DSTASK_CONTEXT", "project:x")
    conf = config_from_env()
    assert conf.repo == "/tmp/elsewhere"
    assert conf.ctx_from_env_var == "project:x"


def test_config_is_immutable():
    conf = config_from_env({"HOME": "/h"})
    with pytest.raises(AttributeError):
        conf.repo = "/other"  # type: ignore[misc]
    assert isinstance(conf, Config)
    assert conf.repo == "/h/.dstask"
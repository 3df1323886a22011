"""Running git inside the task repository."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys

from .util import DstaskError, confirm_or_abort, run_cmd, stdout_is_tty

_GIT_FAILURES = (OSError, subprocess.CalledProcessError)


class GitError(DstaskError):
    """A git command failed."""


def _run_git(repo_path: str, *args: str) -> None:
    sys.stdout.flush()
    run_cmd("git", "-C", str(repo_path), *args)


def run_git_cmd(repo_path: str, *args: str) -> None:
    """Run git with the given arguments in the repository; raise on failure."""
    try:
        _run_git(repo_path, *args)
    except _GIT_FAILURES as exc:
        raise GitError("Failed to run git cmd.") from exc


def git_commit(repo_path: str, message: str) -> bool:
    """Stage all changes and commit them; return False if nothing changed."""
    try:
        entries = os.listdir(os.path.join(repo_path, ".git", "objects"))
    except OSError as exc:
        raise GitError(f"failed to run git commit: {exc}") from exc
    brand_new = len(entries) <= 2

    try:
        _run_git(repo_path, "add", ".")
    except _GIT_FAILURES as exc:
        raise GitError(f"failed to add changes to repo: {exc}") from exc

    # a repository without commits has no HEAD to compare with
    if not brand_new:
        try:
            _run_git(repo_path, "diff-index", "--quiet", "HEAD", "--")
        except _GIT_FAILURES:
            pass
        else:
            print("No changes detected")
            return False

    try:
        _run_git(repo_path, "commit", "--no-gpg-sign", "-m", message)
    except _GIT_FAILURES as exc:
        raise GitError(f"failed to commit changes: {exc}") from exc
    return True


def commit_and_report(repo_path: str, message: str) -> bool:
    """Print the message, then commit with git's output shown faded."""
    print(f"\n{message}")
    sys.stdout.write("\033[38;5;245m")
    try:
        return git_commit(repo_path, message)
    finally:
        sys.stdout.write("\033[0m")
        sys.stdout.flush()


def get_repo_path(repo_path: str, directory: str, filename: str) -> str:
    """Path of a file in a repository directory, creating the directory."""
    path = os.path.join(repo_path, directory)
    if not os.path.exists(path):
        try:
            os.mkdir(path, 0o700)
        except OSError as exc:
            raise DstaskError("Failed to create directory in git repository") from exc
    if not filename:
        return path
    return os.path.join(path, filename)


def ensure_repo_exists(repo_path: str) -> None:
    """Create the task repository if missing, asking first on a terminal."""
    if shutil.which("git") is None:
        raise DstaskError("git required, please install")

    if os.path.exists(os.path.join(repo_path, ".git")):
        return

    if stdout_is_tty():
        confirm_or_abort(f"Could not find dstask repository at {repo_path} -- create?")

    try:
        os.mkdir(repo_path, 0o700)
    except OSError as exc:
        raise DstaskError("Failed to create directory in git repository") from exc

    run_git_cmd(repo_path, "init")
    print("\nAdd a remote repository with:\n\n\tdstask git remote add origin <repo>")
    print()


def sync(repo_path: str) -> None:
    """Pull from and then push to origin master."""
    run_git_cmd(
        repo_path, "pull", "--ff", "--no-rebase", "--no-edit", "--commit", "origin", "master"
    )
    run_git_cmd(repo_path, "push", "origin", "master")
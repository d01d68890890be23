"""
Git Layer - Line counts for a single file.

Runs ``git diff --numstat`` against the index (unstaged) and against HEAD
(staged), and counts the lines of untracked files so a new file shows its
size as unstaged additions.
"""

from __future__ import annotations

import os
import subprocess
from typing import Optional, Tuple

from ..metrics import RawCounts
from .log import get_logger
from .paths import file_dir
from .util import CmdResult, Runner, run

STAGED = "staged"
UNSTAGED = "unstaged"

logger = get_logger("git")

# Paths are matched literally so names like `a[1].py` are not read as globs.
GIT = ["git", "--no-optional-locks", "--literal-pathspecs"]


class GitError(Exception):
    """Exception raised for Git operation failures."""
    pass


class GitNotFoundError(GitError):
    """Exception raised when the git executable is missing."""
    pass


class GitRepositoryError(GitError):
    """Exception raised when git fails for the repository or path."""
    pass


def _git(args: list[str], cwd: str, runner: Runner = run) -> CmdResult:
    try:
        return runner(GIT + args, cwd=cwd)
    except FileNotFoundError:
        raise GitNotFoundError("Git is not installed or not found in PATH")


def in_work_tree(path: str, runner: Runner = run) -> bool:
    res = _git(["rev-parse", "--is-inside-work-tree"], file_dir(path), runner)
    return res.code == 0 and res.stdout.strip() == "true"


def is_under_version_control(path: str, runner: Runner = run) -> bool:
    """Check whether git tracks the file (it is in the index)."""
    name = os.path.basename(path)
    res = _git(["ls-files", "--error-unmatch", "--", name], file_dir(path), runner)
    return res.code == 0


def is_ignored(path: str, runner: Runner = run) -> bool:
    name = os.path.basename(path)
    res = _git(["check-ignore", "-q", "--", name], file_dir(path), runner)
    return res.code == 0


def parse_numstat(output: str) -> Tuple[int, int]:
    """Sum ``added<TAB>removed<TAB>path`` lines; binary entries count as 0."""
    added = 0
    removed = 0
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        if parts[0].isdigit():
            added += int(parts[0])
        if parts[1].isdigit():
            removed += int(parts[1])
    return added, removed


def fetch_numstat(path: str, against: str, runner: Runner = run) -> Optional[Tuple[int, int]]:
    """Get (added, removed) line counts for one file.

    Args:
        path: File to inspect.
        against: ``STAGED`` compares the index with HEAD, ``UNSTAGED`` the
            working file with the index.
        runner: Command runner, replaceable in tests.

    Returns:
        (added, removed), or None when git does not track the file.

    Raises:
        GitError: If git is missing or the diff command fails.
    """
    if against not in (STAGED, UNSTAGED):
        raise ValueError(f"Unknown baseline: {against}")
    if not is_under_version_control(path, runner):
        return None

    args = ["diff", "--numstat"]
    if against == STAGED:
        args.append("--cached")
    args += ["--", os.path.basename(path)]
    res = _git(args, file_dir(path), runner)
    if res.code != 0:
        raise GitRepositoryError(f"Git command failed: git {' '.join(args)}\nError: {res.stderr}")
    return parse_numstat(res.stdout)


def count_lines(path: str) -> int:
    """Count lines the way an editor does: a trailing partial line counts."""
    with open(path, "rb") as f:
        data = f.read()
    if not data:
        return 0
    lines = data.count(b"\n")
    if not data.endswith(b"\n"):
        lines += 1
    return lines


def read_raw_counts(path: str, runner: Runner = run) -> RawCounts:
    """Fetch the current staged/unstaged counts for a file.

    Never raises for git or filesystem trouble: failures resolve to zero
    counts. An untracked, non-ignored file inside a work tree reports all of
    its lines as unstaged additions.
    """
    try:
        if not is_under_version_control(path, runner):
            if os.path.isfile(path) and in_work_tree(path, runner) and not is_ignored(path, runner):
                return RawCounts(unstaged_added=count_lines(path))
            return RawCounts()

        staged = fetch_numstat(path, STAGED, runner)
        unstaged = fetch_numstat(path, UNSTAGED, runner)
    except (GitError, OSError) as e:
        logger.debug("Falling back to zero counts for %s: %s", path, e)
        return RawCounts()

    if staged is None or unstaged is None:
        return RawCounts()
    staged_added, staged_removed = staged
    unstaged_added, unstaged_removed = unstaged
    return RawCounts(
        staged_removed=staged_removed,
        unstaged_removed=unstaged_removed,
        staged_added=staged_added,
        unstaged_added=unstaged_added,
    )


def open_diff(path: str) -> int:
    """Show the file's diff against HEAD on the terminal; returns git's exit code."""
    try:
        return subprocess.call(
            GIT + ["diff", "HEAD", "--", os.path.basename(path)],
            cwd=file_dir(path),
        )
    except FileNotFoundError:
        raise GitNotFoundError("Git is not installed or not found in PATH")

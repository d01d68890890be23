from __future__ import annotations

import os
from typing import Optional

from .util import Runner, run


def git_root(cwd: str, runner: Runner = run) -> Optional[str]:
    try:
        res = runner(["git", "rev-parse", "--show-toplevel"], cwd=cwd)
    except OSError:
        return None
    if res.code != 0:
        return None
    return res.stdout.strip()


def file_dir(path: str) -> str:
    return os.path.dirname(os.path.abspath(path))


def home_dir() -> str:
    override = os.getenv("DIFFLINE_HOME")
    if override:
        return os.path.abspath(override)
    return os.path.join(os.path.expanduser("~"), ".diffline")


def global_config_path() -> str:
    return os.path.join(home_dir(), "config.json")


def repo_config_path(repo_root: str) -> str:
    return os.path.join(repo_root, ".diffline.json")

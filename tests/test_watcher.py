"""Tests for mapping filesystem events onto refresh triggers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from diffline.scheduler import TriggerEvent
from diffline.watcher import RefreshEventHandler, watch_dirs
from tests._fixtures.fakes import RecordingScheduler


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    (root / ".git" / "refs" / "heads").mkdir(parents=True)
    (root / "src").mkdir()
    return root


def _handler(repo: Path, *names: str):  # type: ignore[no-untyped-def]
    scheduler = RecordingScheduler()
    repos: Dict[str, Optional[str]] = {str(repo / name): str(repo) for name in names}
    return RefreshEventHandler(scheduler, repos), scheduler


def test_saving_a_tracked_file_triggers_saved(repo: Path) -> None:
    handler, scheduler = _handler(repo, "src/app.py")

    handler.dispatch(FileModifiedEvent(str(repo / "src" / "app.py")))

    assert scheduler.triggers == [(str(repo / "src" / "app.py"), TriggerEvent.SAVED)]


def test_other_files_and_directories_are_ignored(repo: Path) -> None:
    handler, scheduler = _handler(repo, "src/app.py")

    handler.dispatch(FileModifiedEvent(str(repo / "src" / "other.py")))
    handler.dispatch(DirModifiedEvent(str(repo / "src")))

    assert scheduler.triggers == []


def test_atomic_save_by_rename_triggers_reload(repo: Path) -> None:
    handler, scheduler = _handler(repo, "src/app.py")
    target = str(repo / "src" / "app.py")

    handler.dispatch(FileMovedEvent(str(repo / "src" / ".app.py.swp"), target))
    handler.dispatch(FileCreatedEvent(target))
    handler.dispatch(FileDeletedEvent(target))

    assert scheduler.triggers == [
        (target, TriggerEvent.RELOADED),
        (target, TriggerEvent.RELOADED),
        (target, TriggerEvent.RELOADED),
    ]


def test_index_change_refreshes_every_file_in_the_repo(repo: Path) -> None:
    handler, scheduler = _handler(repo, "src/b.py", "src/a.py")

    handler.dispatch(FileModifiedEvent(str(repo / ".git" / "index")))

    assert scheduler.triggers == [
        (str(repo / "src" / "a.py"), TriggerEvent.VCS_CHANGED),
        (str(repo / "src" / "b.py"), TriggerEvent.VCS_CHANGED),
    ]


def test_lock_file_renamed_onto_index_counts_as_vcs_change(repo: Path) -> None:
    handler, scheduler = _handler(repo, "src/a.py")
    git_dir = repo / ".git"

    handler.dispatch(FileModifiedEvent(str(git_dir / "index.lock")))
    handler.dispatch(FileMovedEvent(str(git_dir / "index.lock"), str(git_dir / "index")))

    assert scheduler.triggers == [(str(repo / "src" / "a.py"), TriggerEvent.VCS_CHANGED)]


def test_ref_updates_count_but_objects_do_not(repo: Path) -> None:
    handler, scheduler = _handler(repo, "src/a.py")
    git_dir = repo / ".git"

    handler.dispatch(FileModifiedEvent(str(git_dir / "refs" / "heads" / "main")))
    handler.dispatch(FileCreatedEvent(str(git_dir / "objects" / "ab" / "cdef")))

    assert scheduler.triggers == [(str(repo / "src" / "a.py"), TriggerEvent.VCS_CHANGED)]


def test_trigger_failures_do_not_escape(repo: Path) -> None:
    class Exploding:
        def trigger_now(self, key, event):  # type: ignore[no-untyped-def]
            raise RuntimeError("boom")

    handler = RefreshEventHandler(Exploding(), {str(repo / "src" / "a.py"): str(repo)})

    handler.dispatch(FileModifiedEvent(str(repo / "src" / "a.py")))


def test_watch_dirs_covers_file_directory_and_git_dir(repo: Path, tmp_path: Path) -> None:
    loose = tmp_path / "loose.txt"
    repos: Dict[str, Optional[str]] = {
        str(repo / "src" / "a.py"): str(repo),
        str(repo / "src" / "b.py"): str(repo),
        str(loose): None,
    }

    assert watch_dirs(repos) == [
        os.path.join(str(repo), "src"),
        os.path.join(str(repo), ".git"),
        str(tmp_path),
    ]

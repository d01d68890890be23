"""
Watcher Layer - Filesystem events as refresh triggers.

Watches each tracked file's directory and its repository's .git directory
with watchdog. Saving a file, recreating it, or changing the index, HEAD or
refs triggers an immediate refresh of the affected files.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .core import paths
from .core.log import get_logger
from .scheduler import RefreshScheduler, TriggerEvent

logger = get_logger("watcher")

VCS_STATE_FILES = {"index", "HEAD"}


class RefreshEventHandler(FileSystemEventHandler):
    """Map watchdog events onto scheduler triggers.

    Args:
        scheduler: Scheduler whose keys are the tracked file paths.
        repos: Tracked file path -> repository root (None outside a repo).
    """

    def __init__(self, scheduler: RefreshScheduler, repos: Dict[str, Optional[str]]):
        super().__init__()
        self.scheduler = scheduler
        self.files = {os.path.abspath(p): p for p in repos}
        self.git_dirs: Dict[str, Set[str]] = {}
        for path, root in repos.items():
            if root:
                git_dir = os.path.join(os.path.abspath(root), ".git")
                self.git_dirs.setdefault(git_dir, set()).add(path)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return

        src = os.path.abspath(os.fsdecode(event.src_path))
        dest_path = getattr(event, "dest_path", "") or ""
        dest = os.path.abspath(os.fsdecode(dest_path)) if dest_path else None

        for changed in filter(None, (src, dest)):
            keys = self._vcs_keys(changed)
            if keys:
                for key in sorted(keys):
                    self._trigger(key, TriggerEvent.VCS_CHANGED)
                return

        if event.event_type == "modified" and src in self.files:
            self._trigger(self.files[src], TriggerEvent.SAVED)
        elif event.event_type == "created" and src in self.files:
            self._trigger(self.files[src], TriggerEvent.RELOADED)
        elif event.event_type == "moved" and dest in self.files:
            self._trigger(self.files[dest], TriggerEvent.RELOADED)
        elif event.event_type == "deleted" and src in self.files:
            self._trigger(self.files[src], TriggerEvent.RELOADED)

    def _vcs_keys(self, path: str) -> Set[str]:
        """Tracked files affected by a change inside a .git directory."""
        for git_dir, keys in self.git_dirs.items():
            try:
                rel = Path(path).relative_to(git_dir)
            except ValueError:
                continue
            parts = rel.parts
            if not parts or parts[-1].endswith(".lock"):
                return set()
            if parts[0] in VCS_STATE_FILES and len(parts) == 1:
                return keys
            if parts[0] == "refs":
                return keys
            return set()
        return set()

    def _trigger(self, key: str, event: TriggerEvent) -> None:
        try:
            self.scheduler.trigger_now(key, event)
        except Exception:
            logger.exception("Triggered refresh failed for %s", key)


def watch_dirs(repos: Dict[str, Optional[str]]) -> List[str]:
    """Directories to observe: each file's directory and each repo's .git."""
    dirs: List[str] = []
    for path, root in repos.items():
        for candidate in (paths.file_dir(path), os.path.join(root, ".git") if root else None):
            if candidate and os.path.isdir(candidate) and candidate not in dirs:
                dirs.append(candidate)
    return dirs


def start_watching(scheduler: RefreshScheduler, files: Iterable[str]) -> Observer:
    """Start a watchdog observer feeding triggers into ``scheduler``.

    Raises:
        RuntimeError: If watching cannot be started
    """
    repos = {path: paths.git_root(paths.file_dir(path)) for path in files}
    handler = RefreshEventHandler(scheduler, repos)
    observer = Observer()
    try:
        for directory in watch_dirs(repos):
            recursive = os.path.basename(directory) == ".git"
            observer.schedule(handler, directory, recursive=recursive)
        observer.start()
    except OSError as e:
        raise RuntimeError(f"Failed to start filesystem watching: {e}")
    logger.debug("Watching %d file(s)", len(repos))
    return observer

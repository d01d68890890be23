"""Fakes for the git runner, timers and the scheduler."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from diffline.core.git import GIT
from diffline.core.util import CmdResult


class ScriptedGit:
    """Answer git invocations from a table keyed by the first subcommand words.

    Keys are tuples matched against the arguments after the ``GIT`` base command;
    the longest matching key wins.
    """

    def __init__(self, responses: Dict[Tuple[str, ...], CmdResult]):
        self.responses = responses
        self.calls: List[List[str]] = []

    def __call__(self, cmd: List[str], cwd: Optional[str] = None) -> CmdResult:
        self.calls.append(list(cmd))
        args = tuple(cmd[len(GIT):])
        best: Optional[Tuple[str, ...]] = None
        for key in self.responses:
            if args[: len(key)] == key and (best is None or len(key) > len(best)):
                best = key
        if best is None:
            return CmdResult(1, "", f"unexpected: {' '.join(cmd)}")
        return self.responses[best]


def ok(stdout: str = "") -> CmdResult:
    return CmdResult(0, stdout, "")


def fail(code: int = 1, stderr: str = "") -> CmdResult:
    return CmdResult(code, "", stderr)


class FakeTimer:
    def __init__(self, interval: float, function: Callable, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = tuple(args or ())
        self.kwargs = dict(kwargs or {})
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args, **self.kwargs)


class TimerFactory:
    def __init__(self) -> None:
        self.timers: List[FakeTimer] = []

    def __call__(self, interval: float, function: Callable, args=None, kwargs=None) -> FakeTimer:
        timer = FakeTimer(interval, function, args=args, kwargs=kwargs)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> List[FakeTimer]:
        return [t for t in self.timers if t.started and not t.cancelled]


class RecordingScheduler:
    def __init__(self) -> None:
        self.triggers: List[tuple] = []

    def trigger_now(self, key, event):  # type: ignore[no-untyped-def]
        self.triggers.append((key, event))

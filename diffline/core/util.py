from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class CmdResult:
    code: int
    stdout: str
    stderr: str


Runner = Callable[..., CmdResult]


def run(cmd: list[str], cwd: str | None = None) -> CmdResult:
    proc = subprocess.run(
        cmd,
        cwd=cwd,
        text=True,
        capture_output=True,
        check=False,
    )
    return CmdResult(proc.returncode, proc.stdout.strip(), proc.stderr.strip())


def read_json(path: str) -> dict | None:
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)

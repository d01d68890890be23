from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.fakes import TimerFactory


@pytest.fixture
def timers() -> TimerFactory:
    """Timer factory that records timers instead of starting threads."""
    return TimerFactory()


@pytest.fixture
def diffline_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the global config directory at an empty temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("DIFFLINE_HOME", str(home))
    return home

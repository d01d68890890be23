"""Tests for diffline.config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from diffline.config import ConfigError, Settings, load_settings, parse_settings
from diffline.metrics import RawCounts
from diffline.render import DEFAULT_DISPLAY_METHODS, Styles, render, render_numeric, render_symbols


def _write_json(path: Path, data: object) -> None:
    path.write_text(json.dumps(data), encoding="utf-8")


def test_load_settings_returns_defaults_when_missing(diffline_home: Path, tmp_path: Path) -> None:
    settings = load_settings(str(tmp_path))

    assert isinstance(settings, Settings)
    assert settings.display.deletion_marker == "-"
    assert settings.display.addition_marker == "+"
    assert settings.display.display_methods == DEFAULT_DISPLAY_METHODS
    assert settings.display.suffixes == {12: "T", 9: "B", 6: "M", 3: "K"}
    assert settings.interval == pytest.approx(5.0)
    assert settings.palette[Styles().unstaged_added] == "green"


def test_load_settings_parses_expected_fields(diffline_home: Path) -> None:
    _write_json(
        diffline_home / "config.json",
        {
            "deletion_marker": "<",
            "addition_marker": ">",
            "density": {"kind": "ceil", "divisor": 5},
            "display_methods": [[1, "symbol"], [50, "numeric"]],
            "suffixes": {"3": "k", "6": "m"},
            "styles": {"added": "my-added"},
            "palette": {"added": "cyan"},
            "interval": 1.5,
        },
    )

    settings = load_settings()

    assert settings.display.deletion_marker == "<"
    assert settings.display.addition_marker == ">"
    assert settings.display.density(11) == 3
    assert settings.display.display_methods == ((50, render_numeric), (1, render_symbols))
    assert settings.display.suffixes == {6: "m", 3: "k"}
    assert settings.display.styles.added == "my-added"
    assert settings.palette["my-added"] == "cyan"
    assert settings.interval == pytest.approx(1.5)

    styled = render(RawCounts(unstaged_added=1500), settings.display)
    assert styled.text == "-0 +1.5k"


def test_repo_file_overrides_global(diffline_home: Path, tmp_path: Path) -> None:
    repo = tmp_path / "repo"
    repo.mkdir()
    _write_json(diffline_home / "config.json", {"deletion_marker": "<", "interval": 9})
    _write_json(repo / ".diffline.json", {"deletion_marker": "x"})

    settings = load_settings(str(repo))

    assert settings.display.deletion_marker == "x"
    assert settings.interval == pytest.approx(9.0)


def test_log_density() -> None:
    settings = parse_settings({"density": {"kind": "log", "base": 2}})

    assert settings.display.density(4) == 3


@pytest.mark.parametrize(
    "data",
    [
        {"deletion_marker": "--"},
        {"addition_marker": 1},
        {"density": {"kind": "sqrt"}},
        {"density": {"kind": "ceil", "divisor": 0}},
        {"density": {"kind": "log", "base": 1}},
        {"display_methods": []},
        {"display_methods": [[1, "sparkline"]]},
        {"display_methods": [["1", "symbol"]]},
        {"display_methods": [[1, ["symbol"]]]},
        {"suffixes": {"4": "X"}},
        {"suffixes": {"k": "K"}},
        {"styles": {"bogus": "x"}},
        {"palette": {"added": 3}},
        {"interval": 0},
        {"interval": True},
    ],
)
def test_invalid_values_raise_config_error(data: dict) -> None:
    with pytest.raises(ConfigError):
        parse_settings(data)


@pytest.mark.parametrize("raw", [b"{not json", b'{"deletion_marker": "\xff"}'])
def test_malformed_json_raises_config_error(diffline_home: Path, raw: bytes) -> None:
    (diffline_home / "config.json").write_bytes(raw)

    with pytest.raises(ConfigError):
        load_settings()


def test_non_object_config_raises_config_error(diffline_home: Path) -> None:
    _write_json(diffline_home / "config.json", [1, 2])

    with pytest.raises(ConfigError):
        load_settings()

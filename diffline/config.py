"""Configuration loading for diffline (config.json / .diffline.json)."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Tuple

from .core import paths
from .core.util import read_json
from .metrics import Density, ceil_density, log_density
from .render import DEFAULT_PALETTE, RENDERERS, DisplayConfig, Renderer, Styles, palette_for

DEFAULT_INTERVAL = 5.0


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    """Display configuration plus host-side refresh and color settings."""

    display: DisplayConfig = field(default_factory=DisplayConfig)
    interval: float = DEFAULT_INTERVAL
    palette: Dict[str, str] = field(default_factory=lambda: palette_for(Styles()))


def _load_file(path: str) -> Dict[str, Any]:
    try:
        data = read_json(path)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top-level value must be an object")
    return data


def _marker(data: Dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or len(value) != 1:
        raise ConfigError(f"{key} must be a single character")
    return value


def _density(value: Any) -> Density:
    if value is None:
        return ceil_density(10)
    if not isinstance(value, dict):
        raise ConfigError("density must be an object")
    kind = value.get("kind", "ceil")
    try:
        if kind == "ceil":
            divisor = value.get("divisor", 10)
            if not isinstance(divisor, int) or isinstance(divisor, bool):
                raise ConfigError("density.divisor must be an integer")
            return ceil_density(divisor)
        if kind == "log":
            base = value.get("base", 2)
            if not isinstance(base, (int, float)) or isinstance(base, bool):
                raise ConfigError("density.base must be a number")
            return log_density(base)
    except ValueError as exc:
        raise ConfigError(f"Invalid density: {exc}") from exc
    raise ConfigError(f"Unknown density kind: {kind}")


def _display_methods(value: Any) -> Optional[Tuple[Tuple[int, Renderer], ...]]:
    if value is None:
        return None
    if not isinstance(value, list) or not value:
        raise ConfigError("display_methods must be a non-empty list")
    table: List[Tuple[int, Renderer]] = []
    for entry in value:
        if not isinstance(entry, list) or len(entry) != 2:
            raise ConfigError("display_methods entries must be [threshold, renderer]")
        threshold, name = entry
        if not isinstance(threshold, int) or isinstance(threshold, bool):
            raise ConfigError("display_methods threshold must be an integer")
        if not isinstance(name, str):
            raise ConfigError("display_methods renderer must be a name")
        renderer = RENDERERS.get(name)
        if renderer is None:
            raise ConfigError(f"Unknown renderer: {name}")
        table.append((threshold, renderer))
    table.sort(key=lambda item: item[0], reverse=True)
    return tuple(table)


def _suffixes(value: Any) -> Optional[Dict[int, str]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError("suffixes must be an object")
    table: Dict[int, str] = {}
    for key, suffix in value.items():
        try:
            power = int(key)
        except ValueError as exc:
            raise ConfigError(f"Invalid suffix exponent: {key}") from exc
        if power <= 0 or power % 3:
            raise ConfigError(f"Suffix exponent must be a positive multiple of 3: {key}")
        if not isinstance(suffix, str):
            raise ConfigError(f"Suffix for {key} must be a string")
        table[power] = suffix
    return dict(sorted(table.items(), reverse=True))


def _role_map(value: Any, key: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be an object")
    roles = {f.name for f in fields(Styles)}
    for role, item in value.items():
        if role not in roles:
            raise ConfigError(f"Unknown {key} role: {role}")
        if not isinstance(item, str):
            raise ConfigError(f"{key}.{role} must be a string")
    return dict(value)


def _interval(value: Any) -> float:
    if value is None:
        return DEFAULT_INTERVAL
    if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
        raise ConfigError("interval must be a positive number")
    return float(value)


def parse_settings(data: Dict[str, Any]) -> Settings:
    """Build Settings from a merged configuration mapping."""
    styles = Styles(**_role_map(data.get("styles"), "styles"))
    colors = dict(DEFAULT_PALETTE)
    colors.update(_role_map(data.get("palette"), "palette"))

    display_kwargs: Dict[str, Any] = {
        "deletion_marker": _marker(data, "deletion_marker", "-"),
        "addition_marker": _marker(data, "addition_marker", "+"),
        "density": _density(data.get("density")),
        "styles": styles,
    }
    methods = _display_methods(data.get("display_methods"))
    if methods is not None:
        display_kwargs["display_methods"] = methods
    suffixes = _suffixes(data.get("suffixes"))
    if suffixes is not None:
        display_kwargs["suffixes"] = suffixes

    return Settings(
        display=DisplayConfig(**display_kwargs),
        interval=_interval(data.get("interval")),
        palette=palette_for(styles, colors),
    )


def load_settings(repo_root: Optional[str] = None) -> Settings:
    """Load global settings, then let the repository file override them."""
    data = _load_file(paths.global_config_path())
    if repo_root:
        data.update(_load_file(paths.repo_config_path(repo_root)))
    return parse_settings(data)

"""
Render Layer - Turn raw counts into a styled status strip.

Picks a renderer from a descending threshold table by total change volume
and emits (text, style) runs plus a tooltip with the exact counts. Hosts
map the style tags to their own colors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .formatting import DEFAULT_SUFFIXES, format_number
from .metrics import DEFAULT_DENSITY, Density, Metrics, RawCounts, aggregate

Run = Tuple[str, Optional[str]]
Renderer = Callable[[Metrics, "DisplayConfig"], List[Run]]

TOOLTIP_FORMAT = "Staged: -{sr} +{sa} | Unstaged: -{ur} +{ua}"

ANSI_RESET = "\033[0m"
ANSI_COLORS = {
    "black": "\033[30m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "dim": "\033[2m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
}


@dataclass(frozen=True)
class Styles:
    """Style tags attached to each kind of run."""
    staged_removed: str = "diffline-staged-removed"
    unstaged_removed: str = "diffline-unstaged-removed"
    unstaged_added: str = "diffline-unstaged-added"
    staged_added: str = "diffline-staged-added"
    removed: str = "diffline-removed"
    added: str = "diffline-added"


@dataclass(frozen=True)
class StyledText:
    runs: Tuple[Run, ...]
    tooltip: str
    target: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(text for text, _ in self.runs)

    @property
    def has_target(self) -> bool:
        return self.target is not None


def render_symbols(metrics: Metrics, config: "DisplayConfig") -> List[Run]:
    """Marker runs: deletions shrink outward, additions grow outward."""
    styles = config.styles
    runs = [
        (config.deletion_marker * metrics.staged_removed_symbols, styles.staged_removed),
        (config.deletion_marker * metrics.unstaged_removed_symbols, styles.unstaged_removed),
        (config.addition_marker * metrics.unstaged_added_symbols, styles.unstaged_added),
        (config.addition_marker * metrics.staged_added_symbols, styles.staged_added),
    ]
    return [(text, style) for text, style in runs if text]


def render_numeric(metrics: Metrics, config: "DisplayConfig") -> List[Run]:
    return [
        (f"-{format_number(metrics.total_removed, config.suffixes)}", config.styles.removed),
        (" ", None),
        (f"+{format_number(metrics.total_added, config.suffixes)}", config.styles.added),
    ]


RENDERERS: Dict[str, Renderer] = {
    "symbol": render_symbols,
    "numeric": render_numeric,
}

DEFAULT_DISPLAY_METHODS: Tuple[Tuple[int, Renderer], ...] = (
    (100, render_numeric),
    (1, render_symbols),
)


@dataclass(frozen=True)
class DisplayConfig:
    """Everything the render path needs, injected once at construction.

    ``display_methods`` must be sorted by descending threshold and should end
    with a threshold of 1; a total that matches no entry renders nothing.
    """
    deletion_marker: str = "-"
    addition_marker: str = "+"
    density: Density = DEFAULT_DENSITY
    display_methods: Sequence[Tuple[int, Renderer]] = DEFAULT_DISPLAY_METHODS
    suffixes: Mapping[int, str] = field(default_factory=lambda: dict(DEFAULT_SUFFIXES))
    styles: Styles = field(default_factory=Styles)


def select_renderer(metrics: Metrics, table: Sequence[Tuple[int, Renderer]]) -> Optional[Renderer]:
    """First renderer whose threshold does not exceed the total change volume."""
    total = metrics.total
    if total == 0:
        return None
    for threshold, renderer in table:
        if threshold <= total:
            return renderer
    return None


def tooltip(raw: RawCounts) -> str:
    return TOOLTIP_FORMAT.format(
        sr=raw.staged_removed,
        sa=raw.staged_added,
        ur=raw.unstaged_removed,
        ua=raw.unstaged_added,
    )


def render(
    raw: Optional[RawCounts],
    config: Optional[DisplayConfig] = None,
    target: Optional[str] = None,
) -> Optional[StyledText]:
    """Render raw counts into a styled strip.

    Args:
        raw: Latest counts for a file, or None when nothing was fetched yet.
        config: Display settings; defaults apply when omitted.
        target: Activation target (the file to open a diff for).

    Returns:
        StyledText, or None when there is nothing to show: no counts yet,
        no changed lines, or no table entry matching the total.
    """
    if config is None:
        config = DisplayConfig()
    metrics = aggregate(raw, config.density)
    if metrics is None:
        return None
    renderer = select_renderer(metrics, config.display_methods)
    if renderer is None:
        return None
    return StyledText(
        runs=tuple(renderer(metrics, config)),
        tooltip=tooltip(raw),
        target=target,
    )


def to_ansi(styled: StyledText, palette: Mapping[str, str]) -> str:
    """Paint runs with ANSI colors; tags missing from the palette stay plain."""
    parts: List[str] = []
    for text, style in styled.runs:
        color = ANSI_COLORS.get(palette.get(style, "")) if style else None
        if color:
            parts.append(f"{color}{text}{ANSI_RESET}")
        else:
            parts.append(text)
    return "".join(parts)


DEFAULT_PALETTE: Dict[str, str] = {
    "staged_removed": "bright_red",
    "unstaged_removed": "red",
    "unstaged_added": "green",
    "staged_added": "bright_green",
    "removed": "red",
    "added": "green",
}


def palette_for(styles: Styles, colors: Mapping[str, str] = DEFAULT_PALETTE) -> Dict[str, str]:
    """Key a role -> color mapping by the style tags actually in use."""
    return {getattr(styles, role): color for role, color in colors.items() if hasattr(styles, role)}

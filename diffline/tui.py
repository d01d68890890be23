"""
TUI Layer - Curses browser of status strips.

Shows one strip per tracked file, repainted from the scheduler cache, with
the selected file's tooltip in the footer. Enter activates the selection.
"""

from __future__ import annotations

import curses
from typing import Dict, List, Optional, Tuple

from .render import DisplayConfig, StyledText, render
from .scheduler import RefreshScheduler

STATUS = "q: quit  r: refresh  Enter: diff"

CURSES_COLORS = {
    "red": curses.COLOR_RED,
    "bright_red": curses.COLOR_RED,
    "green": curses.COLOR_GREEN,
    "bright_green": curses.COLOR_GREEN,
    "yellow": curses.COLOR_YELLOW,
    "blue": curses.COLOR_BLUE,
    "magenta": curses.COLOR_MAGENTA,
    "cyan": curses.COLOR_CYAN,
    "white": curses.COLOR_WHITE,
}


def _init_colors(palette: Dict[str, str]) -> Dict[str, int]:
    """Allocate one color pair per color name; returns style tag -> attribute."""
    if not curses.has_colors():
        return {}
    curses.start_color()
    curses.use_default_colors()
    pairs: Dict[str, int] = {}
    attrs: Dict[str, int] = {}
    for style, name in palette.items():
        color = CURSES_COLORS.get(name)
        if color is None:
            continue
        if name not in pairs:
            pair = len(pairs) + 1
            curses.init_pair(pair, color, -1)
            pairs[name] = pair
        attr = curses.color_pair(pairs[name])
        if name.startswith("bright_"):
            attr |= curses.A_BOLD
        attrs[style] = attr
    return attrs


def _strips(scheduler: RefreshScheduler, files: List[str], config: DisplayConfig) -> List[Tuple[str, Optional[StyledText]]]:
    # Always rendered fresh from the cached counts.
    return [(path, render(scheduler.get(path), config, target=path)) for path in files]


def _draw_strip(stdscr, row: int, path: str, styled: Optional[StyledText], attrs: Dict[str, int],
                selected: bool, width: int) -> None:
    label = f"{path}  "
    base = curses.A_REVERSE if selected else curses.A_NORMAL
    stdscr.addnstr(row, 0, label, width - 1, base)
    col = len(label)
    if styled is None:
        return
    for text, style in styled.runs:
        if col >= width - 1:
            break
        stdscr.addnstr(row, col, text, width - 1 - col, attrs.get(style or "", curses.A_NORMAL))
        col += len(text)


def run_tui(scheduler: RefreshScheduler, files: List[str], config: DisplayConfig,
            palette: Dict[str, str]) -> Optional[str]:
    """Run the TUI. Returns the file chosen for a diff, or None."""

    def _main(stdscr) -> Optional[str]:
        curses.curs_set(0)
        stdscr.keypad(True)
        stdscr.timeout(500)
        attrs = _init_colors(palette)
        selected = 0

        while True:
            stdscr.erase()
            height, width = stdscr.getmaxyx()
            strips = _strips(scheduler, files, config)
            for i, (path, styled) in enumerate(strips[: max(0, height - 2)]):
                _draw_strip(stdscr, i, path, styled, attrs, i == selected, width)

            current = strips[selected][1] if strips else None
            footer = current.tooltip if current else "no changes"
            stdscr.addnstr(height - 2, 0, footer, width - 1)
            stdscr.addnstr(height - 1, 0, STATUS, width - 1)
            stdscr.refresh()

            ch = stdscr.getch()
            if ch == -1:
                continue
            if ch in (ord("q"), 27):
                return None
            if ch in (curses.KEY_UP, ord("k")) and selected > 0:
                selected -= 1
            elif ch in (curses.KEY_DOWN, ord("j")) and selected < len(files) - 1:
                selected += 1
            elif ch == ord("r") and files:
                scheduler.trigger_now(files[selected])
            elif ch in (curses.KEY_ENTER, 10, 13) and current is not None and current.has_target:
                return current.target

    return curses.wrapper(_main)

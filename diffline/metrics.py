"""
Metrics Layer - Raw line counts and the symbol counts derived from them.

Raw staged/unstaged counts are compressed through a density function so the
strip stays short, then the compressed total is apportioned between staged
and unstaged changes by weight.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

Density = Callable[[int], int]


@dataclass(frozen=True)
class RawCounts:
    """Line counts for one file at one point in time."""
    staged_removed: int = 0
    unstaged_removed: int = 0
    staged_added: int = 0
    unstaged_added: int = 0

    @property
    def total_removed(self) -> int:
        return self.staged_removed + self.unstaged_removed

    @property
    def total_added(self) -> int:
        return self.staged_added + self.unstaged_added


@dataclass(frozen=True)
class SymbolCounts:
    removed: int
    added: int
    staged_removed: int
    unstaged_removed: int
    staged_added: int
    unstaged_added: int


@dataclass(frozen=True)
class Metrics:
    """Raw counts plus totals and symbol counts, ready for rendering."""
    staged_removed: int
    unstaged_removed: int
    staged_added: int
    unstaged_added: int
    total_removed: int
    total_added: int
    removed_symbol_count: int
    added_symbol_count: int
    staged_removed_symbols: int
    unstaged_removed_symbols: int
    staged_added_symbols: int
    unstaged_added_symbols: int

    @property
    def total(self) -> int:
        return self.total_removed + self.total_added


def ceil_density(divisor: int = 10) -> Density:
    """One symbol per ``divisor`` lines, rounded up."""
    if divisor <= 0:
        raise ValueError("divisor must be positive")

    def density(n: int) -> int:
        return -(-n // divisor)

    return density


def log_density(base: float = 2) -> Density:
    """Logarithmic compression: ``ceil(log_base(n + 1))``."""
    if base <= 1:
        raise ValueError("base must be greater than 1")

    def density(n: int) -> int:
        if n <= 0:
            return 0
        return math.ceil(math.log(n + 1, base))

    return density


DEFAULT_DENSITY: Density = ceil_density(10)


def _split(symbols: int, staged: int, total: int) -> tuple[int, int]:
    # The unstaged share is the remainder so both shares sum to ``symbols``.
    if total <= 0:
        return 0, 0
    staged_symbols = round(symbols * staged / total)
    return staged_symbols, symbols - staged_symbols


def allocate_symbols(raw: RawCounts, density: Density = DEFAULT_DENSITY) -> SymbolCounts:
    """Compress raw counts into per-category symbol counts.

    Args:
        raw: Staged/unstaged line counts.
        density: Maps a line count to a symbol count.

    Returns:
        SymbolCounts: staged and unstaged symbols for removals and additions.
        For each direction the two shares sum exactly to
        ``density(total)``; a direction with no changed lines gets none.
    """
    total_removed = raw.total_removed
    total_added = raw.total_added
    removed_symbols = density(total_removed)
    added_symbols = density(total_added)

    staged_removed, unstaged_removed = _split(removed_symbols, raw.staged_removed, total_removed)
    staged_added, unstaged_added = _split(added_symbols, raw.staged_added, total_added)
    return SymbolCounts(
        removed=removed_symbols,
        added=added_symbols,
        staged_removed=staged_removed,
        unstaged_removed=unstaged_removed,
        staged_added=staged_added,
        unstaged_added=unstaged_added,
    )


def aggregate(raw: Optional[RawCounts], density: Density = DEFAULT_DENSITY) -> Optional[Metrics]:
    """Build Metrics from raw counts; absent counts give absent metrics."""
    if raw is None:
        return None
    symbols = allocate_symbols(raw, density)
    return Metrics(
        staged_removed=raw.staged_removed,
        unstaged_removed=raw.unstaged_removed,
        staged_added=raw.staged_added,
        unstaged_added=raw.unstaged_added,
        total_removed=raw.total_removed,
        total_added=raw.total_added,
        removed_symbol_count=symbols.removed,
        added_symbol_count=symbols.added,
        staged_removed_symbols=symbols.staged_removed,
        unstaged_removed_symbols=symbols.unstaged_removed,
        staged_added_symbols=symbols.staged_added,
        unstaged_added_symbols=symbols.unstaged_added,
    )

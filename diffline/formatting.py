"""
Number formatting for compact status strips.

Abbreviates line counts with magnitude suffixes ("1.2K", "3.4M") and falls
back to a two-digit mantissa with an exponent ("10E14") once the magnitude
runs past the suffix table.
"""

from __future__ import annotations

from typing import Mapping

DEFAULT_SUFFIXES: Mapping[int, str] = {12: "T", 9: "B", 6: "M", 3: "K"}


def magnitude(n: int) -> int:
    """Power of ten, rounded down to a multiple of 3, for a positive int.

    Equivalent to ``floor(log10(n) / 3) * 3`` but exact for ints of any size.
    """
    return (len(str(n)) - 1) // 3 * 3


def scientific(n: int) -> str:
    """Two leading digits followed by ``E`` and the remaining digit count.

    The mantissa is truncated, not rounded: 10**15 -> "10E14",
    1999 -> "19E2".
    """
    digits = str(n)
    return f"{digits[:2]}E{len(digits) - 2}"


def format_number(n: int, suffixes: Mapping[int, str] = DEFAULT_SUFFIXES) -> str:
    """Format a non-negative int for display.

    Args:
        n: Count to format.
        suffixes: Exponent (multiple of 3) to suffix mapping.

    Returns:
        str: ``"999"``, ``"1.2K"``, ``"1000.0K"`` (rounding at the boundary
        is kept) or the scientific fallback when no suffix covers the
        magnitude.
    """
    if n < 1000:
        return str(n)
    power = magnitude(n)
    suffix = suffixes.get(power)
    if suffix is None:
        return scientific(n)
    return f"{n / 1000 ** (power // 3):.1f}{suffix}"

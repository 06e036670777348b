"""
Display bins.

Turns the irregular bins of a GreedyBinner snapshot into uniform-width
bins whose step is a "nice" 1-2-5 number, for printing or plotting.

Counts are moved proportionally to overlap: a source bin spread across
several display bins gives each the floor of its share, and whatever
flooring lost goes to the display bin under the source bin's midpoint.
Every source count is therefore preserved exactly. Display bins at or
below the visibility threshold are dropped from the final result.

These are pure functions of their arguments; take a snapshot first
rather than passing live engine state.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from greedyhist.bin import Bin
from greedyhist.errors import InvalidArgument

logger = logging.getLogger(__name__)

VISIBILITY_THRESHOLD = 10  # Display bins with count <= this are dropped

_MANTISSAS = (1, 2, 5, 10)


def nice_125_step(rough: int) -> int:
    """
    Round a step size up to the 1-2-5 series.

    Returns the smallest of 1, 2, 5 or 10 times 10**floor(log10(rough))
    that is at least rough, e.g. 3 -> 5, 7 -> 10, 120 -> 200.
    """
    rough = max(1, rough)
    base = 10 ** math.floor(math.log10(rough))
    best = base
    for m in _MANTISSAS:
        best = m * base
        if best >= rough:
            break
    return max(1, best)


def floor_to_step(value: int, step: int) -> int:
    """Largest multiple of step not above value."""
    return (value // step) * step


def ceil_to_step(value: int, step: int) -> int:
    """Smallest multiple of step not below value."""
    return -((-value) // step) * step


def _overlap_inclusive(a_lo: int, a_hi: int, b_lo: int, b_hi: int) -> int:
    """Number of integers shared by [a_lo, a_hi] and [b_lo, b_hi]."""
    return max(0, min(a_hi, b_hi) - max(a_lo, b_lo) + 1)


def display_step(lo: int, hi: int, target_bins: int, min_step: int) -> int:
    """
    Step width for displaying the inclusive range [lo, hi].

    The 1-2-5 step is halved when above 1, favouring finer resolution
    over hitting target_bins exactly.
    """
    span = max(1, hi - lo + 1)
    rough = max(1, span // target_bins)
    step = max(min_step, nice_125_step(rough))
    if step > 1:
        step //= 2
    return step


def redistribute(bins: Sequence[Bin], target_bins: int, min_step: int) -> list[Bin]:
    """
    Spread source bin counts over a uniform display grid.

    Args:
        bins: Source bins, e.g. from GreedyBinner.snapshot().
        target_bins: Approximate number of display bins wanted (> 0).
        min_step: Lower bound on the display step (>= 0).

    Returns:
        Contiguous display bins covering every source bin, including
        empty ones. The counts add up to the source total.

    Raises:
        InvalidArgument: If target_bins or min_step is out of range.
    """
    _check_display_args(target_bins, min_step)
    if not bins:
        return []

    lo = min(b.lower for b in bins)
    hi = max(b.printed_upper for b in bins)
    step = display_step(lo, hi, target_bins, min_step)

    start = floor_to_step(lo, step)
    end = ceil_to_step(hi + 1, step)
    n = max(1, (end - start) // step)
    logger.debug("Display grid %d-%d, step %d, %d bins", start, end, step, n)

    display = [Bin(start + i * step, start + (i + 1) * step, count=0) for i in range(n)]

    for src in bins:
        s_lo, s_hi = src.lower, src.printed_upper
        first = max(0, (s_lo - start) // step)
        last = min(n - 1, (s_hi - start) // step)

        allocated = 0
        for d in display[first : last + 1]:
            overlap = _overlap_inclusive(s_lo, s_hi, d.lower, d.printed_upper)
            if overlap <= 0:
                continue
            share = overlap * src.count // src.width
            d.count += share
            allocated += share

        residual = src.count - allocated
        if residual:
            mid = s_lo + (src.width - 1) // 2
            mid_idx = min(n - 1, max(0, (mid - start) // step))
            display[mid_idx].count += residual

    return display


def to_display_bins(
    bins: Sequence[Bin],
    target_bins: int,
    min_step: int,
    threshold: int = VISIBILITY_THRESHOLD,
) -> list[Bin]:
    """
    Convert adaptive bins into readable uniform-width bins.

    Same as redistribute(), then drops every display bin whose count is
    at or below threshold.
    """
    return [b for b in redistribute(bins, target_bins, min_step) if b.count > threshold]


def _check_display_args(target_bins: int, min_step: int) -> None:
    if target_bins <= 0:
        raise InvalidArgument(f"target_bins must be positive, got {target_bins}")
    if min_step < 0:
        raise InvalidArgument(f"min_step must be non-negative, got {min_step}")

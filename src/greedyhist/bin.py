"""
Histogram bin.

A bin covers the half-open integer interval [lower, upper_exclusive)
and counts the samples that fell into it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace

from greedyhist.errors import InvalidArgument


@dataclass
class Bin:
    """A single adaptive histogram bin."""

    lower: int  # Inclusive bound
    upper_exclusive: int  # Exclusive bound
    count: int = 1  # Number of samples
    last_updated: float = field(default_factory=time.time)  # Wall-clock seconds

    def __post_init__(self) -> None:
        if self.lower >= self.upper_exclusive:
            raise InvalidArgument(
                f"Bin lower bound {self.lower} must be below upper bound {self.upper_exclusive}"
            )
        if self.count < 0:
            raise InvalidArgument(f"Bin count {self.count} is negative")

    @property
    def width(self) -> int:
        """Number of integer slots covered."""
        return self.upper_exclusive - self.lower

    @property
    def printed_upper(self) -> int:
        """Inclusive upper bound, as shown to users."""
        return self.upper_exclusive - 1

    @property
    def range_label(self) -> str:
        """Label of the form 'lower-upper_exclusive'."""
        return f"{self.lower}-{self.upper_exclusive}"

    def contains(self, value: float) -> bool:
        """Check if value lies within [lower, upper_exclusive)."""
        return self.lower <= value < self.upper_exclusive

    def increment(self, amount: int = 1) -> None:
        self.count += amount
        self._touch()

    def extend_left(self) -> None:
        """Widen the bin by one slot below its lower bound."""
        self.lower -= 1
        self._touch()

    def extend_right(self) -> None:
        """Widen the bin by one slot above its upper bound."""
        self.upper_exclusive += 1
        self._touch()

    def merged_with(self, other: Bin) -> Bin:
        """
        Combine this bin with another into a new bin.

        The result spans both ranges (including any gap between them),
        sums the counts and keeps the later of the two update times.
        Neither input is modified.
        """
        return Bin(
            lower=min(self.lower, other.lower),
            upper_exclusive=max(self.upper_exclusive, other.upper_exclusive),
            count=self.count + other.count,
            last_updated=max(self.last_updated, other.last_updated),
        )

    def copy(self) -> Bin:
        """Independent copy with identical fields."""
        return replace(self)

    def _touch(self) -> None:
        self.last_updated = time.time()

    def __str__(self) -> str:
        return f"{self.range_label}:{self.count}"

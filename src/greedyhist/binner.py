"""
Greedy adaptive binning engine.

Samples are folded into integer-bounded bins as they arrive:

1. **Containment**: a bin already covering the sample is incremented.
2. **Adjacency**: a bin one slot away is widened by one slot to take it,
   as long as the bin stays within ``max_bin_width``.
3. **Creation**: otherwise a width-1 bin is opened at ``floor(value)``.

Whenever creation pushes the bin count past ``capacity``, adjacent bins
are merged until the count fits again. Each merge tries three passes in
order and takes the first that yields a candidate pair:

- STRICT: merged width within ``max_bin_width``
- RELAXED: gap within ``merge_gap_tolerance`` and merged width within
  ``max_bin_width + width_tolerance``
- FORCED: any adjacent pair

Within a pass the pair with the smallest summed count wins, ties going
to the lowest pair. Every public operation holds the instance lock.
"""

from __future__ import annotations

import logging
import math
import threading
from enum import Enum, auto
from operator import attrgetter
from typing import Iterable

from greedyhist.bin import Bin
from greedyhist.errors import InvalidArgument

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 60
MAX_BIN_WIDTH = 10  # Integer slots allowed per bin
MERGE_GAP_TOLERANCE = 2  # Gap allowed between neighbours in the relaxed pass
WIDTH_TOLERANCE = 2  # Extra width allowed in the relaxed pass


class MergePass(Enum):
    """Capacity enforcement pass that selected a merge."""

    STRICT = auto()  # Merged width within max_bin_width
    RELAXED = auto()  # Small gap and width tolerance allowed
    FORCED = auto()  # Width and gap ignored


class GreedyBinner:
    """
    Streaming histogram with a bounded number of adaptive bins.

    Example:
        binner = GreedyBinner(capacity=40)
        for latency_ms in samples:
            binner += latency_ms
        p99 = binner.estimate_quantile(0.99)
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        max_bin_width: int = MAX_BIN_WIDTH,
        merge_gap_tolerance: int = MERGE_GAP_TOLERANCE,
        width_tolerance: int = WIDTH_TOLERANCE,
    ) -> None:
        """
        Create an empty engine.

        Args:
            capacity: Soft ceiling on the number of bins (> 0).
            max_bin_width: Widest bin produced by extension or strict merges (>= 1).
            merge_gap_tolerance: Largest gap bridged by a relaxed merge (>= 0).
            width_tolerance: Extra width allowed for a relaxed merge (>= 0).

        Raises:
            InvalidArgument: If any setting is out of range.
        """
        _check_capacity(capacity)
        if max_bin_width < 1:
            raise InvalidArgument(f"max_bin_width must be at least 1, got {max_bin_width}")
        if merge_gap_tolerance < 0:
            raise InvalidArgument(f"merge_gap_tolerance must be non-negative, got {merge_gap_tolerance}")
        if width_tolerance < 0:
            raise InvalidArgument(f"width_tolerance must be non-negative, got {width_tolerance}")

        self._lock = threading.Lock()
        self._bins: list[Bin] = []
        self._capacity = capacity
        self._max_width = max_bin_width
        self._gap_tolerance = merge_gap_tolerance
        self._width_tolerance = width_tolerance
        self._merges = {p: 0 for p in MergePass}

    @classmethod
    def from_bins(cls, bins: Iterable[Bin], **settings: int) -> GreedyBinner:
        """
        Build an engine seeded with copies of existing bins.

        The bins are sorted by lower bound; capacity is not enforced until
        the next bin is created.
        """
        binner = cls(**settings)
        binner._bins = sorted((b.copy() for b in bins), key=attrgetter("lower"))
        return binner

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    def set_capacity(self, capacity: int) -> None:
        """
        Change the bin ceiling.

        Takes effect on the next enforcement, i.e. the next time a sample
        opens a new bin; existing bins are not merged immediately.
        """
        _check_capacity(capacity)
        with self._lock:
            logger.debug("Capacity changed from %d to %d", self._capacity, capacity)
            self._capacity = capacity

    @property
    def max_bin_width(self) -> int:
        return self._max_width

    @property
    def merge_gap_tolerance(self) -> int:
        return self._gap_tolerance

    @property
    def width_tolerance(self) -> int:
        return self._width_tolerance

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, value: float) -> None:
        """
        Add a sample value.

        Raises:
            InvalidArgument: If value is NaN or infinite.
        """
        _check_finite(value)
        with self._lock:
            self._ingest(value)

    def ingest_many(self, values: Iterable[float]) -> None:
        """
        Add several samples under a single lock acquisition.

        Every value is checked before any is ingested, so a rejected
        batch leaves the engine unchanged.
        """
        values = list(values)
        for value in values:
            _check_finite(value)
        with self._lock:
            for value in values:
                self._ingest(value)

    def __iadd__(self, value: float) -> GreedyBinner:
        """Operator += equivalent."""
        self.ingest(value)
        return self

    def _ingest(self, value: float) -> None:
        floor = math.floor(value)
        ceil = math.ceil(value)
        is_int = floor == value

        for b in self._bins:
            if b.contains(value):
                b.increment()
                return

        # One extension at most, first eligible bin in ascending order.
        # The widened bin is not re-checked against its neighbour.
        for b in self._bins:
            lower, upper_ex = b.lower, b.upper_exclusive

            if not is_int and ceil == upper_ex + 1:
                if (upper_ex + 1) - lower <= self._max_width:
                    b.extend_right()
                    b.increment()
                    return

            if (is_int and floor == lower - 1) or (not is_int and ceil == lower):
                if upper_ex - (lower - 1) <= self._max_width:
                    b.extend_left()
                    b.increment()
                    return

        self._bins.append(Bin(floor, floor + 1))
        self._bins.sort(key=attrgetter("lower"))
        logger.debug("Created bin %d-%d for %r", floor, floor + 1, value)

        if len(self._bins) > self._capacity:
            self._enforce_capacity()

    # ------------------------------------------------------------------
    # Capacity enforcement
    # ------------------------------------------------------------------

    def _enforce_capacity(self) -> None:
        while len(self._bins) > self._capacity:
            if len(self._bins) < 2:
                logger.warning(
                    "No adjacent bins left to merge (%d bins, capacity %d)",
                    len(self._bins),
                    self._capacity,
                )
                break

            for merge_pass in MergePass:
                idx = self._best_pair(merge_pass)
                if idx is not None:
                    self._merge_pair(idx, merge_pass)
                    break
            else:
                break

    def _best_pair(self, merge_pass: MergePass) -> int | None:
        """Index of the eligible pair with the smallest summed count."""
        best_idx: int | None = None
        best_sum = 0

        for i in range(len(self._bins) - 1):
            b1, b2 = self._bins[i], self._bins[i + 1]
            merged_width = b2.upper_exclusive - b1.lower
            gap = b2.lower - b1.upper_exclusive

            match merge_pass:
                case MergePass.STRICT:
                    eligible = merged_width <= self._max_width
                case MergePass.RELAXED:
                    eligible = (
                        gap <= self._gap_tolerance
                        and merged_width <= self._max_width + self._width_tolerance
                    )
                case MergePass.FORCED:
                    eligible = True

            if not eligible:
                continue
            count_sum = b1.count + b2.count
            if best_idx is None or count_sum < best_sum:
                best_idx = i
                best_sum = count_sum

        return best_idx

    def _merge_pair(self, idx: int, merge_pass: MergePass) -> None:
        merged = self._bins[idx].merged_with(self._bins[idx + 1])
        self._bins[idx : idx + 2] = [merged]
        self._merges[merge_pass] += 1
        logger.debug(
            "%s merge -> %s (%d bins left)",
            merge_pass.name,
            merged,
            len(self._bins),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def estimate_quantile(self, q: float) -> float:
        """
        Approximate the q-quantile.

        Finds the bin holding rank ceil(q * total) and interpolates
        linearly inside it, assuming samples are spread uniformly over
        the bin's width.

        Args:
            q: Quantile in [0, 1] (0.5 = median, 0.99 = 99th percentile).

        Returns:
            Estimated value, or 0.0 if nothing has been ingested.

        Raises:
            InvalidArgument: If q is outside [0, 1].
        """
        _check_quantile(q)
        with self._lock:
            return self._quantile(q)

    def estimate_quantiles(self, qs: Iterable[float]) -> list[float]:
        """Estimate several quantiles against one consistent state."""
        qs = list(qs)
        for q in qs:
            _check_quantile(q)
        with self._lock:
            return [self._quantile(q) for q in qs]

    def _quantile(self, q: float) -> float:
        total = sum(b.count for b in self._bins)
        if total == 0:
            return 0.0

        target_rank = math.ceil(q * total)
        cumulative = 0
        for b in self._bins:
            cumulative += b.count
            # Empty bins (seeded via from_bins) hold no rank
            if b.count and cumulative >= target_rank:
                ratio = (target_rank - (cumulative - b.count)) / b.count
                return b.lower + ratio * b.width

        return float(self._bins[-1].printed_upper)

    def snapshot(self) -> list[Bin]:
        """Copies of the current bins, ascending by lower bound."""
        with self._lock:
            return [b.copy() for b in self._bins]

    @property
    def number_of_bins(self) -> int:
        with self._lock:
            return len(self._bins)

    def __len__(self) -> int:
        return self.number_of_bins

    @property
    def total_entries(self) -> int:
        """Total number of samples ingested."""
        with self._lock:
            return sum(b.count for b in self._bins)

    @property
    def merge_counts(self) -> dict[MergePass, int]:
        """Merges performed by each pass since construction or reset."""
        with self._lock:
            return dict(self._merges)

    def reset(self) -> None:
        """Drop all bins and merge counters; settings are kept."""
        with self._lock:
            self._bins = []
            self._merges = {p: 0 for p in MergePass}
            logger.debug("Binner reset")

    def __str__(self) -> str:
        with self._lock:
            lines = [
                f"Maximum number of bins {self._capacity}",
                f"Maximum bin width {self._max_width}",
                f"Merge gap tolerance {self._gap_tolerance}, width tolerance {self._width_tolerance}",
            ]
            if not self._bins:
                lines.append("Empty histogram")
            else:
                for b in self._bins:
                    lines.append(f"Bin : < {b.range_label}, {b.count} >")
            lines.append(f"Number of samples : {sum(b.count for b in self._bins)}")
        return "\n".join(lines)


def _check_capacity(capacity: int) -> None:
    if capacity <= 0:
        raise InvalidArgument(f"capacity must be positive, got {capacity}")


def _check_quantile(q: float) -> None:
    # Written as a negated range test so NaN is rejected too
    if not 0.0 <= q <= 1.0:
        raise InvalidArgument(f"quantile must be in [0, 1], got {q}")


def _check_finite(value: float) -> None:
    if not math.isfinite(value):
        raise InvalidArgument(f"cannot bin non-finite value {value}")

"""
greedyhist - streaming histogram with a bounded number of adaptive bins.

Samples are ingested one at a time into integer bins that widen and
merge greedily, so approximate quantiles can be read at any moment and
the bins can be re-bucketed into uniform-width display bins.
"""

from greedyhist.bin import Bin
from greedyhist.binner import (
    DEFAULT_CAPACITY,
    MAX_BIN_WIDTH,
    MERGE_GAP_TOLERANCE,
    WIDTH_TOLERANCE,
    GreedyBinner,
    MergePass,
)
from greedyhist.display import (
    VISIBILITY_THRESHOLD,
    nice_125_step,
    redistribute,
    to_display_bins,
)
from greedyhist.errors import InvalidArgument

__version__ = "0.1.0"
__all__ = [
    # Engine
    "GreedyBinner",
    "MergePass",
    "Bin",
    "DEFAULT_CAPACITY",
    "MAX_BIN_WIDTH",
    "MERGE_GAP_TOLERANCE",
    "WIDTH_TOLERANCE",
    # Display
    "to_display_bins",
    "redistribute",
    "nice_125_step",
    "VISIBILITY_THRESHOLD",
    # Errors
    "InvalidArgument",
]

"""Error types raised by greedyhist."""

from __future__ import annotations


class InvalidArgument(ValueError):
    """
    An argument lies outside the domain an operation accepts.

    Raised for quantiles outside [0, 1], non-positive capacities,
    non-finite samples and malformed bins or display parameters.
    """

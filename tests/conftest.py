"""
Pytest configuration and fixtures for greedyhist tests.
"""

import random
from typing import Callable

import pytest
import simpy

from greedyhist import GreedyBinner


@pytest.fixture
def env() -> simpy.Environment:
    """Create a fresh SimPy environment."""
    return simpy.Environment()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible workloads."""
    return random.Random(12345)


@pytest.fixture
def binner() -> GreedyBinner:
    """Engine with default settings."""
    return GreedyBinner()


@pytest.fixture
def check_invariants() -> Callable[[GreedyBinner, int], None]:
    """Assert count conservation, ordering and the capacity bound."""

    def _check(binner: GreedyBinner, ingested: int) -> None:
        bins = binner.snapshot()
        assert sum(b.count for b in bins) == ingested
        assert [b.lower for b in bins] == sorted(b.lower for b in bins)
        if binner.capacity >= 2:
            assert len(bins) <= binner.capacity

    return _check

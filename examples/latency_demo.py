"""
Latency histogram demonstration.

Demonstrates:
- A SimPy single-server queue producing job response times
- Streaming them into a GreedyBinner as jobs complete
- Reading approximate percentiles while the simulation runs
- Printing the final distribution as uniform-width display bins

Run with --debug to log bin creation and merges.
"""

from __future__ import annotations

import logging
import random
import sys

import simpy

from greedyhist import GreedyBinner, to_display_bins


def arrivals(env: simpy.Environment, rng: random.Random, machine: simpy.Resource, binner: GreedyBinner):
    """Poisson job arrivals."""
    while True:
        yield env.timeout(rng.expovariate(1.0 / 12.5))
        env.process(job(env, rng, machine, binner))


def job(env: simpy.Environment, rng: random.Random, machine: simpy.Resource, binner: GreedyBinner):
    """Queue for the machine, get served, record the response time."""
    arrived = env.now
    with machine.request() as req:
        yield req
        yield env.timeout(rng.expovariate(1.0 / 10.0))
    binner.ingest(env.now - arrived)


def monitor(env: simpy.Environment, binner: GreedyBinner, interval: float):
    """Print running percentiles at a fixed simulated interval."""
    while True:
        yield env.timeout(interval)
        p50, p90, p99 = binner.estimate_quantiles([0.5, 0.9, 0.99])
        print(
            f"  t={env.now:9.0f}  samples={binner.total_entries:6d}  bins={len(binner):3d}"
            f"  p50={p50:7.2f}  p90={p90:7.2f}  p99={p99:7.2f}"
        )


def print_display_bins(binner: GreedyBinner, target_bins: int = 20) -> None:
    bins = to_display_bins(binner.snapshot(), target_bins, min_step=1)
    if not bins:
        print("  (no display bins above threshold)")
        return
    peak = max(b.count for b in bins)
    for b in bins:
        bar = "*" * max(1, round(50 * b.count / peak))
        print(f"  [{b.lower:5d}, {b.printed_upper:5d}]: {b.count:6d} {bar}")


def main() -> None:
    debug = "--debug" in sys.argv
    n_jobs = 20000

    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    rng = random.Random(1)
    env = simpy.Environment()
    machine = simpy.Resource(env, capacity=1)
    binner = GreedyBinner(capacity=60)

    horizon = n_jobs * 12.5
    env.process(arrivals(env, rng, machine, binner))
    env.process(monitor(env, binner, horizon / 10))

    print("=" * 60)
    print("RUNNING PERCENTILES")
    print("=" * 60)
    env.run(until=horizon)
    print()

    print("=" * 60)
    print("DISPLAY BINS")
    print("=" * 60)
    print_display_bins(binner)
    print()
    print(binner)


if __name__ == "__main__":
    main()

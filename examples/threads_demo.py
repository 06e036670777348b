"""
Shared binner demonstration.

Several threads ingest into one GreedyBinner while a reader thread
polls percentiles. The instance lock serializes every call, so the
final sample count always equals the number of ingest calls.
"""

from __future__ import annotations

import random
import threading

from greedyhist import GreedyBinner

N_WRITERS = 4
SAMPLES_PER_WRITER = 25000


def writer(binner: GreedyBinner, seed: int) -> None:
    rng = random.Random(seed)
    for _ in range(SAMPLES_PER_WRITER):
        binner.ingest(rng.lognormvariate(3.0, 0.6))


def reader(binner: GreedyBinner, stop: threading.Event) -> None:
    while not stop.wait(0.05):
        p50, p99 = binner.estimate_quantiles([0.5, 0.99])
        print(f"  samples={binner.total_entries:7d}  p50={p50:7.2f}  p99={p99:7.2f}")


def main() -> None:
    binner = GreedyBinner(capacity=40)
    stop = threading.Event()

    poller = threading.Thread(target=reader, args=(binner, stop))
    poller.start()

    writers = [threading.Thread(target=writer, args=(binner, i)) for i in range(N_WRITERS)]
    for t in writers:
        t.start()
    for t in writers:
        t.join()

    stop.set()
    poller.join()

    print()
    print(f"Ingested {N_WRITERS * SAMPLES_PER_WRITER}, binner holds {binner.total_entries}")
    for b in binner.snapshot():
        print(f"  {b}")


if __name__ == "__main__":
    main()

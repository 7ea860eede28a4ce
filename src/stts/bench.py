"""CPU benchmark: prime counting in one worker process per logical CPU."""

import logging
import multiprocessing
import time
from dataclasses import dataclass

import psutil

from stts.config import DEFAULT_BENCH_LIMIT

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BenchResult:
    """Outcome of one benchmark run."""

    workers: int
    limit: int
    elapsed_seconds: float
    primes_found: int  # per worker

    @property
    def score(self) -> float:
        """Numbers tested per second, summed over all workers."""
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.workers * self.limit / self.elapsed_seconds


def count_primes(limit: int) -> int:
    """Count primes below ``limit`` by trial division."""
    count = 0
    for n in range(2, limit):
        i = 2
        while i * i <= n:
            if n % i == 0:
                break
            i += 1
        else:
            count += 1
    return count


def run_benchmark(workers: int | None = None, limit: int = DEFAULT_BENCH_LIMIT) -> BenchResult:
    """
    Run the prime workload on ``workers`` processes and time it.

    Each worker does the same independent unit of work; the only
    coordination is the final join.
    """
    if workers is None:
        workers = psutil.cpu_count(logical=True) or 1
    workers = max(1, workers)

    logger.debug("Benchmark: %d worker(s), limit %d", workers, limit)
    start = time.perf_counter()
    with multiprocessing.Pool(processes=workers) as pool:
        results = pool.map(count_primes, [limit] * workers)
    elapsed = time.perf_counter() - start

    return BenchResult(
        workers=workers,
        limit=limit,
        elapsed_seconds=elapsed,
        primes_found=results[0],
    )

"""
Event-loop responsiveness under CPU-bound workers.

Modes:
    blocking  never yields
    naive     asyncio.sleep(0) after every 10th work unit
    coop      CoopYielder.check() after every step of a work unit

A heartbeat task measures how long a single loop pass takes to come back to it
while the workers run.

Usage:
    python bench/benchmark.py --mode coop --workers 4 --duration 5
"""

import argparse
import asyncio
import json
import statistics
import sys
import time
from dataclasses import asdict, dataclass, field
from typing import List

from coopyield import create_coop_yield
from coopyield.log import get_logger, setup_logging

log = get_logger("coopyield.bench")

MODES = ("blocking", "naive", "coop")
HEARTBEAT_INTERVAL_S = 0.01


@dataclass
class BenchmarkResult:
    mode: str
    workers: int
    duration: float
    total_work_units: int = 0
    yields: int = 0
    latencies_us: List[float] = field(default_factory=list)

    @property
    def throughput(self) -> float:
        return self.total_work_units / self.duration

    def to_json(self) -> dict:
        data = asdict(self)
        data["throughput"] = self.throughput
        return data


async def blocking_worker(result: BenchmarkResult, deadline: float, steps: int, **_):
    while time.monotonic() < deadline:
        sum(range(steps))
        result.total_work_units += 1


async def naive_worker(result: BenchmarkResult, deadline: float, steps: int, **_):
    while time.monotonic() < deadline:
        sum(range(steps))
        result.total_work_units += 1
        if result.total_work_units % 10 == 0:
            result.yields += 1
            await asyncio.sleep(0)


async def coop_worker(result: BenchmarkResult, deadline: float, steps: int,
                      micro_ms: float = 8, macro_ms: float = 50):
    yielder = create_coop_yield(micro_ms=micro_ms, macro_ms=macro_ms)
    while time.monotonic() < deadline:
        acc = 0
        for i in range(steps):
            acc += i
            if yielder.check():
                result.yields += 1
                await yielder.yield_
        result.total_work_units += 1


WORKERS = {
    "blocking": blocking_worker,
    "naive": naive_worker,
    "coop": coop_worker,
}


async def heartbeat(result: BenchmarkResult, stop: asyncio.Event):
    while not stop.is_set():
        before = time.perf_counter()
        await asyncio.sleep(0)
        result.latencies_us.append((time.perf_counter() - before) * 1e6)
        await asyncio.sleep(HEARTBEAT_INTERVAL_S)


async def run_benchmark(mode: str, workers: int, duration: float, steps: int,
                        **coop_options) -> BenchmarkResult:
    result = BenchmarkResult(mode=mode, workers=workers, duration=duration)
    stop = asyncio.Event()
    heartbeat_task = asyncio.create_task(heartbeat(result, stop))

    deadline = time.monotonic() + duration
    worker = WORKERS[mode]
    await asyncio.gather(*(
        worker(result, deadline, steps, **coop_options) for _ in range(workers)
    ))

    stop.set()
    await heartbeat_task
    log.info("bench.done", mode=mode, units=result.total_work_units, yields=result.yields)
    return result


def report(result: BenchmarkResult) -> None:
    print(f"Throughput: {result.throughput:.2f} units/s")
    print(f"Yields: {result.yields}")
    samples = result.latencies_us
    if len(samples) < 2:
        print("No latency samples collected!", file=sys.stderr)
        return
    print(f"Latency P50: {statistics.median(samples):.2f} us")
    print(f"Latency P99: {statistics.quantiles(samples, n=100)[98]:.2f} us")
    print(f"Max Latency: {max(samples):.2f} us")


def main(argv=None):
    parser = argparse.ArgumentParser(description="coopyield Benchmark")
    parser.add_argument("--mode", choices=MODES, required=True)
    parser.add_argument("--workers", type=int, default=1, help="Number of CPU-bound workers")
    parser.add_argument("--duration", type=float, default=10, help="Duration in seconds")
    parser.add_argument("--intensity", type=int, default=10000, help="Steps per work unit")
    parser.add_argument("--micro-ms", type=float, default=8, help="Immediate-tier budget (coop mode)")
    parser.add_argument("--macro-ms", type=float, default=50, help="Deferred-tier budget (coop mode)")
    parser.add_argument("--output", default="result.json", help="Output JSON file")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    coop_options = {}
    if args.mode == "coop":
        coop_options = {"micro_ms": args.micro_ms, "macro_ms": args.macro_ms}

    print(f"Starting {args.mode} benchmark with {args.workers} workers for {args.duration}s...")
    result = asyncio.run(run_benchmark(
        args.mode, args.workers, args.duration, args.intensity, **coop_options
    ))
    report(result)

    with open(args.output, "w") as f:
        json.dump(result.to_json(), f, indent=2)


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Example: coopyield with asyncio

Runs CPU-bound loops side by side with a heartbeat task and shows that the
heartbeat keeps ticking while the loops crunch.
"""

import asyncio
import time

from coopyield import AbortController, CancellationError, create_coop_yield
from coopyield.asyncio import cooperate
from coopyield.log import setup_logging


async def cpu_intensive_task(task_id: int, iterations: int = 2_000_000):
    """
    Simulates CPU-intensive work with a checkpoint every iteration.
    """
    print(f"[Task {task_id}] Starting CPU work...")
    start = time.monotonic()
    yielder = create_coop_yield(micro_ms=8, macro_ms=50)

    result = 0
    yields = 0
    for i in range(iterations):
        result += i * i
        if yielder.check():
            yields += 1
            await yielder.yield_

    elapsed = time.monotonic() - start
    print(f"[Task {task_id}] Completed in {elapsed:.3f}s with {yields} yields")
    return result


async def heartbeat(stop: asyncio.Event):
    """Prints how late each 10ms tick fires while the loops run."""
    worst = 0.0
    while not stop.is_set():
        start = time.perf_counter()
        await asyncio.sleep(0.01)
        late_ms = (time.perf_counter() - start - 0.01) * 1000
        worst = max(worst, late_ms)
    print(f"[Heartbeat] Worst lateness: {worst:.1f}ms")


async def cancellable_task():
    """
    Demonstrates cancelling a cooperative loop through an abort signal.
    """
    controller = AbortController()
    asyncio.get_running_loop().call_later(0.05, controller.abort, "deadline reached")

    count = 0
    try:
        async for _ in cooperate(iter(int, 1), abort=controller.signal):
            count += 1
    except CancellationError as e:
        print(f"[Cancellable] Stopped after {count} items: {e}")


async def main():
    """
    Run example tasks demonstrating cooperative yielding.
    """
    print("=" * 60)
    print("coopyield asyncio Example")
    print("=" * 60)
    print()

    print("--- Running CPU-intensive tasks with a heartbeat ---")
    stop = asyncio.Event()
    beat = asyncio.create_task(heartbeat(stop))
    await asyncio.gather(
        cpu_intensive_task(1),
        cpu_intensive_task(2),
    )
    stop.set()
    await beat
    print()

    print("--- Running a cancellable loop ---")
    await cancellable_task()
    print()

    print("=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    setup_logging("INFO")
    asyncio.run(main())

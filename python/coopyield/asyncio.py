"""
coopyield asyncio helpers.

Thin wrappers for the common ways of driving a CoopYielder from a coroutine.

Usage:
    import asyncio
    from coopyield import create_coop_yield
    from coopyield.asyncio import coop_checkpoint, cooperate

    async def heavy_work(rows):
        yielder = create_coop_yield()
        for row in rows:
            crunch(row)
            await coop_checkpoint(yielder)

    async def heavy_work_iter(rows):
        async for row in cooperate(rows, macro_ms=20):
            crunch(row)
"""

from typing import Any, AsyncIterator, Iterable, Optional, TypeVar

from .tiers import soon
from .yielder import CoopYielder, create_coop_yield

T = TypeVar("T")


async def coop_checkpoint(yielder: CoopYielder, iterations: int = 1) -> bool:
    """
    Async checkpoint that suspends only when the yielder says so.

    Returns:
        True if a yield was performed, False otherwise.
    """
    if yielder.check(iterations):
        await yielder.yield_
        return True
    return False


async def cooperate(
    iterable: Iterable[T],
    yielder: Optional[CoopYielder] = None,
    **options: Any,
) -> AsyncIterator[T]:
    """
    Iterate ``iterable``, checkpointing after each item is consumed.

    Args:
        iterable: Any synchronous iterable.
        yielder: Yielder to use; a fresh one built from ``options`` otherwise.
        **options: Options for ``create_coop_yield`` when no yielder is given.
    """
    if yielder is None:
        yielder = create_coop_yield(**options)
    elif options:
        raise TypeError("options are only accepted when no yielder is given")

    for item in iterable:
        yield item
        if yielder.check():
            await yielder.yield_


async def force_yield() -> None:
    """Yield to the event loop unconditionally, on the immediate tier."""
    await soon()


__all__ = [
    'coop_checkpoint',
    'cooperate',
    'force_yield',
]

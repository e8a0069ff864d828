"""
Yield tiers: the two scheduler primitives a CoopYielder suspends on.

- ``soon()``: immediate tier. Re-queues the awaiting task at the tail of the
  loop's ready queue, so it resumes before any timer-based work.
- ``DeferredTicketCache``: deferred tier. Coalesces every request made before
  the next firing into one shared future, resolved by a single callback.

``Suspension`` is the handle exposed as ``CoopYielder.yield_``. Build one with
``immediate()`` or ``deferred()``: when a loop is running its completion is
attached to the host tier, so it completes whether or not anyone awaits it.
"""

from __future__ import annotations

import asyncio
import types
from typing import Any, Callable, Generator, Optional

from ._shared import YieldTier
from .log import get_logger

log = get_logger(__name__)


@types.coroutine
def soon() -> Generator[None, None, None]:
    """
    Yield once to the event loop.

    Stateless and shared by every yielder; equivalent to ``asyncio.sleep(0)``
    without the coroutine frame.
    """
    yield


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class Suspension:
    """
    An explicit suspension point.

    Awaiting it always suspends the current task at least once. ``complete()``
    runs ``on_resume`` exactly once, either from the host tier's callback or,
    for a suspension built without a running loop, when the awaiting task
    resumes.
    """

    __slots__ = ("tier", "_wait", "_on_resume", "_done")

    def __init__(
        self,
        tier: YieldTier,
        wait: Callable[[], Any],
        on_resume: Optional[Callable[[], None]] = None,
    ):
        self.tier = tier
        self._wait = wait
        self._on_resume = on_resume
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def complete(self) -> None:
        if self._done:
            return
        self._done = True
        if self._on_resume is not None:
            self._on_resume()

    def __await__(self):
        if self._done:
            yield from soon()
            return
        yield from self._wait()
        self.complete()

    def __repr__(self) -> str:
        state = "done" if self._done else "pending"
        return f"<Suspension {self.tier.name} {state}>"


class DeferredTicketCache:
    """
    Dedups deferred-tier requests into one scheduled callback.

    At most one ticket is outstanding. ``request()`` returns it (creating it
    and scheduling ``fire`` if needed); ``fire()`` clears it and resolves
    every waiter together.

    Args:
        use_timer: Fire through ``loop.call_later(0, ...)`` instead of
            ``loop.call_soon``.
    """

    def __init__(self, use_timer: bool = False):
        self.use_timer = use_timer
        self._ticket: Optional[asyncio.Future] = None

    @property
    def outstanding(self) -> bool:
        return self._ticket is not None

    def request(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> asyncio.Future:
        """Return the outstanding ticket, or schedule a new one."""
        if loop is None:
            loop = asyncio.get_running_loop()

        ticket = self._ticket
        if ticket is not None and ticket.get_loop() is loop and not ticket.done():
            return ticket

        # A ticket bound to another loop is dropped; its own callback still
        # resolves it on that loop.
        ticket = loop.create_future()
        self._ticket = ticket
        if self.use_timer:
            loop.call_later(0, self.fire, ticket)
        else:
            loop.call_soon(self.fire, ticket)
        log.debug("coop.ticket.requested", timer=self.use_timer)
        return ticket

    def fire(self, ticket: Optional[asyncio.Future] = None) -> None:
        """Clear the outstanding ticket and resolve it."""
        if ticket is None:
            ticket = self._ticket
        if ticket is not None and ticket is self._ticket:
            self._ticket = None
        if ticket is not None and not ticket.done():
            ticket.set_result(None)
            log.debug("coop.ticket.fired")


# Process-wide default shared by every yielder that is not given its own.
TICKETS = DeferredTicketCache()


def _wait_ticket(ticket: asyncio.Future):
    if ticket.done():
        # fired already: still give the loop one turn
        yield from soon()
    else:
        # shield: cancelling one waiter must not cancel the shared ticket
        yield from asyncio.shield(ticket).__await__()


def immediate(on_resume: Optional[Callable[[], None]] = None) -> Suspension:
    """Immediate-tier suspension, completed on the loop's next pass."""
    suspension = Suspension(YieldTier.IMMEDIATE, soon, on_resume)
    loop = _running_loop()
    if loop is not None:
        loop.call_soon(suspension.complete)
    return suspension


def deferred(
    tickets: Optional[DeferredTicketCache] = None,
    on_resume: Optional[Callable[[], None]] = None,
) -> Suspension:
    """
    Deferred-tier suspension on the shared ticket, completed when it fires.

    Without a running loop the ticket is requested when the suspension is
    first awaited.
    """
    cache = tickets or TICKETS
    loop = _running_loop()
    if loop is None:
        return Suspension(
            YieldTier.DEFERRED, lambda: _wait_ticket(cache.request()), on_resume
        )

    ticket = cache.request(loop)
    suspension = Suspension(YieldTier.DEFERRED, lambda: _wait_ticket(ticket), on_resume)
    ticket.add_done_callback(lambda _: suspension.complete())
    return suspension


def later(tickets: Optional[DeferredTicketCache] = None) -> Suspension:
    """Standalone deferred-tier suspension on the shared ticket."""
    return deferred(tickets)

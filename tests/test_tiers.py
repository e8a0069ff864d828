#!/usr/bin/env python3
"""
Tests for the yield tiers: soon(), the deferred ticket cache and Suspension.
"""

import asyncio

import pytest

from coopyield import (
    DeferredTicketCache,
    Suspension,
    YieldTier,
    deferred,
    immediate,
    later,
    soon,
)

from conftest import CountingTickets


class TestDeferredTicketCache:
    """Dedup of deferred-tier requests."""

    @pytest.mark.asyncio
    async def test_requests_share_ticket(self, tickets):
        """Requests before firing get the same future."""
        first = tickets.request()
        second = tickets.request()
        assert first is second
        assert tickets.outstanding

    @pytest.mark.asyncio
    async def test_fire_clears_ticket(self, tickets):
        """After firing a new request gets a new ticket."""
        first = tickets.request()
        await first
        assert first.done()
        assert not tickets.outstanding
        assert tickets.fired == 1

        second = tickets.request()
        assert second is not first
        await second
        assert tickets.fired == 2

    @pytest.mark.asyncio
    async def test_manual_fire(self):
        """fire() resolves the outstanding ticket immediately."""
        cache = DeferredTicketCache()
        ticket = cache.request()
        cache.fire()
        assert ticket.done()
        assert not cache.outstanding
        # the scheduled callback later finds nothing left to do
        await asyncio.sleep(0)
        assert not cache.outstanding

    @pytest.mark.asyncio
    async def test_timer_fallback(self):
        """use_timer fires through a zero-delay timer."""
        cache = CountingTickets(use_timer=True)
        await cache.request()
        assert cache.fired == 1

    @pytest.mark.asyncio
    async def test_ticket_from_other_loop_replaced(self, tickets):
        """A ticket bound to another loop is not handed out."""
        other = asyncio.new_event_loop()
        try:
            stale = tickets.request(other)
        finally:
            other.close()
        fresh = tickets.request()
        assert fresh is not stale
        assert fresh.get_loop() is asyncio.get_running_loop()
        await fresh

    def test_request_needs_running_loop(self):
        """Without a loop there is nothing to schedule on."""
        with pytest.raises(RuntimeError):
            DeferredTicketCache().request()


class TestSuspension:
    """The handle exposed as CoopYielder.yield_."""

    @pytest.mark.asyncio
    async def test_hook_runs_once(self):
        """on_resume runs exactly once, even if awaited twice."""
        calls = []
        suspension = Suspension(YieldTier.IMMEDIATE, soon, lambda: calls.append(1))
        assert not suspension.done
        await suspension
        await suspension
        assert suspension.done
        assert calls == [1]

    @pytest.mark.asyncio
    async def test_cancelled_waiter_keeps_ticket(self, tickets):
        """Cancelling one waiter does not cancel the shared ticket."""
        handles = {}

        async def wait(name):
            handles[name] = later(tickets)
            await handles[name]

        task_a = asyncio.ensure_future(wait("a"))
        task_b = asyncio.ensure_future(wait("b"))
        await asyncio.sleep(0)
        # both tasks are parked on the same ticket, which has not fired yet
        assert tickets.outstanding
        assert tickets.fired == 0
        assert not handles["a"].done
        task_a.cancel()

        await task_b
        assert task_a.cancelled()
        assert tickets.fired == 1
        assert handles["b"].done
        # completion follows the ticket, not the cancelled waiter
        assert handles["a"].done

    @pytest.mark.asyncio
    async def test_await_after_ticket_fired_still_suspends(self, tickets):
        """A deferred suspension awaited after its ticket fired still yields."""
        loop = asyncio.get_running_loop()
        suspension = later(tickets)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert tickets.fired == 1
        assert suspension.done

        ran = []
        loop.call_soon(ran.append, 1)
        await suspension
        assert ran == [1]

    @pytest.mark.asyncio
    async def test_await_between_fire_and_completion(self, tickets):
        """Awaiting a fired ticket before its completion ran still yields once."""
        loop = asyncio.get_running_loop()
        suspension = later(tickets)
        await asyncio.sleep(0)
        assert tickets.fired == 1
        assert not suspension.done

        ran = []
        loop.call_soon(ran.append, 1)
        await suspension
        assert suspension.done
        assert ran == [1]

    @pytest.mark.asyncio
    async def test_immediate_completes_on_next_pass(self):
        """An immediate suspension completes on the next loop pass unawaited."""
        calls = []
        suspension = immediate(lambda: calls.append(1))
        assert not suspension.done
        await asyncio.sleep(0)
        assert suspension.done
        assert calls == [1]

    def test_built_without_loop_completes_on_await(self, tickets):
        """Without a running loop the ticket is requested on first await."""
        calls = []
        suspension = deferred(tickets, lambda: calls.append(1))
        assert not tickets.outstanding

        async def wait():
            await suspension

        asyncio.run(wait())
        assert suspension.done
        assert calls == [1]
        assert tickets.fired == 1

    @pytest.mark.asyncio
    async def test_immediate_before_deferred(self, tickets):
        """Immediate-tier waits resume before deferred ones of the same turn."""
        order = []

        async def deferred():
            await later(tickets)
            order.append("deferred")

        async def immediate():
            await soon()
            order.append("immediate")

        await asyncio.gather(deferred(), immediate())
        assert order == ["immediate", "deferred"]

    def test_repr(self):
        """repr shows tier and state."""
        suspension = Suspension(YieldTier.DEFERRED, soon)
        assert repr(suspension) == "<Suspension DEFERRED pending>"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""
Shared fixtures: a controllable millisecond clock and a private ticket cache
so tests never share deferred-tier state through the process-wide default.
"""
import pytest

from coopyield import DeferredTicketCache


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class CountingTickets(DeferredTicketCache):
    """Ticket cache that counts how many times a ticket fired."""

    def __init__(self, use_timer: bool = False):
        super().__init__(use_timer=use_timer)
        self.fired = 0

    def fire(self, ticket=None):
        self.fired += 1
        super().fire(ticket)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tickets():
    return CountingTickets()

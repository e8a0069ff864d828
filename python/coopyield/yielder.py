"""
Cooperative yielder: the yield decision state machine.

Usage:
    yielder = create_coop_yield(micro_ms=8, macro_ms=50)

    async def heavy_work(items):
        for item in items:
            process(item)
            if yielder.check():
                await yielder.yield_
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Mapping, Optional

from ._shared import YielderState
from .config import CoopOptions
from .errors import CancellationError
from .estimator import CheckpointEstimator
from .log import get_logger
from .tiers import TICKETS, DeferredTicketCache, Suspension, deferred, immediate

log = get_logger(__name__)


class CoopYielder:
    """
    Decides when a long-running loop should suspend.

    ``check()`` is cheap enough to call on every iteration. When it returns
    True, ``yield_`` holds a ``Suspension`` the caller should await before
    continuing:

    - immediate tier (``micro_ms`` elapsed): resumes before timer-based work;
      only the immediate-tier window restarts.
    - deferred tier (``macro_ms`` elapsed): resumes once the ready queue
      drains, together with every other deferred request of the same turn;
      both windows restart.
    """

    def __init__(
        self,
        micro_ms: Optional[float] = CoopOptions.micro_ms,
        macro_ms: Optional[float] = CoopOptions.macro_ms,
        abort: Optional[Any] = None,
        *,
        options: Optional[CoopOptions] = None,
        clock: Optional[Callable[[], float]] = None,
        tickets: Optional[DeferredTicketCache] = None,
    ):
        """
        Args:
            micro_ms: Immediate-tier budget in ms; 0 or None disables it.
            macro_ms: Deferred-tier budget in ms; must be positive.
            abort: Cancellation signal (AbortSignal or an event with is_set()).
            options: Pre-built options; overrides the three arguments above.
            clock: Millisecond clock, for tests.
            tickets: Deferred-tier ticket cache, the process-wide one by default.

        Raises:
            ConfigurationError: If the options are invalid.
        """
        if options is None:
            options = CoopOptions(micro_ms=micro_ms, macro_ms=macro_ms, abort=abort)
        self._options = options
        self._signal = options.signal
        self._tickets = tickets if tickets is not None else TICKETS
        self._estimator = CheckpointEstimator(options.micro_ms, options.macro_ms, clock)
        self.yield_: Optional[Suspension] = None

    @property
    def options(self) -> CoopOptions:
        return self._options

    @property
    def micro_ms(self) -> Optional[float]:
        return self._options.micro_ms

    @property
    def macro_ms(self) -> float:
        return self._options.macro_ms

    @property
    def estimator(self) -> CheckpointEstimator:
        return self._estimator

    @property
    def state(self) -> YielderState:
        signal = self._signal
        if signal is not None and signal.aborted:
            return YielderState.ABORTED
        if self.yield_ is not None and not self.yield_.done:
            return YielderState.YIELD_SCHEDULED
        return YielderState.IDLE

    def check(self, iterations: int = 1) -> bool:
        """
        Check whether it is time to yield.

        Args:
            iterations: Iterations completed since the previous call.

        Returns:
            True if a yield was scheduled; await ``yield_`` before continuing.

        Raises:
            CancellationError: If the cancellation signal is aborted.
        """
        signal = self._signal
        if signal is not None and signal.aborted:
            self._raise_aborted(signal)

        elapsed = self._estimator.tick(iterations)
        if elapsed is None:
            return False

        micro_elapsed, macro_elapsed = elapsed
        if macro_elapsed >= self._options.macro_ms:
            self.yield_ = deferred(self._tickets, self._estimator.mark_macro_checkpoint)
            log.debug("coop.yield.scheduled", tier="DEFERRED", macro_elapsed=macro_elapsed)
            return True

        micro_ms = self._options.micro_ms
        if micro_ms and micro_elapsed >= micro_ms:
            self.yield_ = immediate(self._estimator.mark_micro_checkpoint)
            log.debug("coop.yield.scheduled", tier="IMMEDIATE", micro_elapsed=micro_elapsed)
            return True

        return False

    async def checkpoint(self, iterations: int = 1) -> bool:
        """``check()`` and, if a yield is due, await it. Returns whether it yielded."""
        if self.check(iterations):
            await self.yield_
            return True
        return False

    def reset(self) -> None:
        """
        Restart timing and estimation, e.g. when beginning a new batch of work.

        The next ``check()`` reads the clock unconditionally and ``yield_`` is
        cleared.
        """
        self._estimator.reset()
        self.yield_ = None
        log.debug("coop.reset")

    def _raise_aborted(self, signal: Any) -> None:
        reason = signal.reason
        log.info("coop.aborted", reason=repr(reason))
        if isinstance(reason, BaseException):
            raise CancellationError(reason) from reason
        raise CancellationError(reason)

    def __repr__(self) -> str:
        return (
            f"<CoopYielder micro_ms={self.micro_ms} macro_ms={self.macro_ms} "
            f"state={self.state.name}>"
        )


def create_coop_yield(
    options: Optional[Mapping[str, Any] | CoopOptions] = None,
    *,
    clock: Optional[Callable[[], float]] = None,
    tickets: Optional[DeferredTicketCache] = None,
    **overrides: Any,
) -> CoopYielder:
    """
    Create a CoopYielder from partial options merged over the defaults.

    Example:
        yielder = create_coop_yield({"macro_ms": 20})   # micro_ms stays 8
        yielder = create_coop_yield(micro_ms=0)          # deferred tier only

    Raises:
        ConfigurationError: If the merged options are invalid.
    """
    if isinstance(options, CoopOptions):
        merged = options.merge(overrides)
    else:
        merged = CoopOptions().merge(options, **overrides)
    return CoopYielder(options=merged, clock=clock, tickets=tickets)

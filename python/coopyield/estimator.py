"""
Checkpoint estimator.

Predicts how many iterations may pass before reading the clock is worthwhile,
so a tight loop can call ``tick()`` every iteration and only pay for a
timestamp a few times per budget window.
"""

from __future__ import annotations

import math
import time
from typing import Callable, Optional, Tuple

from ._shared import INITIAL_RATE, MIN_ELAPSED_MS, SMOOTHING_ALPHA


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.monotonic() * 1000.0


class CheckpointEstimator:
    """
    Per-yielder iteration and clock accounting.

    The rate estimate is iterations per millisecond, smoothed 50/50 with the
    previous value once a prediction exists and floored to an integer. A rate
    of 0 is legal and means every tick reads the clock until it rises.

    Example:
        est = CheckpointEstimator(micro_ms=8, macro_ms=50)
        for item in work:
            ...
            elapsed = est.tick()
            if elapsed is not None and elapsed[1] >= est.macro_ms:
                ...
    """

    __slots__ = (
        "micro_ms",
        "macro_ms",
        "_clock",
        "micro_checkpoint_time",
        "macro_checkpoint_time",
        "iterations_since_check",
        "iterations_accumulated",
        "iterations_per_ms",
        "iterations_until_check",
    )

    def __init__(
        self,
        micro_ms: Optional[float],
        macro_ms: float,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            micro_ms: Immediate-tier budget, falsy when the tier is disabled.
            macro_ms: Deferred-tier budget.
            clock: Millisecond clock, ``monotonic_ms`` by default.
        """
        self.micro_ms = micro_ms or 0
        self.macro_ms = macro_ms
        self._clock = clock or monotonic_ms

        now = self._clock()
        self.micro_checkpoint_time = now
        self.macro_checkpoint_time = now
        self.iterations_since_check = 0
        self.iterations_accumulated = 0
        self.iterations_per_ms = INITIAL_RATE
        self.iterations_until_check: Optional[float] = None

    def tick(self, iterations: int = 1) -> Optional[Tuple[float, float]]:
        """
        Count ``iterations`` and read the clock if the prediction ran out.

        Returns:
            None on the fast path, otherwise ``(micro_elapsed, macro_elapsed)``
            with the estimate already refreshed.
        """
        self.iterations_since_check += iterations
        until = self.iterations_until_check
        if until is not None and self.iterations_since_check < until:
            return None

        self.iterations_accumulated += self.iterations_since_check
        now = self._clock()
        micro_elapsed = now - self.micro_checkpoint_time
        macro_elapsed = now - self.macro_checkpoint_time
        self._update(micro_elapsed, macro_elapsed)
        return micro_elapsed, macro_elapsed

    def _update(self, micro_elapsed: float, macro_elapsed: float) -> None:
        elapsed = micro_elapsed if micro_elapsed > 0 else MIN_ELAPSED_MS
        alpha = 1.0 if self.iterations_until_check is None else SMOOTHING_ALPHA
        estimate = (
            alpha * self.iterations_accumulated / elapsed
            + (1 - alpha) * self.iterations_per_ms
        )
        self.iterations_per_ms = math.floor(estimate)

        remaining = min(
            _window(self.micro_ms, micro_elapsed) if self.micro_ms else math.inf,
            _window(self.macro_ms, macro_elapsed),
        )
        self.iterations_until_check = max(remaining * self.iterations_per_ms, 1)
        # Reset even when no yield follows, so one overshoot does not keep
        # forcing clock reads.
        self.iterations_since_check = 0

    def mark_micro_checkpoint(self) -> None:
        """Re-baseline the immediate tier after an immediate-tier yield."""
        self.micro_checkpoint_time = self._clock()
        self.iterations_accumulated = 0
        self.iterations_since_check = 0

    def mark_macro_checkpoint(self) -> None:
        """Re-baseline both tiers after a deferred-tier yield."""
        now = self._clock()
        self.micro_checkpoint_time = now
        self.macro_checkpoint_time = now
        self.iterations_accumulated = 0
        self.iterations_since_check = 0

    def reset(self) -> None:
        """Re-baseline both tiers and forget the prediction."""
        self.mark_macro_checkpoint()
        self.iterations_until_check = None


def _window(budget: float, elapsed: float) -> float:
    # An expired window collapses back to the full budget.
    return budget - elapsed if budget > elapsed else budget

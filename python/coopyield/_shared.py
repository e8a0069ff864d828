# SPDX-License-Identifier: GPL-2.0-only
"""
coopyield shared constants and type definitions.

Defaults here are the documented values merged into ``CoopOptions`` before
validation. All budgets are in milliseconds.
"""

from enum import IntEnum

# ============================================================================
# Configuration Constants
# ============================================================================

DEFAULT_MICRO_MS = 8    # immediate-tier budget
DEFAULT_MACRO_MS = 50   # deferred-tier budget

# Elapsed time used for the rate estimate when the clock has not advanced.
MIN_ELAPSED_MS = 0.05

# Initial iterations-per-millisecond estimate.
INITIAL_RATE = 1

# Weight of the freshly observed rate once a prediction exists.
SMOOTHING_ALPHA = 0.5

ENV_PREFIX = "COOPYIELD_"


# ============================================================================
# Yield Tier
# ============================================================================

class YieldTier(IntEnum):
    """Which queue a scheduled yield resumes from."""
    IMMEDIATE = 1  # tail of the ready queue, before timers ("soon")
    DEFERRED = 2   # after the ready queue drains ("later")


# ============================================================================
# Yielder State Machine
# ============================================================================

class YielderState(IntEnum):
    """Lifecycle state of a CoopYielder."""
    IDLE = 0
    YIELD_SCHEDULED = 1  # a suspension is exposed and not yet completed
    ABORTED = 2          # terminal, every check() raises


# ============================================================================
# Option names (for env / mapping lookup)
# ============================================================================

OPTION_NAMES = {
    "micro_ms": "MICRO_MS",
    "macro_ms": "MACRO_MS",
    "abort": None,
}

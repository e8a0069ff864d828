"""
coopyield

Adaptive cooperative yielding for long-running loops on an asyncio event loop.
"""

from ._shared import (
    DEFAULT_MICRO_MS,
    DEFAULT_MACRO_MS,
    YieldTier,
    YielderState,
)
from .abort import AbortController, AbortSignal
from .config import CoopOptions
from .errors import CoopYieldError, ConfigurationError, CancellationError
from .estimator import CheckpointEstimator
from .tiers import TICKETS, DeferredTicketCache, Suspension, deferred, immediate, later, soon
from .yielder import CoopYielder, create_coop_yield
from .asyncio import coop_checkpoint, cooperate, force_yield

__version__ = "0.1.0"
__all__ = [
    # Core
    'CoopYielder',
    'create_coop_yield',
    'CoopOptions',
    'CheckpointEstimator',
    # Tiers
    'Suspension',
    'DeferredTicketCache',
    'TICKETS',
    'soon',
    'later',
    'immediate',
    'deferred',
    # Cancellation
    'AbortController',
    'AbortSignal',
    # Errors
    'CoopYieldError',
    'ConfigurationError',
    'CancellationError',
    # Asyncio helpers
    'coop_checkpoint',
    'cooperate',
    'force_yield',
    # Constants
    'DEFAULT_MICRO_MS',
    'DEFAULT_MACRO_MS',
    'YieldTier',
    'YielderState',
]

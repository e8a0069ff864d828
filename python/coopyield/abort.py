"""
Cancellation source consumed by CoopYielder.

The yielder only ever reads a signal. Anything exposing ``aborted`` and
``reason`` works, as does any event-like object with ``is_set()``
(``asyncio.Event``, ``threading.Event``).
"""

from __future__ import annotations

from typing import Any, Optional


class AbortSignal:
    """Read-only view of an AbortController."""

    __slots__ = ("_aborted", "_reason")

    def __init__(self) -> None:
        self._aborted = False
        self._reason: Optional[Any] = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> Optional[Any]:
        return self._reason

    def __repr__(self) -> str:
        return f"<AbortSignal aborted={self._aborted} reason={self._reason!r}>"


class AbortController:
    """
    Owner side of an AbortSignal.

    Example:
        controller = AbortController()
        yielder = CoopYielder(abort=controller.signal)
        ...
        controller.abort(TimeoutError("took too long"))
    """

    def __init__(self) -> None:
        self.signal = AbortSignal()

    def abort(self, reason: Optional[Any] = None) -> None:
        """Abort the signal. Irrevocable; later calls keep the first reason."""
        if self.signal._aborted:
            return
        self.signal._reason = reason
        self.signal._aborted = True


class _EventSignal:
    """Adapts an event with ``is_set()`` to the signal interface."""

    __slots__ = ("_event",)

    def __init__(self, event: Any) -> None:
        self._event = event

    @property
    def aborted(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> None:
        return None


def as_signal(source: Any) -> Optional[Any]:
    """Normalise a cancellation source, or return None if it is unusable."""
    if source is None:
        return None
    if hasattr(source, "aborted"):
        return source
    if callable(getattr(source, "is_set", None)):
        return _EventSignal(source)
    return None

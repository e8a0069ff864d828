"""
Yielder options.

Defaults are merged first and validated after, so a partial mapping such as
``{"macro_ms": 20}`` keeps the default immediate-tier budget.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from ._shared import DEFAULT_MACRO_MS, DEFAULT_MICRO_MS, ENV_PREFIX, OPTION_NAMES
from .abort import as_signal
from .errors import ConfigurationError


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class CoopOptions:
    """
    Options for a CoopYielder.

    Attributes:
        micro_ms: Immediate-tier budget in ms. 0 or None disables the tier.
        macro_ms: Deferred-tier budget in ms. Must be positive.
        abort: Cancellation signal, read-only.
    """

    micro_ms: Optional[float] = DEFAULT_MICRO_MS
    macro_ms: Optional[float] = DEFAULT_MACRO_MS
    abort: Optional[Any] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        macro = self.macro_ms
        if macro is None:
            raise ConfigurationError("macro_ms", macro, "macro_ms required")
        if not _is_number(macro) or math.isnan(macro) or macro <= 0:
            raise ConfigurationError(
                "macro_ms", macro, f"macro_ms must be a positive number, got {macro!r}"
            )

        micro = self.micro_ms
        if micro is not None:
            if not _is_number(micro) or math.isnan(micro) or micro < 0:
                raise ConfigurationError(
                    "micro_ms", micro,
                    f"micro_ms must be a non-negative number or None, got {micro!r}",
                )

        if self.abort is not None and as_signal(self.abort) is None:
            raise ConfigurationError(
                "abort", self.abort,
                "abort must expose 'aborted' or 'is_set()'",
            )

    @property
    def micro_enabled(self) -> bool:
        return bool(self.micro_ms)

    @property
    def signal(self) -> Optional[Any]:
        return as_signal(self.abort)

    def merge(self, overrides: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "CoopOptions":
        """Return a copy with ``overrides`` applied, validated."""
        values = dict(overrides or {})
        values.update(kwargs)
        known = {f.name for f in fields(self)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(unknown[0], values[unknown[0]], f"Unknown option(s): {', '.join(unknown)}")
        return replace(self, **values)

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: Any,
    ) -> "CoopOptions":
        """
        Build options from ``<prefix>MICRO_MS`` / ``<prefix>MACRO_MS``.

        Explicit ``overrides`` win over the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name, suffix in OPTION_NAMES.items():
            if suffix is None:
                continue
            raw = env.get(prefix + suffix)
            if raw is None or raw.strip() == "":
                continue
            try:
                values[name] = float(raw)
            except ValueError:
                raise ConfigurationError(name, raw, f"{prefix}{suffix} is not a number: {raw!r}") from None
        values.update(overrides)
        return cls().merge(values)

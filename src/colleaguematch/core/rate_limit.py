"""
In-process pacing for embedding provider calls.

Bulk regeneration embeds profiles one after another; the limiter keeps those calls
spaced out (`embedding.request_spacing_seconds`) so the provider's per-minute quota
is not exhausted in a burst.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class TokenBucketRateLimiter:
    """Token bucket allowing `max_per_minute` events, with an optional burst size."""

    max_per_minute: float
    burst: float | None = None
    # Total time spent sleeping in `acquire`, for run reports.
    waited_seconds: float = field(default=0.0, init=False)

    def __post_init__(self) -> None:
        rate = float(self.max_per_minute)
        if rate <= 0:
            raise ValueError("max_per_minute must be > 0")
        self._capacity = float(self.burst) if self.burst is not None else rate
        self._tokens = self._capacity
        self._per_second = rate / 60.0
        self._last = time.monotonic()

    @classmethod
    def from_spacing(cls, spacing_seconds: float) -> "TokenBucketRateLimiter":
        """One event every `spacing_seconds`, never two back to back."""
        spacing = float(spacing_seconds)
        if spacing <= 0:
            raise ValueError("spacing_seconds must be > 0")
        return cls(max_per_minute=60.0 / spacing, burst=1.0)

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self._last
        if elapsed > 0:
            self._tokens = min(self._capacity, self._tokens + elapsed * self._per_second)
            self._last = now

    def acquire(self, tokens: float = 1.0) -> float:
        """Block until `tokens` are available; returns the seconds slept for this call."""
        need = float(tokens)
        slept = 0.0
        if need <= 0:
            return slept

        self._refill()
        while self._tokens < need:
            pause = min(1.0, max(0.01, (need - self._tokens) / self._per_second))
            time.sleep(pause)
            slept += pause
            self._refill()

        self._tokens -= need
        self.waited_seconds += slept
        return slept

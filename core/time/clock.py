"""
Vitrine Core Time — Injectable Clock
======================================
Doctrine: NO datetime.now() inside engine logic.

Promotion validity windows and reward campaigns are evaluated
against "now". The engines never read the wall clock themselves:
a Clock is injected at construction, so a cart evaluated twice
with the same clock and snapshot yields the same result.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


# ══════════════════════════════════════════════════════════════
# CLOCK PROTOCOL
# ══════════════════════════════════════════════════════════════

class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        """Return current UTC time."""
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IMPLEMENTATIONS
# ══════════════════════════════════════════════════════════════

class SystemClock:
    """Production clock — real system time."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Test clock — returns a pinned timestamp.

    Usage:
        clock = FixedClock(datetime(2026, 2, 19, tzinfo=timezone.utc))
        engine = PromotionEngine(..., clock=clock)
        clock.advance(days=30)   # jump past a promotion end date
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, *, days: float = 0, seconds: float = 0) -> None:
        """Move the pinned time forward (multi-step scenarios)."""
        self._fixed_dt = self._fixed_dt + timedelta(days=days, seconds=seconds)

"""
Vitrine Core Time — Validity Windows
======================================
Pure functions for promotion validity intervals.
All functions take explicit datetime arguments — no hidden clock access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


# ══════════════════════════════════════════════════════════════
# VALIDITY WINDOW — [start, end] with optional open end
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ValidityWindow:
    """
    A closed interval [start, end], or [start, ∞) when end is None.

    Invariant: start <= end, both timezone-aware (enforced at construction).
    """

    start: datetime
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.start.tzinfo is None:
            raise ValueError("ValidityWindow requires timezone-aware start.")
        if self.end is not None and self.end.tzinfo is None:
            raise ValueError("ValidityWindow requires timezone-aware end.")
        if self.end is not None and self.start > self.end:
            raise ValueError(
                f"ValidityWindow start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, dt: datetime) -> bool:
        """Check if datetime falls within window (inclusive)."""
        if dt < self.start:
            return False
        return self.end is None or dt <= self.end

    def has_started(self, dt: datetime) -> bool:
        return self.start <= dt

    def has_ended(self, dt: datetime) -> bool:
        return self.end is not None and dt > self.end


# ══════════════════════════════════════════════════════════════
# PURE TEMPORAL FUNCTIONS
# ══════════════════════════════════════════════════════════════

def parse_datetime(value) -> datetime:
    """
    Parse an ISO-8601 string (or pass through a datetime).

    Naive values are taken as UTC; a trailing 'Z' is accepted.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Expected ISO datetime string, got {value!r}.")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_optional_datetime(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return parse_datetime(value)


def format_day(dt: datetime) -> str:
    """DD/MM/YYYY, as shown to shoppers."""
    return dt.strftime("%d/%m/%Y")

"""
Vitrine Core Time — Public API
================================
Explicit clock protocol and validity-window helpers.
Doctrine: NO datetime.now() in engine logic.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
)
from core.time.temporal import (
    ValidityWindow,
    format_day,
    parse_datetime,
    parse_optional_datetime,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "ValidityWindow",
    "format_day",
    "parse_datetime",
    "parse_optional_datetime",
]

"""
Vitrine Command Layer — Rejections
====================================
Refusals are first-class results: every refused promo code or
reward carries a structured, deterministic RejectionReason.
"""

from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "ReasonCode",
    "RejectionReason",
]

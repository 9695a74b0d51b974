"""
Vitrine Command Layer — Rejection Model
=========================================
Structured rejection reasons for refused promo codes and rewards.

Every rejection must be:
- Deterministic (same input → same rejection)
- Machine-readable (code)
- Human-readable (message, shown to the shopper as-is)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a refused request.

    Fields:
        code:           Machine-readable rejection code (e.g. 'MIN_AMOUNT_NOT_MET').
        message:        Human-readable explanation.
        policy_name:    Name of the policy that caused rejection.
        message_key:    Optional translation key.
        message_params: Optional values interpolated into message.
    """

    code: str
    message: str
    policy_name: str
    message_key: Optional[str] = None
    message_params: Optional[Mapping[str, Any]] = None

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes. Extensible by engines.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Promo codes ───────────────────────────────────────────
    INVALID_PROMO_CODE = "INVALID_PROMO_CODE"
    PROMOTION_NOT_STARTED = "PROMOTION_NOT_STARTED"
    PROMOTION_EXPIRED = "PROMOTION_EXPIRED"
    USAGE_LIMIT_REACHED = "USAGE_LIMIT_REACHED"

    # ── Cart conditions ───────────────────────────────────────
    MIN_AMOUNT_NOT_MET = "MIN_AMOUNT_NOT_MET"
    MIN_QUANTITY_NOT_MET = "MIN_QUANTITY_NOT_MET"
    INVALID_CART_TOTAL = "INVALID_CART_TOTAL"

    # ── Loyalty ───────────────────────────────────────────────
    REWARD_NOT_FOUND = "REWARD_NOT_FOUND"
    REWARD_NOT_APPLICABLE = "REWARD_NOT_APPLICABLE"
    LOYALTY_DISABLED = "LOYALTY_DISABLED"

    # ── Transport ─────────────────────────────────────────────
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"

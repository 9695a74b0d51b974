"""
Vitrine Promotion Engine — Eligibility Evaluator
==================================================
One verdict per (promotion, cart) pair, in three states:

    ELIGIBLE    all checks pass, hand over to the calculator
    CLOSE       only a min_amount / min_quantity threshold is unmet,
                and the gap is within the nudge ratio
    INELIGIBLE  anything else (excluded silently)

Hard failures (inactive, outside the window, usage caps, code
mismatch, segment) never produce a nudge: the shopper cannot
fix them by adding to the cart.

The evaluator never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from engines.promotion.context import EvaluationContext
from engines.promotion.models import Promotion, UserSegment
from engines.promotion.repository import OrderHistory
from engines.promotion.results import ProgressType

logger = logging.getLogger("vitrine.promotion")


class EligibilityStatus(Enum):
    ELIGIBLE = "ELIGIBLE"
    CLOSE = "CLOSE"
    INELIGIBLE = "INELIGIBLE"


@dataclass(frozen=True)
class UnmetThreshold:
    kind: ProgressType
    current: float
    target: float

    @property
    def remaining(self) -> float:
        return self.target - self.current


@dataclass(frozen=True)
class EligibilityOutcome:
    status: EligibilityStatus
    reason: str = ""
    threshold: Optional[UnmetThreshold] = None

    @property
    def is_eligible(self) -> bool:
        return self.status == EligibilityStatus.ELIGIBLE


ELIGIBLE = EligibilityOutcome(EligibilityStatus.ELIGIBLE)


def _ineligible(reason: str, threshold: Optional[UnmetThreshold] = None) -> EligibilityOutcome:
    return EligibilityOutcome(EligibilityStatus.INELIGIBLE, reason, threshold)


class EligibilityEvaluator:
    def __init__(self, order_history: Optional[OrderHistory] = None):
        self._order_history = order_history

    # ── Hard checks ───────────────────────────────────────────

    def _validity_failure(self, promotion: Promotion, context: EvaluationContext) -> Optional[str]:
        if not promotion.is_active:
            return "inactive"
        if not promotion.validity.has_started(context.now):
            return "not_started"
        if promotion.validity.has_ended(context.now):
            return "expired"
        if promotion.usage_exhausted:
            return "usage_limit_reached"
        return None

    def segment_allows(self, segment: Optional[UserSegment], context: EvaluationContext) -> bool:
        if segment is None or segment == UserSegment.ALL:
            return True
        orders = context.prior_order_count
        if segment == UserSegment.FIRST_PURCHASE:
            return orders == 0
        if segment == UserSegment.RETURNING:
            return orders >= 1
        return orders >= context.settings.vip_min_orders

    def _per_user_allows(self, promotion: Promotion, context: EvaluationContext) -> bool:
        cap = promotion.conditions.max_usage_per_user
        if cap is None or context.user_id is None or self._order_history is None:
            return True
        used = self._order_history.count_promotion_uses(context.user_id, promotion.id)
        return used < cap

    # ── Thresholds ────────────────────────────────────────────

    def unmet_thresholds(self, promotion: Promotion, context: EvaluationContext) -> List[UnmetThreshold]:
        conditions = promotion.conditions
        unmet: List[UnmetThreshold] = []
        if conditions.min_amount is not None and context.subtotal < conditions.min_amount:
            unmet.append(UnmetThreshold(
                kind=ProgressType.AMOUNT,
                current=context.subtotal,
                target=conditions.min_amount,
            ))
        quantity = context.total_quantity
        if conditions.min_quantity is not None and quantity < conditions.min_quantity:
            unmet.append(UnmetThreshold(
                kind=ProgressType.QUANTITY,
                current=quantity,
                target=conditions.min_quantity,
            ))
        return unmet

    # ── Verdict ───────────────────────────────────────────────

    def evaluate(self, promotion: Promotion, context: EvaluationContext) -> EligibilityOutcome:
        failure = self._validity_failure(promotion, context)
        if failure is not None:
            return _ineligible(failure)

        if promotion.is_code and not promotion.matches_code(context.promo_code):
            return _ineligible("code_mismatch")

        if not self.segment_allows(promotion.conditions.user_segment, context):
            return _ineligible("user_segment")

        if not self._per_user_allows(promotion, context):
            return _ineligible("per_user_limit")

        unmet = self.unmet_thresholds(promotion, context)
        if not unmet:
            return ELIGIBLE

        ratio = context.settings.progress_threshold_ratio
        for threshold in unmet:
            if threshold.remaining <= threshold.target * ratio:
                return EligibilityOutcome(EligibilityStatus.CLOSE, "threshold_close", threshold)
        return _ineligible("threshold_far", unmet[0])

"""
Vitrine Promotion Engine — Stacking & Priority Resolver
=========================================================
Folds per-promotion computations into one cart result.

RULES (NON-NEGOTIABLE):
- Candidates are visited by descending priority; equal priorities
  keep their input order (stable sort)
- Free shipping is a flag: it is set whatever the stacking rules,
  and free-shipping promotions never compete for the exclusive slot
- Zero-amount computations are never applied
- Stackable promotions always apply and accumulate
- At most ONE non-stackable promotion is applied: a later one
  replaces it only when its discount is strictly greater
- total_discount is rounded to the configured decimals and >= 0
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from core.config.rules import PromotionSettings
from engines.promotion.calculator import DiscountComputation
from engines.promotion.models import Promotion
from engines.promotion.results import (
    AppliedPromotion,
    CartPromotionResult,
    ItemDiscount,
    PromotionProgress,
)

logger = logging.getLogger("vitrine.promotion")

Candidate = Tuple[Promotion, DiscountComputation]


class StackingInvariantError(RuntimeError):
    """More than one non-stackable promotion ended up applied."""


def order_by_priority(promotions: Iterable[Promotion]) -> List[Promotion]:
    return sorted(promotions, key=lambda p: -p.priority)


class StackingResolver:
    def __init__(self, settings: Optional[PromotionSettings] = None):
        self._settings = settings or PromotionSettings()

    def _applied(self, promotion: Promotion, computation: DiscountComputation) -> AppliedPromotion:
        round_money = self._settings.round_money
        return AppliedPromotion(
            promotion=promotion,
            discount_amount=max(0.0, round_money(computation.amount)),
            message=computation.message,
            free_shipping=computation.free_shipping or promotion.grants_free_shipping,
            affected_items=computation.affected_items,
            item_discounts=tuple(
                ItemDiscount(product_id=pid, amount=round_money(amount))
                for pid, amount in computation.item_discounts
            ),
        )

    def resolve(
        self,
        candidates: Sequence[Candidate],
        progress: Sequence[PromotionProgress] = (),
    ) -> CartPromotionResult:
        ordered = sorted(candidates, key=lambda c: -c[0].priority)

        applied: List[AppliedPromotion] = []
        exclusive: Optional[AppliedPromotion] = None
        free_shipping = False

        for promotion, computation in ordered:
            if promotion.grants_free_shipping or computation.free_shipping:
                free_shipping = True
                if computation.amount <= 0:
                    applied.append(self._applied(promotion, computation))
                    logger.debug(f"Free shipping granted by promotion {promotion.id}")
                    continue

            entry = self._applied(promotion, computation)
            if entry.discount_amount <= 0:
                logger.debug(f"Promotion {promotion.id} yields no discount, skipped")
                continue

            if promotion.is_stackable:
                applied.append(entry)
                continue

            if exclusive is None:
                exclusive = entry
                applied.append(entry)
                continue

            if entry.discount_amount > exclusive.discount_amount:
                logger.debug(
                    f"Promotion {promotion.id} ({entry.discount_amount}) replaces "
                    f"{exclusive.promotion.id} ({exclusive.discount_amount})"
                )
                applied.remove(exclusive)
                exclusive = entry
                applied.append(entry)
            else:
                logger.debug(
                    f"Promotion {promotion.id} ({entry.discount_amount}) loses to "
                    f"{exclusive.promotion.id} ({exclusive.discount_amount})"
                )

        self._check_single_exclusive(applied)

        total = self._settings.round_money(sum(a.discount_amount for a in applied))
        return CartPromotionResult(
            applied_promotions=tuple(applied),
            progress_indicators=tuple(progress),
            total_discount=max(0.0, total),
            free_shipping=free_shipping,
        )

    def _check_single_exclusive(self, applied: Sequence[AppliedPromotion]) -> None:
        exclusive = [
            a for a in applied
            if not a.promotion.is_stackable and a.discount_amount > 0
        ]
        if len(exclusive) > 1:
            ids = ", ".join(str(a.promotion.id) for a in exclusive)
            raise StackingInvariantError(
                f"Several non-stackable promotions applied: {ids}."
            )

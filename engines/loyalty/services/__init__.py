"""
Vitrine Loyalty Engine — Reward Redemption Calculator
=======================================================
Points earned on an order, and what a redeemed reward is worth.

RULES (NON-NEGOTIABLE):
- A reward never discounts more than the cart total
- A reward amount is never negative
- Percent rewards: min(total × percent / 100, cap), 2 decimals;
  a zero or missing cap means uncapped
- Inactive rewards and empty carts yield no effect (None)
- Rounding is half-up, as shoppers see it on receipts
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from core.config.rules import ConfigStore, InMemoryConfigStore, LoyaltySettings
from engines.loyalty.rewards import AppliedRewardDiscount, FidelityReward, RewardType

logger = logging.getLogger("vitrine.loyalty")


def _round_half_up(value: float, places: int = 0) -> float:
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


class RewardCalculator:
    def __init__(self, config: Optional[ConfigStore] = None):
        self._config = config or InMemoryConfigStore()

    @property
    def settings(self) -> LoyaltySettings:
        return self._config.get_loyalty_settings()

    # ── Earning ───────────────────────────────────────────────

    @staticmethod
    def points_for(amount: float, rate_per_euro: float) -> int:
        """Points earned for `amount`, rounded half-up."""
        if amount <= 0 or rate_per_euro <= 0:
            return 0
        return int(_round_half_up(amount * rate_per_euro))

    def points_for_order(self, order_total: float) -> int:
        settings = self.settings
        if not settings.enabled:
            return 0
        return self.points_for(order_total, settings.rate_per_euro)

    # ── Redemption ────────────────────────────────────────────

    def apply_reward(
        self, reward: FidelityReward, cart_total: float,
    ) -> Optional[AppliedRewardDiscount]:
        if not reward.is_active or cart_total <= 0:
            return None

        if reward.type == RewardType.SHIPPING:
            return AppliedRewardDiscount(type=RewardType.SHIPPING, free_shipping=True)

        if reward.type == RewardType.AMOUNT:
            return AppliedRewardDiscount(
                type=RewardType.AMOUNT,
                amount=min(reward.value, cart_total),
            )

        if reward.type == RewardType.PERCENT:
            raw = cart_total * reward.value / 100
            capped = min(raw, reward.percent_cap) if reward.percent_cap else raw
            return AppliedRewardDiscount(
                type=RewardType.PERCENT,
                percent=reward.value,
                cap=reward.percent_cap,
                amount=_round_half_up(min(capped, cart_total), 2),
            )

        if reward.gift_product_id is None:
            logger.warning(f"Gift reward {reward.id} has no gift product configured")
            return None
        return AppliedRewardDiscount(
            type=RewardType.GIFT,
            gift_product_id=reward.gift_product_id,
        )

    @staticmethod
    def calculate_final_amount(
        total: float, discount: Optional[AppliedRewardDiscount],
    ) -> float:
        if discount is None or discount.amount is None:
            return total
        return max(0.0, _round_half_up(total - discount.amount, 2))

    # ── Catalog queries ───────────────────────────────────────

    @staticmethod
    def find_next_reward(
        points: int, rewards: Sequence[FidelityReward],
    ) -> Optional[FidelityReward]:
        """Cheapest active reward the shopper cannot afford yet."""
        locked = [r for r in rewards if r.is_active and r.points_required > points]
        if not locked:
            return None
        return min(locked, key=lambda r: r.points_required)

    @staticmethod
    def find_available_rewards(
        points: int, rewards: Sequence[FidelityReward],
    ) -> List[FidelityReward]:
        """Affordable active rewards, most expensive first."""
        affordable = [r for r in rewards if r.is_active and r.points_required <= points]
        return sorted(affordable, key=lambda r: -r.points_required)

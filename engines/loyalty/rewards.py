"""
Vitrine Loyalty Engine — Rewards
==================================
Reward definitions a shopper can redeem with loyalty points,
and the bounded effect a redeemed reward has on a cart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

from engines.promotion.models import Identifier


class RewardType(Enum):
    SHIPPING = "shipping"  # free delivery
    AMOUNT = "amount"      # fixed amount off
    PERCENT = "percent"    # percentage off, optionally capped
    GIFT = "gift"          # a free product


@dataclass(frozen=True)
class FidelityReward:
    id: Identifier
    type: RewardType
    points_required: int
    label: str
    value: float = 0.0
    percent_cap: Optional[float] = None
    gift_product_id: Optional[Identifier] = None
    description: Optional[str] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.type, RewardType):
            raise ValueError("type must be RewardType.")
        if self.points_required < 0:
            raise ValueError(
                f"points_required cannot be negative, got {self.points_required}."
            )
        if self.value < 0:
            raise ValueError(f"value cannot be negative, got {self.value}.")
        if self.percent_cap is not None and self.percent_cap < 0:
            raise ValueError(f"percent_cap cannot be negative, got {self.percent_cap}.")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "points_required": self.points_required,
            "value": self.value,
            "percent_cap": self.percent_cap,
            "gift_product_id": self.gift_product_id,
            "label": self.label,
            "description": self.description,
            "is_active": self.is_active,
        }


def reward_from_dict(record: Mapping) -> FidelityReward:
    cap = record.get("percent_cap")
    return FidelityReward(
        id=record["id"],
        type=RewardType(record["type"]),
        points_required=int(record["points_required"]),
        label=record["label"],
        value=float(record.get("value") or 0),
        percent_cap=float(cap) if cap is not None else None,
        gift_product_id=record.get("gift_product_id"),
        description=record.get("description"),
        is_active=bool(record.get("is_active", True)),
    )


@dataclass(frozen=True)
class AppliedRewardDiscount:
    """
    Effect of one redeemed reward. Only the fields relevant to the
    reward type are meaningful; to_dict() emits exactly those.
    """

    type: RewardType
    amount: Optional[float] = None
    percent: Optional[float] = None
    cap: Optional[float] = None
    free_shipping: bool = False
    gift_product_id: Optional[Identifier] = None

    def to_dict(self) -> dict:
        if self.type == RewardType.SHIPPING:
            return {"free_shipping": True}
        if self.type == RewardType.AMOUNT:
            return {"amount": self.amount}
        if self.type == RewardType.PERCENT:
            return {"percent": self.percent, "cap": self.cap, "amount": self.amount}
        return {"gift_product_id": self.gift_product_id}


# ══════════════════════════════════════════════════════════════
# REWARD CATALOG
# ══════════════════════════════════════════════════════════════

class RewardCatalog(Protocol):
    def get_all(self) -> List[FidelityReward]:
        ...  # pragma: no cover

    def get_by_id(self, reward_id: Identifier) -> Optional[FidelityReward]:
        ...  # pragma: no cover


class InMemoryRewardCatalog:
    def __init__(self, rewards: Iterable[FidelityReward] = ()) -> None:
        self._rewards: Dict[Identifier, FidelityReward] = {r.id: r for r in rewards}

    def get_all(self) -> List[FidelityReward]:
        return list(self._rewards.values())

    def get_by_id(self, reward_id: Identifier) -> Optional[FidelityReward]:
        return self._rewards.get(reward_id)

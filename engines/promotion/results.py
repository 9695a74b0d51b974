"""
Vitrine Promotion Engine — Result Values
==========================================
Explainable, JSON-serializable outputs of the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from core.commands.rejection import RejectionReason
from engines.promotion.models import Identifier, Promotion


class ProgressType(Enum):
    AMOUNT = "amount"
    QUANTITY = "quantity"
    BUY_X_GET_Y = "buy-x-get-y"


# ══════════════════════════════════════════════════════════════
# CART EVALUATION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ItemDiscount:
    product_id: Identifier
    amount: float

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "amount": self.amount}


@dataclass(frozen=True)
class AppliedPromotion:
    promotion: Promotion
    discount_amount: float
    message: str
    free_shipping: bool = False
    affected_items: Tuple[Identifier, ...] = ()
    item_discounts: Tuple[ItemDiscount, ...] = ()

    def __post_init__(self) -> None:
        if self.discount_amount < 0:
            raise ValueError(
                f"discount_amount cannot be negative, got {self.discount_amount}."
            )

    def to_dict(self) -> dict:
        return {
            "promotion": self.promotion.to_dict(),
            "discount_amount": self.discount_amount,
            "message": self.message,
            "free_shipping": self.free_shipping,
            "affected_items": list(self.affected_items),
            "item_discounts": [d.to_dict() for d in self.item_discounts],
        }


@dataclass(frozen=True)
class PromotionProgress:
    """A locked promotion the shopper is close to unlocking."""
    promotion: Promotion
    type: ProgressType
    current: float
    target: float
    remaining: float
    message: str
    is_unlocked: bool = False

    def to_dict(self) -> dict:
        return {
            "promotion": self.promotion.to_dict(),
            "type": self.type.value,
            "current": self.current,
            "target": self.target,
            "remaining": self.remaining,
            "is_unlocked": self.is_unlocked,
            "message": self.message,
        }


@dataclass(frozen=True)
class CartPromotionResult:
    applied_promotions: Tuple[AppliedPromotion, ...]
    progress_indicators: Tuple[PromotionProgress, ...]
    total_discount: float
    free_shipping: bool

    def to_dict(self) -> dict:
        return {
            "applied_promotions": [a.to_dict() for a in self.applied_promotions],
            "progress_indicators": [p.to_dict() for p in self.progress_indicators],
            "total_discount": self.total_discount,
            "free_shipping": self.free_shipping,
        }


# ══════════════════════════════════════════════════════════════
# PRODUCT PAGE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BestProductDiscount:
    promotion: Promotion
    discount_amount: float
    final_price: float

    def to_dict(self) -> dict:
        return {
            "promotion": self.promotion.to_dict(),
            "discount_amount": self.discount_amount,
            "final_price": self.final_price,
        }


@dataclass(frozen=True)
class ProductPromotion:
    promotions: Tuple[Promotion, ...]
    best_discount: Optional[BestProductDiscount] = None

    def to_dict(self) -> dict:
        return {
            "promotions": [p.to_dict() for p in self.promotions],
            "best_discount": self.best_discount.to_dict() if self.best_discount else None,
        }


# ══════════════════════════════════════════════════════════════
# PROMO CODES
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PromotionApplicationResult:
    success: bool
    message: str
    discount_amount: float = 0.0
    promotion: Optional[Promotion] = None
    free_shipping: bool = False
    affected_items: Tuple[Identifier, ...] = ()
    rejection: Optional[RejectionReason] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "discount_amount": self.discount_amount,
            "promotion": self.promotion.to_dict() if self.promotion else None,
            "free_shipping": self.free_shipping,
            "affected_items": list(self.affected_items),
        }


@dataclass(frozen=True)
class CodeValidationResult:
    valid: bool
    promotion: Optional[Promotion] = None
    reason: Optional[RejectionReason] = None

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "promotion": self.promotion.to_dict() if self.promotion else None,
            "message": self.reason.message if self.reason else None,
        }


# ══════════════════════════════════════════════════════════════
# SUBSCRIPTIONS / STATS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SubscriptionPrice:
    base_price: float
    final_price: float
    discount: float
    promotion: Optional[Promotion] = None

    def to_dict(self) -> dict:
        return {
            "base_price": self.base_price,
            "final_price": self.final_price,
            "discount": self.discount,
            "promotion": self.promotion.to_dict() if self.promotion else None,
        }


@dataclass(frozen=True)
class PromotionStats:
    total: int
    active: int
    code: int
    automatic: int

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "active": self.active,
            "code": self.code,
            "automatic": self.automatic,
        }

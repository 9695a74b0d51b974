"""
Vitrine Promotion Engine — Domain Model
=========================================
Immutable promotion rules and the read-only catalog snapshot they
are evaluated against.

RULES (NON-NEGOTIABLE):
- Every promotion carries exactly ONE target, and the target class
  is selected by the scope (tagged union keyed by scope)
- A buy-x-get-y target cannot be built without its buy/get config
- The discount is tagged by DiscountType; free_shipping has no amount
- Amounts are floats in the shop currency, rounded only at the edges
- Nothing here mutates; the engine returns new value objects
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar, Dict, Optional, Tuple, Union

from core.time.temporal import ValidityWindow

Identifier = Union[int, str]


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class PromotionType(Enum):
    AUTOMATIC = "automatic"  # applied without shopper action
    CODE = "code"            # requires the shopper to type a code


class Scope(Enum):
    PRODUCT = "product"
    CATEGORY = "category"
    SUBCATEGORY = "subcategory"
    FORMAT = "format"
    SITE_WIDE = "site-wide"
    CART = "cart"
    SHIPPING = "shipping"
    USER_SEGMENT = "user-segment"
    BUY_X_GET_Y = "buy-x-get-y"
    SUBSCRIPTION = "subscription"


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"
    FREE_SHIPPING = "free_shipping"


class ApplicationStrategy(Enum):
    ALL = "all"
    CHEAPEST = "cheapest"
    MOST_EXPENSIVE = "most-expensive"
    PROPORTIONAL = "proportional"
    NON_PROMO_ONLY = "non-promo-only"


class UserSegment(Enum):
    ALL = "all"
    FIRST_PURCHASE = "first-purchase"
    RETURNING = "returning"
    VIP = "vip"


class GiftSelection(Enum):
    CHEAPEST = "cheapest"
    MOST_EXPENSIVE = "most-expensive"


# Scopes shown on a product page (no cart context needed).
PRODUCT_LEVEL_SCOPES = frozenset({
    Scope.SITE_WIDE,
    Scope.PRODUCT,
    Scope.CATEGORY,
    Scope.SUBCATEGORY,
    Scope.FORMAT,
})


# ══════════════════════════════════════════════════════════════
# DISCOUNT (tagged by DiscountType)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Discount:
    type: DiscountType
    value: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.type, DiscountType):
            raise ValueError("type must be DiscountType.")
        if self.value < 0:
            raise ValueError(f"Discount value cannot be negative, got {self.value}.")
        if self.type == DiscountType.PERCENTAGE and self.value > 100:
            raise ValueError(f"Percentage cannot exceed 100, got {self.value}.")

    @property
    def grants_free_shipping(self) -> bool:
        return self.type == DiscountType.FREE_SHIPPING

    def amount_for(self, base: float) -> float:
        """
        Monetary discount on `base`.
        Fixed discounts are capped at the base; never negative.
        """
        if base <= 0 or self.type == DiscountType.FREE_SHIPPING:
            return 0.0
        if self.type == DiscountType.PERCENTAGE:
            return base * self.value / 100
        return min(self.value, base)

    def to_dict(self) -> dict:
        return {"discount_type": self.type.value, "discount_value": self.value}


@dataclass(frozen=True)
class ProgressiveTier:
    """A cart tier: from min_amount upwards, apply discount."""
    min_amount: float
    discount: Discount

    def __post_init__(self) -> None:
        if self.min_amount < 0:
            raise ValueError("Tier min_amount cannot be negative.")
        if self.discount.type == DiscountType.FREE_SHIPPING:
            raise ValueError("Progressive tiers must be percentage or fixed.")

    def to_dict(self) -> dict:
        return {"min_amount": self.min_amount, **self.discount.to_dict()}


@dataclass(frozen=True)
class BuyXGetYConfig:
    buy_quantity: int
    get_quantity: int
    apply_on: GiftSelection = GiftSelection.CHEAPEST

    def __post_init__(self) -> None:
        if self.buy_quantity < 1:
            raise ValueError(f"buy_quantity must be >= 1, got {self.buy_quantity}.")
        if self.get_quantity < 1:
            raise ValueError(f"get_quantity must be >= 1, got {self.get_quantity}.")

    @property
    def set_size(self) -> int:
        return self.buy_quantity + self.get_quantity

    def to_dict(self) -> dict:
        return {
            "buy_quantity": self.buy_quantity,
            "get_quantity": self.get_quantity,
            "apply_on": self.apply_on.value,
        }


# ══════════════════════════════════════════════════════════════
# CONDITIONS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PromotionConditions:
    min_amount: Optional[float] = None
    min_quantity: Optional[int] = None
    max_usage_per_user: Optional[int] = None
    max_usage_total: Optional[int] = None
    user_segment: Optional[UserSegment] = None
    exclude_promoted_products: bool = False

    def to_dict(self) -> dict:
        return {
            "min_amount": self.min_amount,
            "min_quantity": self.min_quantity,
            "max_usage_per_user": self.max_usage_per_user,
            "max_usage_total": self.max_usage_total,
            "user_segment": self.user_segment.value if self.user_segment else None,
            "exclude_promoted_products": self.exclude_promoted_products,
        }


# ══════════════════════════════════════════════════════════════
# TARGETS (one class per scope)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProductTarget:
    scope: ClassVar[Scope] = Scope.PRODUCT
    product_ids: Tuple[Identifier, ...] = ()

    def to_dict(self) -> dict:
        return {"product_ids": list(self.product_ids)}


@dataclass(frozen=True)
class CategoryTarget:
    scope: ClassVar[Scope] = Scope.CATEGORY
    category_slugs: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"category_slugs": list(self.category_slugs)}


@dataclass(frozen=True)
class SubCategoryTarget:
    scope: ClassVar[Scope] = Scope.SUBCATEGORY
    sub_category_slugs: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"sub_category_slugs": list(self.sub_category_slugs)}


@dataclass(frozen=True)
class FormatTarget:
    scope: ClassVar[Scope] = Scope.FORMAT
    format_ids: Tuple[Identifier, ...] = ()

    def to_dict(self) -> dict:
        return {"format_ids": list(self.format_ids)}


@dataclass(frozen=True)
class SiteWideTarget:
    scope: ClassVar[Scope] = Scope.SITE_WIDE

    def to_dict(self) -> dict:
        return {}


@dataclass(frozen=True)
class CartTarget:
    scope: ClassVar[Scope] = Scope.CART
    progressive_tiers: Tuple[ProgressiveTier, ...] = ()

    def to_dict(self) -> dict:
        return {"progressive_tiers": [t.to_dict() for t in self.progressive_tiers]}


@dataclass(frozen=True)
class ShippingTarget:
    scope: ClassVar[Scope] = Scope.SHIPPING

    def to_dict(self) -> dict:
        return {}


@dataclass(frozen=True)
class UserSegmentTarget:
    scope: ClassVar[Scope] = Scope.USER_SEGMENT

    def to_dict(self) -> dict:
        return {}


@dataclass(frozen=True)
class BuyXGetYTarget:
    config: BuyXGetYConfig
    product_ids: Tuple[Identifier, ...] = ()
    scope: ClassVar[Scope] = Scope.BUY_X_GET_Y

    def __post_init__(self) -> None:
        if not isinstance(self.config, BuyXGetYConfig):
            raise ValueError("buy-x-get-y target requires a BuyXGetYConfig.")

    def to_dict(self) -> dict:
        return {
            "buy_x_get_y_config": self.config.to_dict(),
            "product_ids": list(self.product_ids),
        }


@dataclass(frozen=True)
class SubscriptionTarget:
    scope: ClassVar[Scope] = Scope.SUBSCRIPTION
    subscription_plan_ids: Tuple[Identifier, ...] = ()

    def to_dict(self) -> dict:
        return {"subscription_plan_ids": list(self.subscription_plan_ids)}


PromotionTarget = Union[
    ProductTarget,
    CategoryTarget,
    SubCategoryTarget,
    FormatTarget,
    SiteWideTarget,
    CartTarget,
    ShippingTarget,
    UserSegmentTarget,
    BuyXGetYTarget,
    SubscriptionTarget,
]

TARGET_TYPES: Dict[Scope, type] = {
    Scope.PRODUCT: ProductTarget,
    Scope.CATEGORY: CategoryTarget,
    Scope.SUBCATEGORY: SubCategoryTarget,
    Scope.FORMAT: FormatTarget,
    Scope.SITE_WIDE: SiteWideTarget,
    Scope.CART: CartTarget,
    Scope.SHIPPING: ShippingTarget,
    Scope.USER_SEGMENT: UserSegmentTarget,
    Scope.BUY_X_GET_Y: BuyXGetYTarget,
    Scope.SUBSCRIPTION: SubscriptionTarget,
}


# ══════════════════════════════════════════════════════════════
# PROMOTION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Promotion:
    """
    An immutable promotion rule.

    The scope is not stored separately: it is the target's tag,
    so a promotion can never disagree with its own targeting data.
    """

    id: Identifier
    name: str
    type: PromotionType
    target: PromotionTarget
    discount: Discount
    validity: ValidityWindow
    is_active: bool = True
    is_stackable: bool = False
    priority: int = 0
    code: Optional[str] = None
    description: Optional[str] = None
    application_strategy: ApplicationStrategy = ApplicationStrategy.ALL
    conditions: PromotionConditions = field(default_factory=PromotionConditions)
    current_usage: int = 0

    def __post_init__(self) -> None:
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        if not isinstance(self.type, PromotionType):
            raise ValueError("type must be PromotionType.")
        if type(self.target) not in TARGET_TYPES.values():
            raise ValueError(f"Unsupported promotion target: {self.target!r}.")
        if self.type == PromotionType.CODE and not self.code:
            raise ValueError("Code promotions require a code.")
        if self.current_usage < 0:
            raise ValueError("current_usage cannot be negative.")

    # ── Derived attributes ────────────────────────────────────

    @property
    def scope(self) -> Scope:
        return self.target.scope

    @property
    def start_date(self) -> datetime:
        return self.validity.start

    @property
    def end_date(self) -> Optional[datetime]:
        return self.validity.end

    @property
    def is_code(self) -> bool:
        return self.type == PromotionType.CODE

    @property
    def grants_free_shipping(self) -> bool:
        return self.scope == Scope.SHIPPING or self.discount.grants_free_shipping

    @property
    def usage_exhausted(self) -> bool:
        cap = self.conditions.max_usage_total
        return cap is not None and self.current_usage >= cap

    def matches_code(self, code: Optional[str]) -> bool:
        """Case-insensitive exact match; automatic promotions never match."""
        if not self.is_code or not code:
            return False
        return self.code.strip().upper() == code.strip().upper()

    def is_valid_at(self, now: datetime) -> bool:
        """Activation, validity window and global usage cap."""
        return (
            self.is_active
            and self.validity.contains(now)
            and not self.usage_exhausted
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "code": self.code,
            "scope": self.scope.value,
            **self.discount.to_dict(),
            "application_strategy": self.application_strategy.value,
            "is_stackable": self.is_stackable,
            "priority": self.priority,
            "conditions": self.conditions.to_dict(),
            "start_date": self.validity.start.isoformat(),
            "end_date": self.validity.end.isoformat() if self.validity.end else None,
            "is_active": self.is_active,
            "current_usage": self.current_usage,
            **self.target.to_dict(),
        }


# ══════════════════════════════════════════════════════════════
# CATALOG SNAPSHOT (consumed, read-only)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Variant:
    id: Identifier
    format_id: Identifier
    price: Optional[float] = None


@dataclass(frozen=True)
class Product:
    id: Identifier
    name: str
    original_price: float
    category_id: Optional[Identifier] = None
    sub_category_ids: Tuple[Identifier, ...] = ()
    variants: Tuple[Variant, ...] = ()
    format_id: Optional[Identifier] = None
    reduced_price: Optional[float] = None
    stock: int = 0

    def __post_init__(self) -> None:
        if self.original_price < 0:
            raise ValueError(f"original_price cannot be negative, got {self.original_price}.")

    @property
    def effective_price(self) -> float:
        """Price the shopper currently pays before promotions."""
        return self.reduced_price if self.reduced_price is not None else self.original_price

    @property
    def has_promoted_price(self) -> bool:
        return self.reduced_price is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "original_price": self.original_price,
            "reduced_price": self.reduced_price,
            "category_id": self.category_id,
            "sub_category_ids": list(self.sub_category_ids),
            "format_id": self.format_id,
            "variants": [
                {"id": v.id, "format_id": v.format_id, "price": v.price}
                for v in self.variants
            ],
            "stock": self.stock,
        }


@dataclass(frozen=True)
class SubCategory:
    id: Identifier
    slug: str
    name: str = ""


@dataclass(frozen=True)
class Category:
    id: Identifier
    slug: str
    name: str = ""
    sub_categories: Tuple[SubCategory, ...] = ()


@dataclass(frozen=True)
class CartItem:
    product_id: Identifier
    unit_price: float
    qty: int

    def __post_init__(self) -> None:
        if self.unit_price < 0:
            raise ValueError(f"unit_price cannot be negative, got {self.unit_price}.")
        if not isinstance(self.qty, int) or self.qty < 0:
            raise ValueError(f"qty must be a non-negative integer, got {self.qty!r}.")

    @property
    def line_total(self) -> float:
        return self.unit_price * self.qty

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "unit_price": self.unit_price, "qty": self.qty}


def total_quantity(items) -> int:
    return sum(item.qty for item in items)

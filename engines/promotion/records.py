"""
Vitrine Promotion Engine — Record Parsing
===========================================
Builds domain objects from plain dict records (JSON bodies,
fixtures, seeded catalogs). Keys are snake_case.

A record that cannot be turned into a valid Promotion raises
PromotionConfigError; loaders decide whether to skip or fail.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping

from core.time.temporal import ValidityWindow, parse_datetime, parse_optional_datetime
from engines.promotion.models import (
    ApplicationStrategy,
    BuyXGetYConfig,
    BuyXGetYTarget,
    CartItem,
    CartTarget,
    Category,
    CategoryTarget,
    Discount,
    DiscountType,
    FormatTarget,
    GiftSelection,
    Product,
    ProductTarget,
    ProgressiveTier,
    Promotion,
    PromotionConditions,
    PromotionType,
    Scope,
    ShippingTarget,
    SiteWideTarget,
    SubCategory,
    SubCategoryTarget,
    SubscriptionTarget,
    UserSegment,
    UserSegmentTarget,
    Variant,
)


class PromotionConfigError(ValueError):
    """A promotion record is malformed or internally inconsistent."""

    def __init__(self, promotion_id: Any, detail: str):
        self.promotion_id = promotion_id
        self.detail = detail
        super().__init__(f"Invalid promotion {promotion_id!r}: {detail}")


# ══════════════════════════════════════════════════════════════
# TARGET PARSERS (one per scope)
# ══════════════════════════════════════════════════════════════

def _ids(record: Mapping[str, Any], key: str) -> tuple:
    return tuple(record.get(key) or ())


def _parse_tier(raw: Mapping[str, Any]) -> ProgressiveTier:
    return ProgressiveTier(
        min_amount=float(raw["min_amount"]),
        discount=Discount(
            type=DiscountType(raw["discount_type"]),
            value=float(raw["discount_value"]),
        ),
    )


def _parse_buy_x_get_y(record: Mapping[str, Any]) -> BuyXGetYTarget:
    raw = record.get("buy_x_get_y_config")
    if not raw:
        raise ValueError("buy-x-get-y promotions require buy_x_get_y_config.")
    return BuyXGetYTarget(
        config=BuyXGetYConfig(
            buy_quantity=int(raw["buy_quantity"]),
            get_quantity=int(raw["get_quantity"]),
            apply_on=GiftSelection(raw.get("apply_on", GiftSelection.CHEAPEST.value)),
        ),
        product_ids=_ids(record, "product_ids"),
    )


_TARGET_PARSERS: Dict[Scope, Callable[[Mapping[str, Any]], Any]] = {
    Scope.PRODUCT: lambda r: ProductTarget(product_ids=_ids(r, "product_ids")),
    Scope.CATEGORY: lambda r: CategoryTarget(category_slugs=_ids(r, "category_slugs")),
    Scope.SUBCATEGORY: lambda r: SubCategoryTarget(
        sub_category_slugs=_ids(r, "sub_category_slugs")
    ),
    Scope.FORMAT: lambda r: FormatTarget(format_ids=_ids(r, "format_ids")),
    Scope.SITE_WIDE: lambda r: SiteWideTarget(),
    Scope.CART: lambda r: CartTarget(
        progressive_tiers=tuple(_parse_tier(t) for t in r.get("progressive_tiers") or ())
    ),
    Scope.SHIPPING: lambda r: ShippingTarget(),
    Scope.USER_SEGMENT: lambda r: UserSegmentTarget(),
    Scope.BUY_X_GET_Y: _parse_buy_x_get_y,
    Scope.SUBSCRIPTION: lambda r: SubscriptionTarget(
        subscription_plan_ids=_ids(r, "subscription_plan_ids")
    ),
}


def _parse_conditions(raw: Mapping[str, Any] | None) -> PromotionConditions:
    raw = raw or {}
    segment = raw.get("user_segment")
    min_amount = raw.get("min_amount")
    return PromotionConditions(
        min_amount=float(min_amount) if min_amount is not None else None,
        min_quantity=raw.get("min_quantity"),
        max_usage_per_user=raw.get("max_usage_per_user"),
        max_usage_total=raw.get("max_usage_total"),
        user_segment=UserSegment(segment) if segment else None,
        exclude_promoted_products=bool(raw.get("exclude_promoted_products", False)),
    )


# ══════════════════════════════════════════════════════════════
# PUBLIC PARSERS
# ══════════════════════════════════════════════════════════════

def promotion_from_dict(record: Mapping[str, Any]) -> Promotion:
    """Parse one promotion record. Raises PromotionConfigError."""
    promotion_id = record.get("id")
    try:
        scope = Scope(record["scope"])
        return Promotion(
            id=promotion_id,
            name=record["name"],
            description=record.get("description"),
            type=PromotionType(record.get("type", PromotionType.AUTOMATIC.value)),
            code=record.get("code"),
            target=_TARGET_PARSERS[scope](record),
            discount=Discount(
                type=DiscountType(record["discount_type"]),
                value=float(record.get("discount_value", 0)),
            ),
            validity=ValidityWindow(
                start=parse_datetime(record["start_date"]),
                end=parse_optional_datetime(record.get("end_date")),
            ),
            is_active=bool(record.get("is_active", True)),
            is_stackable=bool(record.get("is_stackable", False)),
            priority=int(record.get("priority") or 0),
            application_strategy=ApplicationStrategy(
                record.get("application_strategy") or ApplicationStrategy.ALL.value
            ),
            conditions=_parse_conditions(record.get("conditions")),
            current_usage=int(record.get("current_usage") or 0),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise PromotionConfigError(promotion_id, str(exc)) from exc


def product_from_dict(record: Mapping[str, Any]) -> Product:
    reduced = record.get("reduced_price")
    return Product(
        id=record["id"],
        name=record.get("name", ""),
        original_price=float(record["original_price"]),
        reduced_price=float(reduced) if reduced is not None else None,
        category_id=record.get("category_id"),
        sub_category_ids=_ids(record, "sub_category_ids"),
        format_id=record.get("format_id"),
        variants=tuple(
            Variant(id=v["id"], format_id=v["format_id"], price=v.get("price"))
            for v in record.get("variants") or ()
        ),
        stock=int(record.get("stock") or 0),
    )


def category_from_dict(record: Mapping[str, Any]) -> Category:
    return Category(
        id=record["id"],
        slug=record["slug"],
        name=record.get("name", ""),
        sub_categories=tuple(
            SubCategory(id=s["id"], slug=s["slug"], name=s.get("name", ""))
            for s in record.get("sub_categories") or ()
        ),
    )


def cart_item_from_dict(record: Mapping[str, Any]) -> CartItem:
    qty = record["qty"]
    if not isinstance(qty, int) or isinstance(qty, bool):
        raise ValueError("qty must be an integer.")
    return CartItem(
        product_id=record["product_id"],
        unit_price=float(record["unit_price"]),
        qty=qty,
    )

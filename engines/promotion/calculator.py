"""
Vitrine Promotion Engine — Discount Calculator
================================================
Computes the monetary effect of ONE eligible promotion.

RULES (NON-NEGOTIABLE):
- A calculator never raises on odd data: no matching lines,
  no reached tier or zero sets all yield a zero discount
- Percentage: line_total × value / 100
- Fixed: min(value, line_total) per line, or per aggregate
  for the proportional strategy
- A discount never exceeds the total of the lines it touches
- Free shipping is a flag, never an amount
- Amounts are NOT rounded here; rounding happens in the resolver
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from engines.promotion.context import EvaluationContext
from engines.promotion.models import (
    ApplicationStrategy,
    CartItem,
    DiscountType,
    GiftSelection,
    Identifier,
    ProgressiveTier,
    Promotion,
    Scope,
)


# ══════════════════════════════════════════════════════════════
# RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DiscountComputation:
    """Raw outcome of one calculator call (before stacking)."""
    amount: float
    message: str
    affected_items: Tuple[Identifier, ...] = ()
    item_discounts: Tuple[Tuple[Identifier, float], ...] = ()
    free_shipping: bool = False

    @property
    def is_effective(self) -> bool:
        return self.amount > 0 or self.free_shipping


def _no_discount(message: str = "") -> DiscountComputation:
    return DiscountComputation(amount=0.0, message=message)


Calculator = Callable[[Promotion, EvaluationContext, Sequence[CartItem]], DiscountComputation]


def _label(promotion: Promotion) -> str:
    return promotion.description or promotion.name


def _format_value(value: float) -> str:
    return f"{value:g}"


# ══════════════════════════════════════════════════════════════
# CART / USER SEGMENT
# ══════════════════════════════════════════════════════════════

def select_tier(
    tiers: Sequence[ProgressiveTier], subtotal: float,
) -> Optional[ProgressiveTier]:
    """Tier with the highest min_amount not above the subtotal."""
    reached = [t for t in tiers if t.min_amount <= subtotal]
    if not reached:
        return None
    return max(reached, key=lambda t: t.min_amount)


def _tier_message(tier: ProgressiveTier, context: EvaluationContext) -> str:
    value = _format_value(tier.discount.value)
    if tier.discount.type == DiscountType.PERCENTAGE:
        return f"-{value}% sur votre panier"
    return f"-{value}{context.settings.currency_symbol} sur votre panier"


def calculate_cart(
    promotion: Promotion,
    context: EvaluationContext,
    items: Sequence[CartItem],
) -> DiscountComputation:
    """Whole-cart discount on the subtotal, with optional progressive tiers."""
    tiers = getattr(promotion.target, "progressive_tiers", ())
    if tiers:
        tier = select_tier(tiers, context.subtotal)
        if tier is None:
            return _no_discount(_label(promotion))
        return DiscountComputation(
            amount=tier.discount.amount_for(context.subtotal),
            message=_tier_message(tier, context),
        )
    return DiscountComputation(
        amount=promotion.discount.amount_for(context.subtotal),
        message=_label(promotion),
        free_shipping=promotion.discount.grants_free_shipping,
    )


# ══════════════════════════════════════════════════════════════
# SHIPPING
# ══════════════════════════════════════════════════════════════

def calculate_shipping(
    promotion: Promotion,
    context: EvaluationContext,
    items: Sequence[CartItem],
) -> DiscountComputation:
    return DiscountComputation(
        amount=0.0,
        message=promotion.description or "Livraison offerte",
        free_shipping=True,
    )


# ══════════════════════════════════════════════════════════════
# BUY X GET Y
# ══════════════════════════════════════════════════════════════

def gifted_quantity(total_qty: int, buy: int, get: int) -> int:
    """Units offered: one `get` batch per complete (buy + get) set."""
    return (total_qty // (buy + get)) * get


def calculate_buy_x_get_y(
    promotion: Promotion,
    context: EvaluationContext,
    items: Sequence[CartItem],
) -> DiscountComputation:
    config = promotion.target.config
    plural = "s" if config.get_quantity > 1 else ""
    message = f"{config.buy_quantity} achetés = {config.get_quantity} offert{plural}"

    total_qty = sum(item.qty for item in items)
    free_units = gifted_quantity(total_qty, config.buy_quantity, config.get_quantity)
    if free_units == 0:
        return _no_discount(message)

    ordered = sorted(
        items,
        key=lambda item: item.unit_price,
        reverse=config.apply_on == GiftSelection.MOST_EXPENSIVE,
    )

    amount = 0.0
    remaining = free_units
    affected: List[Identifier] = []
    allocations: List[Tuple[Identifier, float]] = []
    for item in ordered:
        if remaining <= 0:
            break
        take = min(item.qty, remaining)
        if take <= 0:
            continue
        gift_value = take * item.unit_price
        amount += gift_value
        remaining -= take
        affected.append(item.product_id)
        allocations.append((item.product_id, gift_value))

    return DiscountComputation(
        amount=amount,
        message=message,
        affected_items=tuple(affected),
        item_discounts=tuple(allocations),
    )


# ══════════════════════════════════════════════════════════════
# ITEM-SCOPED (product / category / subcategory / format / site-wide)
# ══════════════════════════════════════════════════════════════

_STRATEGY_MESSAGES = {
    ApplicationStrategy.CHEAPEST: "Réduction sur le produit le moins cher",
    ApplicationStrategy.MOST_EXPENSIVE: "Réduction sur le produit le plus cher",
    ApplicationStrategy.PROPORTIONAL: "Réduction répartie sur les produits éligibles",
    ApplicationStrategy.NON_PROMO_ONLY: "Réduction sur les produits hors promotion",
}


def _per_line(promotion: Promotion, lines: Sequence[CartItem]) -> List[Tuple[Identifier, float]]:
    return [
        (line.product_id, promotion.discount.amount_for(line.line_total))
        for line in lines
    ]


def _proportional(promotion: Promotion, lines: Sequence[CartItem]) -> List[Tuple[Identifier, float]]:
    total = sum(line.line_total for line in lines)
    if total <= 0:
        return []
    discount = promotion.discount.amount_for(total)
    return [
        (line.product_id, discount * line.line_total / total)
        for line in lines
    ]


def _is_regular_price(line: CartItem, context: EvaluationContext) -> bool:
    product = context.product_for(line)
    return product is not None and not product.has_promoted_price


def calculate_items(
    promotion: Promotion,
    context: EvaluationContext,
    items: Sequence[CartItem],
) -> DiscountComputation:
    strategy = promotion.application_strategy
    message = promotion.description or _STRATEGY_MESSAGES.get(strategy, promotion.name)
    free_shipping = promotion.discount.grants_free_shipping

    lines = list(items)
    if strategy == ApplicationStrategy.NON_PROMO_ONLY:
        lines = [line for line in lines if _is_regular_price(line, context)]
    if not lines:
        return DiscountComputation(amount=0.0, message=message, free_shipping=free_shipping)

    if strategy == ApplicationStrategy.CHEAPEST:
        # min/max keep the first line on ties
        allocations = _per_line(promotion, [min(lines, key=lambda line: line.unit_price)])
    elif strategy == ApplicationStrategy.MOST_EXPENSIVE:
        allocations = _per_line(promotion, [max(lines, key=lambda line: line.unit_price)])
    elif strategy == ApplicationStrategy.PROPORTIONAL:
        allocations = _proportional(promotion, lines)
    else:
        allocations = _per_line(promotion, lines)

    return DiscountComputation(
        amount=sum(amount for _, amount in allocations),
        message=message,
        affected_items=tuple(pid for pid, _ in allocations),
        item_discounts=tuple(allocations),
        free_shipping=free_shipping,
    )


# ══════════════════════════════════════════════════════════════
# SUBSCRIPTION (priced separately, never a cart discount)
# ══════════════════════════════════════════════════════════════

def calculate_nothing(
    promotion: Promotion,
    context: EvaluationContext,
    items: Sequence[CartItem],
) -> DiscountComputation:
    return _no_discount(_label(promotion))


SCOPE_CALCULATORS: Dict[Scope, Calculator] = {
    Scope.CART: calculate_cart,
    Scope.USER_SEGMENT: calculate_cart,
    Scope.SHIPPING: calculate_shipping,
    Scope.BUY_X_GET_Y: calculate_buy_x_get_y,
    Scope.PRODUCT: calculate_items,
    Scope.CATEGORY: calculate_items,
    Scope.SUBCATEGORY: calculate_items,
    Scope.FORMAT: calculate_items,
    Scope.SITE_WIDE: calculate_items,
    Scope.SUBSCRIPTION: calculate_nothing,
}

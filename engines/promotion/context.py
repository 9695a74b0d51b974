"""
Vitrine Promotion Engine — Evaluation Context
===============================================
Everything one evaluation needs, resolved once up front:
the clock reading, the cart, the product and category snapshot,
the shopper's order count, and the engine settings.

Promotions are evaluated against this frozen context only, so a
concurrent catalog change cannot be half-observed mid-evaluation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from core.config.rules import PromotionSettings
from engines.promotion.models import CartItem, Category, Identifier, Product, Promotion


@dataclass(frozen=True)
class EvaluationContext:
    now: datetime
    subtotal: float
    items: Tuple[CartItem, ...] = ()
    products: Dict[Identifier, Product] = field(default_factory=dict)
    categories: Tuple[Category, ...] = ()
    user_id: Optional[str] = None
    prior_order_count: int = 0
    promo_code: Optional[str] = None
    settings: PromotionSettings = field(default_factory=PromotionSettings)

    @property
    def total_quantity(self) -> int:
        return sum(item.qty for item in self.items)

    def product_for(self, item: CartItem) -> Optional[Product]:
        return self.products.get(item.product_id)


def eligible_items(
    promotion: Promotion,
    context: EvaluationContext,
    matcher,
) -> List[CartItem]:
    """
    Cart lines a promotion may act on.

    - Lines whose product is missing from the snapshot are skipped
    - exclude_promoted_products drops lines whose product has a reduced price
    - The scope matcher decides the rest
    """
    selected: List[CartItem] = []
    exclude_promoted = promotion.conditions.exclude_promoted_products
    for item in context.items:
        product = context.product_for(item)
        if product is None:
            continue
        if exclude_promoted and product.has_promoted_price:
            continue
        if matcher(promotion.target, product, context.categories):
            selected.append(item)
    return selected

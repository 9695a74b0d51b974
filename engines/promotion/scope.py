"""
Vitrine Promotion Engine — Scope Matcher
==========================================
Decides whether a product belongs to a promotion's scope.

Every matcher has the same signature:
    matcher(target, product, categories) -> bool

Slugs are resolved against the category snapshot passed in.
An unknown slug simply matches nothing; matchers never raise.
"""

from __future__ import annotations

from typing import Callable, Dict, Sequence

from engines.promotion.models import (
    Category,
    Product,
    Promotion,
    Scope,
)

Matcher = Callable[[object, Product, Sequence[Category]], bool]


def match_always(target, product: Product, categories: Sequence[Category]) -> bool:
    return True


def match_never(target, product: Product, categories: Sequence[Category]) -> bool:
    return False


def match_product(target, product: Product, categories: Sequence[Category]) -> bool:
    return product.id in target.product_ids


def match_category(target, product: Product, categories: Sequence[Category]) -> bool:
    if product.category_id is None:
        return False
    wanted = set(target.category_slugs)
    category_ids = {c.id for c in categories if c.slug in wanted}
    return product.category_id in category_ids


def match_subcategory(target, product: Product, categories: Sequence[Category]) -> bool:
    wanted = set(target.sub_category_slugs)
    sub_category_ids = {
        sub.id
        for category in categories
        for sub in category.sub_categories
        if sub.slug in wanted
    }
    return any(sid in sub_category_ids for sid in product.sub_category_ids)


def match_format(target, product: Product, categories: Sequence[Category]) -> bool:
    formats = set(target.format_ids)
    if product.variants:
        return any(v.format_id in formats for v in product.variants)
    return product.format_id is not None and product.format_id in formats


def match_buy_x_get_y(target, product: Product, categories: Sequence[Category]) -> bool:
    # No product list means every product counts towards the sets.
    if not target.product_ids:
        return True
    return product.id in target.product_ids


SCOPE_MATCHERS: Dict[Scope, Matcher] = {
    Scope.SITE_WIDE: match_always,
    Scope.CART: match_always,
    Scope.SHIPPING: match_always,
    Scope.USER_SEGMENT: match_always,
    Scope.PRODUCT: match_product,
    Scope.CATEGORY: match_category,
    Scope.SUBCATEGORY: match_subcategory,
    Scope.FORMAT: match_format,
    Scope.BUY_X_GET_Y: match_buy_x_get_y,
    Scope.SUBSCRIPTION: match_never,
}


def matches_product(
    promotion: Promotion,
    product: Product,
    categories: Sequence[Category],
) -> bool:
    return SCOPE_MATCHERS[promotion.scope](promotion.target, product, categories)

"""
Vitrine Promotion Engine — Collaborator Protocols
===================================================
The engine reads catalog, promotion and order data through these
protocols only. It never writes to them during evaluation.

In-memory implementations back tests and the dev HTTP adapter.
Mutable state is guarded by a lock; reads return snapshots.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from engines.promotion.models import Category, Identifier, Product, Promotion
from engines.promotion.records import PromotionConfigError, promotion_from_dict

logger = logging.getLogger("vitrine.repository")


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════

class ProductLookup(Protocol):
    def get_by_id(self, product_id: Identifier) -> Optional[Product]:
        ...  # pragma: no cover

    def get_by_category(self, category_id: Identifier) -> List[Product]:
        ...  # pragma: no cover


class CategoryLookup(Protocol):
    def get_all(self) -> List[Category]:
        ...  # pragma: no cover


class PromotionRepository(Protocol):
    def get_all(self) -> List[Promotion]:
        ...  # pragma: no cover

    def get_active(self, now: datetime) -> List[Promotion]:
        """Active, started, not ended, under global usage cap."""
        ...  # pragma: no cover

    def get_by_code(self, code: str, now: datetime) -> Optional[Promotion]:
        """Active code promotion matching `code` case-insensitively."""
        ...  # pragma: no cover

    def increment_usage(self, promotion_id: Identifier) -> None:
        ...  # pragma: no cover


class OrderHistory(Protocol):
    def count_for_user(self, user_id: str) -> int:
        ...  # pragma: no cover

    def count_promotion_uses(self, user_id: str, promotion_id: Identifier) -> int:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY CATALOG
# ══════════════════════════════════════════════════════════════

class InMemoryProductLookup:
    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: Dict[Identifier, Product] = {p.id: p for p in products}

    def add(self, product: Product) -> None:
        self._products[product.id] = product

    def get_by_id(self, product_id: Identifier) -> Optional[Product]:
        return self._products.get(product_id)

    def get_by_category(self, category_id: Identifier) -> List[Product]:
        return [p for p in self._products.values() if p.category_id == category_id]

    def get_all(self) -> List[Product]:
        return list(self._products.values())


class InMemoryCategoryLookup:
    def __init__(self, categories: Iterable[Category] = ()) -> None:
        self._categories: Tuple[Category, ...] = tuple(categories)

    def get_all(self) -> List[Category]:
        return list(self._categories)


# ══════════════════════════════════════════════════════════════
# IN-MEMORY PROMOTIONS
# ══════════════════════════════════════════════════════════════

class InMemoryPromotionRepository:
    """
    Promotion store with usage counting.

    Insertion order is preserved; the resolver relies on a stable
    priority sort, so equal-priority promotions keep this order.
    """

    def __init__(self, promotions: Iterable[Promotion] = ()) -> None:
        self._lock = threading.Lock()
        self._promotions: Dict[Identifier, Promotion] = {}
        for promotion in promotions:
            self._promotions[promotion.id] = promotion

    @classmethod
    def from_records(
        cls, records: Iterable[Mapping],
    ) -> "InMemoryPromotionRepository":
        """
        Load promotion records, skipping malformed ones.
        One bad record never prevents the others from loading.
        """
        promotions: List[Promotion] = []
        for record in records:
            try:
                promotions.append(promotion_from_dict(record))
            except PromotionConfigError as exc:
                logger.warning(f"Skipping promotion record: {exc}")
        return cls(promotions)

    def add(self, promotion: Promotion) -> None:
        with self._lock:
            self._promotions[promotion.id] = promotion

    def get(self, promotion_id: Identifier) -> Optional[Promotion]:
        with self._lock:
            return self._promotions.get(promotion_id)

    def get_all(self) -> List[Promotion]:
        with self._lock:
            return list(self._promotions.values())

    def get_active(self, now: datetime) -> List[Promotion]:
        return [p for p in self.get_all() if p.is_valid_at(now)]

    def get_by_code(self, code: str, now: datetime) -> Optional[Promotion]:
        for promotion in self.get_active(now):
            if promotion.matches_code(code):
                return promotion
        return None

    def increment_usage(self, promotion_id: Identifier) -> None:
        with self._lock:
            promotion = self._promotions.get(promotion_id)
            if promotion is None:
                raise KeyError(f"Promotion '{promotion_id}' not found.")
            self._promotions[promotion_id] = replace(
                promotion, current_usage=promotion.current_usage + 1
            )
        logger.debug(f"Usage incremented for promotion {promotion_id}")


# ══════════════════════════════════════════════════════════════
# IN-MEMORY ORDER HISTORY
# ══════════════════════════════════════════════════════════════

class InMemoryOrderHistory:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._orders: Dict[str, int] = {}
        self._promotion_uses: Dict[Tuple[str, Identifier], int] = {}

    def record_order(
        self, user_id: str, promotion_ids: Iterable[Identifier] = (),
    ) -> None:
        with self._lock:
            self._orders[user_id] = self._orders.get(user_id, 0) + 1
            for promotion_id in promotion_ids:
                key = (user_id, promotion_id)
                self._promotion_uses[key] = self._promotion_uses.get(key, 0) + 1

    def count_for_user(self, user_id: str) -> int:
        with self._lock:
            return self._orders.get(user_id, 0)

    def count_promotion_uses(self, user_id: str, promotion_id: Identifier) -> int:
        with self._lock:
            return self._promotion_uses.get((user_id, promotion_id), 0)

"""
Vitrine Django Adapter Wiring
=============================
Constructs HttpApiDependencies for local/staging live runs.

This module is adapter-only glue:
- no engine logic
- in-memory catalog, promotions and rewards seeded from seed.py
- engine settings read from the VITRINE_ENGINE Django setting
"""

from __future__ import annotations

import threading

from django.conf import settings

from adapters.django_api.seed import (
    CATEGORY_RECORDS,
    PRODUCT_RECORDS,
    PROMOTION_RECORDS,
    REWARD_RECORDS,
)
from core.config.rules import settings_from_mapping
from core.http_api.dependencies import HttpApiDependencies
from core.time.clock import SystemClock
from engines.loyalty.rewards import InMemoryRewardCatalog, reward_from_dict
from engines.loyalty.services import RewardCalculator
from engines.promotion.records import category_from_dict, product_from_dict
from engines.promotion.repository import (
    InMemoryCategoryLookup,
    InMemoryOrderHistory,
    InMemoryProductLookup,
    InMemoryPromotionRepository,
)
from engines.promotion.services import PromotionEngine

_DEPENDENCIES_LOCK = threading.Lock()
_DEPENDENCIES: HttpApiDependencies | None = None


def _create_dependencies() -> HttpApiDependencies:
    config = settings_from_mapping(getattr(settings, "VITRINE_ENGINE", None))
    products = InMemoryProductLookup(product_from_dict(r) for r in PRODUCT_RECORDS)
    categories = InMemoryCategoryLookup(category_from_dict(r) for r in CATEGORY_RECORDS)

    engine = PromotionEngine(
        promotions=InMemoryPromotionRepository.from_records(PROMOTION_RECORDS),
        products=products,
        categories=categories,
        clock=SystemClock(),
        order_history=InMemoryOrderHistory(),
        config=config,
    )
    return HttpApiDependencies(
        promotion_engine=engine,
        product_lookup=products,
        reward_calculator=RewardCalculator(config),
        reward_catalog=InMemoryRewardCatalog(reward_from_dict(r) for r in REWARD_RECORDS),
    )


def build_dependencies() -> HttpApiDependencies:
    """
    Lazy singleton wiring for adapter runtime.
    """
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        if _DEPENDENCIES is None:
            _DEPENDENCIES = _create_dependencies()
        return _DEPENDENCIES


def reset_dependencies() -> None:
    """Drop the cached wiring (tests that change settings)."""
    global _DEPENDENCIES
    with _DEPENDENCIES_LOCK:
        _DEPENDENCIES = None

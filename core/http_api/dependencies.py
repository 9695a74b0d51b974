"""
Vitrine HTTP API - Dependencies
===============================
Injected engines and lookups for handler wiring.
"""

from __future__ import annotations

from dataclasses import dataclass

from engines.loyalty.rewards import RewardCatalog
from engines.loyalty.services import RewardCalculator
from engines.promotion.repository import ProductLookup
from engines.promotion.services import PromotionEngine


@dataclass(frozen=True)
class HttpApiDependencies:
    promotion_engine: PromotionEngine
    product_lookup: ProductLookup
    reward_calculator: RewardCalculator
    reward_catalog: RewardCatalog

"""
Vitrine Core Config — Public API
==================================
Configurable engine settings (promotion nudges, loyalty rates).
Doctrine: No hardcoded shop policy in engine logic.
"""

from core.config.rules import (
    ConfigStore,
    InMemoryConfigStore,
    LoyaltySettings,
    PromotionSettings,
    settings_from_mapping,
)

__all__ = [
    "PromotionSettings",
    "LoyaltySettings",
    "ConfigStore",
    "InMemoryConfigStore",
    "settings_from_mapping",
]

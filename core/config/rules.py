"""
Vitrine Core Config — Engine Settings
=======================================
Doctrine: No hardcoded shop policy in engine logic.
Nudge thresholds, currency display, VIP thresholds and loyalty
earn rates come from configurable settings, not from source code.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional, Protocol


# ══════════════════════════════════════════════════════════════
# PROMOTION SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PromotionSettings:
    """
    Tunables for the promotion engine.

    progress_threshold_ratio: a locked promotion is nudged only when the
        shopper is missing at most this share of its threshold.
    vip_min_orders: prior orders needed for the 'vip' segment.
    """

    progress_threshold_ratio: float = 0.5
    currency_symbol: str = "€"
    decimal_places: int = 2
    vip_min_orders: int = 5

    def __post_init__(self) -> None:
        if not 0 < self.progress_threshold_ratio <= 1:
            raise ValueError(
                "progress_threshold_ratio must be in (0, 1], "
                f"got {self.progress_threshold_ratio}."
            )
        if self.decimal_places < 0:
            raise ValueError("decimal_places must be >= 0.")
        if self.vip_min_orders < 1:
            raise ValueError("vip_min_orders must be >= 1.")

    def round_money(self, amount: float) -> float:
        return round(amount, self.decimal_places)

    def format_money(self, amount: float) -> str:
        return f"{amount:.{self.decimal_places}f}{self.currency_symbol}"


# ══════════════════════════════════════════════════════════════
# LOYALTY SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LoyaltySettings:
    """Shop-wide loyalty program switches."""

    enabled: bool = True
    rate_per_euro: float = 10.0
    one_reward_per_order: bool = True

    def __post_init__(self) -> None:
        if self.rate_per_euro < 0:
            raise ValueError(
                f"rate_per_euro cannot be negative, got {self.rate_per_euro}."
            )


# ══════════════════════════════════════════════════════════════
# CONFIG STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class ConfigStore(Protocol):
    """
    Protocol for engine settings storage.

    Implementations may back this with Django settings, a file, or memory.
    """

    def get_promotion_settings(self) -> PromotionSettings:
        ...  # pragma: no cover

    def get_loyalty_settings(self) -> LoyaltySettings:
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# IN-MEMORY CONFIG STORE (for testing / bootstrap)
# ══════════════════════════════════════════════════════════════

class InMemoryConfigStore:
    """Simple in-memory config store for testing and bootstrap."""

    def __init__(
        self,
        promotion_settings: Optional[PromotionSettings] = None,
        loyalty_settings: Optional[LoyaltySettings] = None,
    ) -> None:
        self._promotion = promotion_settings or PromotionSettings()
        self._loyalty = loyalty_settings or LoyaltySettings()

    def set_promotion_settings(self, settings: PromotionSettings) -> None:
        self._promotion = settings

    def set_loyalty_settings(self, settings: LoyaltySettings) -> None:
        self._loyalty = settings

    def get_promotion_settings(self) -> PromotionSettings:
        return self._promotion

    def get_loyalty_settings(self) -> LoyaltySettings:
        return self._loyalty


def _pick(cls, values: Mapping[str, Any]) -> dict:
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise ValueError(
            f"Unknown {cls.__name__} keys: {', '.join(sorted(unknown))}."
        )
    return dict(values)


def settings_from_mapping(raw: Optional[Mapping[str, Any]]) -> InMemoryConfigStore:
    """
    Build a config store from a plain mapping, e.g. Django's VITRINE_ENGINE:

        {"promotions": {"progress_threshold_ratio": 0.5},
         "loyalty": {"rate_per_euro": 10}}
    """
    raw = raw or {}
    return InMemoryConfigStore(
        promotion_settings=PromotionSettings(
            **_pick(PromotionSettings, raw.get("promotions", {}))
        ),
        loyalty_settings=LoyaltySettings(
            **_pick(LoyaltySettings, raw.get("loyalty", {}))
        ),
    )

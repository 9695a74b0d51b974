"""
Vitrine Promotion Engine — Progress Indicators
================================================
Turns "almost there" verdicts into shopper-facing nudges.
"""

from __future__ import annotations

from typing import Optional, Sequence

from core.config.rules import PromotionSettings
from engines.promotion.eligibility import EligibilityOutcome, EligibilityStatus
from engines.promotion.models import CartItem, Promotion, Scope
from engines.promotion.results import ProgressType, PromotionProgress


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def threshold_progress(
    promotion: Promotion,
    outcome: EligibilityOutcome,
    settings: PromotionSettings,
) -> Optional[PromotionProgress]:
    """Nudge for a CLOSE verdict; None for any other verdict."""
    if outcome.status != EligibilityStatus.CLOSE or outcome.threshold is None:
        return None

    threshold = outcome.threshold
    label = promotion.description or promotion.name
    if threshold.kind == ProgressType.AMOUNT:
        remaining = settings.round_money(threshold.remaining)
        message = (
            f"Plus que {settings.format_money(remaining)} "
            f"pour débloquer : {label}"
        )
    else:
        remaining = int(threshold.remaining)
        message = f"Plus que {_plural(remaining, 'article')} pour débloquer : {label}"

    return PromotionProgress(
        promotion=promotion,
        type=threshold.kind,
        current=threshold.current,
        target=threshold.target,
        remaining=remaining,
        message=message,
    )


def buy_x_get_y_progress(
    promotion: Promotion,
    items: Sequence[CartItem],
) -> Optional[PromotionProgress]:
    """
    Nudge towards the first complete buy-x-get-y set.
    No ratio gate: any started set is worth a hint.
    """
    if promotion.scope != Scope.BUY_X_GET_Y:
        return None
    config = promotion.target.config
    current = sum(item.qty for item in items)
    target = config.set_size
    if not 0 < current < target:
        return None

    remaining = target - current
    get = config.get_quantity
    return PromotionProgress(
        promotion=promotion,
        type=ProgressType.BUY_X_GET_Y,
        current=current,
        target=target,
        remaining=remaining,
        message=(
            f"Plus que {_plural(remaining, 'article')} "
            f"pour {get} offert{'s' if get > 1 else ''}"
        ),
    )

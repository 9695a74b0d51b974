"""
Vitrine Promotion Engine — Policies
=====================================
Promo-code checks. Each policy returns None when satisfied,
or a RejectionReason whose message is shown to the shopper.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.config.rules import PromotionSettings
from core.time.temporal import format_day
from engines.promotion.models import Promotion


def promo_code_must_exist_policy(
    promotion: Optional[Promotion],
) -> Optional[RejectionReason]:
    if promotion is None:
        return RejectionReason(
            code=ReasonCode.INVALID_PROMO_CODE,
            message="Code promo invalide",
            policy_name="promo_code_must_exist_policy",
        )
    return None


def promotion_must_have_started_policy(
    promotion: Promotion, now: datetime,
) -> Optional[RejectionReason]:
    if promotion.validity.has_started(now):
        return None
    start = format_day(promotion.start_date)
    return RejectionReason(
        code=ReasonCode.PROMOTION_NOT_STARTED,
        message=f"Cette promotion sera active à partir du {start}",
        policy_name="promotion_must_have_started_policy",
        message_params={"start_date": start},
    )


def promotion_must_not_be_expired_policy(
    promotion: Promotion, now: datetime,
) -> Optional[RejectionReason]:
    if not promotion.validity.has_ended(now):
        return None
    return RejectionReason(
        code=ReasonCode.PROMOTION_EXPIRED,
        message="Cette promotion a expiré",
        policy_name="promotion_must_not_be_expired_policy",
    )


def promotion_usage_must_be_available_policy(
    promotion: Promotion,
) -> Optional[RejectionReason]:
    if not promotion.usage_exhausted:
        return None
    return RejectionReason(
        code=ReasonCode.USAGE_LIMIT_REACHED,
        message="Cette promotion a atteint sa limite d'utilisations",
        policy_name="promotion_usage_must_be_available_policy",
    )


def cart_must_reach_min_amount_policy(
    promotion: Promotion, cart_total: float, settings: PromotionSettings,
) -> Optional[RejectionReason]:
    min_amount = promotion.conditions.min_amount
    if min_amount is None or cart_total >= min_amount:
        return None
    return RejectionReason(
        code=ReasonCode.MIN_AMOUNT_NOT_MET,
        message=f"Montant minimum requis : {min_amount:g}{settings.currency_symbol}",
        policy_name="cart_must_reach_min_amount_policy",
        message_params={"min_amount": min_amount},
    )


def cart_must_reach_min_quantity_policy(
    promotion: Promotion, quantity: int,
) -> Optional[RejectionReason]:
    min_quantity = promotion.conditions.min_quantity
    if min_quantity is None or quantity >= min_quantity:
        return None
    return RejectionReason(
        code=ReasonCode.MIN_QUANTITY_NOT_MET,
        message=f"Quantité minimum requise : {min_quantity}",
        policy_name="cart_must_reach_min_quantity_policy",
        message_params={"min_quantity": min_quantity},
    )


def cart_total_must_not_be_negative_policy(
    cart_total: float,
) -> Optional[RejectionReason]:
    if cart_total >= 0:
        return None
    return RejectionReason(
        code=ReasonCode.INVALID_CART_TOTAL,
        message="Montant du panier invalide",
        policy_name="cart_total_must_not_be_negative_policy",
        message_params={"cart_total": cart_total},
    )

"""
Vitrine HTTP API - Framework-Agnostic Handlers
==============================================
Pure handler functions over contracts and injected dependencies.
Each returns a response envelope dict; none of them raise for
business outcomes.
"""

from __future__ import annotations

import logging
from typing import Any

from core.commands.rejection import ReasonCode, RejectionReason
from core.http_api.contracts import (
    CartCalculateHttpRequest,
    ProductPromotionReadRequest,
    PromoCodeApplyHttpRequest,
    PromoCodeValidateHttpRequest,
    RewardApplyHttpRequest,
    RewardPointsReadRequest,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import error_response, rejection_response, success_response

logger = logging.getLogger("vitrine.http")


# ══════════════════════════════════════════════════════════════
# PROMOTIONS
# ══════════════════════════════════════════════════════════════

def post_cart_calculate(
    request: CartCalculateHttpRequest,
    dependencies: HttpApiDependencies,
) -> dict[str, Any]:
    result = dependencies.promotion_engine.calculate_cart_promotions(
        request.items,
        request.subtotal,
        promo_code=request.promo_code,
        user_id=request.user_id,
    )
    return success_response(result.to_dict())


def post_promo_code_apply(
    request: PromoCodeApplyHttpRequest,
    dependencies: HttpApiDependencies,
) -> dict[str, Any]:
    result = dependencies.promotion_engine.apply_promo_code(
        request.code, request.cart_total, request.items,
    )
    if result.rejection is not None:
        return rejection_response(result.rejection)
    return success_response(result.to_dict())


def post_promo_code_validate(
    request: PromoCodeValidateHttpRequest,
    dependencies: HttpApiDependencies,
) -> dict[str, Any]:
    result = dependencies.promotion_engine.validate_code(request.code)
    return success_response(result.to_dict())


def list_active_promotions(dependencies: HttpApiDependencies) -> dict[str, Any]:
    promotions = dependencies.promotion_engine.get_active_promotions()
    return success_response(
        [p.to_dict() for p in promotions],
        meta={"count": len(promotions)},
    )


def get_promotion_stats(dependencies: HttpApiDependencies) -> dict[str, Any]:
    return success_response(dependencies.promotion_engine.get_stats().to_dict())


def get_product_best_promotion(
    request: ProductPromotionReadRequest,
    dependencies: HttpApiDependencies,
) -> dict[str, Any]:
    product = dependencies.product_lookup.get_by_id(request.product_id)
    if product is None:
        return error_response(
            code=ReasonCode.NOT_FOUND,
            message=f"Product '{request.product_id}' not found.",
        )
    result = dependencies.promotion_engine.get_best_promotion_for_product(product)
    return success_response(result.to_dict())


# ══════════════════════════════════════════════════════════════
# LOYALTY
# ══════════════════════════════════════════════════════════════

def post_reward_apply(
    request: RewardApplyHttpRequest,
    dependencies: HttpApiDependencies,
) -> dict[str, Any]:
    calculator = dependencies.reward_calculator
    if not calculator.settings.enabled:
        return rejection_response(RejectionReason(
            code=ReasonCode.LOYALTY_DISABLED,
            message="Le programme de fidélité est désactivé",
            policy_name="loyalty_must_be_enabled_policy",
        ))

    reward = dependencies.reward_catalog.get_by_id(request.reward_id)
    if reward is None:
        return rejection_response(RejectionReason(
            code=ReasonCode.REWARD_NOT_FOUND,
            message=f"Reward '{request.reward_id}' not found.",
            policy_name="reward_must_exist_policy",
        ))

    discount = calculator.apply_reward(reward, request.cart_total)
    if discount is None:
        logger.info(f"Reward {reward.id} not applicable to total {request.cart_total}")
        return rejection_response(RejectionReason(
            code=ReasonCode.REWARD_NOT_APPLICABLE,
            message="Cette récompense ne peut pas être appliquée à ce panier",
            policy_name="reward_must_apply_policy",
        ))

    return success_response({
        "reward": reward.to_dict(),
        "discount": discount.to_dict(),
        "final_amount": calculator.calculate_final_amount(request.cart_total, discount),
    })


def get_next_reward(
    request: RewardPointsReadRequest,
    dependencies: HttpApiDependencies,
) -> dict[str, Any]:
    reward = dependencies.reward_calculator.find_next_reward(
        request.points, dependencies.reward_catalog.get_all(),
    )
    if reward is None:
        return success_response(None)
    return success_response({
        "reward": reward.to_dict(),
        "points_missing": reward.points_required - request.points,
    })


def get_available_rewards(
    request: RewardPointsReadRequest,
    dependencies: HttpApiDependencies,
) -> dict[str, Any]:
    calculator = dependencies.reward_calculator
    rewards = calculator.find_available_rewards(
        request.points, dependencies.reward_catalog.get_all(),
    )
    return success_response(
        [r.to_dict() for r in rewards],
        meta={
            "count": len(rewards),
            "one_reward_per_order": calculator.settings.one_reward_per_order,
        },
    )

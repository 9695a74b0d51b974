"""
Vitrine Django Adapter Views
============================
Pass-through HTTP views over core/http_api handlers.
"""

from __future__ import annotations

import json
from typing import Any

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from adapters.django_api.wiring import build_dependencies
from core.http_api.contracts import (
    CartCalculateHttpRequest,
    ProductPromotionReadRequest,
    PromoCodeApplyHttpRequest,
    PromoCodeValidateHttpRequest,
    RewardApplyHttpRequest,
    RewardPointsReadRequest,
)
from core.http_api.errors import error_response, http_status_for
from core.http_api.handlers import (
    get_available_rewards,
    get_next_reward,
    get_product_best_promotion,
    get_promotion_stats,
    list_active_promotions,
    post_cart_calculate,
    post_promo_code_apply,
    post_promo_code_validate,
    post_reward_apply,
)
from engines.promotion.records import cart_item_from_dict


def _json_error(code: str, message: str, status: int = 400) -> JsonResponse:
    return JsonResponse(
        error_response(code=code, message=message, details={}),
        status=status,
    )


def _respond(payload: dict[str, Any]) -> JsonResponse:
    return JsonResponse(payload, status=http_status_for(payload))


def _parse_json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        parsed = json.loads(request.body.decode("utf-8"))
    except Exception as exc:
        raise ValueError("Request body must be valid JSON.") from exc
    if not isinstance(parsed, dict):
        raise ValueError("Request body must be a JSON object.")
    return parsed


def _parse_items(value: Any) -> tuple:
    if value is None:
        return tuple()
    if not isinstance(value, list):
        raise ValueError("items must be a list.")
    items = []
    for raw in value:
        if not isinstance(raw, dict):
            raise ValueError("each item must be an object.")
        items.append(cart_item_from_dict(raw))
    return tuple(items)


def _coerce_identifier(value: str) -> Any:
    return int(value) if value.isdigit() else value


def _parse_points(request: HttpRequest) -> int:
    raw = request.GET.get("points")
    if raw is None:
        raise ValueError("points is required.")
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError("points must be an integer.") from exc


def _method_not_allowed() -> JsonResponse:
    return _json_error(
        "METHOD_NOT_ALLOWED",
        "Method not allowed for this endpoint.",
        status=405,
    )


def _dispatch_write(write_handler, request_contract_factory, request: HttpRequest):
    try:
        body = _parse_json_body(request)
        contract = request_contract_factory(body)
    except (ValueError, KeyError, TypeError) as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)

    return _respond(write_handler(contract, build_dependencies()))


def _cart_calculate_contract_factory(body):
    return CartCalculateHttpRequest(
        items=_parse_items(body.get("items")),
        subtotal=body["subtotal"],
        promo_code=body.get("promo_code"),
        user_id=body.get("user_id"),
    )


def _promo_code_apply_contract_factory(body):
    return PromoCodeApplyHttpRequest(
        code=body["code"],
        cart_total=body["cart_total"],
        items=_parse_items(body.get("items")),
    )


def _promo_code_validate_contract_factory(body):
    return PromoCodeValidateHttpRequest(code=body["code"])


def _reward_apply_contract_factory(body):
    return RewardApplyHttpRequest(
        reward_id=body["reward_id"],
        cart_total=body["cart_total"],
    )


# ══════════════════════════════════════════════════════════════
# PROMOTIONS
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def cart_calculate_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(post_cart_calculate, _cart_calculate_contract_factory, request)


@csrf_exempt
def promo_code_apply_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(post_promo_code_apply, _promo_code_apply_contract_factory, request)


@csrf_exempt
def promo_code_validate_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(
        post_promo_code_validate,
        _promo_code_validate_contract_factory,
        request,
    )


@csrf_exempt
def active_promotions_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _respond(list_active_promotions(build_dependencies()))


@csrf_exempt
def promotion_stats_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _respond(get_promotion_stats(build_dependencies()))


@csrf_exempt
def product_best_promotion_view(request: HttpRequest, product_id: str) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    try:
        contract = ProductPromotionReadRequest(product_id=_coerce_identifier(product_id))
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)
    return _respond(get_product_best_promotion(contract, build_dependencies()))


# ══════════════════════════════════════════════════════════════
# LOYALTY
# ══════════════════════════════════════════════════════════════

@csrf_exempt
def reward_apply_view(request: HttpRequest) -> JsonResponse:
    if request.method != "POST":
        return _method_not_allowed()
    return _dispatch_write(post_reward_apply, _reward_apply_contract_factory, request)


def _dispatch_points_read(read_handler, request: HttpRequest) -> JsonResponse:
    try:
        contract = RewardPointsReadRequest(points=_parse_points(request))
    except ValueError as exc:
        return _json_error("INVALID_REQUEST", str(exc), status=400)
    return _respond(read_handler(contract, build_dependencies()))


@csrf_exempt
def next_reward_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _dispatch_points_read(get_next_reward, request)


@csrf_exempt
def available_rewards_view(request: HttpRequest) -> JsonResponse:
    if request.method != "GET":
        return _method_not_allowed()
    return _dispatch_points_read(get_available_rewards, request)

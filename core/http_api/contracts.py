"""
Vitrine HTTP API - Contracts
============================
Framework-agnostic request/response DTOs for promotion and loyalty endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from engines.promotion.models import CartItem


def _check_items(items) -> None:
    if not isinstance(items, tuple):
        raise ValueError("items must be a tuple.")
    for item in items:
        if not isinstance(item, CartItem):
            raise ValueError("items must contain CartItem values.")


def _check_amount(value, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{field_name} must be a number.")
    if value < 0:
        raise ValueError(f"{field_name} cannot be negative.")


@dataclass(frozen=True)
class CartCalculateHttpRequest:
    items: tuple
    subtotal: float
    promo_code: Optional[str] = None
    user_id: Optional[str] = None

    def __post_init__(self):
        _check_items(self.items)
        _check_amount(self.subtotal, "subtotal")
        if self.promo_code is not None and not isinstance(self.promo_code, str):
            raise ValueError("promo_code must be a string or None.")
        if self.user_id is not None and (
            not self.user_id or not isinstance(self.user_id, str)
        ):
            raise ValueError("user_id must be a non-empty string or None.")


@dataclass(frozen=True)
class PromoCodeApplyHttpRequest:
    code: str
    cart_total: float
    items: tuple = field(default_factory=tuple)

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")
        _check_amount(self.cart_total, "cart_total")
        _check_items(self.items)


@dataclass(frozen=True)
class PromoCodeValidateHttpRequest:
    code: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")


@dataclass(frozen=True)
class ProductPromotionReadRequest:
    product_id: Any

    def __post_init__(self):
        if self.product_id is None or self.product_id == "":
            raise ValueError("product_id is required.")


@dataclass(frozen=True)
class RewardApplyHttpRequest:
    reward_id: Any
    cart_total: float

    def __post_init__(self):
        if self.reward_id is None or self.reward_id == "":
            raise ValueError("reward_id is required.")
        _check_amount(self.cart_total, "cart_total")


@dataclass(frozen=True)
class RewardPointsReadRequest:
    points: int

    def __post_init__(self):
        if isinstance(self.points, bool) or not isinstance(self.points, int):
            raise ValueError("points must be an integer.")
        if self.points < 0:
            raise ValueError("points cannot be negative.")


@dataclass(frozen=True)
class HttpApiErrorBody:
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class HttpApiResponse:
    ok: bool
    data: Any = None
    error: Optional[HttpApiErrorBody] = None
    meta: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            body = {"ok": True, "data": self.data}
            if self.meta:
                body["meta"] = dict(self.meta)
            return body
        if self.error is None:
            raise ValueError("error must be set when ok is False.")
        return {"ok": False, "error": self.error.to_dict()}

"""
Vitrine HTTP API - Public API
=============================
Framework-agnostic contracts, handlers and error envelopes.
"""

from core.http_api.contracts import (
    CartCalculateHttpRequest,
    HttpApiErrorBody,
    HttpApiResponse,
    ProductPromotionReadRequest,
    PromoCodeApplyHttpRequest,
    PromoCodeValidateHttpRequest,
    RewardApplyHttpRequest,
    RewardPointsReadRequest,
)
from core.http_api.dependencies import HttpApiDependencies
from core.http_api.errors import (
    error_response,
    http_status_for,
    rejection_response,
    success_response,
)

__all__ = [
    "CartCalculateHttpRequest",
    "PromoCodeApplyHttpRequest",
    "PromoCodeValidateHttpRequest",
    "ProductPromotionReadRequest",
    "RewardApplyHttpRequest",
    "RewardPointsReadRequest",
    "HttpApiErrorBody",
    "HttpApiResponse",
    "HttpApiDependencies",
    "error_response",
    "success_response",
    "rejection_response",
    "http_status_for",
]

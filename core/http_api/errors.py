"""
Vitrine HTTP API - Error Mapping
================================
Stable transport envelope for successes, rejections and request errors.

    {"ok": true,  "data": ...}
    {"ok": false, "error": {"code", "message", "details"}}
"""

from __future__ import annotations

from typing import Any, Optional

from core.commands.rejection import ReasonCode, RejectionReason
from core.http_api.contracts import HttpApiErrorBody, HttpApiResponse

_STATUS_BY_CODE = {
    ReasonCode.INVALID_REQUEST: 400,
    ReasonCode.NOT_FOUND: 404,
    ReasonCode.REWARD_NOT_FOUND: 404,
    "METHOD_NOT_ALLOWED": 405,
}


def error_response(
    *,
    code: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(
        ok=False,
        error=HttpApiErrorBody(
            code=code,
            message=message,
            details=details or {},
        ),
    ).to_dict()


def success_response(
    data: Any,
    *,
    meta: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    return HttpApiResponse(ok=True, data=data, meta=meta).to_dict()


def map_rejection_reason(reason: RejectionReason) -> HttpApiErrorBody:
    message_key = (
        reason.message_key
        if reason.message_key is not None
        else f"rejection.{reason.code.lower()}"
    )
    return HttpApiErrorBody(
        code=reason.code,
        message=reason.message,
        details={
            "policy_name": reason.policy_name,
            "message_key": message_key,
            "message_params": dict(reason.message_params or {}),
        },
    )


def rejection_response(reason: RejectionReason) -> dict[str, Any]:
    mapped = map_rejection_reason(reason)
    return error_response(
        code=mapped.code,
        message=mapped.message,
        details=mapped.details,
    )


def http_status_for(payload: dict[str, Any]) -> int:
    """Transport status for an envelope; business rejections stay 200."""
    if payload.get("ok"):
        return 200
    return _STATUS_BY_CODE.get(payload["error"]["code"], 200)

"""
Manual smoke runner for Vitrine Django adapter endpoints.

Usage:
    python scripts/smoke_http_api.py
    python scripts/smoke_http_api.py --base-url http://127.0.0.1:8000
"""

from __future__ import annotations

import argparse
import json
from urllib import error, request


def _call(
    *,
    method: str,
    url: str,
    body: dict | None = None,
) -> tuple[int, dict]:
    encoded = None
    headers = {}
    if body is not None:
        encoded = json.dumps(body).encode("utf-8")
        headers["Content-Type"] = "application/json"

    req = request.Request(url=url, method=method, headers=headers, data=encoded)
    try:
        with request.urlopen(req) as response:
            return response.status, json.loads(response.read().decode("utf-8"))
    except error.HTTPError as exc:
        return exc.code, json.loads(exc.read().decode("utf-8"))


def _print_case(label: str, status: int, payload: dict) -> None:
    print(f"\n[{label}] status={status}")
    print(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))


def run(base_url: str) -> None:
    api = base_url.rstrip("/") + "/v1"
    cart = [
        {"product_id": 101, "unit_price": 45.0, "qty": 2},
        {"product_id": 201, "unit_price": 30.0, "qty": 1},
    ]

    status, payload = _call(method="GET", url=f"{api}/promotions/active")
    _print_case("active-promotions", status, payload)

    status, payload = _call(
        method="POST",
        url=f"{api}/promotions/cart/calculate",
        body={"items": cart, "subtotal": 120.0},
    )
    _print_case("cart-calculate", status, payload)

    status, payload = _call(
        method="POST",
        url=f"{api}/promotions/apply",
        body={"code": "welcome10", "cart_total": 120.0, "items": cart},
    )
    _print_case("apply-code", status, payload)

    status, payload = _call(
        method="POST",
        url=f"{api}/promotions/apply",
        body={"code": "WELCOME10", "cart_total": 20.0, "items": cart[1:]},
    )
    _print_case("apply-code-below-minimum", status, payload)

    status, payload = _call(
        method="POST",
        url=f"{api}/promotions/validate",
        body={"code": "NOPE"},
    )
    _print_case("validate-unknown-code", status, payload)

    status, payload = _call(method="GET", url=f"{api}/promotions/products/101/best")
    _print_case("product-best", status, payload)

    status, payload = _call(
        method="POST",
        url=f"{api}/loyalty/rewards/apply",
        body={"reward_id": "twenty-percent", "cart_total": 300.0},
    )
    _print_case("reward-apply", status, payload)

    status, payload = _call(method="GET", url=f"{api}/loyalty/rewards/next?points=450")
    _print_case("next-reward", status, payload)


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--base-url",
        default="http://127.0.0.1:8000",
        help="Server base URL.",
    )
    args = parser.parse_args()
    run(args.base_url)


if __name__ == "__main__":
    main()

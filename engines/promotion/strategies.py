"""
Vitrine Promotion Engine — Scope Strategies
=============================================
One (matcher, calculator) pair per scope.

The table is checked against the Scope enum at import time:
adding a scope without wiring both halves fails loudly on startup
instead of silently yielding zero discounts.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from engines.promotion.calculator import SCOPE_CALCULATORS, Calculator
from engines.promotion.models import Scope
from engines.promotion.scope import SCOPE_MATCHERS, Matcher


class ScopeStrategyError(RuntimeError):
    """A scope is missing its matcher or calculator."""


@dataclass(frozen=True)
class ScopeStrategy:
    matcher: Matcher
    calculator: Calculator


def _build_strategies() -> Dict[Scope, ScopeStrategy]:
    missing = [
        scope.value
        for scope in Scope
        if scope not in SCOPE_MATCHERS or scope not in SCOPE_CALCULATORS
    ]
    if missing:
        raise ScopeStrategyError(
            f"No scope strategy wired for: {', '.join(missing)}."
        )
    return {
        scope: ScopeStrategy(
            matcher=SCOPE_MATCHERS[scope],
            calculator=SCOPE_CALCULATORS[scope],
        )
        for scope in Scope
    }


SCOPE_STRATEGIES: Dict[Scope, ScopeStrategy] = _build_strategies()


def strategy_for(scope: Scope) -> ScopeStrategy:
    return SCOPE_STRATEGIES[scope]

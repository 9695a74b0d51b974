"""
Vitrine Promotion Engine — Application Service
================================================
Public entry point of the promotion engine.

Every call:
1. Reads the clock once
2. Takes ONE active-promotion snapshot and ONE category snapshot
3. Resolves each cart product once
4. Evaluates, calculates and resolves against that frozen context

A promotion whose evaluation raises is logged and skipped; the
others are still evaluated. The engine performs no writes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from core.config.rules import ConfigStore, InMemoryConfigStore, PromotionSettings
from core.time.clock import Clock
from engines.promotion.calculator import DiscountComputation
from engines.promotion.context import EvaluationContext, eligible_items
from engines.promotion.eligibility import EligibilityEvaluator
from engines.promotion.models import (
    PRODUCT_LEVEL_SCOPES,
    CartItem,
    Category,
    Identifier,
    Product,
    Promotion,
    PromotionType,
    Scope,
    total_quantity,
)
from engines.promotion.policies import (
    cart_must_reach_min_amount_policy,
    cart_must_reach_min_quantity_policy,
    cart_total_must_not_be_negative_policy,
    promo_code_must_exist_policy,
    promotion_must_have_started_policy,
    promotion_must_not_be_expired_policy,
    promotion_usage_must_be_available_policy,
)
from engines.promotion.progress import buy_x_get_y_progress, threshold_progress
from engines.promotion.repository import (
    CategoryLookup,
    OrderHistory,
    ProductLookup,
    PromotionRepository,
)
from engines.promotion.resolver import StackingResolver, order_by_priority
from engines.promotion.results import (
    BestProductDiscount,
    CartPromotionResult,
    CodeValidationResult,
    ProductPromotion,
    PromotionApplicationResult,
    PromotionProgress,
    PromotionStats,
    SubscriptionPrice,
)
from engines.promotion.scope import matches_product
from engines.promotion.strategies import strategy_for

logger = logging.getLogger("vitrine.promotion")


class PromotionEngine:
    def __init__(
        self,
        *,
        promotions: PromotionRepository,
        products: ProductLookup,
        categories: CategoryLookup,
        clock: Clock,
        order_history: Optional[OrderHistory] = None,
        config: Optional[ConfigStore] = None,
    ):
        self._promotions = promotions
        self._products = products
        self._categories = categories
        self._clock = clock
        self._order_history = order_history
        self._config = config or InMemoryConfigStore()

    # ── Context ───────────────────────────────────────────────

    @property
    def settings(self) -> PromotionSettings:
        return self._config.get_promotion_settings()

    def _resolve_products(self, items: Sequence[CartItem]) -> Dict[Identifier, Product]:
        products: Dict[Identifier, Product] = {}
        for item in items:
            if item.product_id in products:
                continue
            product = self._products.get_by_id(item.product_id)
            if product is None:
                logger.debug(f"Product {item.product_id} not found, line not eligible")
                continue
            products[item.product_id] = product
        return products

    def _prior_orders(self, user_id: Optional[str]) -> int:
        if user_id is None or self._order_history is None:
            return 0
        return self._order_history.count_for_user(user_id)

    def _build_context(
        self,
        items: Sequence[CartItem],
        subtotal: float,
        promo_code: Optional[str],
        user_id: Optional[str],
    ) -> EvaluationContext:
        return EvaluationContext(
            now=self._clock.now_utc(),
            subtotal=subtotal,
            items=tuple(items),
            products=self._resolve_products(items),
            categories=tuple(self._categories.get_all()),
            user_id=user_id,
            prior_order_count=self._prior_orders(user_id),
            promo_code=promo_code,
            settings=self.settings,
        )

    # ══════════════════════════════════════════════════════════
    # CART EVALUATION
    # ══════════════════════════════════════════════════════════

    def _evaluate_one(
        self,
        promotion: Promotion,
        context: EvaluationContext,
        evaluator: EligibilityEvaluator,
    ) -> Tuple[Optional[DiscountComputation], Optional[PromotionProgress]]:
        outcome = evaluator.evaluate(promotion, context)
        strategy = strategy_for(promotion.scope)
        if not outcome.is_eligible:
            logger.debug(f"Promotion {promotion.id} not eligible: {outcome.reason}")
            indicator = threshold_progress(promotion, outcome, context.settings)
            if indicator is None and outcome.threshold is not None:
                # a far cart threshold still leaves the set nudge
                items = eligible_items(promotion, context, strategy.matcher)
                indicator = buy_x_get_y_progress(promotion, items)
            return None, indicator

        items = eligible_items(promotion, context, strategy.matcher)
        computation = strategy.calculator(promotion, context, items)
        if not computation.is_effective:
            return None, buy_x_get_y_progress(promotion, items)
        return computation, None

    def calculate_cart_promotions(
        self,
        cart_items: Sequence[CartItem],
        subtotal: float,
        promo_code: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> CartPromotionResult:
        if subtotal < 0:
            logger.warning(f"Negative subtotal {subtotal}, no promotion evaluated")
            return CartPromotionResult(
                applied_promotions=(),
                progress_indicators=(),
                total_discount=0.0,
                free_shipping=False,
            )
        context = self._build_context(cart_items, subtotal, promo_code, user_id)
        active = self._promotions.get_active(context.now)
        pool = [
            p for p in active
            if p.type == PromotionType.AUTOMATIC or p.matches_code(promo_code)
        ]

        evaluator = EligibilityEvaluator(self._order_history)
        candidates: List[Tuple[Promotion, DiscountComputation]] = []
        progress: List[PromotionProgress] = []

        for promotion in order_by_priority(pool):
            try:
                computation, indicator = self._evaluate_one(promotion, context, evaluator)
            except Exception as exc:
                logger.error(
                    f"Promotion {promotion.id} failed during evaluation: {exc}",
                    exc_info=True,
                )
                continue
            if computation is not None:
                candidates.append((promotion, computation))
            if indicator is not None:
                progress.append(indicator)

        result = StackingResolver(context.settings).resolve(candidates, progress)
        logger.info(
            f"Cart evaluated: {len(pool)} candidates, "
            f"{len(result.applied_promotions)} applied, "
            f"total_discount={result.total_discount}, "
            f"free_shipping={result.free_shipping}"
        )
        return result

    # ══════════════════════════════════════════════════════════
    # PRODUCT PAGE
    # ══════════════════════════════════════════════════════════

    def _product_promotions(
        self,
        product: Product,
        active: Sequence[Promotion],
        categories: Sequence[Category],
    ) -> List[Promotion]:
        return [
            p for p in active
            if p.type == PromotionType.AUTOMATIC
            and p.scope in PRODUCT_LEVEL_SCOPES
            and matches_product(p, product, categories)
        ]

    def get_promotions_for_product(self, product: Product) -> List[Promotion]:
        active = self._promotions.get_active(self._clock.now_utc())
        return self._product_promotions(product, active, self._categories.get_all())

    def get_best_promotion_for_product(self, product: Product) -> ProductPromotion:
        """
        Single best discount on one product; no stacking, no cart conditions.
        Ties keep the first promotion found.
        """
        promotions = self.get_promotions_for_product(product)
        price = product.effective_price

        best: Optional[Promotion] = None
        best_amount = 0.0
        for promotion in promotions:
            amount = promotion.discount.amount_for(price)
            if amount > best_amount:
                best, best_amount = promotion, amount

        if best is None:
            return ProductPromotion(promotions=tuple(promotions))

        round_money = self.settings.round_money
        return ProductPromotion(
            promotions=tuple(promotions),
            best_discount=BestProductDiscount(
                promotion=best,
                discount_amount=round_money(best_amount),
                final_price=round_money(max(0.0, price - best_amount)),
            ),
        )

    def apply_promotions_to_product(self, product: Product) -> Product:
        """Copy of `product` whose reduced_price reflects its best promotion."""
        best = self.get_best_promotion_for_product(product).best_discount
        if best is None:
            return product
        return replace(product, reduced_price=best.final_price)

    def apply_promotions_to_products(self, products: Sequence[Product]) -> List[Product]:
        return [self.apply_promotions_to_product(p) for p in products]

    def apply_promotions_to_category(self, category_id: Identifier) -> List[Product]:
        return self.apply_promotions_to_products(self._products.get_by_category(category_id))

    # ══════════════════════════════════════════════════════════
    # PROMO CODES
    # ══════════════════════════════════════════════════════════

    def apply_promo_code(
        self,
        code: str,
        cart_total: float,
        cart_items: Sequence[CartItem],
    ) -> PromotionApplicationResult:
        """
        Preview a typed code against a cart. Conditions are checked in
        order: cart total sane, code known, min amount, min quantity.
        """
        settings = self.settings
        now = self._clock.now_utc()
        promotion = self._promotions.get_by_code(code, now)

        rejection = cart_total_must_not_be_negative_policy(cart_total)
        if rejection is None:
            rejection = promo_code_must_exist_policy(promotion)
        if rejection is None:
            rejection = cart_must_reach_min_amount_policy(promotion, cart_total, settings)
        if rejection is None:
            rejection = cart_must_reach_min_quantity_policy(
                promotion, total_quantity(cart_items)
            )
        if rejection is not None:
            logger.info(f"Promo code '{code}' rejected: {rejection.code}")
            return PromotionApplicationResult(
                success=False,
                message=rejection.message,
                promotion=promotion,
                rejection=rejection,
            )

        context = self._build_context(cart_items, cart_total, code, None)
        if promotion.scope == Scope.SITE_WIDE:
            computation = DiscountComputation(
                amount=promotion.discount.amount_for(cart_total),
                message="",
                free_shipping=promotion.discount.grants_free_shipping,
            )
        else:
            strategy = strategy_for(promotion.scope)
            items = eligible_items(promotion, context, strategy.matcher)
            computation = strategy.calculator(promotion, context, items)

        return PromotionApplicationResult(
            success=True,
            message=f'Code promo "{code}" appliqué avec succès !',
            discount_amount=settings.round_money(computation.amount),
            promotion=promotion,
            free_shipping=computation.free_shipping or promotion.grants_free_shipping,
            affected_items=computation.affected_items,
        )

    def validate_code(self, code: str) -> CodeValidationResult:
        """Explain why a code is (not) usable right now."""
        now = self._clock.now_utc()
        promotion = next(
            (
                p for p in self._promotions.get_all()
                if p.is_active and p.matches_code(code)
            ),
            None,
        )
        reason = promo_code_must_exist_policy(promotion)
        if reason is None:
            reason = promotion_must_have_started_policy(promotion, now)
        if reason is None:
            reason = promotion_must_not_be_expired_policy(promotion, now)
        if reason is None:
            reason = promotion_usage_must_be_available_policy(promotion)
        if reason is not None:
            return CodeValidationResult(valid=False, reason=reason)
        return CodeValidationResult(valid=True, promotion=promotion)

    # ══════════════════════════════════════════════════════════
    # SUBSCRIPTIONS
    # ══════════════════════════════════════════════════════════

    def get_active_for_subscription_plan(self, plan_id: Identifier) -> List[Promotion]:
        active = self._promotions.get_active(self._clock.now_utc())
        return order_by_priority(
            p for p in active
            if p.type == PromotionType.AUTOMATIC
            and p.scope == Scope.SUBSCRIPTION
            and plan_id in p.target.subscription_plan_ids
        )

    def calculate_subscription_price(
        self, base_price: float, plan_id: Identifier,
    ) -> SubscriptionPrice:
        if base_price < 0:
            raise ValueError(f"base_price cannot be negative, got {base_price}.")
        best: Optional[Promotion] = None
        best_amount = 0.0
        for promotion in self.get_active_for_subscription_plan(plan_id):
            amount = promotion.discount.amount_for(base_price)
            if amount > best_amount:
                best, best_amount = promotion, amount

        round_money = self.settings.round_money
        return SubscriptionPrice(
            base_price=base_price,
            final_price=round_money(max(0.0, base_price - best_amount)),
            discount=round_money(best_amount),
            promotion=best,
        )

    # ══════════════════════════════════════════════════════════
    # READ MODELS
    # ══════════════════════════════════════════════════════════

    def get_active_promotions(self) -> List[Promotion]:
        return order_by_priority(self._promotions.get_active(self._clock.now_utc()))

    def get_stats(self) -> PromotionStats:
        all_promotions = self._promotions.get_all()
        return PromotionStats(
            total=len(all_promotions),
            active=len(self._promotions.get_active(self._clock.now_utc())),
            code=sum(1 for p in all_promotions if p.type == PromotionType.CODE),
            automatic=sum(1 for p in all_promotions if p.type == PromotionType.AUTOMATIC),
        )

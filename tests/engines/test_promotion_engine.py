"""
Tests for engines.promotion.services — PromotionEngine end to end
over in-memory collaborators and a fixed clock.
"""

import logging
from datetime import datetime, timezone

import pytest

from core.commands.rejection import ReasonCode
from core.time.clock import FixedClock
from core.time.temporal import ValidityWindow
from engines.promotion import services as promotion_services
from engines.promotion.models import (
    BuyXGetYConfig,
    BuyXGetYTarget,
    CartItem,
    CartTarget,
    Category,
    CategoryTarget,
    Discount,
    DiscountType,
    Product,
    ProductTarget,
    ProgressiveTier,
    Promotion,
    PromotionConditions,
    PromotionType,
    Scope,
    ShippingTarget,
    SiteWideTarget,
    SubCategory,
    SubscriptionTarget,
    UserSegment,
    UserSegmentTarget,
    Variant,
)
from engines.promotion.repository import (
    InMemoryCategoryLookup,
    InMemoryOrderHistory,
    InMemoryProductLookup,
    InMemoryPromotionRepository,
)
from engines.promotion.results import ProgressType
from engines.promotion.services import PromotionEngine


NOW = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)
JAN_1 = datetime(2026, 1, 1, tzinfo=timezone.utc)

CATEGORIES = (
    Category(id=10, slug="photographie", sub_categories=(SubCategory(id=11, slug="paysage"),)),
    Category(id=20, slug="illustration"),
)

PRODUCTS = (
    Product(id=1, name="Brume", original_price=45.0, category_id=10,
            sub_category_ids=(11,), variants=(Variant(id=100, format_id="A3"),)),
    Product(id=2, name="Regard", original_price=60.0, reduced_price=48.0, category_id=10),
    Product(id=3, name="Jardin", original_price=30.0, category_id=20, format_id="A4"),
    Product(id=4, name="Carte", original_price=5.0, category_id=20),
)


def _promotion(promotion_id, target=None, discount=None, **kwargs) -> Promotion:
    return Promotion(
        id=promotion_id,
        name=kwargs.pop("name", f"Promo {promotion_id}"),
        type=kwargs.pop("type", PromotionType.AUTOMATIC),
        target=target or CartTarget(),
        discount=discount or Discount(DiscountType.PERCENTAGE, 10),
        validity=kwargs.pop("validity", ValidityWindow(start=JAN_1)),
        **kwargs,
    )


def _free_shipping(promotion_id=100, min_amount=40, **kwargs) -> Promotion:
    return _promotion(
        promotion_id,
        ShippingTarget(),
        Discount(DiscountType.FREE_SHIPPING),
        name="Livraison offerte",
        is_stackable=True,
        priority=10,
        conditions=PromotionConditions(min_amount=min_amount),
        **kwargs,
    )


def _engine(promotions, *, clock=None, history=None):
    repository = InMemoryPromotionRepository(promotions)
    engine = PromotionEngine(
        promotions=repository,
        products=InMemoryProductLookup(PRODUCTS),
        categories=InMemoryCategoryLookup(CATEGORIES),
        clock=clock or FixedClock(NOW),
        order_history=history,
    )
    return engine, repository


# ══════════════════════════════════════════════════════════════
# CART EVALUATION
# ══════════════════════════════════════════════════════════════

class TestCartScenarios:
    def test_cart_discount_plus_free_shipping(self):
        engine, _ = _engine([
            _promotion(1, discount=Discount(DiscountType.PERCENTAGE, 15), priority=3),
            _free_shipping(),
        ])
        result = engine.calculate_cart_promotions([CartItem(1, 50.0, 2)], 100.0)

        assert result.total_discount == 15
        assert result.free_shipping
        assert {a.promotion.id for a in result.applied_promotions} == {1, 100}

    def test_buy_three_get_cheapest_free(self):
        engine, _ = _engine([
            _promotion(
                1,
                BuyXGetYTarget(config=BuyXGetYConfig(buy_quantity=3, get_quantity=1)),
                Discount(DiscountType.PERCENTAGE, 100),
            ),
        ])
        items = [
            CartItem(1, 10.0, 1),
            CartItem(2, 20.0, 1),
            CartItem(3, 30.0, 1),
            CartItem(4, 5.0, 1),
        ]
        result = engine.calculate_cart_promotions(items, 65.0)
        assert result.total_discount == 5
        assert result.applied_promotions[0].affected_items == (4,)

    def test_progressive_tiers(self):
        tiers = (
            ProgressiveTier(50, Discount(DiscountType.PERCENTAGE, 10)),
            ProgressiveTier(100, Discount(DiscountType.PERCENTAGE, 20)),
            ProgressiveTier(150, Discount(DiscountType.PERCENTAGE, 30)),
        )
        engine, _ = _engine([_promotion(1, CartTarget(progressive_tiers=tiers))])
        result = engine.calculate_cart_promotions([CartItem(1, 60.0, 2)], 120.0)
        assert result.total_discount == 24

    def test_only_larger_non_stackable_applies(self):
        engine, _ = _engine([
            _promotion(1, discount=Discount(DiscountType.PERCENTAGE, 15), priority=5),
            _promotion(2, discount=Discount(DiscountType.PERCENTAGE, 25), priority=1),
        ])
        result = engine.calculate_cart_promotions([CartItem(1, 50.0, 2)], 100.0)
        assert [a.promotion.id for a in result.applied_promotions] == [2]
        assert result.total_discount == 25

    def test_category_discount_only_on_matching_lines(self):
        engine, _ = _engine([
            _promotion(1, CategoryTarget(category_slugs=("photographie",)),
                       Discount(DiscountType.PERCENTAGE, 20)),
        ])
        items = [CartItem(1, 45.0, 1), CartItem(3, 30.0, 1)]
        result = engine.calculate_cart_promotions(items, 75.0)
        assert result.total_discount == 9
        assert result.applied_promotions[0].affected_items == (1,)

    def test_unknown_products_are_ignored(self):
        engine, _ = _engine([
            _promotion(1, ProductTarget(product_ids=(999,)),
                       Discount(DiscountType.PERCENTAGE, 50)),
        ])
        result = engine.calculate_cart_promotions([CartItem(999, 40.0, 1)], 40.0)
        assert result.applied_promotions == ()
        assert result.total_discount == 0

    def test_empty_cart(self):
        engine, _ = _engine([_promotion(1), _free_shipping()])
        result = engine.calculate_cart_promotions([], 0.0)
        assert result.total_discount == 0
        assert not result.free_shipping

    def test_negative_subtotal_yields_empty_result(self, caplog):
        engine, _ = _engine([_promotion(1), _free_shipping()])
        with caplog.at_level(logging.WARNING, logger="vitrine.promotion"):
            result = engine.calculate_cart_promotions([CartItem(1, 45.0, 1)], -1.0)
        assert result.applied_promotions == ()
        assert result.total_discount == 0
        assert not result.free_shipping
        assert "Negative subtotal" in caplog.text


class TestCartConditions:
    def test_close_threshold_produces_progress(self):
        engine, _ = _engine([_free_shipping()])
        result = engine.calculate_cart_promotions([CartItem(3, 30.0, 1)], 30.0)

        assert not result.free_shipping
        assert len(result.progress_indicators) == 1
        progress = result.progress_indicators[0]
        assert progress.type == ProgressType.AMOUNT
        assert progress.remaining == 10
        assert progress.message == "Plus que 10.00€ pour débloquer : Livraison offerte"

    def test_far_threshold_is_silent(self):
        engine, _ = _engine([_free_shipping()])
        result = engine.calculate_cart_promotions([CartItem(4, 5.0, 1)], 5.0)
        assert result.progress_indicators == ()

    def test_started_buy_x_get_y_set_produces_progress(self):
        engine, _ = _engine([
            _promotion(
                1,
                BuyXGetYTarget(config=BuyXGetYConfig(buy_quantity=2, get_quantity=1)),
                Discount(DiscountType.PERCENTAGE, 100),
            ),
        ])
        result = engine.calculate_cart_promotions([CartItem(3, 30.0, 2)], 60.0)
        assert result.applied_promotions == ()
        assert result.progress_indicators[0].message == "Plus que 1 article pour 1 offert"

    def test_far_threshold_keeps_buy_x_get_y_progress(self):
        engine, _ = _engine([
            _promotion(
                1,
                BuyXGetYTarget(config=BuyXGetYConfig(buy_quantity=2, get_quantity=1)),
                Discount(DiscountType.PERCENTAGE, 100),
                conditions=PromotionConditions(min_amount=200),
            ),
        ])
        result = engine.calculate_cart_promotions([CartItem(3, 30.0, 2)], 60.0)
        assert result.applied_promotions == ()
        assert len(result.progress_indicators) == 1
        progress = result.progress_indicators[0]
        assert progress.type == ProgressType.BUY_X_GET_Y
        assert progress.remaining == 1

    def test_code_promotion_needs_its_code(self):
        welcome = _promotion(
            5,
            discount=Discount(DiscountType.FIXED, 10),
            type=PromotionType.CODE,
            code="WELCOME10",
        )
        engine, _ = _engine([welcome])
        items = [CartItem(1, 45.0, 2)]

        assert engine.calculate_cart_promotions(items, 90.0).total_discount == 0
        assert engine.calculate_cart_promotions(items, 90.0, promo_code="other").total_discount == 0
        result = engine.calculate_cart_promotions(items, 90.0, promo_code="welcome10")
        assert result.total_discount == 10

    def test_first_purchase_segment_uses_order_history(self):
        history = InMemoryOrderHistory()
        history.record_order("returning-customer")
        engine, _ = _engine(
            [_promotion(2, UserSegmentTarget(),
                        conditions=PromotionConditions(user_segment=UserSegment.FIRST_PURCHASE))],
            history=history,
        )
        items = [CartItem(1, 45.0, 2)]

        assert engine.calculate_cart_promotions(items, 90.0, user_id="newcomer").total_discount == 9
        assert engine.calculate_cart_promotions(
            items, 90.0, user_id="returning-customer"
        ).total_discount == 0

    def test_expired_promotion_after_clock_advance(self):
        clock = FixedClock(NOW)
        engine, _ = _engine(
            [_promotion(1, validity=ValidityWindow(
                start=JAN_1, end=datetime(2026, 2, 10, tzinfo=timezone.utc)))],
            clock=clock,
        )
        items = [CartItem(1, 50.0, 2)]
        assert engine.calculate_cart_promotions(items, 100.0).total_discount == 10
        clock.advance(days=30)
        assert engine.calculate_cart_promotions(items, 100.0).total_discount == 0


class TestFailureIsolation:
    def test_naive_dated_promotion_cannot_be_built(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            _promotion(1, validity=ValidityWindow(start=datetime(2026, 1, 1)))

    def test_failing_promotion_is_skipped_and_logged(self, monkeypatch, caplog):
        original = promotion_services.strategy_for

        def flaky_strategy_for(scope):
            if scope == Scope.CATEGORY:
                raise RuntimeError("corrupt category table")
            return original(scope)

        monkeypatch.setattr(promotion_services, "strategy_for", flaky_strategy_for)
        engine, _ = _engine([
            _promotion(1, CategoryTarget(category_slugs=("photographie",)), priority=9),
            _promotion(2, discount=Discount(DiscountType.PERCENTAGE, 5)),
        ])

        with caplog.at_level(logging.ERROR, logger="vitrine.promotion"):
            result = engine.calculate_cart_promotions([CartItem(1, 45.0, 2)], 90.0)

        assert [a.promotion.id for a in result.applied_promotions] == [2]
        assert "Promotion 1 failed during evaluation" in caplog.text


# ══════════════════════════════════════════════════════════════
# PRODUCT PAGE
# ══════════════════════════════════════════════════════════════

class TestProductPromotions:
    def _engine(self):
        return _engine([
            _promotion(1, SiteWideTarget(), Discount(DiscountType.PERCENTAGE, 10)),
            _promotion(2, CategoryTarget(category_slugs=("photographie",)),
                       Discount(DiscountType.PERCENTAGE, 20)),
            _promotion(3),  # cart scope
            _promotion(4, SiteWideTarget(), Discount(DiscountType.PERCENTAGE, 50),
                       type=PromotionType.CODE, code="HALF"),
        ])[0]

    def test_lists_product_level_automatic_promotions(self):
        promotions = self._engine().get_promotions_for_product(PRODUCTS[0])
        assert [p.id for p in promotions] == [1, 2]

    def test_best_promotion_on_effective_price(self):
        result = self._engine().get_best_promotion_for_product(PRODUCTS[1])
        assert result.best_discount.promotion.id == 2
        assert result.best_discount.discount_amount == 9.6
        assert result.best_discount.final_price == 38.4

    def test_no_matching_promotion(self):
        engine, _ = _engine([])
        result = engine.get_best_promotion_for_product(PRODUCTS[0])
        assert result.best_discount is None
        assert result.to_dict() == {"promotions": [], "best_discount": None}

    def test_apply_to_product_sets_reduced_price(self):
        updated = self._engine().apply_promotions_to_product(PRODUCTS[0])
        assert updated.reduced_price == 36.0
        assert PRODUCTS[0].reduced_price is None

    def test_apply_to_category(self):
        updated = self._engine().apply_promotions_to_category(20)
        assert [(p.id, p.reduced_price) for p in updated] == [(3, 27.0), (4, 4.5)]


# ══════════════════════════════════════════════════════════════
# PROMO CODES
# ══════════════════════════════════════════════════════════════

class TestApplyPromoCode:
    def _engine(self):
        return _engine([
            _promotion(5, discount=Discount(DiscountType.FIXED, 10),
                       type=PromotionType.CODE, code="WELCOME10",
                       conditions=PromotionConditions(min_amount=50)),
            _promotion(6, SiteWideTarget(), Discount(DiscountType.PERCENTAGE, 10),
                       type=PromotionType.CODE, code="TRIO",
                       conditions=PromotionConditions(min_quantity=3)),
        ])[0]

    def test_unknown_code(self):
        result = self._engine().apply_promo_code("NOPE", 100.0, [])
        assert not result.success
        assert result.message == "Code promo invalide"
        assert result.rejection.code == ReasonCode.INVALID_PROMO_CODE

    def test_negative_cart_total(self):
        result = self._engine().apply_promo_code("WELCOME10", -5.0, [])
        assert not result.success
        assert result.message == "Montant du panier invalide"
        assert result.rejection.code == ReasonCode.INVALID_CART_TOTAL

    def test_min_amount_not_met(self):
        result = self._engine().apply_promo_code("WELCOME10", 40.0, [CartItem(3, 40.0, 1)])
        assert not result.success
        assert result.message == "Montant minimum requis : 50€"
        assert result.rejection.code == ReasonCode.MIN_AMOUNT_NOT_MET

    def test_min_quantity_not_met(self):
        result = self._engine().apply_promo_code("TRIO", 60.0, [CartItem(3, 30.0, 2)])
        assert result.message == "Quantité minimum requise : 3"
        assert result.rejection.code == ReasonCode.MIN_QUANTITY_NOT_MET

    def test_success_is_case_insensitive(self):
        result = self._engine().apply_promo_code("welcome10", 80.0, [CartItem(3, 40.0, 2)])
        assert result.success
        assert result.discount_amount == 10
        assert result.message == 'Code promo "welcome10" appliqué avec succès !'
        assert result.promotion.id == 5
        assert result.rejection is None

    def test_site_wide_code_applies_to_cart_total(self):
        result = self._engine().apply_promo_code("TRIO", 95.0, [CartItem(3, 30.0, 3)])
        assert result.success
        assert result.discount_amount == 9.5


class TestValidateCode:
    def test_valid(self):
        engine, _ = _engine([_promotion(5, type=PromotionType.CODE, code="WELCOME10")])
        result = engine.validate_code("Welcome10")
        assert result.valid
        assert result.to_dict()["message"] is None

    def test_unknown(self):
        engine, _ = _engine([])
        result = engine.validate_code("NOPE")
        assert not result.valid
        assert result.to_dict() == {"valid": False, "promotion": None, "message": "Code promo invalide"}

    def test_not_started(self):
        engine, _ = _engine([_promotion(
            5, type=PromotionType.CODE, code="SPRING",
            validity=ValidityWindow(start=datetime(2026, 3, 1, tzinfo=timezone.utc)),
        )])
        result = engine.validate_code("SPRING")
        assert result.reason.message == "Cette promotion sera active à partir du 01/03/2026"

    def test_expired(self):
        engine, _ = _engine([_promotion(
            5, type=PromotionType.CODE, code="NOEL",
            validity=ValidityWindow(start=JAN_1, end=datetime(2026, 1, 15, tzinfo=timezone.utc)),
        )])
        assert engine.validate_code("NOEL").reason.code == ReasonCode.PROMOTION_EXPIRED

    def test_usage_exhausted(self):
        engine, _ = _engine([_promotion(
            5, type=PromotionType.CODE, code="FLASH",
            conditions=PromotionConditions(max_usage_total=1), current_usage=1,
        )])
        assert engine.validate_code("FLASH").reason.code == ReasonCode.USAGE_LIMIT_REACHED

    def test_inactive_code_is_unknown(self):
        engine, _ = _engine([_promotion(5, type=PromotionType.CODE, code="OFF", is_active=False)])
        assert engine.validate_code("OFF").reason.code == ReasonCode.INVALID_PROMO_CODE


# ══════════════════════════════════════════════════════════════
# SUBSCRIPTIONS / STATS
# ══════════════════════════════════════════════════════════════

class TestSubscriptionPricing:
    def _engine(self, *promotions):
        return _engine(list(promotions))[0]

    def test_best_plan_discount(self):
        engine = self._engine(
            _promotion(7, SubscriptionTarget(subscription_plan_ids=("yearly",)),
                       Discount(DiscountType.PERCENTAGE, 15)),
            _promotion(8, SubscriptionTarget(subscription_plan_ids=("yearly", "monthly")),
                       Discount(DiscountType.PERCENTAGE, 10)),
        )
        price = engine.calculate_subscription_price(100.0, "yearly")
        assert price.final_price == 85
        assert price.discount == 15
        assert price.promotion.id == 7

    def test_unknown_plan(self):
        engine = self._engine(
            _promotion(7, SubscriptionTarget(subscription_plan_ids=("yearly",))),
        )
        price = engine.calculate_subscription_price(100.0, "weekly")
        assert price.final_price == 100
        assert price.promotion is None

    def test_final_price_never_negative(self):
        engine = self._engine(
            _promotion(7, SubscriptionTarget(subscription_plan_ids=("yearly",)),
                       Discount(DiscountType.FIXED, 150)),
        )
        assert engine.calculate_subscription_price(100.0, "yearly").final_price == 0

    def test_subscription_promotions_never_touch_carts(self):
        engine = self._engine(
            _promotion(7, SubscriptionTarget(subscription_plan_ids=("yearly",)),
                       Discount(DiscountType.PERCENTAGE, 15)),
        )
        assert engine.calculate_cart_promotions([CartItem(1, 45.0, 1)], 45.0).total_discount == 0


class TestStatsAndActive:
    def test_stats(self):
        engine, _ = _engine([
            _promotion(1),
            _promotion(2, is_active=False),
            _promotion(3, type=PromotionType.CODE, code="X"),
        ])
        assert engine.get_stats().to_dict() == {
            "total": 3,
            "active": 2,
            "code": 1,
            "automatic": 2,
        }

    def test_active_sorted_by_priority(self):
        engine, _ = _engine([
            _promotion(1, priority=1),
            _promotion(2, priority=9),
            _promotion(3, is_active=False, priority=20),
        ])
        assert [p.id for p in engine.get_active_promotions()] == [2, 1]


# ══════════════════════════════════════════════════════════════
# REPOSITORY
# ══════════════════════════════════════════════════════════════

class TestPromotionRepository:
    def test_from_records_skips_malformed(self, caplog):
        records = [
            {
                "id": 1, "name": "Soldes", "scope": "site-wide",
                "discount_type": "percentage", "discount_value": 10,
                "start_date": "2026-01-01T00:00:00Z",
            },
            {
                "id": 2, "name": "Sans config", "scope": "buy-x-get-y",
                "discount_type": "percentage", "discount_value": 100,
                "start_date": "2026-01-01T00:00:00Z",
            },
            {"id": 3, "name": "Sans portée", "discount_type": "fixed"},
        ]
        with caplog.at_level(logging.WARNING, logger="vitrine.repository"):
            repository = InMemoryPromotionRepository.from_records(records)

        assert [p.id for p in repository.get_all()] == [1]
        assert "Invalid promotion 2" in caplog.text
        assert "Invalid promotion 3" in caplog.text

    def test_increment_usage_until_cap(self):
        repository = InMemoryPromotionRepository([
            _promotion(1, conditions=PromotionConditions(max_usage_total=2)),
        ])
        repository.increment_usage(1)
        assert repository.get(1).current_usage == 1
        assert len(repository.get_active(NOW)) == 1
        repository.increment_usage(1)
        assert repository.get_active(NOW) == []

    def test_increment_unknown_promotion(self):
        with pytest.raises(KeyError):
            InMemoryPromotionRepository().increment_usage(42)

    def test_get_by_code(self):
        repository = InMemoryPromotionRepository([
            _promotion(1, type=PromotionType.CODE, code="WELCOME10"),
        ])
        assert repository.get_by_code("welcome10", NOW).id == 1
        assert repository.get_by_code("other", NOW) is None

    def test_order_history_counts(self):
        history = InMemoryOrderHistory()
        history.record_order("alice", promotion_ids=(5,))
        history.record_order("alice")
        assert history.count_for_user("alice") == 2
        assert history.count_promotion_uses("alice", 5) == 1
        assert history.count_for_user("bob") == 0

"""
Tests for engines.promotion.calculator — one promotion's monetary effect.
"""

from datetime import datetime, timezone

import pytest

from core.time.temporal import ValidityWindow
from engines.promotion.calculator import (
    calculate_buy_x_get_y,
    calculate_cart,
    calculate_items,
    calculate_nothing,
    calculate_shipping,
    gifted_quantity,
    select_tier,
)
from engines.promotion.context import EvaluationContext
from engines.promotion.models import (
    ApplicationStrategy,
    BuyXGetYConfig,
    BuyXGetYTarget,
    CartItem,
    CartTarget,
    Discount,
    DiscountType,
    GiftSelection,
    Product,
    ProductTarget,
    ProgressiveTier,
    Promotion,
    PromotionType,
    ShippingTarget,
    SiteWideTarget,
    SubscriptionTarget,
)


NOW = datetime(2026, 2, 1, 12, 0, tzinfo=timezone.utc)


def _promotion(target, discount, **kwargs) -> Promotion:
    return Promotion(
        id=kwargs.pop("id", 1),
        name=kwargs.pop("name", "Promo"),
        type=PromotionType.AUTOMATIC,
        target=target,
        discount=discount,
        validity=ValidityWindow(start=datetime(2026, 1, 1, tzinfo=timezone.utc)),
        **kwargs,
    )


def _context(items=(), subtotal=None, products=()) -> EvaluationContext:
    items = tuple(items)
    if subtotal is None:
        subtotal = sum(i.line_total for i in items)
    return EvaluationContext(
        now=NOW,
        subtotal=subtotal,
        items=items,
        products={p.id: p for p in products},
    )


PERCENT_10 = Discount(DiscountType.PERCENTAGE, 10)


# ── Discount value object ────────────────────────────────────

class TestDiscount:
    def test_percentage(self):
        assert Discount(DiscountType.PERCENTAGE, 15).amount_for(100) == 15

    def test_fixed_capped_at_base(self):
        assert Discount(DiscountType.FIXED, 20).amount_for(12) == 12

    def test_free_shipping_has_no_amount(self):
        assert Discount(DiscountType.FREE_SHIPPING).amount_for(100) == 0

    def test_zero_base(self):
        assert PERCENT_10.amount_for(0) == 0

    def test_rejects_invalid_values(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            Discount(DiscountType.FIXED, -1)
        with pytest.raises(ValueError, match="cannot exceed 100"):
            Discount(DiscountType.PERCENTAGE, 120)


# ── Cart & progressive tiers ─────────────────────────────────

TIERS = (
    ProgressiveTier(50, Discount(DiscountType.PERCENTAGE, 10)),
    ProgressiveTier(100, Discount(DiscountType.PERCENTAGE, 20)),
    ProgressiveTier(150, Discount(DiscountType.PERCENTAGE, 30)),
)


class TestCartCalculator:
    def test_select_tier_picks_highest_reached(self):
        assert select_tier(TIERS, 120).min_amount == 100
        assert select_tier(TIERS, 150).min_amount == 150
        assert select_tier(TIERS, 49.99) is None

    def test_progressive_tiers(self):
        promotion = _promotion(CartTarget(progressive_tiers=TIERS), PERCENT_10)
        result = calculate_cart(promotion, _context(subtotal=120), ())
        assert result.amount == pytest.approx(24)
        assert result.message == "-20% sur votre panier"

    def test_no_tier_reached(self):
        promotion = _promotion(CartTarget(progressive_tiers=TIERS), PERCENT_10)
        result = calculate_cart(promotion, _context(subtotal=40), ())
        assert result.amount == 0
        assert not result.is_effective

    def test_fixed_tier_message(self):
        tiers = (ProgressiveTier(30, Discount(DiscountType.FIXED, 5)),)
        promotion = _promotion(CartTarget(progressive_tiers=tiers), PERCENT_10)
        result = calculate_cart(promotion, _context(subtotal=35), ())
        assert result.amount == 5
        assert result.message == "-5€ sur votre panier"

    def test_plain_cart_discount_on_subtotal(self):
        promotion = _promotion(
            CartTarget(),
            Discount(DiscountType.PERCENTAGE, 15),
            description="-15% sur le panier",
        )
        result = calculate_cart(promotion, _context(subtotal=100), ())
        assert result.amount == 15
        assert result.message == "-15% sur le panier"


class TestShippingAndSubscription:
    def test_shipping_is_a_flag(self):
        promotion = _promotion(ShippingTarget(), Discount(DiscountType.FREE_SHIPPING))
        result = calculate_shipping(promotion, _context(subtotal=80), ())
        assert result.free_shipping
        assert result.amount == 0
        assert result.message == "Livraison offerte"
        assert result.is_effective

    def test_subscription_never_discounts_cart(self):
        promotion = _promotion(
            SubscriptionTarget(subscription_plan_ids=("yearly",)), PERCENT_10,
        )
        assert calculate_nothing(promotion, _context(subtotal=80), ()).amount == 0


# ── Buy X get Y ──────────────────────────────────────────────

class TestBuyXGetY:
    def test_gifted_quantity(self):
        assert gifted_quantity(4, 3, 1) == 1
        assert gifted_quantity(7, 2, 1) == 2
        assert gifted_quantity(3, 3, 1) == 0
        assert gifted_quantity(10, 2, 3) == 6

    def _promotion(self, apply_on=GiftSelection.CHEAPEST):
        return _promotion(
            BuyXGetYTarget(config=BuyXGetYConfig(3, 1, apply_on)),
            Discount(DiscountType.PERCENTAGE, 100),
        )

    def _items(self):
        return [
            CartItem(product_id=1, unit_price=10.0, qty=1),
            CartItem(product_id=2, unit_price=20.0, qty=1),
            CartItem(product_id=3, unit_price=30.0, qty=1),
            CartItem(product_id=4, unit_price=5.0, qty=1),
        ]

    def test_cheapest_unit_is_gifted(self):
        items = self._items()
        result = calculate_buy_x_get_y(self._promotion(), _context(items), items)
        assert result.amount == 5
        assert result.affected_items == (4,)
        assert result.message == "3 achetés = 1 offert"

    def test_most_expensive_unit_is_gifted(self):
        items = self._items()
        promotion = self._promotion(GiftSelection.MOST_EXPENSIVE)
        result = calculate_buy_x_get_y(promotion, _context(items), items)
        assert result.amount == 30
        assert result.affected_items == (3,)

    def test_incomplete_set_gives_nothing(self):
        items = self._items()[:3]
        result = calculate_buy_x_get_y(self._promotion(), _context(items), items)
        assert result.amount == 0
        assert result.affected_items == ()

    def test_gifts_spread_over_lines(self):
        items = [
            CartItem(product_id=1, unit_price=4.0, qty=1),
            CartItem(product_id=2, unit_price=6.0, qty=7),
        ]
        result = calculate_buy_x_get_y(self._promotion(), _context(items), items)
        # 8 units -> 2 gifts: the 4.00 unit then one 6.00 unit
        assert result.amount == 10
        assert result.item_discounts == ((1, 4.0), (2, 6.0))


# ── Item-scoped strategies ───────────────────────────────────

class TestApplicationStrategies:
    LINES = [
        CartItem(product_id=1, unit_price=30.0, qty=1),
        CartItem(product_id=2, unit_price=10.0, qty=2),
    ]

    def _promotion(self, strategy, discount=PERCENT_10):
        return _promotion(
            ProductTarget(product_ids=(1, 2)),
            discount,
            application_strategy=strategy,
        )

    def test_all_lines(self):
        result = calculate_items(
            self._promotion(ApplicationStrategy.ALL), _context(self.LINES), self.LINES,
        )
        assert result.amount == pytest.approx(5.0)
        assert result.affected_items == (1, 2)

    def test_fixed_amount_capped_per_line(self):
        promotion = self._promotion(ApplicationStrategy.ALL, Discount(DiscountType.FIXED, 25))
        result = calculate_items(promotion, _context(self.LINES), self.LINES)
        assert result.amount == 45

    def test_cheapest(self):
        result = calculate_items(
            self._promotion(ApplicationStrategy.CHEAPEST), _context(self.LINES), self.LINES,
        )
        assert result.amount == pytest.approx(2.0)
        assert result.affected_items == (2,)
        assert result.message == "Réduction sur le produit le moins cher"

    def test_most_expensive(self):
        result = calculate_items(
            self._promotion(ApplicationStrategy.MOST_EXPENSIVE), _context(self.LINES), self.LINES,
        )
        assert result.amount == pytest.approx(3.0)
        assert result.affected_items == (1,)

    def test_proportional_fixed_discount(self):
        promotion = self._promotion(
            ApplicationStrategy.PROPORTIONAL, Discount(DiscountType.FIXED, 10),
        )
        result = calculate_items(promotion, _context(self.LINES), self.LINES)
        assert result.amount == pytest.approx(10.0)
        assert dict(result.item_discounts) == {
            1: pytest.approx(6.0),
            2: pytest.approx(4.0),
        }

    def test_non_promo_only_skips_reduced_products(self):
        products = (
            Product(id=1, name="A", original_price=30.0),
            Product(id=2, name="B", original_price=12.0, reduced_price=10.0),
        )
        result = calculate_items(
            self._promotion(ApplicationStrategy.NON_PROMO_ONLY),
            _context(self.LINES, products=products),
            self.LINES,
        )
        assert result.amount == pytest.approx(3.0)
        assert result.affected_items == (1,)

    def test_no_lines_gives_zero(self):
        promotion = _promotion(SiteWideTarget(), PERCENT_10, name="Soldes")
        result = calculate_items(promotion, _context(), [])
        assert result.amount == 0
        assert result.message == "Soldes"

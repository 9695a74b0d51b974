"""
Vitrine Django Adapter — Dev Catalog Seed
==========================================
Sample shop data for local runs and smoke tests: a small print
catalog, the house promotions and the loyalty rewards.
"""

from __future__ import annotations

SEED_START_DATE = "2026-01-01T00:00:00+00:00"

CATEGORY_RECORDS = (
    {
        "id": 1,
        "slug": "photographie",
        "name": "Photographie",
        "sub_categories": (
            {"id": 11, "slug": "paysage", "name": "Paysage"},
            {"id": 12, "slug": "portrait", "name": "Portrait"},
        ),
    },
    {
        "id": 2,
        "slug": "illustration",
        "name": "Illustration",
        "sub_categories": (
            {"id": 21, "slug": "aquarelle", "name": "Aquarelle"},
        ),
    },
)

PRODUCT_RECORDS = (
    {
        "id": 101,
        "name": "Brume sur le lac",
        "original_price": 45.0,
        "category_id": 1,
        "sub_category_ids": (11,),
        "variants": ({"id": 1011, "format_id": "A3", "price": 45.0},),
        "stock": 12,
    },
    {
        "id": 102,
        "name": "Regard",
        "original_price": 60.0,
        "reduced_price": 48.0,
        "category_id": 1,
        "sub_category_ids": (12,),
        "variants": ({"id": 1021, "format_id": "A2", "price": 60.0},),
        "stock": 4,
    },
    {
        "id": 201,
        "name": "Jardin d'hiver",
        "original_price": 30.0,
        "category_id": 2,
        "sub_category_ids": (21,),
        "format_id": "A4",
        "stock": 20,
    },
)

PROMOTION_RECORDS = (
    {
        "id": 1,
        "name": "Livraison offerte dès 40€",
        "description": "Livraison offerte dès 40€",
        "type": "automatic",
        "scope": "shipping",
        "discount_type": "free_shipping",
        "discount_value": 0,
        "is_stackable": True,
        "priority": 10,
        "conditions": {"min_amount": 40},
        "start_date": SEED_START_DATE,
    },
    {
        "id": 2,
        "name": "Premier achat -10%",
        "description": "-10% pour votre premier achat",
        "type": "automatic",
        "scope": "user-segment",
        "discount_type": "percentage",
        "discount_value": 10,
        "priority": 8,
        "conditions": {"user_segment": "first-purchase"},
        "start_date": SEED_START_DATE,
    },
    {
        "id": 3,
        "name": "3 achetés = 1 offert",
        "description": "3 achetés = 1 offert (le moins cher)",
        "type": "automatic",
        "scope": "buy-x-get-y",
        "discount_type": "percentage",
        "discount_value": 100,
        "buy_x_get_y_config": {"buy_quantity": 3, "get_quantity": 1, "apply_on": "cheapest"},
        "priority": 7,
        "start_date": SEED_START_DATE,
    },
    {
        "id": 4,
        "name": "Promo progressive",
        "description": "Plus vous achetez, plus vous économisez",
        "type": "automatic",
        "scope": "cart",
        "discount_type": "percentage",
        "discount_value": 10,
        "progressive_tiers": (
            {"min_amount": 50, "discount_type": "percentage", "discount_value": 10},
            {"min_amount": 100, "discount_type": "percentage", "discount_value": 20},
            {"min_amount": 150, "discount_type": "percentage", "discount_value": 30},
        ),
        "priority": 6,
        "start_date": SEED_START_DATE,
    },
    {
        "id": 5,
        "name": "Code WELCOME10",
        "description": "-10€ sur votre commande",
        "type": "code",
        "code": "WELCOME10",
        "scope": "cart",
        "discount_type": "fixed",
        "discount_value": 10,
        "priority": 5,
        "conditions": {"min_amount": 50, "max_usage_per_user": 1},
        "start_date": SEED_START_DATE,
    },
    {
        "id": 6,
        "name": "Promo Photographie",
        "description": "-20% sur toute la photographie",
        "type": "automatic",
        "scope": "category",
        "category_slugs": ("photographie",),
        "discount_type": "percentage",
        "discount_value": 20,
        "is_stackable": True,
        "priority": 4,
        "start_date": SEED_START_DATE,
    },
    {
        "id": 7,
        "name": "Abonnement annuel -15%",
        "type": "automatic",
        "scope": "subscription",
        "subscription_plan_ids": ("yearly",),
        "discount_type": "percentage",
        "discount_value": 15,
        "start_date": SEED_START_DATE,
    },
)

REWARD_RECORDS = (
    {"id": "ship", "type": "shipping", "points_required": 200, "label": "Livraison offerte"},
    {"id": "five", "type": "amount", "points_required": 500, "value": 5, "label": "5€ offerts"},
    {
        "id": "twenty-percent",
        "type": "percent",
        "points_required": 1500,
        "value": 20,
        "percent_cap": 50,
        "label": "-20% (max 50€)",
    },
    {
        "id": "gift-print",
        "type": "gift",
        "points_required": 3000,
        "gift_product_id": 201,
        "label": "Un tirage offert",
    },
)

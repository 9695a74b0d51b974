"""
Vitrine Django adapter URL routing.
"""

from django.urls import path

from adapters.django_api import views


urlpatterns = [
    path("promotions/cart/calculate", views.cart_calculate_view),
    path("promotions/apply", views.promo_code_apply_view),
    path("promotions/validate", views.promo_code_validate_view),
    path("promotions/active", views.active_promotions_view),
    path("promotions/stats", views.promotion_stats_view),
    path(
        "promotions/products/<str:product_id>/best",
        views.product_best_promotion_view,
    ),
    path("loyalty/rewards/apply", views.reward_apply_view),
    path("loyalty/rewards/next", views.next_reward_view),
    path("loyalty/rewards/available", views.available_rewards_view),
]

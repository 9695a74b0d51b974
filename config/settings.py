"""
Vitrine – Django Settings (Infrastructure Only)
================================================
Django serves as the HTTP container for the Vitrine engines.
Engine logic lives in engines/ and core/ — Django does not dictate structure.
"""

import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# ── Security ──────────────────────────────────────────────────
SECRET_KEY = os.environ.get("VITRINE_SECRET_KEY", "vitrine-dev-key-replace-before-deployment")

DEBUG = os.environ.get("VITRINE_DEBUG", "1") == "1"

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# ── Installed Apps ────────────────────────────────────────────
# The engines hold no Django models; only contrib infrastructure.
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
]

# ── Middleware ────────────────────────────────────────────────
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

# ── URL ───────────────────────────────────────────────────────
ROOT_URLCONF = "config.urls"

# ── Database ──────────────────────────────────────────────────
# Promotions are served from in-memory snapshots; the DB is unused.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

# ── Internationalization ──────────────────────────────────────
LANGUAGE_CODE = "fr-fr"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ── Engine settings ───────────────────────────────────────────
# Read by adapters.django_api.wiring via core.config.settings_from_mapping.
VITRINE_ENGINE = {
    "promotions": {
        "progress_threshold_ratio": 0.5,
        "currency_symbol": "€",
        "vip_min_orders": 5,
    },
    "loyalty": {
        "enabled": True,
        "rate_per_euro": 10,
        "one_reward_per_order": True,
    },
}

# ── Logging ───────────────────────────────────────────────────
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    },
    "loggers": {
        "vitrine": {
            "handlers": ["console"],
            "level": os.environ.get("VITRINE_LOG_LEVEL", "INFO"),
        },
    },
}

"""
Django settings for the storefront payment backend - Base Configuration
Payment webhook reconciliation with a security-first approach.
"""

import os
from pathlib import Path
from typing import Any

# ===============================================================================
# CORE DJANGO SETTINGS
# ===============================================================================

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Application definition
DJANGO_APPS: list[str] = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

THIRD_PARTY_APPS: list[str] = [
    "rest_framework",
    "django_q",  # Async task processing
]

LOCAL_APPS: list[str] = [
    "apps.common",
    "apps.customers",
    "apps.orders",
    "apps.promotions",  # 🎁 Promo codes, reward points, streaks
    "apps.notifications",
    "apps.integrations",  # 🔌 Payment webhooks & CRM / loyalty sync
]

INSTALLED_APPS: list[str] = DJANGO_APPS + THIRD_PARTY_APPS + LOCAL_APPS

MIDDLEWARE: list[str] = [
    "apps.common.middleware.RequestIDMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# ===============================================================================
# DATABASE CONFIGURATION
# ===============================================================================

DATABASES: dict[str, dict[str, Any]] = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "storefront"),
        "USER": os.environ.get("DB_USER", "storefront"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "development_password"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "CONN_MAX_AGE": 60,  # Database connection pooling
        "OPTIONS": {
            "application_name": "storefront_payments",
        },
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ===============================================================================
# AUTHENTICATION & AUTHORIZATION
# ===============================================================================

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {
            "min_length": 12,
        },
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

# Use Argon2 for password hashing
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.Argon2PasswordHasher",
    "django.contrib.auth.hashers.PBKDF2PasswordHasher",
    "django.contrib.auth.hashers.PBKDF2SHA1PasswordHasher",
]

# ===============================================================================
# INTERNATIONALIZATION & LOCALIZATION
# ===============================================================================

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Africa/Lagos"
USE_I18N = True
USE_TZ = True

# ===============================================================================
# STATIC FILES
# ===============================================================================

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# ===============================================================================
# CACHE CONFIGURATION (Redis)
# ===============================================================================

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

# Shared cache: rate limit counters and integration access tokens
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": REDIS_URL,
        "KEY_PREFIX": "storefront",
    }
}

# ===============================================================================
# SESSION & COOKIE SETTINGS
# ===============================================================================

SESSION_COOKIE_AGE = 86400  # 24 hours
SESSION_COOKIE_HTTPONLY = True
# Note: SESSION_COOKIE_SECURE = True set in prod.py

CSRF_COOKIE_HTTPONLY = True
CSRF_TRUSTED_ORIGINS: list[str] = []

# ===============================================================================
# ADDITIONAL SECURITY SETTINGS
# ===============================================================================

SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# Webhook bodies are small JSON documents
DATA_UPLOAD_MAX_MEMORY_SIZE = 2621440  # 2.5MB

# Proxies whose X-Forwarded-For is trusted when resolving webhook client IPs
# This prevents IP spoofing attacks against rate limiting
IPWARE_TRUSTED_PROXY_LIST: list[str] = []

# ===============================================================================
# DJANGO REST FRAMEWORK
# ===============================================================================

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAdminUser",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
}

# ===============================================================================
# PAYMENT PROVIDERS 💳
# ===============================================================================

# Empty secret means every delivery from that provider is rejected (401)
PAYSTACK_SECRET_KEY = os.environ.get("PAYSTACK_SECRET_KEY", "")
NOMBA_WEBHOOK_SECRET = os.environ.get("NOMBA_WEBHOOK_SECRET", "")
EMBEDLY_WEBHOOK_SECRET = os.environ.get("EMBEDLY_WEBHOOK_SECRET", "")

# Replay window for Nomba's nomba-timestamp header
NOMBA_TIMESTAMP_TOLERANCE_SECONDS = int(os.environ.get("NOMBA_TIMESTAMP_TOLERANCE_SECONDS", "300"))

# Paid vs. order total variance (kobo) before staff are alerted
PAYMENT_AMOUNT_TOLERANCE_MINOR = int(os.environ.get("PAYMENT_AMOUNT_TOLERANCE_MINOR", "100"))

# ===============================================================================
# REWARDS 🎁
# ===============================================================================

REWARDS = {
    "POINTS_PER_CURRENCY_UNIT_DIVISOR": 100,  # 1 point per ₦100 spent
    "FIRST_ORDER_BONUS_POINTS": 15,
    "REFERRAL_REWARD_POINTS": 500,
    "REFERRAL_MIN_ORDER_TOTAL": 1000,  # naira
    "STREAK_THRESHOLD": 15000,  # naira spent within the window
    "STREAK_TARGET_DAYS": 7,
    "STREAK_BONUS_POINTS": 100,
}

# ===============================================================================
# EMAIL & SMS 📧
# ===============================================================================

DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "orders@storefront.ng")
ADMIN_ORDER_EMAILS = [email.strip() for email in os.environ.get("ADMIN_ORDER_EMAILS", "").split(",") if email.strip()]

EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "587"))
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = True
EMAIL_TIMEOUT = 30

SMS_ENABLED = os.environ.get("SMS_ENABLED", "false").lower() == "true"
SMS_PROVIDER = os.environ.get("SMS_PROVIDER", "termii")  # termii | africastalking | twilio
SMS_DEFAULT_COUNTRY_CODE = os.environ.get("SMS_DEFAULT_COUNTRY_CODE", "+234")

TERMII_API_KEY = os.environ.get("TERMII_API_KEY", "")
TERMII_SENDER_ID = os.environ.get("TERMII_SENDER_ID", "")

AFRICASTALKING_USERNAME = os.environ.get("AFRICASTALKING_USERNAME", "")
AFRICASTALKING_API_KEY = os.environ.get("AFRICASTALKING_API_KEY", "")
AFRICASTALKING_SENDER_ID = os.environ.get("AFRICASTALKING_SENDER_ID", "")

TWILIO_ACCOUNT_SID = os.environ.get("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.environ.get("TWILIO_AUTH_TOKEN", "")
TWILIO_FROM_NUMBER = os.environ.get("TWILIO_FROM_NUMBER", "")

# Failed notifications are retried by the scheduler until this many attempts
NOTIFICATION_MAX_RETRY_ATTEMPTS = int(os.environ.get("NOTIFICATION_MAX_RETRY_ATTEMPTS", "5"))

# ===============================================================================
# EXTERNAL INTEGRATIONS 🔌
# ===============================================================================

# Zoho CRM (customer contacts and order deals). Missing credentials disable sync.
ZOHO_CRM_CLIENT_ID = os.environ.get("ZOHO_CRM_CLIENT_ID", "")
ZOHO_CRM_CLIENT_SECRET = os.environ.get("ZOHO_CRM_CLIENT_SECRET", "")
ZOHO_CRM_REFRESH_TOKEN = os.environ.get("ZOHO_CRM_REFRESH_TOKEN", "")
ZOHO_CRM_API_DOMAIN = os.environ.get("ZOHO_CRM_API_DOMAIN", "https://www.zohoapis.com")
ZOHO_CRM_ACCOUNTS_URL = os.environ.get("ZOHO_CRM_ACCOUNTS_URL", "https://accounts.zoho.com")

# Embedly (customer wallets holding loyalty points). Missing API key disables sync.
EMBEDLY_API_KEY = os.environ.get("EMBEDLY_API_KEY", "")
EMBEDLY_ORG_ID = os.environ.get("EMBEDLY_ORG_ID", "")
EMBEDLY_BASE_URL = os.environ.get("EMBEDLY_BASE_URL", "https://waas-prod.embedly.ng/api/v1")
EMBEDLY_DEFAULT_CITY = os.environ.get("EMBEDLY_DEFAULT_CITY", "Lagos")

# ===============================================================================
# DJANGO-Q2 TASK QUEUE CONFIGURATION
# ===============================================================================

Q_CLUSTER_BASE = {
    "name": "storefront-cluster",
    "timeout": 120,  # 2 minutes
    "retry": 300,  # 5 minutes retry delay
    "save_limit": 1000,  # Keep last 1000 task results
    "catch_up": False,  # Don't run missed scheduled tasks
    "orm": "default",  # Use the database as broker
    "bulk": 10,
    "queue_limit": 100,
}

Q_CLUSTER = {
    **Q_CLUSTER_BASE,
    "workers": 2,
    "recycle": 500,
    "sync": False,
}

# ===============================================================================
# LOGGING CONFIGURATION - Request ID Tracing
# ===============================================================================

LOGGING: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname:<8} {name:<40} {message} [{request_id}]",
            "style": "{",
        },
    },
    "filters": {
        "add_request_id": {
            "()": "apps.common.middleware.RequestIDFilter",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
            "filters": ["add_request_id"],
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": "INFO",
            "propagate": False,
        },
    },
}

# ===============================================================================
# SECURITY SETTINGS (Base - override in prod.py)
# ===============================================================================

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY")
if not SECRET_KEY:
    # Development fallback - never use this in production
    import warnings

    warnings.warn(
        "🚨 SECURITY WARNING: Using default SECRET_KEY. "
        "Set DJANGO_SECRET_KEY environment variable for production!",
        UserWarning,
        stacklevel=2,
    )
    SECRET_KEY = "django-insecure-dev-key-only-change-in-production-or-tests"  # noqa: S105


def validate_production_secret_key() -> None:
    """Validate SECRET_KEY meets production security requirements"""
    if SECRET_KEY and SECRET_KEY.startswith("django-insecure-"):
        raise ValueError(
            "🔥 CRITICAL SECURITY ERROR: Cannot use insecure SECRET_KEY in production! "
            "Generate a secure key: python -c 'from django.core.management.utils import get_random_secret_key; print(get_random_secret_key())'"
        )

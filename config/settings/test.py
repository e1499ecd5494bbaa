"""
Test settings for the storefront payment backend
Fast, isolated testing environment.
"""

from .base import *  # noqa: F403

# ===============================================================================
# TEST FLAGS
# ===============================================================================

DEBUG = False

# ===============================================================================
# TEST DATABASE (In-memory for speed)
# ===============================================================================

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
        "OPTIONS": {
            "timeout": 20,
        },
        "TEST": {
            "NAME": ":memory:",
            "SERIALIZE": False,
        },
    }
}

# ===============================================================================
# TEST CACHE
# ===============================================================================

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "test-cache",
    }
}

SILENCED_SYSTEM_CHECKS = ["django_ratelimit.E003", "django_ratelimit.W001"]

# ===============================================================================
# TEST EMAIL BACKEND
# ===============================================================================

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"
DEFAULT_FROM_EMAIL = "orders@storefront.test"
ADMIN_ORDER_EMAILS = ["ops@storefront.test"]

# ===============================================================================
# PASSWORD HASHER (Fast for tests)
# ===============================================================================

PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",  # Fast but insecure (test only)
]

# ===============================================================================
# LOGGING (Minimal for tests)
# ===============================================================================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {
        "null": {
            "class": "logging.NullHandler",
        },
    },
    "root": {
        "handlers": ["null"],
        "level": "CRITICAL",
    },
}

# ===============================================================================
# SECURITY (Relaxed for tests)
# ===============================================================================

SECRET_KEY = "django-test-key-not-secure"  # noqa: S105
ALLOWED_HOSTS = ["testserver", "localhost", "127.0.0.1"]

# Ensure rate limiting is disabled in test environment to prevent race conditions
RATELIMIT_ENABLE = False

# ===============================================================================
# PAYMENT PROVIDERS (Test secrets)
# ===============================================================================

PAYSTACK_SECRET_KEY = "sk_test_paystack_secret"  # noqa: S105
NOMBA_WEBHOOK_SECRET = "nomba-test-webhook-secret"  # noqa: S105
EMBEDLY_WEBHOOK_SECRET = "embedly-test-webhook-secret"  # noqa: S105

# ===============================================================================
# EXTERNAL SERVICES (Disabled in tests)
# ===============================================================================

SMS_ENABLED = False
SMS_PROVIDER = "termii"
TERMII_API_KEY = "termii-test-key"
TERMII_SENDER_ID = "Storefront"

ZOHO_CRM_CLIENT_ID = ""
ZOHO_CRM_CLIENT_SECRET = ""
ZOHO_CRM_REFRESH_TOKEN = ""
EMBEDLY_API_KEY = ""

# ===============================================================================
# TASK QUEUE (Synchronous for tests)
# ===============================================================================

Q_CLUSTER = {
    **Q_CLUSTER_BASE,  # noqa: F405
    "workers": 1,
    "sync": True,
}

"""
Storefront payment backend constants

Centralized constants for payment reconciliation, rewards, and notifications.
Values that operators tune per deployment live in settings; these are the
fixed protocol and formatting rules.
"""

from typing import Final

# ===============================================================================
# MONEY 💰
# ===============================================================================

# Naira amounts are stored in kobo (minor units)
MINOR_UNITS_PER_MAJOR: Final[int] = 100             # 1 NGN = 100 kobo
CURRENCY_SYMBOL: Final[str] = "₦"

# ===============================================================================
# WEBHOOKS 🔗
# ===============================================================================

WEBHOOK_RATE_LIMIT: Final[str] = "60/m"             # Per-IP delivery rate limit
DEFAULT_TIMESTAMP_TOLERANCE_SECONDS: Final[int] = 300  # Replay window for timestamped signatures
DEFAULT_AMOUNT_TOLERANCE_MINOR: Final[int] = 100   # Paid vs. order total variance before alerting

# ===============================================================================
# INTEGRATION LIMITS 🔗
# ===============================================================================

API_REQUEST_TIMEOUT_SECONDS: Final[int] = 30        # External API request timeout
API_CONNECTION_TIMEOUT_SECONDS: Final[int] = 10     # API connection timeout

# ===============================================================================
# EMAIL & SMS 📧
# ===============================================================================

SMS_MAX_LENGTH: Final[int] = 918                    # 6 concatenated SMS segments
NOTIFICATION_RETRY_BATCH_SIZE: Final[int] = 50      # Failed notifications retried per run
DEFAULT_NOTIFICATION_MAX_ATTEMPTS: Final[int] = 5   # Attempts before a notification is abandoned

# ===============================================================================
# HTTP STATUS CODES 🌐
# ===============================================================================

HTTP_CLIENT_ERROR_THRESHOLD: Final[int] = 400       # Start of 4xx client errors

# ===============================================================================
# DISPLAY 📁
# ===============================================================================

ERROR_MESSAGE_MAX_LENGTH: Final[int] = 1000         # Stored error messages are truncated

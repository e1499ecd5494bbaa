"""
URL configuration for the storefront payment backend
"""

from django.urls import include, path

# ===============================================================================
# MAIN URL PATTERNS
# ===============================================================================

urlpatterns = [
    # Payment provider webhooks
    path("", include("apps.integrations.urls")),
    # Staff API over operator alerts and the notification failure ledger
    path("api/ops/", include("apps.notifications.urls")),
]

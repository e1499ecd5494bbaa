"""
Staff API URLs for operator alerts and failed notifications.
"""

from django.urls import path

from . import api

app_name = "notifications"

urlpatterns = [
    path("alerts/", api.alert_list, name="alert_list"),
    path("alerts/<uuid:alert_id>/read/", api.alert_mark_read, name="alert_mark_read"),
    path("failed-notifications/", api.failed_notification_list, name="failed_notification_list"),
    path(
        "failed-notifications/<uuid:notification_id>/resend/",
        api.failed_notification_resend,
        name="failed_notification_resend",
    ),
]

"""
Notification ledgers for the storefront payment backend
Failed customer/staff notifications awaiting retry and operator alerts.
"""

from __future__ import annotations

import uuid
from typing import ClassVar

from django.db import models
from django.utils.translation import gettext_lazy as _


class FailedNotification(models.Model):
    """
    Notification that could not be delivered after a payment was confirmed.

    Written instead of failing the webhook request; the scheduled retry job
    picks up pending_retry rows and resends them.
    """

    TYPE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("payment_confirmation_email", _("Payment confirmation email")),
        ("order_notification_email", _("Order notification email")),
        ("confirmation_sms", _("Confirmation SMS")),
    )

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("pending_retry", _("⏳ Pending retry")),
        ("sent", _("✅ Sent")),
        ("abandoned", _("🛑 Abandoned")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    notification_type = models.CharField(max_length=50, choices=TYPE_CHOICES)
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="failed_notifications",
    )
    recipient = models.CharField(max_length=255, help_text=_("Email address or phone number"))
    error_message = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending_retry")

    attempts = models.PositiveIntegerField(default=1, help_text=_("Delivery attempts so far, including the first"))
    last_attempt_at = models.DateTimeField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "failed_notifications"
        verbose_name = _("Failed Notification")
        verbose_name_plural = _("Failed Notifications")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["status", "created_at"], name="failed_notif_status_idx"),
        )

    def __str__(self) -> str:
        return f"{self.get_notification_type_display()} → {self.recipient} ({self.status})"

    @property
    def is_retryable(self) -> bool:
        return self.status == "pending_retry"


class OperatorAlert(models.Model):
    """🚨 Internal notice for staff when a post-payment step needs a human."""

    ALERT_TYPE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("reward_processing_failed", _("Reward processing failed")),
        ("promo_usage_failed", _("Promo usage increment failed")),
        ("amount_mismatch", _("Payment amount mismatch")),
        ("payment_after_failure", _("Payment received for failed order")),
        ("duplicate_payment", _("Second payment for paid order")),
        ("notification_failed", _("Notification failed")),
        ("notification_abandoned", _("Notification abandoned")),
        ("sync_failed", _("External sync failed")),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    alert_type = models.CharField(max_length=50, choices=ALERT_TYPE_CHOICES)
    title = models.CharField(max_length=255)
    message = models.TextField()
    metadata = models.JSONField(default=dict, blank=True)
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="operator_alerts",
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "operator_alerts"
        verbose_name = _("🚨 Operator Alert")
        verbose_name_plural = _("🚨 Operator Alerts")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["is_read", "created_at"], name="operator_alert_unread_idx"),
            models.Index(fields=["alert_type", "created_at"], name="operator_alert_type_idx"),
        )

    def __str__(self) -> str:
        return f"🚨 {self.alert_type}: {self.title}"

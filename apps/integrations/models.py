import hashlib
import uuid
from typing import Any, ClassVar

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.common.constants import ERROR_MESSAGE_MAX_LENGTH

# ===============================================================================
# WEBHOOK DELIVERY LEDGER
# ===============================================================================


class WebhookEvent(models.Model):
    """
    🔄 Webhook delivery ledger

    One row per logical provider event (source, event_id). Records every
    verified delivery for audit and lets an already processed redelivery
    short-circuit. It does not replace the order payment gate, which stays
    the authority on whether side effects run.
    """

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("pending", _("⏳ Pending")),
        ("processed", _("✅ Processed")),
        ("failed", _("❌ Failed")),
        ("skipped", _("⏭️ Skipped")),  # Ignored event type
    )

    SOURCE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("paystack", _("💳 Paystack")),
        ("nomba", _("💳 Nomba")),
        ("embedly", _("👛 Embedly")),
    )

    # Core identification
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    source = models.CharField(
        max_length=50, choices=SOURCE_CHOICES, help_text=_("Payment provider that sent the webhook")
    )
    event_id = models.CharField(max_length=255, help_text=_("Unique event ID from the provider"))
    event_type = models.CharField(
        max_length=100, help_text=_("Type of event (e.g., 'charge.success', 'payment_success')")
    )

    # Processing status
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    # Timing
    received_at = models.DateTimeField(default=timezone.now, help_text=_("When webhook was first received"))
    processed_at = models.DateTimeField(
        null=True, blank=True, help_text=_("When the delivery reached a terminal status")
    )

    # Data storage
    payload = models.JSONField(help_text=_("Complete webhook payload from the provider"))
    signature_hash = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text=_("SHA-256 of the signature header as received"),
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="webhook_events",
        help_text=_("Order the event was reconciled against"),
    )

    # Error handling
    error_message = models.TextField(blank=True, help_text=_("Failure or skip reason from the latest attempt"))
    delivery_count = models.PositiveIntegerField(
        default=1, validators=[MinValueValidator(1)], help_text=_("Number of deliveries received for this event")
    )

    # Metadata
    ip_address = models.GenericIPAddressField(
        null=True, blank=True, help_text=_("Client IP of the first delivery")
    )
    user_agent = models.TextField(blank=True, help_text=_("User-Agent of the first delivery"))
    headers = models.JSONField(default=dict, blank=True, help_text=_("Sanitized request headers, signatures redacted"))

    # Audit trail
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("🔄 Webhook Event")
        verbose_name_plural = _("🔄 Webhook Events")

        # One ledger row per provider event
        unique_together: ClassVar[tuple[tuple[str, ...], ...]] = (("source", "event_id"),)

        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(
                fields=["status", "received_at"], name="webhook_failed_idx", condition=models.Q(status="failed")
            ),
            # Query by source and event type
            models.Index(fields=["source", "event_type", "received_at"], name="webhook_source_type_idx"),
        )

        ordering: ClassVar[tuple[str, ...]] = ("-received_at",)

    def __str__(self) -> str:
        return f"🔄 {self.get_source_display()} | {self.event_type} | {self.status}"

    @property
    def is_settled(self) -> bool:
        """Processed or deliberately skipped; a redelivery has nothing left to do."""
        return self.status in ("processed", "skipped")

    @property
    def processing_duration(self) -> Any | None:
        """⏱️ Receipt to terminal status"""
        if self.processed_at and self.received_at:
            return self.processed_at - self.received_at
        return None

    @staticmethod
    def body_digest(raw_body: bytes) -> str:
        """Stable event id for providers that do not send one."""
        return f"sha256:{hashlib.sha256(raw_body).hexdigest()}"

    def set_signature(self, signature: str | None) -> None:
        """Store a digest of the signature header, never the header itself."""
        if not signature:
            self.signature_hash = ""
        else:
            self.signature_hash = hashlib.sha256(signature.encode()).hexdigest()

    def mark_processed(self, order: Any = None, save: bool = True) -> None:
        """✅ Reconciled against an order (or acknowledged without one)"""
        self.status = "processed"
        self.error_message = ""
        self.processed_at = timezone.now()
        if order is not None:
            self.order = order
        if save:
            self.save(update_fields=["status", "error_message", "processed_at", "order", "updated_at"])

    def mark_failed(self, error_message: str, save: bool = True) -> None:
        """❌ Left retryable; the next provider redelivery reprocesses it"""
        self.status = "failed"
        self.error_message = error_message[:ERROR_MESSAGE_MAX_LENGTH]
        self.processed_at = timezone.now()
        if save:
            self.save(update_fields=["status", "error_message", "processed_at", "updated_at"])

    def mark_skipped(self, reason: str = "Ignored event type", save: bool = True) -> None:
        """⏭️ Mark webhook as skipped (event type we do not act on)"""
        self.status = "skipped"
        self.error_message = reason
        self.processed_at = timezone.now()
        if save:
            self.save(update_fields=["status", "error_message", "processed_at", "updated_at"])

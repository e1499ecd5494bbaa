"""
Notification Services for the storefront payment backend
Payment confirmation email/SMS, staff order emails, the failure ledger
and operator alerts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils import timezone

from apps.common.constants import CURRENCY_SYMBOL, DEFAULT_NOTIFICATION_MAX_ATTEMPTS, ERROR_MESSAGE_MAX_LENGTH

from .models import FailedNotification, OperatorAlert
from .sms import format_phone_number, get_sms_gateway

if TYPE_CHECKING:
    from apps.orders.models import Order

logger = logging.getLogger(__name__)

NOTIFICATION_PAYMENT_CONFIRMATION = "payment_confirmation_email"
NOTIFICATION_ORDER_NOTIFICATION = "order_notification_email"
NOTIFICATION_CONFIRMATION_SMS = "confirmation_sms"


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of one notification send."""

    success: bool
    error: str | None = None
    message_id: str | None = None
    provider: str | None = None
    skipped: bool = False


def _order_context(order: Order) -> dict[str, Any]:
    return {
        "order": order,
        "order_number": order.order_number,
        "amount": f"{order.total:,.2f}",
        "currency_symbol": CURRENCY_SYMBOL,
        "payment_method": order.get_payment_provider_display() or "Online payment",
        "transaction_reference": order.payment_reference or "",
        "items": list(order.items.all()),
    }


# ===============================================================================
# EMAIL SERVICE
# ===============================================================================


class EmailService:
    """📧 Transactional order emails rendered from templates."""

    @staticmethod
    def _send_email(recipients: list[str], subject: str, template: str, context: dict[str, Any]) -> NotificationResult:
        """Render the text/HTML pair and send it through Django's email backend."""
        try:
            body = render_to_string(f"notifications/{template}.txt", context)
            html_body = render_to_string(f"notifications/{template}.html", context)

            email = EmailMultiAlternatives(
                subject=subject,
                body=body,
                from_email=settings.DEFAULT_FROM_EMAIL,
                to=recipients,
            )
            email.attach_alternative(html_body, "text/html")
            email.send(fail_silently=False)
        except Exception as e:
            logger.exception(f"🔥 [Email] Failed to send '{subject}' to {', '.join(recipients)}")
            return NotificationResult(success=False, error=str(e) or e.__class__.__name__, provider="email")

        logger.info(f"📧 [Email] Sent '{subject}' to {', '.join(recipients)}")
        return NotificationResult(success=True, provider="email")

    @classmethod
    def send_payment_confirmation(cls, order: Order) -> NotificationResult:
        """Receipt to the paying customer."""
        if not order.customer_email:
            return NotificationResult(success=False, error="Order has no customer email", provider="email")

        return cls._send_email(
            [order.customer_email],
            f"Payment received for order #{order.order_number}",
            "payment_confirmation",
            _order_context(order),
        )

    @classmethod
    def send_order_notification(cls, order: Order) -> NotificationResult:
        """New paid order notice to the operations team."""
        recipients = [email for email in getattr(settings, "ADMIN_ORDER_EMAILS", []) if email]
        if not recipients:
            logger.info(f"⏭️ [Email] No ADMIN_ORDER_EMAILS configured, skipping staff notice for {order.order_number}")
            return NotificationResult(success=True, skipped=True, provider="email")

        return cls._send_email(
            recipients,
            f"New paid order #{order.order_number}",
            "order_notification",
            _order_context(order),
        )


# ===============================================================================
# SMS SERVICE
# ===============================================================================


class SMSService:
    """📱 Customer SMS through the configured gateway."""

    @staticmethod
    def confirmation_message(order: Order) -> str:
        return (
            f"Payment of {CURRENCY_SYMBOL}{order.total:,.2f} received for Order #{order.order_number}. "
            f"We'll start preparing your order shortly!"
        )

    @classmethod
    def send_confirmation_sms(cls, order: Order) -> NotificationResult:
        if not order.customer_phone:
            return NotificationResult(success=False, error="Order has no customer phone", provider="sms")

        provider = getattr(settings, "SMS_PROVIDER", "termii")
        try:
            gateway = get_sms_gateway(provider)
            message_id = gateway.send(format_phone_number(order.customer_phone), cls.confirmation_message(order))
        except Exception as e:
            logger.exception(f"🔥 [SMS] Confirmation SMS failed for order {order.order_number}")
            return NotificationResult(success=False, error=str(e) or e.__class__.__name__, provider=provider)

        return NotificationResult(success=True, message_id=message_id, provider=provider)


# ===============================================================================
# FAILURE LEDGER AND OPERATOR ALERTS
# ===============================================================================


class NotificationLedger:
    """
    Durable records for staff follow-up.

    Both writes are called from failure paths after a payment is confirmed,
    so they log and swallow their own errors instead of raising.
    """

    @staticmethod
    def record_failed_notification(
        notification_type: str,
        order: Order | None,
        recipient: str,
        error_message: str,
        metadata: dict[str, Any] | None = None,
    ) -> FailedNotification | None:
        try:
            record = FailedNotification.objects.create(
                notification_type=notification_type,
                order=order,
                recipient=recipient,
                error_message=(error_message or "")[:ERROR_MESSAGE_MAX_LENGTH],
                status="pending_retry",
                attempts=1,
                last_attempt_at=timezone.now(),
                metadata=metadata or {},
            )
        except Exception:
            logger.exception(f"💥 [Notifications] Could not record failed {notification_type} for {recipient}")
            return None

        logger.error(f"❌ [Notifications] {notification_type} to {recipient} failed, queued for retry: {error_message}")
        return record

    @staticmethod
    def raise_operator_alert(
        alert_type: str,
        title: str,
        message: str,
        order: Order | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> OperatorAlert | None:
        try:
            alert = OperatorAlert.objects.create(
                alert_type=alert_type,
                title=title,
                message=message,
                order=order,
                metadata=metadata or {},
            )
        except Exception:
            logger.exception(f"💥 [Notifications] Could not raise {alert_type} alert: {title}")
            return None

        logger.warning(f"🚨 [Notifications] Operator alert {alert_type}: {title}")
        return alert


def _sender_for(notification_type: str) -> Any:
    return {
        NOTIFICATION_PAYMENT_CONFIRMATION: EmailService.send_payment_confirmation,
        NOTIFICATION_ORDER_NOTIFICATION: EmailService.send_order_notification,
        NOTIFICATION_CONFIRMATION_SMS: SMSService.send_confirmation_sms,
    }.get(notification_type)


def resend_failed_notification(record: FailedNotification) -> NotificationResult:
    """
    Retry one ledger entry and update its status.

    Success marks it sent; failure bumps attempts and abandons it (with an
    operator alert) once NOTIFICATION_MAX_RETRY_ATTEMPTS is reached.
    """
    sender = _sender_for(record.notification_type)
    if sender is None or record.order is None:
        result = NotificationResult(success=False, error="Notification cannot be replayed")
    else:
        result = sender(record.order)

    record.attempts += 1
    record.last_attempt_at = timezone.now()

    if result.success:
        record.status = "sent"
        logger.info(f"✅ [Notifications] Retried {record.notification_type} to {record.recipient}")
    else:
        record.error_message = (result.error or "")[:ERROR_MESSAGE_MAX_LENGTH]
        max_attempts = getattr(settings, "NOTIFICATION_MAX_RETRY_ATTEMPTS", DEFAULT_NOTIFICATION_MAX_ATTEMPTS)
        if record.attempts >= max_attempts:
            record.status = "abandoned"
            NotificationLedger.raise_operator_alert(
                "notification_abandoned",
                f"Gave up on {record.get_notification_type_display()}",
                f"{record.notification_type} to {record.recipient} failed {record.attempts} times: {result.error}",
                order=record.order,
                metadata={"failed_notification_id": str(record.id)},
            )

    record.save(update_fields=["attempts", "last_attempt_at", "status", "error_message", "updated_at"])
    return result


# Module-level entry points used by the fulfillment pipeline
send_payment_confirmation = EmailService.send_payment_confirmation
send_order_notification = EmailService.send_order_notification
send_confirmation_sms = SMSService.send_confirmation_sms
record_failed_notification = NotificationLedger.record_failed_notification
raise_operator_alert = NotificationLedger.raise_operator_alert

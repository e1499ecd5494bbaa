"""
Post-payment fulfillment for orders
Everything that happens after the payment gate: rewards, promo usage,
streaks, external sync and notifications.

Only the delivery that won the gate runs the pipeline. Each stage commits
on its own and absorbs its own failures into logs, operator alerts and the
notification failure ledger; nothing here can undo the paid order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from django.conf import settings

from apps.common.constants import DEFAULT_AMOUNT_TOLERANCE_MINOR
from apps.customers.models import CustomerProfile
from apps.customers.services import CustomerProfileService
from apps.integrations import sync
from apps.integrations.webhooks.events import PaymentEvent
from apps.notifications import services as notifications
from apps.notifications.services import NotificationResult
from apps.promotions import services as promotions
from apps.promotions import streaks
from apps.promotions.services import RewardProcessingResult
from apps.promotions.streaks import StreakResult

from .models import Order
from .services import GateOutcome

logger = logging.getLogger(__name__)


@dataclass
class FulfillmentReport:
    """What the pipeline did for one paid order; used for logging and tests."""

    order_number: str
    profile_id: Any = None
    rewards: RewardProcessingResult | None = None
    promo_incremented: bool = False
    streak: StreakResult | None = None
    sync_errors: list[str] = field(default_factory=list)
    failed_notifications: list[str] = field(default_factory=list)
    alerts: list[str] = field(default_factory=list)


class PaymentFulfillmentPipeline:
    """Runs the post-payment stages in order for the winning delivery."""

    def __init__(self, order: Order, event: PaymentEvent):
        self.order = order
        self.event = event
        self.report = FulfillmentReport(order_number=order.order_number)

    def run(self) -> FulfillmentReport:
        profile, needs_sync = self._resolve_profile()

        self._apply_rewards(profile)
        self._update_streak(profile)
        self._check_paid_amount()
        self._sync_external_systems(profile, needs_sync)
        self._send_notifications()

        logger.info(
            f"✅ [Fulfillment] Order {self.order.order_number} fulfilled: "
            f"{len(self.report.alerts)} alerts, {len(self.report.failed_notifications)} failed notifications"
        )
        return self.report

    # ===============================================================================
    # STAGES
    # ===============================================================================

    def _resolve_profile(self) -> tuple[CustomerProfile | None, bool]:
        try:
            profile, needs_sync = CustomerProfileService.resolve_profile_for_order(self.order)
        except Exception:
            logger.exception(f"💥 [Fulfillment] Could not resolve customer profile for {self.order.order_number}")
            return None, False

        self.report.profile_id = profile.pk
        return profile, needs_sync

    def _apply_rewards(self, profile: CustomerProfile | None) -> None:
        """Atomic reward grant, then promo usage only if rewards succeeded."""
        if profile is None:
            result = RewardProcessingResult(success=False, error_message="No customer profile for order")
        else:
            try:
                result = promotions.process_payment_atomically(self.order.pk, profile.pk, self.order.total)
            except Exception as e:
                logger.exception(f"💥 [Fulfillment] Reward processing raised for {self.order.order_number}")
                result = RewardProcessingResult(success=False, error_message=str(e) or e.__class__.__name__)

        self.report.rewards = result

        if not result.success:
            logger.error(
                f"❌ [Fulfillment] Rewards failed for paid order {self.order.order_number}: {result.error_message}"
            )
            self._alert(
                "reward_processing_failed",
                f"Reward processing failed for order {self.order.order_number}",
                f"Payment was confirmed but rewards were not granted: {result.error_message}. "
                f"Reconcile points, first order bonus and referral manually.",
                {"profile_id": str(profile.pk) if profile else None, "error": result.error_message},
            )
            return

        logger.info(
            f"✅ [Fulfillment] Rewards for {self.order.order_number}: +{result.points_awarded} points, "
            f"first order bonus={result.first_order_bonus_claimed}, referral={result.referral_processed}"
        )

        if self.order.promo_code_id:
            self._increment_promo_usage()

    def _increment_promo_usage(self) -> None:
        try:
            usage = promotions.increment_promo_usage(self.order.promo_code_id)
        except Exception as e:
            logger.exception(f"💥 [Fulfillment] Promo usage increment raised for {self.order.order_number}")
            usage = promotions.PromoUsageResult(success=False, error_message=str(e) or e.__class__.__name__)

        if usage.success:
            self.report.promo_incremented = True
            logger.info(f"🎟️ [Fulfillment] Promo {self.order.promo_code_id} usage incremented")
            return

        logger.error(f"❌ [Fulfillment] Promo usage not incremented for {self.order.order_number}: {usage.error_message}")
        self._alert(
            "promo_usage_failed",
            f"Promo usage not recorded for order {self.order.order_number}",
            usage.error_message,
            {"promo_code_id": str(self.order.promo_code_id)},
        )

    def _update_streak(self, profile: CustomerProfile | None) -> None:
        if profile is None:
            return
        try:
            self.report.streak = streaks.update_streak(profile.pk, self.order.total, use_elevated_privileges=True)
        except Exception:
            logger.exception(f"💥 [Fulfillment] Streak update failed for {self.order.order_number}")
            return
        logger.info(f"🔥 [Fulfillment] {profile.email}: {self.report.streak.message}")

    def _check_paid_amount(self) -> None:
        if self.event.amount_minor is None:
            return

        tolerance = getattr(settings, "PAYMENT_AMOUNT_TOLERANCE_MINOR", DEFAULT_AMOUNT_TOLERANCE_MINOR)
        difference = self.event.amount_minor - self.order.total_cents
        if abs(difference) <= tolerance:
            return

        logger.warning(
            f"⚠️ [Fulfillment] {self.event.provider} reported {self.event.amount_minor} kobo for "
            f"{self.order.order_number}, order total is {self.order.total_cents}"
        )
        self._alert(
            "amount_mismatch",
            f"Payment amount mismatch on order {self.order.order_number}",
            f"{self.event.provider} reported {self.event.amount_minor} kobo, order total is "
            f"{self.order.total_cents} kobo (difference {difference}).",
            {"paid_minor": self.event.amount_minor, "expected_minor": self.order.total_cents},
        )

    def _sync_external_systems(self, profile: CustomerProfile | None, needs_sync: bool) -> None:
        """Customer first when it was never pushed, then the order."""
        if profile is not None and needs_sync:
            self._run_sync("customer", lambda: sync.sync_new_customer(profile))
        self._run_sync("order", lambda: sync.sync_order_completion(self.order, profile))

    def _run_sync(self, label: str, call: Callable[[], sync.SyncResult]) -> None:
        try:
            result = call()
        except Exception as e:
            logger.exception(f"💥 [Fulfillment] {label} sync raised for {self.order.order_number}")
            errors = [str(e) or e.__class__.__name__]
        else:
            errors = result.errors

        if not errors:
            return

        self.report.sync_errors.extend(errors)
        logger.error(f"❌ [Fulfillment] {label} sync failed for {self.order.order_number}: {'; '.join(errors)}")
        self._alert(
            "sync_failed",
            f"External {label} sync failed for order {self.order.order_number}",
            "; ".join(errors),
            {"stage": label},
        )

    def _send_notifications(self) -> None:
        self._notify(
            notifications.NOTIFICATION_PAYMENT_CONFIRMATION,
            self.order.customer_email,
            notifications.send_payment_confirmation,
        )
        self._notify(
            notifications.NOTIFICATION_ORDER_NOTIFICATION,
            ", ".join(getattr(settings, "ADMIN_ORDER_EMAILS", [])),
            notifications.send_order_notification,
        )
        if getattr(settings, "SMS_ENABLED", False) and self.order.customer_phone:
            self._notify(
                notifications.NOTIFICATION_CONFIRMATION_SMS,
                self.order.customer_phone,
                notifications.send_confirmation_sms,
            )

    def _notify(self, notification_type: str, recipient: str, send: Callable[[Order], NotificationResult]) -> None:
        """One channel: a failed result or a raised error lands in the failure ledger plus an alert."""
        try:
            result = send(self.order)
        except Exception as e:
            logger.exception(f"💥 [Fulfillment] {notification_type} raised for {self.order.order_number}")
            result = NotificationResult(success=False, error=str(e) or e.__class__.__name__)

        if result.success:
            return

        self.report.failed_notifications.append(notification_type)
        record = notifications.record_failed_notification(
            notification_type,
            self.order,
            recipient,
            result.error or "Unknown error",
            metadata={
                "provider": result.provider,
                "payment_provider": self.event.provider,
                "transaction_id": self.event.transaction_id,
            },
        )
        self._alert(
            "notification_failed",
            f"{notification_type} failed for order {self.order.order_number}",
            f"Could not notify {recipient}: {result.error}. Queued for retry.",
            {"failed_notification_id": str(record.pk) if record else None},
        )

    # ===============================================================================
    # HELPERS
    # ===============================================================================

    def _alert(self, alert_type: str, title: str, message: str, metadata: dict[str, Any]) -> None:
        notifications.raise_operator_alert(
            alert_type,
            title,
            message,
            order=self.order,
            metadata={
                "order_id": str(self.order.pk),
                "order_number": self.order.order_number,
                "transaction_id": self.event.transaction_id,
                **metadata,
            },
        )
        self.report.alerts.append(alert_type)


def handle_gate_outcome(outcome: GateOutcome, event: PaymentEvent) -> FulfillmentReport | None:
    """
    Run fulfillment for the winning success delivery.

    A losing success delivery runs nothing, but a payment landing on an
    order that already failed or was paid under another reference is
    surfaced to staff since money may need refunding.
    """
    order = outcome.order

    if not event.is_success:
        return None

    if outcome.won:
        return PaymentFulfillmentPipeline(order, event).run()

    if order.payment_status == "failed":
        logger.warning(
            f"⚠️ [Fulfillment] {event.provider} confirmed {event.transaction_id} for failed order {order.order_number}"
        )
        notifications.raise_operator_alert(
            "payment_after_failure",
            f"Payment received for failed order {order.order_number}",
            f"{event.provider} confirmed transaction {event.transaction_id} after the order was marked "
            f"{order.status}. Refund or reinstate the order manually.",
            order=order,
            metadata={"transaction_id": event.transaction_id, "provider": event.provider},
        )
    elif order.is_paid and order.payment_reference != event.transaction_id:
        logger.warning(
            f"⚠️ [Fulfillment] Second payment {event.transaction_id} for paid order {order.order_number}"
        )
        notifications.raise_operator_alert(
            "duplicate_payment",
            f"Second payment for order {order.order_number}",
            f"{event.provider} confirmed transaction {event.transaction_id} but the order was already paid "
            f"with {order.payment_reference}. Refund the duplicate charge.",
            order=order,
            metadata={"transaction_id": event.transaction_id, "provider": event.provider},
        )
    return None

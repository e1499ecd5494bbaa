"""
Order payment services for the storefront payment backend
The idempotent payment gate: the only code that moves an order to paid.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from apps.common.types import Err, Ok, Result
from apps.integrations.webhooks.events import PAYMENT_CANCELLED, PaymentEvent, WebhookError

from .models import Order, OrderStatusHistory

logger = logging.getLogger(__name__)

# ===============================================================================
# GATE RESULT TYPES
# ===============================================================================


@dataclass(frozen=True)
class GateOutcome:
    """
    Result of a payment state transition attempt.

    won is True for exactly one delivery per order: the one whose
    conditional update changed the row. Only that delivery runs rewards,
    sync and notifications.
    """

    order: Order
    won: bool
    message: str


# ===============================================================================
# ORDER PAYMENT GATE
# ===============================================================================


class OrderPaymentGate:
    """
    🔒 Single-writer payment transitions for orders

    The conditional UPDATE ... WHERE payment_status = 'pending' is the only
    synchronization point. Duplicate provider deliveries, two gateways
    confirming the same order and racing requests all funnel through it.
    """

    @staticmethod
    def find_order(event: PaymentEvent) -> Result[Order, WebhookError]:
        """Locate the order by embedded id first, then by stored provider references."""
        lookups: list[Q] = []

        if event.order_id:
            try:
                lookups.append(Q(pk=uuid.UUID(str(event.order_id))))
            except ValueError:
                lookups.append(Q(order_number=event.order_id))

        references = [ref for ref in (event.payment_reference, event.transaction_id) if ref]
        if references:
            lookups.append(Q(payment_reference__in=references))

        if event.checkout_reference:
            lookups.append(Q(checkout_reference=event.checkout_reference))

        if not lookups:
            return Err(WebhookError.malformed("Missing order correlation key"))

        for lookup in lookups:
            order = Order.objects.filter(lookup).first()
            if order is not None:
                return Ok(order)

        logger.warning(f"⚠️ [Orders] No order matches {event.provider} event keys {event.correlation_keys}")
        return Err(WebhookError.not_found("Order not found"))

    @classmethod
    def confirm_payment(cls, event: PaymentEvent) -> Result[GateOutcome, WebhookError]:
        """Transition pending → paid for the delivery that wins the conditional update."""
        return cls.find_order(event).and_then(lambda order: cls._claim_payment(order, event))

    @staticmethod
    def _claim_payment(order: Order, event: PaymentEvent) -> Result[GateOutcome, WebhookError]:
        if order.payment_status == "paid" and order.payment_reference == event.transaction_id:
            logger.info(f"🔄 [Orders] Order {order.order_number} already paid with {event.transaction_id}")
            return Ok(GateOutcome(order=order, won=False, message="Already processed"))

        now = timezone.now()
        previous_status = order.status

        try:
            with transaction.atomic():
                updated = Order.objects.filter(pk=order.pk, payment_status="pending").update(
                    payment_status="paid",
                    status="confirmed",
                    payment_reference=event.transaction_id,
                    payment_provider=event.provider,
                    # Keep the checkout reference findable once payment_reference holds the transaction id
                    checkout_reference=order.checkout_reference or order.payment_reference or "",
                    paid_at=now,
                    updated_at=now,
                )
                if updated == 1:
                    OrderStatusHistory.objects.create(
                        order=order,
                        old_status=previous_status,
                        new_status="confirmed",
                        reason=f"Payment confirmed via {event.provider} ({event.transaction_id})",
                    )
        except IntegrityError:
            # payment_reference is unique: the transaction already confirmed a different order
            logger.error(
                f"❌ [Orders] Transaction {event.transaction_id} is already recorded on another order, "
                f"refusing to confirm {order.order_number}"
            )
            return Err(WebhookError.malformed("Transaction reference already used by another order"))

        order.refresh_from_db()

        if updated == 0:
            logger.info(
                f"🔄 [Orders] Order {order.order_number} lost the payment race "
                f"(payment_status={order.payment_status}), skipping side effects"
            )
            return Ok(GateOutcome(order=order, won=False, message="Already processed"))

        logger.info(f"✅ [Orders] Order {order.order_number} marked paid via {event.provider}")
        return Ok(GateOutcome(order=order, won=True, message="Payment confirmed"))

    @classmethod
    def record_payment_failure(cls, event: PaymentEvent) -> Result[GateOutcome, WebhookError]:
        """Mark an unpaid order failed or cancelled; a paid order is never touched."""
        return cls.find_order(event).and_then(lambda order: cls._mark_unpaid_order(order, event))

    @staticmethod
    def _mark_unpaid_order(order: Order, event: PaymentEvent) -> Result[GateOutcome, WebhookError]:
        new_status = "cancelled" if event.kind == PAYMENT_CANCELLED else "failed"
        previous_status = order.status

        with transaction.atomic():
            updated = (
                Order.objects.filter(pk=order.pk)
                .exclude(payment_status="paid")
                .update(payment_status="failed", status=new_status, updated_at=timezone.now())
            )
            if updated == 1 and previous_status != new_status:
                OrderStatusHistory.objects.create(
                    order=order,
                    old_status=previous_status,
                    new_status=new_status,
                    reason=(event.failure_reason or f"{event.event_type} via {event.provider}")[:255],
                )

        order.refresh_from_db()

        if updated == 0:
            logger.warning(
                f"⚠️ [Orders] Ignoring {event.kind} for already paid order {order.order_number}"
            )
            return Ok(GateOutcome(order=order, won=False, message="Order already paid, failure ignored"))

        logger.info(f"❌ [Orders] Order {order.order_number} marked {new_status} via {event.provider}")
        return Ok(GateOutcome(order=order, won=True, message=f"Order marked {new_status}"))

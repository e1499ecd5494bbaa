"""
💳 Paystack webhook processing

Deliveries carry x-paystack-signature: HMAC-SHA512 of the raw body, hex
encoded, keyed with the account secret key.
"""

import logging
from collections.abc import Sequence
from typing import Any, ClassVar

from apps.common.types import Err, Ok, Result

from .base import BaseWebhookProcessor, WebhookDelivery
from .events import PAYMENT_FAILED, PAYMENT_SUCCEEDED, IgnoredEvent, PaymentEvent, WebhookError
from .signatures import SignatureStrategy, hex_body_strategy

logger = logging.getLogger(__name__)


class PaystackWebhookProcessor(BaseWebhookProcessor):
    """💳 Paystack charge events"""

    source_name = "paystack"
    secret_setting = "PAYSTACK_SECRET_KEY"

    EVENT_KINDS: ClassVar[dict[str, str]] = {
        "charge.success": PAYMENT_SUCCEEDED,
        "charge.failed": PAYMENT_FAILED,
    }

    def signature_strategies(self) -> Sequence[SignatureStrategy]:
        return (hex_body_strategy("sha512"),)

    def extract_event_id(self, payload: dict[str, Any], delivery: WebhookDelivery) -> str:
        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        key = data.get("id") or data.get("reference")
        if key and payload.get("event"):
            return f"{payload['event']}:{key}"
        return super().extract_event_id(payload, delivery)

    def parse_event(self, payload: dict[str, Any]) -> Result[PaymentEvent | IgnoredEvent, WebhookError]:
        event_type = payload.get("event")
        if not event_type:
            return Err(WebhookError.malformed("Missing event type"))

        kind = self.EVENT_KINDS.get(event_type)
        if kind is None:
            return Ok(IgnoredEvent(provider=self.source_name, event_type=event_type))

        data = payload.get("data")
        if not isinstance(data, dict):
            return Err(WebhookError.malformed("Missing event data"))

        reference = str(data.get("reference") or "")
        if not reference:
            return Err(WebhookError.malformed("Missing transaction reference"))

        # Checkout puts our order id in the transaction metadata
        metadata = data.get("metadata") if isinstance(data.get("metadata"), dict) else {}
        order_id = metadata.get("order_id")

        amount = data.get("amount")
        return Ok(
            PaymentEvent(
                provider=self.source_name,
                kind=kind,
                event_type=event_type,
                transaction_id=reference,
                order_id=str(order_id) if order_id else None,
                payment_reference=reference,
                amount_minor=int(amount) if isinstance(amount, int | float) else None,
                failure_reason=str(data.get("gateway_response") or "") if kind == PAYMENT_FAILED else "",
            )
        )

"""
👛 Embedly checkout wallet webhook processing

A transfer into a checkout wallet is reported as
checkout.wallet.payment_received, signed with HMAC-SHA256 of the raw body
in hex (x-embedly-signature).
"""

import logging
from collections.abc import Sequence
from typing import Any, ClassVar

from apps.common.types import Err, Ok, Result

from .base import BaseWebhookProcessor, WebhookDelivery
from .events import PAYMENT_SUCCEEDED, IgnoredEvent, PaymentEvent, WebhookError
from .signatures import SignatureStrategy, hex_body_strategy

logger = logging.getLogger(__name__)


class EmbedlyWebhookProcessor(BaseWebhookProcessor):
    """👛 Embedly checkout wallet payments"""

    source_name = "embedly"
    secret_setting = "EMBEDLY_WEBHOOK_SECRET"

    EVENT_KINDS: ClassVar[dict[str, str]] = {
        "checkout.wallet.payment_received": PAYMENT_SUCCEEDED,
    }

    def signature_strategies(self) -> Sequence[SignatureStrategy]:
        return (hex_body_strategy("sha256"),)

    def extract_event_id(self, payload: dict[str, Any], delivery: WebhookDelivery) -> str:
        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        transaction_id = data.get("transactionId")
        if transaction_id:
            return str(transaction_id)
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

        transaction_id = str(data.get("transactionId") or "")
        wallet_id = str(data.get("walletId") or "")
        invoice_reference = str(data.get("invoiceReference") or "")

        if not transaction_id:
            return Err(WebhookError.malformed("Missing transaction id"))
        if not (wallet_id or invoice_reference):
            return Err(WebhookError.malformed("Missing order correlation key"))

        amount = data.get("amount")
        return Ok(
            PaymentEvent(
                provider=self.source_name,
                kind=kind,
                event_type=event_type,
                transaction_id=transaction_id,
                payment_reference=wallet_id or None,
                checkout_reference=invoice_reference or None,
                amount_minor=int(amount) if isinstance(amount, int | float) else None,
            )
        )

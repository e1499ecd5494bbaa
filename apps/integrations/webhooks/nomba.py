"""
💳 Nomba webhook processing

Nomba signs with HMAC-SHA256. Current deliveries sign the raw body (base64,
some integrations hex); older ones sign a colon-joined list of payload
fields plus the nomba-timestamp header. A present timestamp must fall
inside the replay window.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar

from django.conf import settings

from apps.common.constants import DEFAULT_TIMESTAMP_TOLERANCE_SECONDS, MINOR_UNITS_PER_MAJOR
from apps.common.types import Err, Ok, Result

from .base import BaseWebhookProcessor, WebhookDelivery
from .events import PAYMENT_CANCELLED, PAYMENT_FAILED, PAYMENT_SUCCEEDED, IgnoredEvent, PaymentEvent, WebhookError
from .signatures import (
    SignatureStrategy,
    base64_body_strategy,
    field_concatenation_strategy,
    hex_body_strategy,
    timestamp_within_tolerance,
)

logger = logging.getLogger(__name__)

SUPPORTED_SIGNATURE_ALGORITHM = "hmacsha256"


def _legacy_signed_fields(payload: dict[str, Any], headers: dict[str, str]) -> str | None:
    """event_type:requestId:userId:walletId:transactionId:type:time:responseCode:timestamp"""
    data = payload["data"]
    transaction = data["transaction"]
    merchant = data.get("merchant") or {}
    timestamp = headers.get("nomba-timestamp", "")
    if not timestamp:
        return None
    return ":".join(
        str(part)
        for part in (
            payload["event_type"],
            payload["requestId"],
            merchant.get("userId", ""),
            merchant.get("walletId", ""),
            transaction["transactionId"],
            transaction.get("type", ""),
            transaction.get("time", ""),
            transaction.get("responseCode", ""),
            timestamp,
        )
    )


def _naira_to_kobo(amount: Any) -> int | None:
    if amount is None or isinstance(amount, bool):
        return None
    try:
        return int((Decimal(str(amount)) * MINOR_UNITS_PER_MAJOR).to_integral_value())
    except InvalidOperation:
        return None


class NombaWebhookProcessor(BaseWebhookProcessor):
    """💳 Nomba checkout events"""

    source_name = "nomba"
    secret_setting = "NOMBA_WEBHOOK_SECRET"

    EVENT_KINDS: ClassVar[dict[str, str]] = {
        "payment_success": PAYMENT_SUCCEEDED,
        "payment_failed": PAYMENT_FAILED,
        "payment_cancelled": PAYMENT_CANCELLED,
    }

    def signature_strategies(self) -> Sequence[SignatureStrategy]:
        return (
            base64_body_strategy("sha256"),
            hex_body_strategy("sha256"),
            field_concatenation_strategy("nomba-legacy-fields", _legacy_signed_fields),
        )

    def verify_signature(self, delivery: WebhookDelivery, secret: str) -> bool:
        headers = {key.lower(): value for key, value in delivery.headers.items()}

        algorithm = headers.get("nomba-signature-algorithm")
        if algorithm and algorithm.lower() != SUPPORTED_SIGNATURE_ALGORITHM:
            logger.warning(f"🔒 [Security] Unsupported Nomba signature algorithm: {algorithm[:40]}")
            return False

        signature_valid = super().verify_signature(delivery, secret)

        timestamp = headers.get("nomba-timestamp")
        if timestamp is None:
            return signature_valid

        tolerance = getattr(settings, "NOMBA_TIMESTAMP_TOLERANCE_SECONDS", DEFAULT_TIMESTAMP_TOLERANCE_SECONDS)
        return signature_valid and timestamp_within_tolerance(timestamp, tolerance)

    def extract_event_id(self, payload: dict[str, Any], delivery: WebhookDelivery) -> str:
        request_id = payload.get("requestId")
        if request_id:
            return str(request_id)
        return super().extract_event_id(payload, delivery)

    def parse_event(self, payload: dict[str, Any]) -> Result[PaymentEvent | IgnoredEvent, WebhookError]:
        event_type = payload.get("event_type")
        if not event_type:
            return Err(WebhookError.malformed("Missing event type"))

        kind = self.EVENT_KINDS.get(event_type)
        if kind is None:
            return Ok(IgnoredEvent(provider=self.source_name, event_type=event_type))

        data = payload.get("data")
        if not isinstance(data, dict):
            return Err(WebhookError.malformed("Missing event data"))

        transaction = data.get("transaction") if isinstance(data.get("transaction"), dict) else {}
        order = data.get("order") if isinstance(data.get("order"), dict) else {}

        order_reference = str(order.get("orderReference") or "")
        transaction_id = str(transaction.get("transactionId") or "")

        if not order_reference:
            return Err(WebhookError.malformed("Missing order reference"))
        if kind == PAYMENT_SUCCEEDED and not transaction_id:
            return Err(WebhookError.malformed("Missing transaction id"))

        return Ok(
            PaymentEvent(
                provider=self.source_name,
                kind=kind,
                event_type=event_type,
                transaction_id=transaction_id,
                payment_reference=order_reference,
                checkout_reference=order_reference,
                amount_minor=_naira_to_kobo(order.get("amount")),
                failure_reason=str(transaction.get("responseMessage") or data.get("message") or ""),
            )
        )

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, replace
from typing import Any

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import F

from apps.common.types import Err, Ok, Result
from apps.integrations.models import WebhookEvent
from apps.orders.fulfillment import handle_gate_outcome
from apps.orders.services import GateOutcome, OrderPaymentGate

from .events import IgnoredEvent, PaymentEvent, WebhookError
from .signatures import SignatureStrategy, verify_signature

logger = logging.getLogger(__name__)


class SecurityError(Exception):
    """🔒 Security-related errors in webhook processing"""


# ===============================================================================
# WEBHOOK PROCESSING RESULT TYPES
# ===============================================================================


@dataclass(frozen=True)
class WebhookDelivery:
    """One inbound HTTP delivery, exactly as received."""

    raw_body: bytes
    signature: str
    headers: dict[str, str]
    ip_address: str | None = None
    user_agent: str = ""


@dataclass(frozen=True)
class WebhookContext:
    """State carried between pipeline stages."""

    delivery: WebhookDelivery
    payload: dict[str, Any]
    event: PaymentEvent | IgnoredEvent | None = None
    event_id: str = ""
    webhook_event: WebhookEvent | None = None
    already_settled: bool = False


@dataclass(frozen=True)
class WebhookProcessingResult:
    """Result of webhook processing: what the provider is told, plus the ledger row."""

    success: bool
    message: str
    http_status: int = 200
    webhook_event: WebhookEvent | None = None

    @classmethod
    def success_result(cls, message: str, event: WebhookEvent | None = None) -> "WebhookProcessingResult":
        return cls(success=True, message=message, http_status=200, webhook_event=event)

    @classmethod
    def error_result(cls, error: WebhookError, event: WebhookEvent | None = None) -> "WebhookProcessingResult":
        return cls(success=False, message=error.message, http_status=error.http_status, webhook_event=event)


# ===============================================================================
# BASE WEBHOOK PROCESSING
# ===============================================================================


class BaseWebhookProcessor(ABC):
    """
    🔧 Abstract base class for payment provider webhooks

    Pipeline: Verify → Parse → Record delivery → Gate → Fulfil.
    Verification, parsing and the gate are fatal stages that reject the
    delivery; fulfillment absorbs its own failures.
    """

    source_name: str = ""  # Override in subclasses
    secret_setting: str = ""  # Name of the Django setting holding the signing secret

    def __init__(self) -> None:
        if not self.source_name:
            self.source_name = self.__class__.__name__.lower()

        # Validate that signature implementation is secure
        self._validate_signature_implementation()

    def process_webhook(self, delivery: WebhookDelivery) -> WebhookProcessingResult:
        """🔄 Main webhook processing pipeline"""
        try:
            result = (
                self._verify_delivery(delivery)
                .and_then(self._parse_payload)
                .and_then(self._classify_event)
                .and_then(self._record_delivery)
                .and_then(self._reconcile)
            )
        except Exception:
            logger.exception(f"💥 Critical error processing {self.source_name} webhook")
            # SECURITY: Never expose internal exception details
            return WebhookProcessingResult.error_result(WebhookError.internal("Internal processing error"))

        match result:
            case Ok(processing_result):
                return processing_result
            case Err(error):
                logger.warning(f"❌ {self.source_name} webhook rejected ({error.kind}): {error.message}")
                return WebhookProcessingResult.error_result(error)

    # ===============================================================================
    # STAGES
    # ===============================================================================

    def _verify_delivery(self, delivery: WebhookDelivery) -> Result[WebhookDelivery, WebhookError]:
        """Step 1: Authenticate the raw body before anything reads it."""
        secret = self.get_secret()
        if not secret:
            logger.error(f"🔒 [Security] {self.source_name} webhook secret is not configured, failing secure")
            return Err(WebhookError.authentication("Webhook secret not configured"))

        if not delivery.signature:
            logger.warning(f"🔒 [Security] {self.source_name} webhook without signature from {delivery.ip_address}")
            return Err(WebhookError.authentication("Missing signature"))

        if not self.verify_signature(delivery, secret):
            logger.warning(f"🔒 [Security] Invalid {self.source_name} webhook signature from {delivery.ip_address}")
            return Err(WebhookError.authentication("Invalid signature"))

        return Ok(delivery)

    def _parse_payload(self, delivery: WebhookDelivery) -> Result[WebhookContext, WebhookError]:
        """Step 2: Decode the verified body."""
        payload = _decode_json_object(delivery.raw_body)
        if payload is None:
            return Err(WebhookError.malformed("Invalid JSON payload"))
        return Ok(WebhookContext(delivery=delivery, payload=payload))

    def _classify_event(self, context: WebhookContext) -> Result[WebhookContext, WebhookError]:
        """Step 3: Normalize the provider payload."""
        return self.parse_event(context.payload).map(
            lambda event: replace(context, event=event, event_id=self.extract_event_id(context.payload, context.delivery))
        )

    def _record_delivery(self, context: WebhookContext) -> Result[WebhookContext, WebhookError]:
        """
        Step 4: Write the delivery ledger row.

        A redelivery of an event that already settled short-circuits later.
        The ledger is an audit trail; the order gate still decides on effects.
        """
        event = context.event
        event_type = event.event_type if event else ""
        defaults = {
            "event_type": event_type,
            "payload": context.payload,
            "ip_address": context.delivery.ip_address,
            "user_agent": context.delivery.user_agent,
            "headers": self._sanitize_headers(context.delivery.headers),
            "status": "pending",
        }

        try:
            with transaction.atomic():
                webhook_event, created = WebhookEvent.objects.get_or_create(
                    source=self.source_name, event_id=context.event_id, defaults=defaults
                )
        except IntegrityError:
            # Concurrent delivery of the same event created the row first
            webhook_event = WebhookEvent.objects.get(source=self.source_name, event_id=context.event_id)
            created = False

        if created:
            webhook_event.set_signature(context.delivery.signature)
            webhook_event.save(update_fields=["signature_hash", "updated_at"])
            return Ok(replace(context, webhook_event=webhook_event))

        WebhookEvent.objects.filter(pk=webhook_event.pk).update(delivery_count=F("delivery_count") + 1)
        if webhook_event.is_settled:
            logger.info(f"🔄 Duplicate {self.source_name} webhook {context.event_id} already {webhook_event.status}")
            return Ok(replace(context, webhook_event=webhook_event, already_settled=True))

        return Ok(replace(context, webhook_event=webhook_event))

    def _reconcile(self, context: WebhookContext) -> Result[WebhookProcessingResult, WebhookError]:
        """Step 5: Run the order gate and, for the winner, fulfillment."""
        webhook_event = context.webhook_event
        event = context.event
        assert webhook_event is not None

        if context.already_settled:
            return Ok(WebhookProcessingResult.success_result("Already processed", webhook_event))

        if isinstance(event, IgnoredEvent):
            webhook_event.mark_skipped(f"Ignored event type: {event.event_type}")
            logger.info(f"⏭️ Ignoring {self.source_name} event type {event.event_type}")
            return Ok(WebhookProcessingResult.success_result("Event ignored", webhook_event))

        assert isinstance(event, PaymentEvent)
        try:
            gate_result = (
                OrderPaymentGate.confirm_payment(event)
                if event.is_success
                else OrderPaymentGate.record_payment_failure(event)
            )
        except Exception:
            webhook_event.mark_failed("Processing error: internal failure")
            logger.exception(f"💥 Exception reconciling {self.source_name} webhook {context.event_id}")
            return Err(WebhookError.internal("Internal processing error"))

        match gate_result:
            case Err(error):
                webhook_event.mark_failed(error.message)
                return Err(error)
            case Ok(outcome):
                return Ok(self._complete(outcome, event, webhook_event))

    def _complete(
        self, outcome: GateOutcome, event: PaymentEvent, webhook_event: WebhookEvent
    ) -> WebhookProcessingResult:
        # Order state is committed at this point; fulfillment failures never reach the provider
        try:
            handle_gate_outcome(outcome, event)
        except Exception:
            logger.exception(f"💥 Fulfillment crashed for order {outcome.order.order_number}")

        webhook_event.mark_processed(order=outcome.order)
        logger.info(f"✅ Processed {self.source_name} webhook {webhook_event.event_id}: {outcome.message}")
        return WebhookProcessingResult.success_result(outcome.message, webhook_event)

    # ===============================================================================
    # PROVIDER HOOKS
    # ===============================================================================

    def get_secret(self) -> str:
        return getattr(settings, self.secret_setting, "") if self.secret_setting else ""

    @abstractmethod
    def signature_strategies(self) -> Sequence[SignatureStrategy]:
        """🔐 Accepted signature encodings, in the order the provider documents them"""

    def verify_signature(self, delivery: WebhookDelivery, secret: str) -> bool:
        """Constant-time check of the delivery against every strategy."""
        return verify_signature(
            self.signature_strategies(),
            delivery.signature,
            secret,
            delivery.raw_body,
            payload=_decode_json_object(delivery.raw_body) or {},
            headers={key.lower(): value for key, value in delivery.headers.items()},
        )

    @abstractmethod
    def parse_event(self, payload: dict[str, Any]) -> Result[PaymentEvent | IgnoredEvent, WebhookError]:
        """🏷️ Reduce the provider payload to a PaymentEvent, or IgnoredEvent for types we do not act on"""

    def extract_event_id(self, payload: dict[str, Any], delivery: WebhookDelivery) -> str:
        """🔍 Provider event id; falls back to a digest of the body"""
        return WebhookEvent.body_digest(delivery.raw_body)

    @staticmethod
    def _sanitize_headers(headers: dict[str, str]) -> dict[str, str]:
        """Redact sensitive headers before storing."""
        if not headers:
            return {}
        sensitive = {
            "authorization",
            "cookie",
            "set-cookie",
            "x-paystack-signature",
            "nomba-signature",
            "nomba-sig-value",
            "x-nomba-signature",
            "x-embedly-signature",
        }
        sanitized: dict[str, str] = {}
        for key, value in headers.items():
            if key.lower() in sensitive:
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = value
        return sanitized

    # --- Security enforcement helpers ---
    def _validate_signature_implementation(self) -> None:
        """Refuse to start if verification accepts obviously invalid signatures."""
        always_false_cases = [
            WebhookDelivery(raw_body=b"", signature="", headers={}),
            WebhookDelivery(raw_body=b'{"test": "data"}', signature="obviously_invalid_signature_12345", headers={}),
            WebhookDelivery(raw_body=b"{}", signature="short", headers={"X-Test": "1"}),
        ]
        probe_secret = "probe-secret-for-self-check"  # noqa: S105

        for delivery in always_false_cases:
            if self.verify_signature(delivery, probe_secret):
                raise SecurityError("Overly permissive signature verification detected")


def _decode_json_object(raw_body: bytes) -> dict[str, Any] | None:
    try:
        payload = json.loads(raw_body)
    except (ValueError, UnicodeDecodeError):
        return None
    return payload if isinstance(payload, dict) else None


def get_webhook_processor(source: str) -> BaseWebhookProcessor | None:
    """
    🏭 Factory function to get appropriate webhook processor
    """
    # Import here to avoid circular imports
    from .embedly import EmbedlyWebhookProcessor  # noqa: PLC0415
    from .nomba import NombaWebhookProcessor  # noqa: PLC0415
    from .paystack import PaystackWebhookProcessor  # noqa: PLC0415

    processors: dict[str, type[BaseWebhookProcessor]] = {
        "paystack": PaystackWebhookProcessor,
        "nomba": NombaWebhookProcessor,
        "embedly": EmbedlyWebhookProcessor,
    }

    processor_class = processors.get(source)
    if processor_class:
        return processor_class()

    return None

"""
Normalized payment events and webhook error values.

Every provider payload is reduced to a PaymentEvent before it reaches the
order gate, so the reconciliation stages never look at provider JSON.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

# ===============================================================================
# EVENT KINDS
# ===============================================================================

PAYMENT_SUCCEEDED = "payment_succeeded"
PAYMENT_FAILED = "payment_failed"
PAYMENT_CANCELLED = "payment_cancelled"

NEGATIVE_EVENT_KINDS = frozenset({PAYMENT_FAILED, PAYMENT_CANCELLED})


@dataclass(frozen=True)
class PaymentEvent:
    """Provider-neutral payment notification."""

    provider: str
    kind: str
    event_type: str
    transaction_id: str
    order_id: str | None = None
    payment_reference: str | None = None
    checkout_reference: str | None = None
    amount_minor: int | None = None
    failure_reason: str = ""

    @property
    def is_success(self) -> bool:
        return self.kind == PAYMENT_SUCCEEDED

    @property
    def correlation_keys(self) -> dict[str, str]:
        """Non-empty keys usable to locate the order, for logging."""
        keys = {
            "order_id": self.order_id,
            "payment_reference": self.payment_reference,
            "checkout_reference": self.checkout_reference,
            "transaction_id": self.transaction_id,
        }
        return {name: value for name, value in keys.items() if value}


@dataclass(frozen=True)
class IgnoredEvent:
    """Event type the storefront does not act on; acknowledged and dropped."""

    provider: str
    event_type: str


# ===============================================================================
# WEBHOOK ERRORS
# ===============================================================================


@dataclass(frozen=True)
class WebhookError:
    """
    🚫 Fatal webhook failure carried through the Result pipeline.

    Only these reach the provider as non-2xx responses. Failures after the
    order gate are absorbed into alerts and the notification ledger instead.
    """

    AUTHENTICATION: ClassVar[str] = "authentication"
    MALFORMED: ClassVar[str] = "malformed"
    NOT_FOUND: ClassVar[str] = "not_found"
    INTERNAL: ClassVar[str] = "internal"

    HTTP_STATUS: ClassVar[dict[str, int]] = {
        "authentication": 401,
        "malformed": 400,
        "not_found": 404,
        "internal": 500,
    }

    kind: str
    message: str

    @property
    def http_status(self) -> int:
        return self.HTTP_STATUS.get(self.kind, 500)

    @classmethod
    def authentication(cls, message: str) -> WebhookError:
        return cls(cls.AUTHENTICATION, message)

    @classmethod
    def malformed(cls, message: str) -> WebhookError:
        return cls(cls.MALFORMED, message)

    @classmethod
    def not_found(cls, message: str) -> WebhookError:
        return cls(cls.NOT_FOUND, message)

    @classmethod
    def internal(cls, message: str) -> WebhookError:
        return cls(cls.INTERNAL, message)

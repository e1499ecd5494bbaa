"""
🔐 Webhook signature verification strategies

Each provider declares an ordered list of named strategies. A strategy turns
the delivery into the signature we expect, or None when it does not apply.
verify_signature() evaluates every strategy, compares each candidate in
constant time and folds the results, so neither timing nor logs reveal which
encoding matched.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_datetime

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedDelivery:
    """Everything a strategy may sign over."""

    raw_body: bytes
    payload: dict[str, Any]
    headers: dict[str, str]
    secret: str


@dataclass(frozen=True)
class SignatureStrategy:
    """A named way of computing the expected signature for a delivery."""

    name: str
    compute: Callable[[SignedDelivery], str | None]

    def expected(self, delivery: SignedDelivery) -> str | None:
        try:
            return self.compute(delivery)
        except (KeyError, TypeError, ValueError, AttributeError):
            # Payload lacks the fields this strategy signs over
            return None


def _mac(secret: str, message: bytes, algorithm: str) -> hmac.HMAC:
    return hmac.new(secret.encode("utf-8"), message, getattr(hashlib, algorithm))


# ===============================================================================
# STRATEGY FACTORIES
# ===============================================================================


def hex_body_strategy(algorithm: str = "sha256") -> SignatureStrategy:
    """HMAC over the raw body, hex encoded."""
    return SignatureStrategy(
        name=f"hmac-{algorithm}-hex",
        compute=lambda d: _mac(d.secret, d.raw_body, algorithm).hexdigest(),
    )


def base64_body_strategy(algorithm: str = "sha256") -> SignatureStrategy:
    """HMAC over the raw body, base64 encoded."""
    return SignatureStrategy(
        name=f"hmac-{algorithm}-base64",
        compute=lambda d: base64.b64encode(_mac(d.secret, d.raw_body, algorithm).digest()).decode("ascii"),
    )


def field_concatenation_strategy(
    name: str,
    build_message: Callable[[dict[str, Any], dict[str, str]], str | None],
    algorithm: str = "sha256",
) -> SignatureStrategy:
    """HMAC over a provider-defined concatenation of payload fields, base64 encoded."""

    def compute(delivery: SignedDelivery) -> str | None:
        message = build_message(delivery.payload, delivery.headers)
        if not message:
            return None
        return base64.b64encode(_mac(delivery.secret, message.encode("utf-8"), algorithm).digest()).decode("ascii")

    return SignatureStrategy(name=name, compute=compute)


# ===============================================================================
# VERIFICATION
# ===============================================================================


def verify_signature(
    strategies: Sequence[SignatureStrategy],
    signature: str,
    secret: str,
    raw_body: bytes,
    payload: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> bool:
    """
    Accept when any strategy's expected signature equals the supplied one.

    Fails closed on a missing secret or signature. All strategies are always
    evaluated and compared with hmac.compare_digest.
    """
    if not secret or not signature or not strategies:
        return False

    delivery = SignedDelivery(raw_body=raw_body, payload=payload or {}, headers=headers or {}, secret=secret)
    supplied = signature.strip().encode("utf-8")

    matched = False
    for strategy in strategies:
        expected = strategy.expected(delivery)
        candidate = expected.encode("utf-8") if expected else b""
        is_match = hmac.compare_digest(supplied, candidate)
        matched = matched | (is_match and expected is not None)

    return matched


def timestamp_within_tolerance(timestamp: str, tolerance_seconds: int, now: datetime | None = None) -> bool:
    """
    ⏰ Check an ISO 8601 or unix-seconds delivery timestamp against the replay window.
    """
    if not timestamp:
        return False

    sent_at: datetime | None
    if timestamp.isdigit():
        sent_at = datetime.fromtimestamp(int(timestamp), tz=UTC)
    else:
        try:
            sent_at = parse_datetime(timestamp.replace("Z", "+00:00"))
        except ValueError:
            sent_at = None

    if sent_at is None:
        logger.warning(f"⏰ Unparseable webhook timestamp: {timestamp[:40]}")
        return False

    if timezone.is_naive(sent_at):
        sent_at = sent_at.replace(tzinfo=UTC)

    age = abs((now or timezone.now()) - sent_at)
    if age > timedelta(seconds=tolerance_seconds):
        logger.warning(f"⏰ Webhook timestamp outside tolerance: {int(age.total_seconds())}s")
        return False
    return True

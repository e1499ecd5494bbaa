"""
📱 SMS gateways for customer payment confirmations

One gateway class per supported provider. Gateways raise on failure
(requests exceptions for transport errors, SMSDeliveryError for a provider
rejection); the notification services turn that into a NotificationResult.
"""

from __future__ import annotations

import logging
import re
from typing import Any, ClassVar

import requests
from django.conf import settings

from apps.common.constants import API_CONNECTION_TIMEOUT_SECONDS, API_REQUEST_TIMEOUT_SECONDS, SMS_MAX_LENGTH

logger = logging.getLogger(__name__)

SMS_TRUNCATION_SUFFIX = "..."


class SMSDeliveryError(Exception):
    """Provider accepted the request but did not queue the message."""


# ===============================================================================
# MESSAGE HELPERS
# ===============================================================================


def format_phone_number(phone: str, country_code: str | None = None) -> str:
    """
    Normalize a local or international number to E.164.

    0XXXXXXXXXX (11 digits) and 234XXXXXXXXXX (13 digits) are the common
    local shapes; anything already prefixed with + is kept as-is.
    """
    country_code = country_code or getattr(settings, "SMS_DEFAULT_COUNTRY_CODE", "+234")
    country_digits = country_code.lstrip("+")
    phone = phone.strip()
    digits = re.sub(r"\D", "", phone)

    if digits.startswith("0") and len(digits) == 11:  # noqa: PLR2004
        return f"{country_code}{digits[1:]}"
    if digits.startswith(country_digits) and len(digits) == len(country_digits) + 10:
        return f"+{digits}"
    if phone.startswith("+"):
        return phone
    if len(digits) == 11:  # noqa: PLR2004
        return f"{country_code}{digits}"
    return phone


def truncate_message(message: str) -> str:
    """Keep a message within six concatenated SMS segments."""
    if len(message) <= SMS_MAX_LENGTH:
        return message
    logger.warning(f"⚠️ [SMS] Message of {len(message)} chars truncated to {SMS_MAX_LENGTH}")
    return message[: SMS_MAX_LENGTH - len(SMS_TRUNCATION_SUFFIX)] + SMS_TRUNCATION_SUFFIX


# ===============================================================================
# GATEWAYS
# ===============================================================================


class SMSGateway:
    """Base gateway: subclasses build the provider request and read its reply."""

    name: ClassVar[str] = ""
    timeout: ClassVar[tuple[int, int]] = (API_CONNECTION_TIMEOUT_SECONDS, API_REQUEST_TIMEOUT_SECONDS)
    strip_plus: ClassVar[bool] = False

    def send(self, to: str, message: str) -> str:
        """Send one message and return the provider message id."""
        response = self._post(to.lstrip("+") if self.strip_plus else to, truncate_message(message))
        response.raise_for_status()
        message_id = self._message_id(response.json())
        if not message_id:
            raise SMSDeliveryError(f"{self.name} did not accept the message: {response.text[:200]}")
        logger.info(f"📱 [SMS] {self.name} queued message {message_id} to {to}")
        return message_id

    def _post(self, to: str, message: str) -> requests.Response:
        raise NotImplementedError

    def _message_id(self, data: dict[str, Any]) -> str:
        raise NotImplementedError


class TermiiGateway(SMSGateway):
    name = "termii"
    strip_plus = True
    url = "https://v3.api.termii.com/api/sms/send"

    def _post(self, to: str, message: str) -> requests.Response:
        return requests.post(
            self.url,
            json={
                "api_key": settings.TERMII_API_KEY,
                "to": to,
                "from": settings.TERMII_SENDER_ID,
                "sms": message,
                "type": "plain",
                "channel": "dnd",
            },
            timeout=self.timeout,
        )

    def _message_id(self, data: dict[str, Any]) -> str:
        if data.get("message_id"):
            return str(data["message_id"])
        return "termii-ok" if data.get("code") == "ok" else ""


class AfricasTalkingGateway(SMSGateway):
    name = "africastalking"
    url = "https://api.africastalking.com/version1/messaging"

    def _post(self, to: str, message: str) -> requests.Response:
        payload = {
            "username": settings.AFRICASTALKING_USERNAME,
            "to": to,
            "message": message,
        }
        if settings.AFRICASTALKING_SENDER_ID:
            payload["from"] = settings.AFRICASTALKING_SENDER_ID
        return requests.post(
            self.url,
            data=payload,
            headers={"apiKey": settings.AFRICASTALKING_API_KEY, "Accept": "application/json"},
            timeout=self.timeout,
        )

    def _message_id(self, data: dict[str, Any]) -> str:
        recipients = data.get("SMSMessageData", {}).get("Recipients") or []
        if not recipients:
            return ""
        return str(recipients[0].get("messageId") or "africastalking-queued")


class TwilioGateway(SMSGateway):
    name = "twilio"
    url = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

    def _post(self, to: str, message: str) -> requests.Response:
        sid = settings.TWILIO_ACCOUNT_SID
        return requests.post(
            self.url.format(sid=sid),
            data={"From": settings.TWILIO_FROM_NUMBER, "To": to, "Body": message},
            auth=(sid, settings.TWILIO_AUTH_TOKEN),
            timeout=self.timeout,
        )

    def _message_id(self, data: dict[str, Any]) -> str:
        return str(data.get("sid") or "")


SMS_GATEWAYS: dict[str, type[SMSGateway]] = {
    TermiiGateway.name: TermiiGateway,
    AfricasTalkingGateway.name: AfricasTalkingGateway,
    TwilioGateway.name: TwilioGateway,
}


def get_sms_gateway(provider: str | None = None) -> SMSGateway:
    """Instantiate the configured gateway; unknown names raise ValueError."""
    provider = (provider or getattr(settings, "SMS_PROVIDER", "termii")).lower()
    gateway_class = SMS_GATEWAYS.get(provider)
    if gateway_class is None:
        raise ValueError(f"Unsupported SMS provider: {provider}")
    return gateway_class()

"""
Embedly wallet-as-a-service client: customers, wallets and loyalty credits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from django.conf import settings
from django.core.cache import cache

from .base import IntegrationAPIError, IntegrationClient
from .zoho import split_full_name

logger = logging.getLogger(__name__)

REFERENCE_DATA_CACHE_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class EmbedlyConfig:
    api_key: str
    organization_id: str
    base_url: str
    default_city: str

    @classmethod
    def from_settings(cls) -> EmbedlyConfig:
        return cls(
            api_key=getattr(settings, "EMBEDLY_API_KEY", ""),
            organization_id=getattr(settings, "EMBEDLY_ORG_ID", ""),
            base_url=getattr(settings, "EMBEDLY_BASE_URL", "https://waas-prod.embedly.ng/api/v1"),
            default_city=getattr(settings, "EMBEDLY_DEFAULT_CITY", "Port Harcourt"),
        )


def _records(result: dict[str, Any]) -> list[dict[str, Any]]:
    data = result.get("data", result)
    return data if isinstance(data, list) else []


class EmbedlyClient(IntegrationClient):
    """Loyalty ledger: one customer and one NGN wallet per profile."""

    service_name = "Embedly"

    def __init__(self, config: EmbedlyConfig | None = None):
        super().__init__()
        self.config = config or EmbedlyConfig.from_settings()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key and self.config.organization_id)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def _auth_headers(self) -> dict[str, str]:
        return {"x-api-key": self.config.api_key}

    # --- Reference data ---

    def _reference_id(self, cache_key: str, path: str, match: Any) -> str:
        cached = cache.get(cache_key)
        if cached:
            return cached

        records = _records(self.request("GET", path))
        found = next((record for record in records if match(record)), None)
        if found is None:
            raise IntegrationAPIError(self.service_name, f"No matching record in {path}")

        cache.set(cache_key, found["id"], REFERENCE_DATA_CACHE_SECONDS)
        return found["id"]

    def country_id(self) -> str:
        return self._reference_id(
            "embedly_country_ng", "/utilities/countries/get", lambda c: c.get("countryCodeTwo") == "NG"
        )

    def customer_type_id(self) -> str:
        return self._reference_id(
            "embedly_customer_type_individual",
            "/customers/types/all",
            lambda t: str(t.get("name", "")).lower() == "individual",
        )

    def currency_id(self) -> str:
        return self._reference_id(
            "embedly_currency_ngn", "/utilities/currencies/get", lambda c: c.get("shortName") == "NGN"
        )

    # --- Customers and wallets ---

    def find_customer_id(self, email: str) -> str | None:
        email = email.lower()
        for customer in _records(self.request("GET", "/customers/get/all")):
            if str(customer.get("emailAddress") or customer.get("email") or "").lower() == email:
                return customer.get("id")
        return None

    def create_customer(self, email: str, full_name: str, phone: str = "") -> str:
        first_name, last_name = split_full_name(full_name)
        result = self.request(
            "POST",
            "/customers/add",
            json={
                "organizationId": self.config.organization_id,
                "firstName": first_name,
                "lastName": last_name,
                "emailAddress": email,
                "mobileNumber": phone,
                "countryId": self.country_id(),
                "customerTypeId": self.customer_type_id(),
                "city": self.config.default_city,
            },
        )
        return (result.get("data") or {}).get("id") or result["id"]

    def create_wallet(self, customer_id: str, name: str = "Wallet") -> str:
        result = self.request(
            "POST",
            "/wallets/add",
            json={"customerId": customer_id, "currencyId": self.currency_id(), "name": name or "Wallet"},
        )
        return (result.get("data") or {}).get("id") or result.get("walletId") or result["id"]

    def setup_customer_with_wallet(self, email: str, full_name: str, phone: str = "") -> tuple[str, str]:
        """
        Link or create the customer and open a wallet for it.

        Returns (customer_id, wallet_id); wallet_id is empty when the ledger
        refused to open another wallet for an existing customer.
        """
        customer_id = self.find_customer_id(email)
        if customer_id:
            logger.info(f"🔗 [Embedly] Linking existing customer {customer_id} for {email}")
        else:
            customer_id = self.create_customer(email, full_name, phone)
            logger.info(f"✅ [Embedly] Created customer {customer_id} for {email}")

        try:
            wallet_id = self.create_wallet(customer_id, full_name)
        except IntegrationAPIError as e:
            logger.warning(f"⚠️ [Embedly] Could not open wallet for customer {customer_id}: {e}")
            wallet_id = ""

        return customer_id, wallet_id

    def credit_wallet(self, wallet_id: str, amount: int, description: str) -> None:
        self.request(
            "POST",
            "/wallet/credit",
            json={
                "walletId": wallet_id,
                "amount": amount,
                "description": description,
                "organisationId": self.config.organization_id,
            },
        )

    def wallet_balance(self, wallet_id: str) -> int:
        result = self.request("GET", f"/wallet/{wallet_id}")
        wallet = result.get("data") or result
        return int(wallet.get("balance") or 0)

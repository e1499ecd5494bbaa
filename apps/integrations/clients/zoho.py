"""
Zoho CRM client: contacts, deals and contact notes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar
from urllib.parse import quote

import requests
from django.conf import settings
from django.core.cache import cache

from .base import IntegrationAPIError, IntegrationClient

logger = logging.getLogger(__name__)

TOKEN_REFRESH_MARGIN_SECONDS = 300


@dataclass(frozen=True)
class ZohoConfig:
    client_id: str
    client_secret: str
    refresh_token: str
    api_domain: str
    accounts_url: str

    @classmethod
    def from_settings(cls) -> ZohoConfig:
        return cls(
            client_id=getattr(settings, "ZOHO_CRM_CLIENT_ID", ""),
            client_secret=getattr(settings, "ZOHO_CRM_CLIENT_SECRET", ""),
            refresh_token=getattr(settings, "ZOHO_CRM_REFRESH_TOKEN", ""),
            api_domain=getattr(settings, "ZOHO_CRM_API_DOMAIN", "https://www.zohoapis.com"),
            accounts_url=getattr(settings, "ZOHO_CRM_ACCOUNTS_URL", "https://accounts.zoho.com"),
        )


def split_full_name(full_name: str) -> tuple[str, str]:
    """CRM contacts require a last name; fall back to the first name."""
    parts = full_name.split()
    first_name = parts[0] if parts else ""
    last_name = " ".join(parts[1:]) or first_name
    return first_name, last_name


class ZohoCRMClient(IntegrationClient):
    """Zoho CRM v6 API with a cached OAuth access token."""

    service_name = "ZohoCRM"
    TOKEN_CACHE_KEY: ClassVar[str] = "zoho_crm_access_token"  # noqa: S105

    def __init__(self, config: ZohoConfig | None = None):
        super().__init__()
        self.config = config or ZohoConfig.from_settings()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.client_id and self.config.client_secret and self.config.refresh_token)

    @property
    def base_url(self) -> str:
        return f"{self.config.api_domain}/crm/v6"

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Zoho-oauthtoken {self._access_token()}"}

    def _access_token(self) -> str:
        token = cache.get(self.TOKEN_CACHE_KEY)
        if token:
            return token

        response = requests.post(
            f"{self.config.accounts_url}/oauth/v2/token",
            data={
                "grant_type": "refresh_token",
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "refresh_token": self.config.refresh_token,
            },
            timeout=self.timeout,
        )
        if not response.ok:
            raise IntegrationAPIError(self.service_name, "Token refresh failed", response.status_code)

        data = response.json()
        token = data["access_token"]
        ttl = max(int(data.get("expires_in", 3600)) - TOKEN_REFRESH_MARGIN_SECONDS, 60)
        cache.set(self.TOKEN_CACHE_KEY, token, ttl)
        return token

    # --- Contacts ---

    def find_contact_id(self, email: str) -> str | None:
        result = self.request("GET", f"/Contacts/search?email={quote(email)}")
        records = result.get("data") or []
        return records[0]["id"] if records else None

    def upsert_contact(self, email: str, full_name: str, phone: str = "") -> tuple[str, str]:
        """Create or update the contact for an email. Returns (contact_id, 'created'|'updated')."""
        first_name, last_name = split_full_name(full_name)
        contact: dict[str, Any] = {"Email": email, "First_Name": first_name, "Last_Name": last_name}
        if phone:
            contact["Phone"] = phone

        existing_id = self.find_contact_id(email)
        if existing_id:
            self.request("PUT", f"/Contacts/{existing_id}", json={"data": [contact]})
            return existing_id, "updated"

        result = self.request("POST", "/Contacts", json={"data": [contact]})
        return result["data"][0]["details"]["id"], "created"

    def add_note(self, contact_id: str, title: str, content: str) -> None:
        self.request(
            "POST",
            "/Notes",
            json={
                "data": [
                    {
                        "Parent_Id": {"id": contact_id, "module": "Contacts"},
                        "Note_Title": title,
                        "Note_Content": content,
                    }
                ]
            },
        )

    # --- Deals ---

    def create_deal(
        self, name: str, amount: float, stage: str, closing_date: str, contact_id: str | None = None
    ) -> str:
        deal: dict[str, Any] = {
            "Deal_Name": name,
            "Stage": stage,
            "Amount": amount,
            "Closing_Date": closing_date,
            "Description": "Online storefront order",
        }
        if contact_id:
            deal["Contact_Name"] = {"id": contact_id}

        result = self.request("POST", "/Deals", json={"data": [deal]})
        return result["data"][0]["details"]["id"]

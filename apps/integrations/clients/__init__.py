"""
Outbound API clients for the CRM and the loyalty ledger.
"""

from .base import IntegrationAPIError, IntegrationClient
from .embedly import EmbedlyClient
from .zoho import ZohoCRMClient

__all__ = ["EmbedlyClient", "IntegrationAPIError", "IntegrationClient", "ZohoCRMClient"]

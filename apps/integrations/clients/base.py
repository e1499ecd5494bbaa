"""
Shared HTTP plumbing for outbound integration clients.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

import requests

from apps.common.constants import (
    API_CONNECTION_TIMEOUT_SECONDS,
    API_REQUEST_TIMEOUT_SECONDS,
    HTTP_CLIENT_ERROR_THRESHOLD,
)

logger = logging.getLogger(__name__)


class IntegrationAPIError(Exception):
    """Remote API answered with an error status or an unusable body."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status_code = status_code


class IntegrationClient:
    """
    Base class for JSON-over-HTTPS clients.

    Subclasses set service_name, implement base_url/is_configured and
    add their auth headers in _auth_headers(). Transport failures surface as
    requests exceptions, error statuses as IntegrationAPIError.
    """

    service_name: ClassVar[str] = ""
    timeout: ClassVar[tuple[int, int]] = (API_CONNECTION_TIMEOUT_SECONDS, API_REQUEST_TIMEOUT_SECONDS)

    def __init__(self) -> None:
        self._session: requests.Session | None = None

    @property
    def is_configured(self) -> bool:
        raise NotImplementedError

    @property
    def base_url(self) -> str:
        raise NotImplementedError

    @property
    def session(self) -> requests.Session:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(
                {
                    "Accept": "application/json",
                    "User-Agent": "Storefront-Payments/1.0",
                }
            )
        return self._session

    def close(self) -> None:
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> IntegrationClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _auth_headers(self) -> dict[str, str]:
        return {}

    def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send one request and return the decoded JSON body (empty dict for no content)."""
        url = f"{self.base_url.rstrip('/')}{path}"
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}

        response = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)

        if response.status_code >= HTTP_CLIENT_ERROR_THRESHOLD:
            logger.error(
                f"❌ [{self.service_name}] {method} {path} returned {response.status_code}: {response.text[:200]}"
            )
            raise IntegrationAPIError(
                self.service_name, f"{method} {path} failed with {response.status_code}", response.status_code
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise IntegrationAPIError(self.service_name, f"{method} {path} returned non-JSON body") from e

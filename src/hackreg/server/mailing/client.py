"""HTTP client for the mailing-list provider.

This module provides:
- MailListClient: Protocol implemented by every provider client
- HTTPMailListClient: Client for a REST provider exposing list members
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from hackreg.core.config import MailSettings

logger = logging.getLogger(__name__)


class MailProviderError(Exception):
    """The provider rejected a membership change."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MailListClient(Protocol):
    """Protocol for changing list membership at the provider."""

    def add_to_list(self, email: str, list_id: str) -> None:
        """Subscribe ``email`` to a list."""
        ...

    def remove_from_list(self, email: str, list_id: str) -> None:
        """Unsubscribe ``email`` from a list."""
        ...

    def close(self) -> None:
        """Release connections."""
        ...


class HTTPMailListClient:
    """Client for a provider with ``/lists/{id}/members`` resources.

    Usage:
        client = HTTPMailListClient.from_settings(settings.mail)
        client.add_to_list("ada@example.com", "wave1")
        client.close()
    """

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_url: Base URL of the provider API.
            api_key: Key sent as a bearer token.
            timeout: Request timeout in seconds.
            transport: Optional transport (tests use ``httpx.MockTransport``).
        """
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: MailSettings) -> HTTPMailListClient:
        if not settings.api_url:
            raise ValueError("Mail provider URL is not configured")
        return cls(settings.api_url, settings.api_key, settings.timeout)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def add_to_list(self, email: str, list_id: str) -> None:
        response = self._client.post(f"/lists/{list_id}/members", json={"email": email})
        self._check(response, f"add {email} to {list_id}")

    def remove_from_list(self, email: str, list_id: str) -> None:
        response = self._client.delete(f"/lists/{list_id}/members/{email}")
        # Already absent
        if response.status_code == 404:
            logger.debug("%s was not a member of %s", email, list_id)
            return
        self._check(response, f"remove {email} from {list_id}")

    def _check(self, response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        raise MailProviderError(
            f"Mail provider failed to {action}: {response.status_code} {response.text}",
            status_code=response.status_code,
        )

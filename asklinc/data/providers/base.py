"""Common interface for external data providers."""
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx


class ProviderUnavailable(Exception):
    """An external provider could not supply data (HTTP error, timeout, bad payload, no key)."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class DataProvider(ABC):
    """
    Abstract base class for market and economic data providers.

    Providers are read-only and hold no per-user state, so one instance is
    shared by every request.
    """

    name: str = "provider"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def _require_key(self) -> None:
        if not self.is_configured():
            raise ProviderUnavailable(self.name, "API key not configured")

    async def _get_json(self, url: str, **kwargs: Any) -> Any:
        """GET ``url`` and decode JSON, mapping transport and HTTP errors to ProviderUnavailable."""
        try:
            async with self._client() as client:
                response = await client.get(url, **kwargs)
        except httpx.HTTPError as e:
            raise ProviderUnavailable(self.name, f"request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderUnavailable(self.name, f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailable(self.name, "invalid JSON response") from e

    @abstractmethod
    async def get(self, topic: str) -> Any:
        """Fetch the current value for ``topic``."""
        pass

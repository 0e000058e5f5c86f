"""FRED economic indicator provider."""
import logging
from typing import Optional

import httpx

from asklinc.data.providers.base import DataProvider, ProviderUnavailable
from asklinc.data.schemas import MarketDataPoint

logger = logging.getLogger(__name__)


FRED_OBSERVATIONS_URL = "https://api.stlouisfed.org/fred/series/observations"


class FredProvider(DataProvider):
    """
    Latest observations from the St. Louis Fed FRED API.

    ``get(series_id)`` returns the most recent observation for a series
    such as ``CPIAUCSL`` or ``FEDFUNDS``.
    """

    name = "FRED"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_url: str = FRED_OBSERVATIONS_URL,
    ):
        super().__init__(api_key, timeout, transport)
        self.base_url = base_url

    async def get(self, topic: str) -> MarketDataPoint:
        self._require_key()

        data = await self._get_json(
            self.base_url,
            params={
                "series_id": topic,
                "api_key": self.api_key,
                "file_type": "json",
                "sort_order": "desc",
                "limit": 5,
            },
        )

        # FRED reports missing values as "."; skip to the latest real one
        for observation in data.get("observations", []):
            raw = observation.get("value")
            try:
                value = float(raw)
            except (TypeError, ValueError):
                continue
            return MarketDataPoint(value=value, date=observation.get("date", ""), source=self.name)

        logger.warning(f"FRED returned no usable observations for {topic}")
        raise ProviderUnavailable(self.name, f"no observations for {topic}")

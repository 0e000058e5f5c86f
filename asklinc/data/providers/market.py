"""Alpha Vantage live market data provider."""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from asklinc.data.providers.base import DataProvider, ProviderUnavailable
from asklinc.data.schemas import StockQuote, TreasuryYield

logger = logging.getLogger(__name__)


ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"

MATURITY_LABELS = {
    "3month": "3-month",
    "2year": "2-year",
    "5year": "5-year",
    "7year": "7-year",
    "10year": "10-year",
    "30year": "30-year",
}


class AlphaVantageProvider(DataProvider):
    """
    Live market data from Alpha Vantage.

    Topics:
    - ``treasury_yields``: latest daily yield for each configured maturity
    - ``stock_quotes``: latest quote for each configured symbol
    """

    name = "Alpha Vantage"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        maturities: Optional[List[str]] = None,
        symbols: Optional[List[str]] = None,
        base_url: str = ALPHA_VANTAGE_URL,
    ):
        super().__init__(api_key, timeout, transport)
        self.maturities = maturities or ["3month", "2year", "10year"]
        self.symbols = symbols or ["SPY"]
        self.base_url = base_url

    async def get(self, topic: str) -> List[Any]:
        self._require_key()

        if topic == "treasury_yields":
            return await self.get_treasury_yields()
        if topic == "stock_quotes":
            return await self.get_stock_quotes()
        raise ProviderUnavailable(self.name, f"unsupported topic {topic}")

    async def get_treasury_yields(self) -> List[TreasuryYield]:
        results = await asyncio.gather(
            *(self._treasury_yield(m) for m in self.maturities),
            return_exceptions=True,
        )
        return self._collect(results, "treasury yields")

    async def get_stock_quotes(self) -> List[StockQuote]:
        results = await asyncio.gather(
            *(self._stock_quote(s) for s in self.symbols),
            return_exceptions=True,
        )
        return self._collect(results, "stock quotes")

    async def _query(self, params: Dict[str, str]) -> Dict[str, Any]:
        data = await self._get_json(self.base_url, params={**params, "apikey": self.api_key})
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "unexpected response shape")
        # Rate limiting is reported in-band with HTTP 200
        for key in ("Note", "Information", "Error Message"):
            if key in data:
                raise ProviderUnavailable(self.name, str(data[key])[:200])
        return data

    async def _treasury_yield(self, maturity: str) -> TreasuryYield:
        data = await self._query({
            "function": "TREASURY_YIELD",
            "interval": "daily",
            "maturity": maturity,
        })
        for point in data.get("data", []):
            try:
                value = float(point.get("value"))
            except (TypeError, ValueError):
                continue
            return TreasuryYield(
                term=MATURITY_LABELS.get(maturity, maturity),
                yield_pct=value,
                date=point.get("date", ""),
            )
        raise ProviderUnavailable(self.name, f"no yield data for {maturity}")

    async def _stock_quote(self, symbol: str) -> StockQuote:
        data = await self._query({"function": "GLOBAL_QUOTE", "symbol": symbol})
        quote = data.get("Global Quote") or {}
        try:
            price = float(quote["05. price"])
        except (KeyError, TypeError, ValueError):
            raise ProviderUnavailable(self.name, f"no quote for {symbol}")

        change = quote.get("10. change percent", "").rstrip("%")
        try:
            change_percent = float(change)
        except ValueError:
            change_percent = None

        return StockQuote(
            symbol=quote.get("01. symbol", symbol),
            price=price,
            change_percent=change_percent,
            date=quote.get("07. latest trading day", ""),
        )

    def _collect(self, results: List[Any], label: str) -> List[Any]:
        values = []
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"Alpha Vantage partial failure for {label}: {result}")
                continue
            values.append(result)
        if not values:
            raise ProviderUnavailable(self.name, f"no {label} available")
        return values

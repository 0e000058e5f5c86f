"""Web search provider for real-time financial information.

Wraps a keyword text-search API (Brave by default; Bing, Google Custom
Search and SerpAPI are also supported) and normalises each response into
``SearchResult`` objects.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from asklinc.data.providers.base import DataProvider, ProviderUnavailable
from asklinc.data.schemas import SearchResult

logger = logging.getLogger(__name__)


SEARCH_ENDPOINTS = {
    "brave": "https://api.search.brave.com/res/v1/web/search",
    "bing": "https://api.bing.microsoft.com/v7.0/search",
    "google": "https://www.googleapis.com/customsearch/v1",
    "serpapi": "https://serpapi.com/search",
}

FINANCIAL_DOMAINS = [
    "bankrate.com", "nerdwallet.com", "investopedia.com", "fool.com",
    "morningstar.com", "finance.yahoo.com", "marketwatch.com", "wsj.com",
    "bloomberg.com", "reuters.com", "cnbc.com", "forbes.com",
]


class SearchProvider(DataProvider):
    """Keyword web search across a configurable backend."""

    name = "Web Search"

    def __init__(
        self,
        api_key: str,
        provider: str = "brave",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        max_results: int = 5,
        google_engine_id: str = "",
    ):
        super().__init__(api_key, timeout, transport)
        if provider not in SEARCH_ENDPOINTS:
            logger.warning(f"Unknown search provider {provider!r}, using brave")
            provider = "brave"
        self.provider = provider
        self.max_results = max_results
        self.google_engine_id = google_engine_id

    async def get(self, topic: str) -> List[SearchResult]:
        return await self.search(topic)

    async def search(self, query: str, max_results: Optional[int] = None) -> List[SearchResult]:
        """Run ``query`` and return normalised results, best first."""
        self._require_key()
        if not query or not query.strip():
            return []

        count = max_results or self.max_results
        url = SEARCH_ENDPOINTS[self.provider]
        params, headers = self._request_args(query, count)
        data = await self._get_json(url, params=params, headers=headers)
        return self._format_results(data)[:count]

    def _request_args(self, query: str, count: int) -> tuple:
        headers: Dict[str, str] = {"Accept": "application/json"}

        if self.provider == "brave":
            headers["X-Subscription-Token"] = self.api_key
            params = {"q": query, "count": str(count), "country": "US", "search_lang": "en"}
        elif self.provider == "bing":
            headers["Ocp-Apim-Subscription-Key"] = self.api_key
            params = {
                "q": query,
                "count": str(count),
                "mkt": "en-US",
                "freshness": "Day",
                "responseFilter": "Webpages",
                "textFormat": "Raw",
            }
        elif self.provider == "google":
            params = {
                "key": self.api_key,
                "cx": self.google_engine_id,
                "q": query,
                "num": str(min(count, 10)),
                "dateRestrict": "d7",
            }
        else:
            params = {"api_key": self.api_key, "q": query, "num": str(count), "tbs": "qdr:d"}

        return params, headers

    def _format_results(self, data: Dict[str, Any]) -> List[SearchResult]:
        if self.provider == "brave":
            items = (data.get("web") or {}).get("results") or []
            fields = ("title", "description", "url")
            source = "Brave"
        elif self.provider == "bing":
            items = (data.get("webPages") or {}).get("value") or []
            fields = ("name", "snippet", "url")
            source = "Bing"
        elif self.provider == "google":
            items = data.get("items") or []
            fields = ("title", "snippet", "link")
            source = "Google"
        else:
            items = data.get("organic_results") or []
            fields = ("title", "snippet", "link")
            source = "SerpAPI"

        title_key, snippet_key, url_key = fields
        results = []
        for index, item in enumerate(items):
            if not item.get(url_key):
                continue
            results.append(SearchResult(
                title=item.get(title_key, ""),
                snippet=item.get(snippet_key, "") or "",
                url=item[url_key],
                source=source,
                relevance=round(max(0.0, 1 - index * 0.1), 2),
            ))
        return results


def filter_financial_results(results: List[SearchResult]) -> List[SearchResult]:
    """Keep only results from well-known financial publishers."""
    return [
        r for r in results
        if any(domain in r.url.lower() for domain in FINANCIAL_DOMAINS)
    ]

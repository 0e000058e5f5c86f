"""External data providers used by the aggregator."""
from asklinc.data.providers.base import DataProvider, ProviderUnavailable
from asklinc.data.providers.fred import FredProvider
from asklinc.data.providers.market import AlphaVantageProvider
from asklinc.data.providers.search import SearchProvider

__all__ = [
    "DataProvider",
    "ProviderUnavailable",
    "FredProvider",
    "AlphaVantageProvider",
    "SearchProvider",
]

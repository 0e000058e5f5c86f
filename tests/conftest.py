"""Shared test fixtures for the AskLinc tests."""
import pytest
from datetime import date
from typing import Any, Dict, List, Optional

from asklinc.accounts.schemas import AccountRecord, TransactionRecord
from asklinc.data.cache import SourceCache
from asklinc.data.providers.base import DataProvider, ProviderUnavailable
from asklinc.data.schemas import MarketDataPoint, SearchResult, StockQuote, TreasuryYield
from asklinc.privacy.tokenizer import IdentifierTokenizer


# ============================================================================
# FAKES
# ============================================================================

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider(DataProvider):
    """
    Provider returning canned values per topic.

    A topic mapped to an exception instance raises it; ``calls`` records
    every topic (or search query) requested.
    """

    name = "fake"

    def __init__(self, values: Optional[Dict[str, Any]] = None, search_results: Optional[List[SearchResult]] = None):
        super().__init__(api_key="test-key")
        self.values = values or {}
        self.search_results = search_results or []
        self.calls: List[str] = []

    async def get(self, topic: str) -> Any:
        self.calls.append(topic)
        value = self.values.get(topic)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise ProviderUnavailable(self.name, f"no value for {topic}")
        return value

    async def search(self, query: str, max_results: Optional[int] = None) -> List[SearchResult]:
        self.calls.append(query)
        return self.search_results[:max_results] if max_results else list(self.search_results)


def point(value: float, source: str = "FRED") -> MarketDataPoint:
    return MarketDataPoint(value=value, date="2024-06-01", source=source)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def tokenizer():
    return IdentifierTokenizer(session_id="test-session")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return SourceCache(clock=clock)


@pytest.fixture
def sample_accounts():
    return [
        AccountRecord(name="Total Checking", institution="Chase", type="depository",
                      subtype="checking", balance=4250.12, available_balance=4100.00),
        AccountRecord(name="Online Savings", institution="Ally Bank", type="depository",
                      subtype="savings", balance=18500.00),
    ]


@pytest.fixture
def sample_transactions():
    return [
        TransactionRecord(date=date(2024, 6, 3), name="WHOLEFDS MKT 10234",
                          merchant_name="Whole Foods", amount=86.42,
                          category=["Food and Drink", "Groceries"], city="Austin"),
        TransactionRecord(date=date(2024, 6, 1), name="NETFLIX.COM",
                          merchant_name="Netflix", amount=15.49,
                          category=["Service", "Subscription"]),
    ]


@pytest.fixture
def fred_provider():
    return FakeProvider({
        "CPIAUCSL": point(313.5),
        "FEDFUNDS": point(5.33),
        "MORTGAGE30US": point(6.95),
        "TERMCBCCALLNS": point(21.5),
        "UNRATE": point(4.0),
    })


@pytest.fixture
def market_provider():
    return FakeProvider({
        "treasury_yields": [TreasuryYield(term="10 Year", yield_pct=4.25, date="2024-06-03")],
        "stock_quotes": [StockQuote(symbol="SPY", price=530.12, change_percent=0.45, date="2024-06-03")],
    })


@pytest.fixture
def search_provider():
    return FakeProvider(search_results=[
        SearchResult(
            title="Chase CD rates today",
            snippet="Chase offers 4.5% APY on a 12-month CD.",
            url="https://www.bankrate.com/banking/cds/chase-cd-rates/",
            source="Brave",
        ),
    ])


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances."""
    return FakeProvider


@pytest.fixture
def make_point():
    return point

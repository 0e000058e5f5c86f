"""Data feed schemas: tiers, market data and the aggregated context."""
from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime, timezone
from enum import Enum
import logging

from asklinc.accounts.schemas import AccountRecord, TransactionRecord

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    """Subscription tiers, ordered STARTER < STANDARD < PREMIUM."""
    STARTER = "starter"
    STANDARD = "standard"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        return TIER_ORDER.index(self)

    def at_least(self, other: "Tier") -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: Optional[str]) -> "Tier":
        """Map a caller-supplied tier name to a Tier; unknown names fall back to STARTER."""
        if isinstance(value, Tier):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            logger.warning(f"Unknown tier {value!r}, treating as starter")
            return cls.STARTER


TIER_ORDER = [Tier.STARTER, Tier.STANDARD, Tier.PREMIUM]


class SourceCategory(str, Enum):
    """What kind of data a source contributes."""
    ACCOUNT = "account"
    ECONOMIC = "economic"
    MARKET = "market"
    SEARCH = "search"


# ============================================================================
# MARKET DATA
# ============================================================================

class MarketDataPoint(BaseModel):
    """A single observation from an economic-indicator or market provider."""
    value: float = Field(..., description="Observed value")
    date: str = Field(..., description="Observation date as reported by the provider")
    source: str = Field(..., description="Provider name")
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), description="When it was fetched")


class EconomicIndicators(BaseModel):
    """Economic indicators; each is absent when its source was unavailable."""
    cpi: Optional[MarketDataPoint] = None
    fed_rate: Optional[MarketDataPoint] = None
    mortgage_rate: Optional[MarketDataPoint] = None
    credit_card_apr: Optional[MarketDataPoint] = None
    unemployment: Optional[MarketDataPoint] = None


class TreasuryYield(BaseModel):
    term: str
    yield_pct: float
    date: str


class StockQuote(BaseModel):
    symbol: str
    price: float
    change_percent: Optional[float] = None
    date: str


class LiveMarketData(BaseModel):
    """Live market data for premium users."""
    treasury_yields: List[TreasuryYield] = Field(default_factory=list)
    stock_quotes: List[StockQuote] = Field(default_factory=list)


class SearchResult(BaseModel):
    """A web search hit, normalised across search providers."""
    title: str
    snippet: str = ""
    url: str
    source: str
    relevance: float = 1.0


# ============================================================================
# AGGREGATED CONTEXT
# ============================================================================

class SourceAttribution(BaseModel):
    """Which upstream source supplied (or failed to supply) part of the context."""
    source_id: str
    name: str
    provider: str
    status: Literal["live", "cached", "stale", "unavailable"]
    fetched_at: Optional[datetime] = None
    detail: Optional[str] = None


class OmittedSource(BaseModel):
    """A source left out of the context, with the reason and any upgrade hint."""
    source_id: str
    name: str
    reason: Literal["tier", "unavailable"]
    required_tier: Optional[Tier] = None
    upgrade_hint: Optional[str] = None


class ContextFlags(BaseModel):
    """Per-request switches for context building."""
    search_query: Optional[str] = Field(None, description="Enhanced web search query, if a search is wanted")
    force_refresh: bool = Field(False, description="Invalidate cached source values before fetching")
    max_search_results: int = Field(5, ge=1, le=20)


class AggregatedContext(BaseModel):
    """The tier-filtered, multi-source bundle handed to the prompt assembler."""
    tier: Tier
    accounts: List[AccountRecord] = Field(default_factory=list)
    transactions: List[TransactionRecord] = Field(default_factory=list)
    economic_indicators: Optional[EconomicIndicators] = None
    live_market_data: Optional[LiveMarketData] = None
    search_results: Optional[List[SearchResult]] = None
    source_attributions: List[SourceAttribution] = Field(default_factory=list)
    omitted_sources: List[OmittedSource] = Field(default_factory=list)
    upgrade_suggestions: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)

    def has_any_data(self) -> bool:
        return bool(
            self.accounts
            or self.transactions
            or self.economic_indicators
            or self.live_market_data
            or self.search_results
        )

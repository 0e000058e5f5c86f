"""Tier Policy Registry - which data sources each subscription tier may use.

The registry is a static lookup table of source descriptors. A source is
allowed for a tier when the tier ranks at or above the source's minimum
tier, so access is monotonic: anything Standard unlocks, Premium unlocks too.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from asklinc.config import settings
from asklinc.data.schemas import Tier, TIER_ORDER, SourceCategory, OmittedSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataSourceDescriptor:
    """Static description of one data source."""
    id: str
    name: str
    description: str
    category: SourceCategory
    provider: str
    minimum_tier: Tier
    cache_ttl_seconds: int = 0
    topic: Optional[str] = None
    context_field: Optional[str] = None
    upgrade_benefit: Optional[str] = None

    @property
    def is_external(self) -> bool:
        return self.category != SourceCategory.ACCOUNT


def _descriptors() -> List[DataSourceDescriptor]:
    return [
        # Account data (all tiers, supplied by the account store)
        DataSourceDescriptor(
            id="account-balances",
            name="Account Balances",
            description="Current and available balances for all connected accounts",
            category=SourceCategory.ACCOUNT,
            provider="internal",
            minimum_tier=Tier.STARTER,
        ),
        DataSourceDescriptor(
            id="account-transactions",
            name="Transaction History",
            description="Detailed transaction history with categories and merchants",
            category=SourceCategory.ACCOUNT,
            provider="internal",
            minimum_tier=Tier.STARTER,
        ),

        # Economic indicators (Standard+)
        DataSourceDescriptor(
            id="fred-cpi",
            name="Consumer Price Index",
            description="Inflation tracking via CPI data",
            category=SourceCategory.ECONOMIC,
            provider="fred",
            minimum_tier=Tier.STANDARD,
            cache_ttl_seconds=settings.CACHE_TTL_ECONOMIC_SECONDS,
            topic="CPIAUCSL",
            context_field="cpi",
            upgrade_benefit="Track inflation impact on your savings",
        ),
        DataSourceDescriptor(
            id="fred-fed-rate",
            name="Federal Reserve Rate",
            description="Current Federal Funds Rate",
            category=SourceCategory.ECONOMIC,
            provider="fred",
            minimum_tier=Tier.STANDARD,
            cache_ttl_seconds=settings.CACHE_TTL_ECONOMIC_SECONDS,
            topic="FEDFUNDS",
            context_field="fed_rate",
            upgrade_benefit="Understand how Fed policy affects your loans and savings",
        ),
        DataSourceDescriptor(
            id="fred-mortgage-rate",
            name="Mortgage Rates",
            description="Average 30-year fixed mortgage rate",
            category=SourceCategory.ECONOMIC,
            provider="fred",
            minimum_tier=Tier.STANDARD,
            cache_ttl_seconds=settings.CACHE_TTL_ECONOMIC_SECONDS,
            topic="MORTGAGE30US",
            context_field="mortgage_rate",
            upgrade_benefit="Compare mortgage rates for refinancing decisions",
        ),
        DataSourceDescriptor(
            id="fred-credit-card-apr",
            name="Credit Card APR",
            description="Average interest rate on credit card plans",
            category=SourceCategory.ECONOMIC,
            provider="fred",
            minimum_tier=Tier.STANDARD,
            cache_ttl_seconds=settings.CACHE_TTL_ECONOMIC_SECONDS,
            topic="TERMCBCCALLNS",
            context_field="credit_card_apr",
            upgrade_benefit="Understand credit card costs and debt management",
        ),
        DataSourceDescriptor(
            id="fred-unemployment",
            name="Unemployment Rate",
            description="Civilian unemployment rate",
            category=SourceCategory.ECONOMIC,
            provider="fred",
            minimum_tier=Tier.STANDARD,
            cache_ttl_seconds=settings.CACHE_TTL_ECONOMIC_SECONDS,
            topic="UNRATE",
            context_field="unemployment",
            upgrade_benefit="See how the job market affects your emergency fund planning",
        ),

        # Search context (Standard+)
        DataSourceDescriptor(
            id="web-search",
            name="Real-time Financial Search",
            description="Search for current financial information and rates",
            category=SourceCategory.SEARCH,
            provider="search",
            minimum_tier=Tier.STANDARD,
            cache_ttl_seconds=settings.CACHE_TTL_SEARCH_SECONDS,
            context_field="search_results",
            upgrade_benefit="Get real-time financial information and current rates",
        ),

        # Live market data (Premium)
        DataSourceDescriptor(
            id="alpha-vantage-treasury-yields",
            name="Treasury Yields",
            description="Current Treasury yields across maturities",
            category=SourceCategory.MARKET,
            provider="alpha-vantage",
            minimum_tier=Tier.PREMIUM,
            cache_ttl_seconds=settings.CACHE_TTL_TREASURY_SECONDS,
            topic="treasury_yields",
            context_field="treasury_yields",
            upgrade_benefit="Compare Treasury yields for safe investment options",
        ),
        DataSourceDescriptor(
            id="alpha-vantage-stock-data",
            name="Stock Market Data",
            description="Latest quotes for major market index funds",
            category=SourceCategory.MARKET,
            provider="alpha-vantage",
            minimum_tier=Tier.PREMIUM,
            cache_ttl_seconds=settings.CACHE_TTL_STOCK_SECONDS,
            topic="stock_quotes",
            context_field="stock_quotes",
            upgrade_benefit="Track your investments with real-time market data",
        ),
    ]


SOURCE_REGISTRY: Dict[str, DataSourceDescriptor] = {d.id: d for d in _descriptors()}


class TierPolicyRegistry:
    """Answers which sources a tier may use and what an upgrade would unlock."""

    def __init__(self, sources: Optional[Dict[str, DataSourceDescriptor]] = None):
        self._sources = dict(SOURCE_REGISTRY if sources is None else sources)

    def get(self, source_id: str) -> Optional[DataSourceDescriptor]:
        return self._sources.get(source_id)

    def all_sources(self) -> List[DataSourceDescriptor]:
        return list(self._sources.values())

    def is_allowed(self, tier: Tier, source_id: str) -> bool:
        """True when ``tier`` ranks at or above the source's minimum tier."""
        source = self.get(source_id)
        if source is None:
            logger.warning(f"Unknown data source {source_id!r} requested for tier {tier.value}")
            return False
        return tier.at_least(source.minimum_tier)

    def available(self, tier: Tier) -> List[DataSourceDescriptor]:
        return [s for s in self.all_sources() if tier.at_least(s.minimum_tier)]

    def unavailable(self, tier: Tier) -> List[OmittedSource]:
        """Sources the tier cannot use, each with the tier that unlocks it."""
        return [
            OmittedSource(
                source_id=s.id,
                name=s.name,
                reason="tier",
                required_tier=s.minimum_tier,
                upgrade_hint=(
                    f"Upgrade to {s.minimum_tier.value.title()} to unlock {s.name}: "
                    f"{s.upgrade_benefit or s.description}"
                ),
            )
            for s in self.all_sources()
            if not tier.at_least(s.minimum_tier)
        ]

    def upgrade_suggestions(self, tier: Tier) -> List[str]:
        """One sentence per higher tier listing what it would add."""
        suggestions = []
        for higher in TIER_ORDER[tier.rank + 1:]:
            unlocked = [s.name for s in self.all_sources() if s.minimum_tier == higher]
            if not unlocked:
                continue
            if higher == Tier.STANDARD:
                suggestions.append(
                    f"Upgrade to Standard to access economic context like {', '.join(unlocked)}"
                )
            else:
                suggestions.append(
                    f"Upgrade to {higher.value.title()} for live market data including {', '.join(unlocked)}"
                )
        return suggestions

    @staticmethod
    def next_tier(tier: Tier) -> Optional[Tier]:
        if tier.rank + 1 < len(TIER_ORDER):
            return TIER_ORDER[tier.rank + 1]
        return None  # Already at highest tier

    @staticmethod
    def limitations(tier: Tier) -> List[str]:
        if tier == Tier.STARTER:
            return [
                "Limited to account data only",
                "No economic context for financial decisions",
                "No real-time search for current financial information",
                "No live market data for investment insights",
            ]
        if tier == Tier.STANDARD:
            return [
                "No live Treasury yields",
                "No stock market tracking",
            ]
        return ["Full access to all data sources"]


tier_registry = TierPolicyRegistry()

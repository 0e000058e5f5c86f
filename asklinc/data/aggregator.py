"""Data Source Aggregator - builds the tier-aware context for one question.

The aggregator:
1. Always includes the user's first-party accounts and transactions
2. Looks up which external sources the tier may use
3. Fetches every permitted source concurrently through the shared cache
4. Falls back to the last known value, or omits the source, when a provider fails
5. Merges everything into a single AggregatedContext once all sources settle

Provider failures never escape this module: one bad source degrades the
context, it does not fail the request.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from asklinc.accounts.schemas import AccountRecord, TransactionRecord
from asklinc.data.cache import SourceCache, source_cache
from asklinc.data.providers.base import DataProvider, ProviderUnavailable
from asklinc.data.providers.search import filter_financial_results
from asklinc.data.schemas import (
    AggregatedContext,
    ContextFlags,
    EconomicIndicators,
    LiveMarketData,
    OmittedSource,
    SourceAttribution,
    SourceCategory,
    Tier,
)
from asklinc.data.sources import DataSourceDescriptor, TierPolicyRegistry, tier_registry

logger = logging.getLogger(__name__)


@dataclass
class SourceOutcome:
    """How one source settled during a build."""
    source: DataSourceDescriptor
    status: str  # live | cached | stale | unavailable
    value: Any = None
    fetched_at: Optional[datetime] = None
    error: Optional[str] = None


class DataSourceAggregator:
    """
    Fetches tier-permitted sources and merges them into one context.

    ``providers`` maps a descriptor's ``provider`` name ("fred",
    "alpha-vantage", "search") to the DataProvider that serves it.
    """

    def __init__(
        self,
        providers: Dict[str, DataProvider],
        registry: TierPolicyRegistry = tier_registry,
        cache: SourceCache = source_cache,
        provider_timeout: float = 8.0,
    ):
        self.providers = providers
        self.registry = registry
        self.cache = cache
        self.provider_timeout = provider_timeout

    async def build_context(
        self,
        tier: Tier,
        accounts: List[AccountRecord],
        transactions: List[TransactionRecord],
        flags: Optional[ContextFlags] = None,
    ) -> AggregatedContext:
        """Build the aggregated context for a request at ``tier``."""
        flags = flags or ContextFlags()

        external = [
            s for s in self.registry.available(tier)
            if s.is_external and self._wanted(s, flags)
        ]

        if flags.force_refresh:
            for source in external:
                self.cache.invalidate(self._cache_key(source, flags))

        outcomes = await asyncio.gather(*(self._fetch_source(s, flags) for s in external))

        context = AggregatedContext(
            tier=tier,
            accounts=list(accounts),
            transactions=list(transactions),
            omitted_sources=self.registry.unavailable(tier),
            upgrade_suggestions=self.registry.upgrade_suggestions(tier),
            limitations=self.registry.limitations(tier),
        )
        self._merge(context, outcomes)

        logger.info(
            f"Built context for tier {tier.value}: "
            f"{sum(1 for o in outcomes if o.status != 'unavailable')}/{len(outcomes)} external sources, "
            f"{len(context.omitted_sources)} omitted"
        )
        return context

    def _wanted(self, source: DataSourceDescriptor, flags: ContextFlags) -> bool:
        if source.category == SourceCategory.SEARCH:
            return bool(flags.search_query and flags.search_query.strip())
        return True

    def _cache_key(self, source: DataSourceDescriptor, flags: ContextFlags) -> str:
        if source.category == SourceCategory.SEARCH:
            return f"{source.id}:{' '.join(flags.search_query.lower().split())}"
        return source.id

    async def _call_provider(self, source: DataSourceDescriptor, flags: ContextFlags) -> Any:
        provider = self.providers.get(source.provider)
        if provider is None:
            raise ProviderUnavailable(source.provider, "no provider registered")

        if source.category == SourceCategory.SEARCH:
            results = await provider.search(flags.search_query, flags.max_search_results)
            return filter_financial_results(results) or results
        return await provider.get(source.topic)

    async def _fetch_source(self, source: DataSourceDescriptor, flags: ContextFlags) -> SourceOutcome:
        """Resolve one source: fresh cache, then provider, then stale cache, then omit."""
        key = self._cache_key(source, flags)

        cached = self.cache.get(key)
        if cached is not None:
            return SourceOutcome(source, "cached", cached.value, cached.fetched_on)

        try:
            value = await asyncio.wait_for(
                self._call_provider(source, flags),
                timeout=self.provider_timeout,
            )
        except asyncio.TimeoutError:
            error = f"timed out after {self.provider_timeout}s"
        except ProviderUnavailable as e:
            error = e.reason
        except Exception as e:
            logger.exception(f"Unexpected error fetching {source.id}")
            error = str(e) or type(e).__name__
        else:
            entry = self.cache.set(key, value, source.cache_ttl_seconds)
            return SourceOutcome(source, "live", value, entry.fetched_on)

        logger.warning(f"Source {source.id} unavailable: {error}")
        stale = self.cache.get_stale(key)
        if stale is not None:
            return SourceOutcome(source, "stale", stale.value, stale.fetched_on, error)
        return SourceOutcome(source, "unavailable", error=error)

    def _merge(self, context: AggregatedContext, outcomes: List[SourceOutcome]) -> None:
        indicators = EconomicIndicators()
        live = LiveMarketData()
        has_indicators = False
        has_live = False

        for outcome in outcomes:
            source = outcome.source
            context.source_attributions.append(SourceAttribution(
                source_id=source.id,
                name=source.name,
                provider=source.provider,
                status=outcome.status,
                fetched_at=outcome.fetched_at,
                detail=outcome.error,
            ))

            if outcome.status == "unavailable":
                context.omitted_sources.append(OmittedSource(
                    source_id=source.id,
                    name=source.name,
                    reason="unavailable",
                ))
                continue

            if source.category == SourceCategory.ECONOMIC:
                setattr(indicators, source.context_field, outcome.value)
                has_indicators = True
            elif source.category == SourceCategory.MARKET:
                setattr(live, source.context_field, list(outcome.value))
                has_live = True
            elif source.category == SourceCategory.SEARCH and outcome.value:
                context.search_results = list(outcome.value)

        if has_indicators:
            context.economic_indicators = indicators
        if has_live:
            context.live_market_data = live


def create_aggregator(cache: Optional[SourceCache] = None) -> DataSourceAggregator:
    """Build an aggregator wired to the configured providers and the shared cache."""
    from asklinc.config import settings
    from asklinc.data.providers import AlphaVantageProvider, FredProvider, SearchProvider

    timeout = settings.PROVIDER_TIMEOUT_SECONDS
    providers: Dict[str, DataProvider] = {
        "fred": FredProvider(settings.FRED_API_KEY, timeout=timeout),
        "alpha-vantage": AlphaVantageProvider(
            settings.ALPHA_VANTAGE_API_KEY,
            timeout=timeout,
            maturities=settings.TREASURY_MATURITIES,
            symbols=settings.STOCK_SYMBOLS,
        ),
        "search": SearchProvider(
            settings.SEARCH_API_KEY,
            provider=settings.SEARCH_PROVIDER,
            timeout=timeout,
            max_results=settings.SEARCH_MAX_RESULTS,
            google_engine_id=settings.GOOGLE_SEARCH_ENGINE_ID,
        ),
    }
    for name, provider in providers.items():
        if not provider.is_configured():
            logger.warning(f"{name} API key not set, its sources will be reported unavailable")

    return DataSourceAggregator(
        providers=providers,
        cache=cache or source_cache,
        provider_timeout=timeout,
    )
